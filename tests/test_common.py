import signal
import subprocess
from datetime import timedelta
from unittest import mock

import pytest

from fzfkit.util.common import (
    as_uint16,
    constrain,
    dur_within,
    exec_command,
    exec_command_with,
    is_tty,
    is_windows,
    kill_command,
    once,
    repeat_to_fill,
    runes_width,
    string_width,
    to_tty,
    truncate,
)


def test_constrain():
    assert constrain(-3, -1, 3) == -1
    assert constrain(2, -1, 3) == 2
    assert constrain(5, -1, 3) == 3
    assert constrain(0, -(2**31), 2**31 - 1) == 0


def test_as_uint16():
    assert as_uint16(5) == 5
    assert as_uint16(-10) == 0
    assert as_uint16(65535) == 65535
    assert as_uint16(-(2**31)) == 0
    assert as_uint16(-32768) == 0
    assert as_uint16(65536) == 65535


def test_dur_within():
    us = timedelta(microseconds=1)
    second = timedelta(seconds=1)
    assert dur_within(5 * us, 1 * us, 8 * us) == 5 * us
    assert dur_within(timedelta(0), second, 3 * second) == second
    assert dur_within(10 * second, timedelta(0), second) == second


def test_once():
    respond = once(False)
    assert respond() is False
    assert respond() is False

    respond = once(True)
    assert respond() is True
    assert respond() is False


@pytest.mark.parametrize("limit, width, overflow", [(100, 5, -1), (3, 4, 3), (0, 1, 0)])
def test_runes_width(limit, width, overflow):
    assert runes_width("hello", 0, 0, limit) == (width, overflow)


def test_truncate():
    assert truncate("가나다라마", 7) == ("가나다", 6)


def test_repeat_to_fill():
    assert repeat_to_fill("abcde", 10, 50) == "abcde" * 5
    assert repeat_to_fill("abcde", 10, 42) == "abcde" * 4 + "ab"


def test_string_width():
    assert string_width("─") == 1


def test_string_width_counts_newlines():
    assert string_width("a\nb") == 3


def test_tty_checks_without_terminal():
    with mock.patch("sys.stdin", None), mock.patch("sys.stdout", None):
        assert is_tty() is False
        assert to_tty() is False


def test_is_windows_follows_platform():
    with mock.patch("sys.platform", "win32"):
        assert is_windows() is True
    with mock.patch("sys.platform", "linux"):
        assert is_windows() is False


def test_exec_command_with_posix_arguments():
    with mock.patch("sys.platform", "linux"):
        start = exec_command_with("bash", "echo hi", True)
    assert start.args == (["bash", "-c", "echo hi"],)
    assert start.keywords == {"start_new_session": True}


def test_exec_command_uses_shell_env(monkeypatch):
    monkeypatch.setenv("SHELL", "/bin/zsh")
    with mock.patch("sys.platform", "linux"):
        start = exec_command("ls", False)
    assert start.args == (["/bin/zsh", "-c", "ls"],)


def test_exec_command_defaults_to_sh(monkeypatch):
    monkeypatch.delenv("SHELL", raising=False)
    with mock.patch("sys.platform", "linux"):
        start = exec_command("ls", False)
    assert start.args == (["sh", "-c", "ls"],)


def test_exec_command_with_windows_shells():
    with mock.patch("sys.platform", "win32"):
        cmd = exec_command_with("cmd", "dir", False)
        pwsh = exec_command_with("pwsh", "Get-Item", False)
        other = exec_command_with("bash", "ls", False)
    assert cmd.args == ('cmd /v:on/s/c "dir"',)
    assert pwsh.args == (["pwsh", "-NoProfile", "-Command", "Get-Item"],)
    assert other.args == (["bash", "-c", "ls"],)


def test_exec_command_runs():
    process = exec_command_with("sh", "echo hi", False)(stdout=subprocess.PIPE)
    out, _ = process.communicate(timeout=10)
    assert out == b"hi\n"


def test_kill_command():
    process = exec_command_with("sh", "sleep 30", True)()
    kill_command(process)
    assert process.wait(timeout=10) == -signal.SIGKILL