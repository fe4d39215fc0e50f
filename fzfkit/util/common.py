"""Display-width helpers, numeric clamps, terminal checks and shell commands."""

from __future__ import annotations

import functools
import os
import signal
import subprocess
import sys
from typing import Callable, Iterable, TypeVar, Union

import regex
from wcwidth import wcwidth

_GRAPHEME = regex.compile(r"\X")
_UINT16_MAX = 0xFFFF

T = TypeVar("T")


def _rune_width(ch: str) -> int:
    width = wcwidth(ch)
    return width if width > 0 else 0


def _cluster_width(cluster: str) -> int:
    for ch in cluster:
        width = _rune_width(ch)
        if width > 0:
            return width
    return 0


def string_width(text: str) -> int:
    """Display width of ``text``; each CR and LF counts as one column."""
    width = sum(_cluster_width(cluster) for cluster in _GRAPHEME.findall(text))
    return width + text.count("\n") + text.count("\r")


def runes_width(
    runes: Union[str, Iterable[str]], prefix_width: int, tabstop: int, limit: int
) -> tuple[int, int]:
    """Return ``(width, index)``; index is where ``limit`` is exceeded, else -1."""
    text = runes if isinstance(runes, str) else "".join(runes)
    width = 0
    idx = 0
    for cluster in _GRAPHEME.findall(text):
        if cluster == "\t":
            w = tabstop - (prefix_width + width) % tabstop
        else:
            w = string_width(cluster)
        width += w
        if width > limit:
            return width, idx
        idx += len(cluster)
    return width, -1


def truncate(text: str, limit: int) -> tuple[str, int]:
    """Cut ``text`` to at most ``limit`` columns; return it with its width."""
    kept: list[str] = []
    width = 0
    for cluster in _GRAPHEME.findall(text):
        w = string_width(cluster)
        if width + w > limit:
            break
        width += w
        kept.append(cluster)
    return "".join(kept), width


def constrain(value: T, minimum: T, maximum: T) -> T:
    """Clamp ``value`` into ``[minimum, maximum]``."""
    if value < minimum:
        return minimum
    if value > maximum:
        return maximum
    return value


def as_uint16(value: int) -> int:
    """Clamp ``value`` into the unsigned 16-bit range."""
    return constrain(value, 0, _UINT16_MAX)


def dur_within(value: T, minimum: T, maximum: T) -> T:
    """Clamp a duration into ``[minimum, maximum]``."""
    return constrain(value, minimum, maximum)


def _isatty(stream) -> bool:
    if stream is None:
        return False
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def is_tty() -> bool:
    """True if standard input is a terminal."""
    return _isatty(sys.stdin)


def to_tty() -> bool:
    """True if standard output is a terminal."""
    return _isatty(sys.stdout)


def once(next_response: bool) -> Callable[[], bool]:
    """Return a function that yields ``next_response`` once, then False."""
    state = next_response

    def respond() -> bool:
        nonlocal state
        previous, state = state, False
        return previous

    return respond


def repeat_to_fill(text: str, length: int, limit: int) -> str:
    """Repeat ``text`` (of display width ``length``) to fill ``limit`` columns."""
    times, rest = divmod(limit, length)
    output = text * times
    if rest > 0:
        for ch in text:
            rest -= _rune_width(ch)
            if rest < 0:
                break
            output += ch
            if rest == 0:
                break
    return output


def is_windows() -> bool:
    """True when running on Windows."""
    return sys.platform == "win32"


@functools.lru_cache(maxsize=None)
def _windows_shell() -> str:
    shell = os.environ.get("SHELL", "")
    if not shell:
        return "cmd"
    if "/" in shell:
        try:
            result = subprocess.run(
                ["cygpath", "-w", shell], capture_output=True, text=True, check=True
            )
        except (OSError, subprocess.CalledProcessError):
            return shell
        return result.stdout.strip("\n")
    return shell


def exec_command(command: str, setpgid: bool) -> Callable[..., subprocess.Popen]:
    """Prepare ``command`` to run under ``$SHELL``; call the result to start it."""
    if is_windows():
        shell = _windows_shell()
    else:
        shell = os.environ.get("SHELL") or "sh"
    return exec_command_with(shell, command, setpgid)


def exec_command_with(
    shell: str, command: str, setpgid: bool
) -> Callable[..., subprocess.Popen]:
    """Prepare ``command`` to run under ``shell``.

    Returns a callable that starts the process; keyword arguments given to it
    are passed to :class:`subprocess.Popen`.
    """
    if is_windows():
        if "cmd" in shell:
            return functools.partial(subprocess.Popen, f'{shell} /v:on/s/c "{command}"')
        if "pwsh" in shell or "powershell" in shell:
            return functools.partial(
                subprocess.Popen, [shell, "-NoProfile", "-Command", command]
            )
        return functools.partial(subprocess.Popen, [shell, "-c", command])
    return functools.partial(
        subprocess.Popen, [shell, "-c", command], start_new_session=setpgid
    )


def kill_command(process: subprocess.Popen) -> None:
    """Kill a started command, including its process group outside Windows."""
    if is_windows():
        process.kill()
    else:
        os.killpg(process.pid, signal.SIGKILL)