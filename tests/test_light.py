import fcntl
import io
import os
import pty
import struct
import termios
from collections import deque

import pytest

from fzfkit.tui.borders import BorderShape, make_border_style
from fzfkit.tui.colors import dark256, empty_theme
from fzfkit.tui.events import EventType, key
from fzfkit.tui.light import CR_MARK, LightRenderer, TermSize


class FakeInput:
    def __init__(self, data=b""):
        self.data = deque(data)

    def feed(self, data):
        self.data.extend(data)

    def __call__(self, nonblock):
        return self.data.popleft() if self.data else None


@pytest.fixture(autouse=True)
def environment(monkeypatch):
    monkeypatch.setenv("ESCDELAY", "0")
    monkeypatch.setenv("TERM", "xterm-256color")


@pytest.fixture
def terminal():
    master, slave = pty.openpty()
    fcntl.ioctl(slave, termios.TIOCSWINSZ, struct.pack("HHHH", 12, 40, 0, 0))
    ttyin = os.fdopen(slave, "rb", buffering=0)
    yield ttyin
    ttyin.close()
    os.close(master)


def make_renderer(ttyin, data=b"", **kwargs):
    feed = FakeInput(data)
    out = io.StringIO()
    renderer = LightRenderer(empty_theme(), ttyin=ttyin, output=out, getch=feed, **kwargs)
    return renderer, feed, out


def test_init_reserves_area(terminal):
    r, _, out = make_renderer(terminal, b"\x1b[5;1R", max_height_func=lambda h: min(h, 5))
    r.init()
    r.refresh_windows([])
    assert r.max_x() == 40
    assert r.max_y() == 5
    text = out.getvalue()
    assert "\x1b[6n" in text
    assert f"\x1b[{r.max_y() - 1}A" in text
    assert "\x1b[?1049h" not in text


def test_init_uses_256_color_theme(terminal):
    r, _, _ = make_renderer(terminal, b"\x1b[5;1R")
    r.init()
    assert r.palette.border.fg == dark256().border.color


def test_offset_leftover_becomes_input(terminal):
    r, _, _ = make_renderer(terminal, b"x\x1b[5;1R")
    r.init()
    assert r.get_char() == key("x")


def test_get_char_arrow(terminal):
    r, feed, _ = make_renderer(terminal, b"\x1b[5;1R")
    r.init()
    feed.feed(b"\x1b[A")
    assert r.get_char() == EventType.UP.as_event()


def test_get_char_without_input_raises(terminal):
    r, _, _ = make_renderer(terminal, b"\x1b[5;1R")
    r.init()
    with pytest.raises(OSError):
        r.get_char()


def test_close_restores_terminal_mode(terminal):
    before = termios.tcgetattr(terminal.fileno())
    r, _, out = make_renderer(terminal, b"\x1b[5;1R")
    r.init()
    assert termios.tcgetattr(terminal.fileno()) != before
    r.close()
    assert termios.tcgetattr(terminal.fileno()) == before
    assert out.getvalue().endswith("\x1b[J\x1b[?25h")


def test_pass_through():
    out = io.StringIO()
    r = LightRenderer(empty_theme(), output=out, getch=FakeInput())
    r.pass_through("foo")
    assert out.getvalue() == "\x1b[?25l\x1b7foo\x1b8\x1b[?25h"


def test_stderr_internal_marks_carriage_return():
    out = io.StringIO()
    r = LightRenderer(empty_theme(), output=out, getch=FakeInput())
    r.stderr_internal("a\rb\x01", False, "")
    r.refresh_windows([])
    assert out.getvalue() == "\x1b[?25la" + CR_MARK + "b\x1b[?25h"


def test_move_sequences():
    out = io.StringIO()
    r = LightRenderer(empty_theme(), output=out, getch=FakeInput())
    r.move(3, 2)
    r.move(1, 0)
    r.refresh_windows([])
    assert out.getvalue() == "\x1b[?25l\x1b[3B\r\x1b[2C\x1b[2A\r\x1b[?25h"


def test_size_reads_window_size(terminal):
    r, _, _ = make_renderer(terminal)
    assert r.size() == TermSize(12, 40, 0, 0)


def test_resize_changes_height(terminal):
    r, _, _ = make_renderer(terminal)
    r.resize(lambda h: 3)
    r.refresh()
    assert r.max_y() == 3


def test_new_window_draws_border(terminal):
    r, _, out = make_renderer(terminal, b"\x1b[5;1R")
    r.init()
    w = r.new_window(0, 0, 10, 3, False, make_border_style(BorderShape.ROUNDED, True))
    r.refresh_windows([w])
    text = out.getvalue()
    assert "╭" in text and "╯" in text
    assert w.enclose(1, 1)
    assert not w.enclose(3, 0)


def test_fullscreen_mouse_event(terminal):
    r, _, out = make_renderer(terminal, b"\x1b[<0;5;3M", fullscreen=True, mouse=True)
    r.init()
    r.refresh_windows([])
    text = out.getvalue()
    assert "\x1b[?1049h" in text
    assert "\x1b[?1006h" in text
    ev = r.get_char()
    assert ev.type == EventType.MOUSE
    assert ev.mouse_event.x == 4
    assert ev.mouse_event.y == 2
    assert ev.mouse_event.down


def test_pause_fullscreen_leaves_alternate_screen(terminal):
    r, _, out = make_renderer(terminal, fullscreen=True, mouse=True)
    r.init()
    r.pause(True)
    text = out.getvalue()
    assert "\x1b[?1049l" in text
    assert "\x1b[?1000l" in text


def test_resume_after_stop_disables_mouse(terminal):
    r, _, out = make_renderer(terminal, b"\x1b[5;1R")
    r.init()
    r.mouse = True
    r.resume(False, True)
    r.refresh_windows([])
    assert r.mouse is False
    assert "\x1b[?1000l" in out.getvalue()


def test_need_scrollbar_redraw_is_false():
    r = LightRenderer(empty_theme(), output=io.StringIO(), getch=FakeInput())
    assert r.need_scrollbar_redraw() is False