"""A renderer that draws with plain escape sequences below the cursor line."""

from __future__ import annotations

import os
import re
import select
import struct
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import IO, Callable, Iterable, Optional

from fzfkit.tui.borders import BorderStyle
from fzfkit.tui.colors import (
    ColorTheme,
    Palette,
    dark256,
    default16,
    init_palette,
    init_theme,
)
from fzfkit.tui.events import Event
from fzfkit.tui.keys import KeyDecoder
from fzfkit.tui.ttyname import CONSOLE_DEVICE, tty_in
from fzfkit.tui.window import LightWindow

try:
    import fcntl
    import termios
    import tty
except ImportError:  # not available on Windows
    fcntl = None
    termios = None
    tty = None

DEFAULT_WIDTH = 80
DEFAULT_HEIGHT = 24
DEFAULT_ESC_DELAY = 100
ESC_POLL_INTERVAL = 5
OFFSET_POLL_TRIES = 10
MAX_INPUT_BUFFER = 1024 * 1024

CR_MARK = "\x1b[2m␍"
LF_MARK = "\x1b[2m␊"

_ESC = 27
_OFFSET = re.compile(rb"(.*)\x1b\[([0-9]+);([0-9]+)R")
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _atoi(text: str, default: int) -> int:
    return int(text) if _INTEGER.fullmatch(text) else default


def _getenv_int(name: str, default: int) -> int:
    value = os.environ.get(name, "")
    if not value:
        return default
    return _atoi(value, default)


@dataclass(frozen=True)
class TermSize:
    """Terminal size in character cells and pixels."""

    lines: int
    columns: int
    width: int
    height: int


class LightRenderer:
    """Draws the interface inline, using at most ``max_height_func(rows)`` lines.

    ``output`` receives the escape sequences (standard error by default),
    ``ttyin`` is the terminal to read keys from, and ``getch`` may replace the
    byte reader: it takes a non-blocking flag and returns a byte or None.
    """

    def __init__(
        self,
        theme: ColorTheme,
        force_black: bool = False,
        mouse: bool = False,
        tabstop: int = 8,
        clear_on_exit: bool = True,
        fullscreen: bool = False,
        max_height_func: Optional[Callable[[int], int]] = None,
        *,
        ttyin: Optional[IO] = None,
        output: Optional[IO[str]] = None,
        getch: Optional[Callable[[bool], Optional[int]]] = None,
    ) -> None:
        self.theme = theme
        self.force_black = force_black
        self.clear_on_exit = clear_on_exit
        self.fullscreen = fullscreen
        self.tabstop = tabstop
        self.max_height_func = max_height_func or (lambda height: height)
        self.esc_delay = DEFAULT_ESC_DELAY
        self.palette: Optional[Palette] = None
        self._ttyin = ttyin
        self._output = output
        self._getch = getch or self._read_tty
        self._decoder = KeyDecoder(mouse=mouse, read=lambda: self._get_bytes(False))
        self._orig_state = None
        self._queued: list[str] = []
        self._width = 0
        self._height = 0
        self._y = 0
        self._x = 0
        self._up_one_line = False

    @property
    def mouse(self) -> bool:
        """Whether mouse reports are enabled."""
        return self._decoder.mouse

    @mouse.setter
    def mouse(self, value: bool) -> None:
        self._decoder.mouse = value

    # Output

    def stderr(self, text: str) -> None:
        """Queue text for output, keeping CR and LF as they are."""
        self.stderr_internal(text, True, "")

    def stderr_internal(self, text: str, allow_nlcr: bool, reset_code: str) -> None:
        """Queue text, dropping control characters other than ESC, CR and LF.

        Unless ``allow_nlcr``, CR and LF are shown as dim symbols followed by
        ``reset_code``.
        """
        out = []
        for ch in text:
            nlcr = ch in "\r\n"
            if ord(ch) >= 32 or ch == "\x1b" or nlcr:
                if nlcr and not allow_nlcr:
                    out.append((CR_MARK if ch == "\r" else LF_MARK) + reset_code)
                elif ch != "\ufffd":
                    out.append(ch)
        self._queued.append("".join(out))

    def csi(self, code: str) -> str:
        """Queue a control sequence and return it."""
        full = "\x1b[" + code
        self.stderr(full)
        return full

    def flush(self) -> None:
        """Write queued output with the cursor hidden."""
        queued = "".join(self._queued)
        if queued:
            out = self._output if self._output is not None else sys.stderr
            out.write("\x1b[?25l" + queued + "\x1b[?25h")
            out.flush()
        self._queued.clear()

    def pass_through(self, text: str) -> None:
        """Write raw text, saving and restoring the cursor around it."""
        self._queued.append("\x1b7" + text + "\x1b8")
        self.flush()

    # Terminal state

    def _fd(self) -> int:
        if self._ttyin is None:
            self._ttyin = tty_in()
        return self._ttyin.fileno()

    def _init_platform(self) -> None:
        if termios is None:
            raise OSError("terminal control is not available on this platform")
        fd = self._fd()
        try:
            self._orig_state = termios.tcgetattr(fd)
            tty.setraw(fd, termios.TCSANOW)
        except termios.error as exc:
            raise OSError(str(exc)) from exc

    def _setup_terminal(self) -> None:
        if termios is None:
            return
        try:
            tty.setraw(self._fd(), termios.TCSANOW)
        except (termios.error, OSError, ValueError):
            pass

    def _restore_terminal(self) -> None:
        if termios is None or self._orig_state is None:
            return
        try:
            termios.tcsetattr(self._fd(), termios.TCSANOW, self._orig_state)
        except (termios.error, OSError, ValueError):
            pass

    def _update_terminal_size(self) -> None:
        try:
            columns, lines = os.get_terminal_size(self._fd())
        except (OSError, ValueError):
            self._width = _getenv_int("COLUMNS", DEFAULT_WIDTH)
            self._height = self.max_height_func(_getenv_int("LINES", DEFAULT_HEIGHT))
        else:
            self._width = columns
            self._height = self.max_height_func(lines)

    def _default_theme(self) -> ColorTheme:
        if "256" in os.environ.get("TERM", ""):
            return dark256()
        try:
            result = subprocess.run(
                ["tput", "colors"], capture_output=True, text=True, check=True
            )
        except (OSError, subprocess.CalledProcessError):
            return default16()
        if _atoi(result.stdout.strip(), 16) > 16:
            return dark256()
        return default16()

    # Input

    def _read_tty(self, nonblock: bool) -> Optional[int]:
        try:
            fd = self._fd()
            if nonblock:
                ready, _, _ = select.select([fd], [], [], 0)
                if not ready:
                    return None
            data = os.read(fd, 1)
        except (OSError, ValueError):
            return None
        return data[0] if data else None

    def _get_bytes(self, nonblock: bool) -> bytes:
        buffer = bytearray()
        c = self._getch(nonblock)
        if c is None and not nonblock:
            self.close()
            raise OSError(f"Failed to read {CONSOLE_DEVICE}")

        retries = 0
        if c == _ESC or nonblock:
            retries = self.esc_delay // ESC_POLL_INTERVAL
        if c is not None:
            buffer.append(c)

        previous = c
        while True:
            c = self._getch(True)
            if c is None:
                if retries > 0:
                    retries -= 1
                    time.sleep(ESC_POLL_INTERVAL / 1000)
                    continue
                break
            if c == _ESC and previous != c:
                retries = self.esc_delay // ESC_POLL_INTERVAL
            else:
                retries = 0
            buffer.append(c)
            previous = c
            if len(buffer) > MAX_INPUT_BUFFER:
                self.close()
                raise RuntimeError(f"Input buffer overflow ({len(buffer)})")
        return bytes(buffer)

    def _find_offset(self) -> tuple[int, int]:
        self.csi("6n")
        self.flush()
        data = bytearray()
        for tries in range(OFFSET_POLL_TRIES):
            data += self._get_bytes(tries > 0)
            match = _OFFSET.search(data)
            if match:
                self._decoder.push(match.group(1))
                row = _atoi(match.group(2).decode(), 0) - 1
                col = _atoi(match.group(3).decode(), 0) - 1
                return row, col
        return -1, -1

    def get_char(self) -> Event:
        """Read and decode the next key or mouse event."""
        return self._decoder.get_char()

    # Lifecycle

    def init(self) -> None:
        """Put the terminal in raw mode and reserve the drawing area."""
        self.esc_delay = _atoi(os.environ.get("ESCDELAY", ""), DEFAULT_ESC_DELAY)
        self._init_platform()
        self._update_terminal_size()
        self.palette = init_theme(self.theme, self._default_theme(), self.force_black)

        if self.fullscreen:
            self._smcup()
        else:
            if self.clear_on_exit:
                self.csi("J")
            y, x = self._find_offset()
            self.mouse = self.mouse and y >= 0
            if x > 0 and self.clear_on_exit:
                self._up_one_line = True
                self._make_space()
            for _ in range(1, self.max_y()):
                self._make_space()

        self._enable_mouse()
        self.csi(f"{self.max_y() - 1}A")
        self.csi("G")
        self.csi("K")
        if not self.clear_on_exit and not self.fullscreen:
            self.csi("s")
        if not self.fullscreen and self.mouse:
            self._decoder.yoffset, _ = self._find_offset()

    def resize(self, max_height_func: Callable[[int], int]) -> None:
        """Replace the function that limits the height."""
        self.max_height_func = max_height_func

    def _make_space(self) -> None:
        self.stderr("\n")
        self.csi("G")

    def move(self, y: int, x: int) -> None:
        """Move the cursor to a row and column of the drawing area."""
        if self._y < y:
            self.csi(f"{y - self._y}B")
        elif self._y > y:
            self.csi(f"{self._y - y}A")
        self.stderr("\r")
        if x > 0:
            self.csi(f"{x}C")
        self._y = y
        self._x = x

    def _origin(self) -> None:
        self.move(0, 0)

    def _smcup(self) -> None:
        self.csi("?1049h")

    def _rmcup(self) -> None:
        self.csi("?1049l")

    def _enable_mouse(self) -> None:
        if self.mouse:
            self.csi("?1000h")
            self.csi("?1002h")
            self.csi("?1006h")

    def _disable_mouse(self) -> None:
        if self.mouse:
            self.csi("?1000l")
            self.csi("?1002l")
            self.csi("?1006l")

    def pause(self, clear: bool) -> None:
        """Give the terminal back, e.g. while another program runs."""
        self._disable_mouse()
        self._restore_terminal()
        if clear:
            if self.fullscreen:
                self._rmcup()
            else:
                self._smcup()
                self.csi("H")
            self.flush()

    def resume(self, clear: bool, sigcont: bool) -> None:
        """Take the terminal back after :meth:`pause` or a stop signal."""
        self._setup_terminal()
        if clear:
            if self.fullscreen:
                self._smcup()
            else:
                self._rmcup()
            self._enable_mouse()
            self.flush()
        elif sigcont and not self.fullscreen and self.mouse:
            # The offset taken at start-up is likely stale now.
            self._disable_mouse()
            self.mouse = False

    def clear(self) -> None:
        """Blank the drawing area."""
        if self.fullscreen:
            self.csi("H")
        self._origin()
        self.csi("J")
        self.flush()

    def need_scrollbar_redraw(self) -> bool:
        """The scrollbar never needs a separate redraw."""
        return False

    def refresh_windows(self, windows: Iterable[LightWindow]) -> None:
        """Write everything drawn so far."""
        self.flush()

    def refresh(self) -> None:
        """Re-read the terminal size."""
        self._update_terminal_size()

    def close(self) -> None:
        """Clean up the drawing area and restore the terminal."""
        if self.clear_on_exit:
            if self.fullscreen:
                self._rmcup()
            else:
                self._origin()
                if self._up_one_line:
                    self.csi("A")
                self.csi("J")
        elif not self.fullscreen:
            self.csi("u")
        self._disable_mouse()
        self.flush()
        self._restore_terminal()

    def max_x(self) -> int:
        """Width of the drawing area."""
        return self._width

    def max_y(self) -> int:
        """Height of the drawing area."""
        if self._height == 0:
            self._update_terminal_size()
        return self._height

    def size(self) -> TermSize:
        """Size of the terminal; raises OSError if it cannot be queried."""
        if fcntl is None:
            raise OSError("terminal size is not available on this platform")
        packed = fcntl.ioctl(self._fd(), termios.TIOCGWINSZ, b"\0" * 8)
        lines, columns, width, height = struct.unpack("HHHH", packed)
        return TermSize(lines, columns, width, height)

    def new_window(
        self,
        top: int,
        left: int,
        width: int,
        height: int,
        preview: bool,
        border_style: BorderStyle,
    ) -> LightWindow:
        """Create a window and draw its border."""
        palette = self.palette if self.palette is not None else init_palette(self.theme)
        if preview:
            fg, bg = self.theme.preview_fg.color, self.theme.preview_bg.color
            border_color = palette.preview_border
        else:
            fg, bg = self.theme.fg.color, self.theme.bg.color
            border_color = palette.border
        window = LightWindow(
            self,
            top,
            left,
            width,
            height,
            border_style,
            preview=preview,
            tabstop=self.tabstop,
            fg=fg,
            bg=bg,
            colored=self.theme.colored,
            border_color=border_color,
        )
        window.draw_border()
        return window