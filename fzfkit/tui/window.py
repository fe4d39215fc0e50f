"""A window drawn with plain escape sequences on a line-oriented terminal."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol

import regex
from wcwidth import wcwidth

from fzfkit.tui.borders import BorderShape, BorderStyle
from fzfkit.tui.colors import (
    COL_BLACK,
    COL_DEFAULT,
    COL_WHITE,
    Attr,
    ColorPair,
    is_24,
)
from fzfkit.util.common import string_width

_GRAPHEME = regex.compile(r"\X")

_AROUND = frozenset(
    {
        BorderShape.ROUNDED,
        BorderShape.SHARP,
        BorderShape.BOLD,
        BorderShape.BLOCK,
        BorderShape.THIN_BLOCK,
        BorderShape.DOUBLE,
    }
)

_ATTR_CODES = (
    (Attr.BOLD, "1"),
    (Attr.DIM, "2"),
    (Attr.ITALIC, "3"),
    (Attr.UNDERLINE, "4"),
    (Attr.BLINK, "5"),
    (Attr.REVERSE, "7"),
    (Attr.STRIKE_THROUGH, "9"),
)


class _Terminal(Protocol):
    """What a window needs from the renderer that owns it."""

    def move(self, y: int, x: int) -> None: ...

    def csi(self, code: str) -> str: ...

    def stderr(self, text: str) -> None: ...

    def stderr_internal(self, text: str, allow_nlcr: bool, reset_code: str) -> None: ...


class FillReturn(IntEnum):
    """Where drawing stands after text has been filled into a window."""

    CONTINUE = 0
    NEXT_LINE = 1
    SUSPEND = 2


@dataclass(frozen=True)
class WrappedLine:
    """One screen line of wrapped text and its display width."""

    text: str
    display_width: int


def _rune_width(ch: str) -> int:
    width = wcwidth(ch)
    return width if width > 0 else 0


def wrap_line(text: str, prefix_length: int, limit: int, tabstop: int) -> list[WrappedLine]:
    """Break ``text`` into lines no wider than ``limit`` columns.

    The first line starts at column ``prefix_length``; tabs are expanded to
    spaces up to the next multiple of ``tabstop``.
    """
    lines: list[WrappedLine] = []
    width = 0
    line = ""
    for cluster in _GRAPHEME.findall(text):
        piece = cluster
        if cluster == "\t":
            w = tabstop - (prefix_length + width) % tabstop
            piece = " " * w
        elif cluster.startswith("\r"):
            w = 1
        else:
            w = string_width(cluster)
        width += w

        if prefix_length + width <= limit:
            line += piece
        else:
            lines.append(WrappedLine(line, width - w))
            line = piece
            prefix_length = 0
            width = w
    lines.append(WrappedLine(line, width))
    return lines


def attr_codes(attr: Attr) -> list[str]:
    """SGR parameters for the attributes set in ``attr``."""
    if attr & Attr.CLEAR:
        return []
    return [code for flag, code in _ATTR_CODES if attr & flag]


def color_codes(fg: int, bg: int) -> list[str]:
    """SGR parameters selecting the foreground and background colors."""
    codes: list[str] = []
    for color, offset in ((fg, 0), (bg, 10)):
        if color == COL_DEFAULT:
            continue
        if is_24(color):
            r = (color >> 16) & 0xFF
            g = (color >> 8) & 0xFF
            b = color & 0xFF
            codes.append(f"{38 + offset};2;{r};{g};{b}")
        elif COL_BLACK <= color <= COL_WHITE:
            codes.append(str(color + 30 + offset))
        elif COL_WHITE < color < 16:
            codes.append(str(color + 90 + offset - 8))
        elif 16 <= color < 256:
            codes.append(f"{38 + offset};5;{color}")
    return codes


def cleanse(text: str) -> str:
    """Remove escape characters from ``text``."""
    return text.replace("\x1b", "")


class LightWindow:
    """A rectangular region of the screen drawn through its renderer."""

    def __init__(
        self,
        renderer: _Terminal,
        top: int,
        left: int,
        width: int,
        height: int,
        border: BorderStyle,
        *,
        preview: bool = False,
        tabstop: int = 8,
        fg: int = COL_DEFAULT,
        bg: int = COL_DEFAULT,
        colored: bool = True,
        border_color: ColorPair = ColorPair(COL_DEFAULT, COL_DEFAULT),
    ) -> None:
        self.renderer = renderer
        self.top = top
        self.left = left
        self.width = width
        self.height = height
        self.border = border
        self.preview = preview
        self.tabstop = tabstop
        self.fg = fg
        self.bg = bg
        self.colored = colored
        self.border_color = border_color
        self.posx = 0
        self.posy = 0

    @property
    def x(self) -> int:
        """Cursor column inside the window."""
        return self.posx

    @property
    def y(self) -> int:
        """Cursor row inside the window."""
        return self.posy

    # Borders

    def draw_border(self) -> None:
        """Draw the whole border."""
        self._draw_border(False)

    def draw_hborder(self) -> None:
        """Draw only the horizontal parts of the border."""
        self._draw_border(True)

    def _draw_border(self, only_horizontal: bool) -> None:
        shape = self.border.shape
        if shape in _AROUND:
            self._draw_border_around(only_horizontal)
        elif shape == BorderShape.HORIZONTAL:
            self._draw_border_horizontal(True, True)
        elif shape == BorderShape.TOP:
            self._draw_border_horizontal(True, False)
        elif shape == BorderShape.BOTTOM:
            self._draw_border_horizontal(False, True)
        elif only_horizontal:
            return
        elif shape == BorderShape.VERTICAL:
            self._draw_border_vertical(True, True)
        elif shape == BorderShape.LEFT:
            self._draw_border_vertical(True, False)
        elif shape == BorderShape.RIGHT:
            self._draw_border_vertical(False, True)

    def _draw_border_horizontal(self, top: bool, bottom: bool) -> None:
        hw = _rune_width(self.border.top) or 1
        if top:
            self.move(0, 0)
            self.cprint(self.border_color, self.border.top * (self.width // hw))
        if bottom:
            self.move(self.height - 1, 0)
            self.cprint(self.border_color, self.border.bottom * (self.width // hw))

    def _draw_border_vertical(self, left: bool, right: bool) -> None:
        width = self.width - 2
        if not left or not right:
            width += 1
        for row in range(self.height):
            self.move(row, 0)
            if left:
                self.cprint(self.border_color, self.border.left)
            self.cprint(self.border_color, " " * width)
            if right:
                self.cprint(self.border_color, self.border.right)

    def _draw_border_around(self, only_horizontal: bool) -> None:
        b = self.border
        color = self.border_color
        self.move(0, 0)
        hw = _rune_width(b.top) or 1
        tcw = _rune_width(b.top_left) + _rune_width(b.top_right)
        bcw = _rune_width(b.bottom_left) + _rune_width(b.bottom_right)
        span = self.width - tcw
        self.cprint(color, b.top_left + b.top * (span // hw) + " " * (span % hw) + b.top_right)
        if not only_horizontal:
            vw = _rune_width(b.left)
            for row in range(1, self.height - 1):
                self.move(row, 0)
                self.cprint(color, b.left)
                self.cprint(color, " " * (self.width - vw * 2))
                self.cprint(color, b.right)
        self.move(self.height - 1, 0)
        span = self.width - bcw
        self.cprint(
            color, b.bottom_left + b.bottom * (span // hw) + " " * (span % hw) + b.bottom_right
        )

    # Geometry and cursor

    def refresh(self) -> None:
        """Nothing to do: output is flushed by the renderer."""

    def close(self) -> None:
        """Nothing to release."""

    def enclose(self, y: int, x: int) -> bool:
        """True if the screen position lies inside the window."""
        return (
            self.left <= x < self.left + self.width
            and self.top <= y < self.top + self.height
        )

    def move(self, y: int, x: int) -> None:
        """Move the cursor to a position relative to the window."""
        self.posx = x
        self.posy = y
        self.renderer.move(self.top + y, self.left + x)

    def move_and_clear(self, y: int, x: int) -> None:
        """Move the cursor and blank the rest of the row inside the window."""
        self.move(y, x)
        self.print(" " * (self.width - x))
        self.move(y, x)

    # Output

    def _csi_color(self, fg: int, bg: int, attr: Attr) -> tuple[bool, str]:
        codes = attr_codes(attr) + color_codes(fg, bg)
        code = self.renderer.csi(";" + ";".join(codes) + "m")
        return bool(codes), code

    def print(self, text: str) -> None:
        """Write text in the window's background color."""
        self._cprint2(COL_DEFAULT, self.bg, Attr.REGULAR, text)

    def cprint(self, pair: ColorPair, text: str) -> None:
        """Write text in the given colors, then reset them."""
        _, code = self._csi_color(pair.fg, pair.bg, pair.attr)
        self.renderer.stderr_internal(cleanse(text), False, code)
        self.renderer.csi("m")

    def _cprint2(self, fg: int, bg: int, attr: Attr, text: str) -> None:
        has_colors, code = self._csi_color(fg, bg, attr)
        self.renderer.stderr_internal(cleanse(text), False, code)
        if has_colors:
            self.renderer.csi("m")

    def _fill(self, text: str, reset_code: str) -> FillReturn:
        all_lines = text.split("\n")
        for i, line in enumerate(all_lines):
            lines = wrap_line(line, self.posx, self.width, self.tabstop)
            for j, wrapped in enumerate(lines):
                self.renderer.stderr_internal(wrapped.text, False, reset_code)
                self.posx += wrapped.display_width
                if j < len(lines) - 1 or i < len(all_lines) - 1:
                    if self.posy + 1 >= self.height:
                        return FillReturn.SUSPEND
                    self.move_and_clear(self.posy, self.posx)
                    self.move(self.posy + 1, 0)
                    self.renderer.stderr(reset_code)
        if self.posx + 1 >= self.width:
            if self.posy + 1 >= self.height:
                return FillReturn.SUSPEND
            self.move(self.posy + 1, 0)
            self.renderer.stderr(reset_code)
            return FillReturn.NEXT_LINE
        return FillReturn.CONTINUE

    def _set_bg(self) -> str:
        if self.bg != COL_DEFAULT:
            _, code = self._csi_color(COL_DEFAULT, self.bg, Attr.REGULAR)
            return code
        return "\x1b[m"

    def fill(self, text: str) -> FillReturn:
        """Write text at the cursor, wrapping lines inside the window."""
        self.move(self.posy, self.posx)
        return self._fill(text, self._set_bg())

    def cfill(self, fg: int, bg: int, attr: Attr, text: str) -> FillReturn:
        """Like :meth:`fill`, in the given colors; defaults fall back to the window's."""
        self.move(self.posy, self.posx)
        if fg == COL_DEFAULT:
            fg = self.fg
        if bg == COL_DEFAULT:
            bg = self.bg
        has_colors, reset_code = self._csi_color(fg, bg, attr)
        if has_colors:
            try:
                return self._fill(text, reset_code)
            finally:
                self.renderer.csi("m")
        return self._fill(text, self._set_bg())

    def finish_fill(self) -> None:
        """Blank everything from the cursor to the end of the window."""
        self.move_and_clear(self.posy, self.posx)
        for row in range(self.posy + 1, self.height):
            self.move_and_clear(row, 0)

    def erase(self) -> None:
        """Redraw the border, blank the contents and home the cursor."""
        self.draw_border()
        self.move(0, 0)
        self.finish_fill()
        self.move(0, 0)