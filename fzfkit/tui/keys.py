"""Decoding of raw terminal input bytes into key and mouse events."""

from __future__ import annotations

import re
import time
from typing import Callable, Optional, Union

from fzfkit.tui.events import (
    DOUBLE_CLICK_DURATION,
    Event,
    EventType,
    MouseEvent,
    alt_key,
    ctrl_alt_key,
    key,
)

_ESC = 27
_DEL = 127
_RUNE_ERROR = "\ufffd"

_OFFSET_BEGIN = re.compile(rb"\x1b\[[0-9]+;[0-9]+R")
_INTEGER = re.compile(r"[+-]?[0-9]+")

_SINGLE_BYTE = {
    EventType.CTRL_C.value: EventType.CTRL_C,
    EventType.CTRL_G.value: EventType.CTRL_G,
    EventType.CTRL_Q.value: EventType.CTRL_Q,
    _DEL: EventType.BSPACE,
    0: EventType.CTRL_SPACE,
    28: EventType.CTRL_BACK_SLASH,
    29: EventType.CTRL_RIGHT_BRACKET,
    30: EventType.CTRL_CARET,
    31: EventType.CTRL_SLASH,
}

# Final byte of "ESC [ x" / "ESC O x" sequences: (plain, with Alt)
_ARROWS = {
    ord("D"): (EventType.LEFT, EventType.ALT_LEFT),
    ord("C"): (EventType.RIGHT, EventType.ALT_RIGHT),
    ord("B"): (EventType.DOWN, EventType.ALT_DOWN),
    ord("A"): (EventType.UP, EventType.ALT_UP),
}

_SIMPLE_CSI = {
    ord("Z"): EventType.BTAB,
    ord("H"): EventType.HOME,
    ord("F"): EventType.END,
    ord("P"): EventType.F1,
    ord("Q"): EventType.F2,
    ord("R"): EventType.F3,
    ord("S"): EventType.F4,
}

_F9_TO_F12 = {
    ord("0"): EventType.F9,
    ord("1"): EventType.F10,
    ord("3"): EventType.F11,
    ord("4"): EventType.F12,
}

_F1_TO_F8 = {
    ord("1"): EventType.F1,
    ord("2"): EventType.F2,
    ord("3"): EventType.F3,
    ord("4"): EventType.F4,
    ord("5"): EventType.F5,
    ord("7"): EventType.F6,
    ord("8"): EventType.F7,
    ord("9"): EventType.F8,
}

# Arrow with modifier: (shift, alt, alt+shift)
_MODIFIED_ARROWS = {
    ord("A"): (EventType.S_UP, EventType.ALT_UP, EventType.ALT_S_UP),
    ord("B"): (EventType.S_DOWN, EventType.ALT_DOWN, EventType.ALT_S_DOWN),
    ord("C"): (EventType.S_RIGHT, EventType.ALT_RIGHT, EventType.ALT_S_RIGHT),
    ord("D"): (EventType.S_LEFT, EventType.ALT_LEFT, EventType.ALT_S_LEFT),
}


def _decode_rune(data: Union[bytes, bytearray]) -> tuple[str, int]:
    """Decode the first UTF-8 character; invalid input yields U+FFFD of size 1."""
    if not data:
        return _RUNE_ERROR, 0
    lead = data[0]
    if lead < 0x80:
        return chr(lead), 1
    if 0xC2 <= lead <= 0xDF:
        size = 2
    elif 0xE0 <= lead <= 0xEF:
        size = 3
    elif 0xF0 <= lead <= 0xF4:
        size = 4
    else:
        return _RUNE_ERROR, 1
    if len(data) < size:
        return _RUNE_ERROR, 1
    try:
        return bytes(data[:size]).decode("utf-8"), size
    except UnicodeDecodeError:
        return _RUNE_ERROR, 1


def _atoi(text: str, default: int) -> int:
    return int(text) if _INTEGER.fullmatch(text) else default


class KeyDecoder:
    """Turns the byte stream of a terminal into :class:`Event` objects.

    Bytes are supplied with :meth:`push`, or pulled from ``read`` when the
    buffer runs dry. ``read`` should return the next chunk of input.
    """

    def __init__(
        self,
        mouse: bool = False,
        yoffset: int = 0,
        read: Optional[Callable[[], bytes]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.mouse = mouse
        self.yoffset = yoffset
        self._read = read
        self._clock = clock
        self._buffer = bytearray()
        self._clicks: list[tuple[int, int]] = []
        self._prev_down_time: Optional[float] = None

    def push(self, data: Union[bytes, bytearray, str]) -> None:
        """Append input bytes to the pending buffer."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._buffer.extend(data)

    def _fill(self) -> None:
        if self._read is not None:
            self._buffer.extend(self._read())

    def get_char(self) -> Event:
        """Decode and consume the next event.

        Raises EOFError when no input is pending and none can be read.
        """
        if not self._buffer:
            self._fill()
        if not self._buffer:
            raise EOFError("empty input buffer")
        event, size = self._decode()
        del self._buffer[:size]
        return event

    def _decode(self) -> tuple[Event, int]:
        first = self._buffer[0]
        single = _SINGLE_BYTE.get(first)
        if single is not None:
            return single.as_event(), 1
        if first == _ESC:
            event, size = self._esc_sequence()
            if event.type == EventType.INVALID and self._read is not None:
                self._fill()
                event, size = self._esc_sequence()
            return event, size
        if first <= EventType.CTRL_Z:
            return EventType(first).as_event(), 1
        char, size = _decode_rune(self._buffer)
        if char == _RUNE_ERROR:
            return EventType.ESC.as_event(), 1
        return key(char), size

    def _esc_sequence(self) -> tuple[Event, int]:
        buf = self._buffer
        if len(buf) < 2:
            return EventType.ESC.as_event(), 1

        offset = _OFFSET_BEGIN.match(buf)
        if offset is not None:
            return EventType.INVALID.as_event(), offset.end()

        if 1 <= buf[1] <= 26:
            return ctrl_alt_key(chr(buf[1] + ord("a") - 1)), 2

        alt = False
        if len(buf) > 2 and buf[1] == _ESC:
            del buf[0]
            alt = True

        second = buf[1]
        if second == _ESC:
            return EventType.ESC.as_event(), 2
        if second == _DEL:
            return EventType.ALT_BS.as_event(), 2
        if second in b"[O":
            result = self._csi(alt)
            if result is not None:
                return result

        char, size = _decode_rune(buf[1:])
        if size == 0:
            return EventType.INVALID.as_event(), 1
        return alt_key(char), 1 + size

    def _csi(self, alt: bool) -> Optional[tuple[Event, int]]:
        """Decode ``ESC [`` / ``ESC O`` sequences; None falls back to an Alt key."""
        buf = self._buffer
        invalid = EventType.INVALID.as_event()
        if len(buf) < 3:
            return invalid, 2

        third = buf[2]
        if third in _ARROWS:
            plain, with_alt = _ARROWS[third]
            return (with_alt if alt else plain).as_event(), 3
        if third in _SIMPLE_CSI:
            return _SIMPLE_CSI[third].as_event(), 3
        if third == ord("<"):
            return self._mouse_sequence(3)
        if third not in b"123456":
            return None

        if len(buf) < 4:
            return invalid, 3
        fourth = buf[3]

        if third == ord("2"):
            if fourth == ord("~"):
                return EventType.INSERT.as_event(), 4
            size = 4
            if len(buf) > 4 and buf[4] == ord("~"):
                size = 5
                if fourth in _F9_TO_F12:
                    return _F9_TO_F12[fourth].as_event(), 5
            if (
                len(buf) > 5
                and fourth == ord("0")
                and buf[4] in b"01"
                and buf[5] == ord("~")
            ):
                # Bracketed paste markers are dropped and input is reread
                del buf[:6]
                return self.get_char(), 0
            return invalid, size

        if third == ord("3"):
            if fourth == ord("~"):
                return EventType.DEL.as_event(), 4
            size = 4
            if len(buf) == 6 and buf[5] == ord("~"):
                size = 6
                if buf[4] == ord("5"):
                    return EventType.CTRL_DELETE.as_event(), 6
                if buf[4] == ord("2"):
                    return EventType.S_DELETE.as_event(), 6
            return invalid, size

        if third == ord("4"):
            return EventType.END.as_event(), 4
        if third == ord("5"):
            return EventType.PG_UP.as_event(), 4
        if third == ord("6"):
            return EventType.PG_DN.as_event(), 4

        # third == "1"
        if fourth == ord("~"):
            return EventType.HOME.as_event(), 4
        if fourth in _F1_TO_F8:
            if len(buf) == 5 and buf[4] == ord("~"):
                return _F1_TO_F8[fourth].as_event(), 5
            return invalid, 4
        if fourth == ord(";"):
            if len(buf) < 6:
                return invalid, 4
            modifier = buf[4]
            if modifier in b"1235":
                with_alt = modifier == ord("3")
                alt_shift = modifier == ord("1") and buf[5] == ord("0")
                char = buf[5]
                size = 6
                if alt_shift:
                    if len(buf) < 7:
                        return invalid, 6
                    char = buf[6]
                    size = 7
                if char in _MODIFIED_ARROWS:
                    shifted, alted, alt_shifted = _MODIFIED_ARROWS[char]
                    if with_alt:
                        return alted.as_event(), size
                    if alt_shift:
                        return alt_shifted.as_event(), size
                    return shifted.as_event(), size
        return None

    def _mouse_sequence(self, size: int) -> tuple[Event, int]:
        """Decode an SGR mouse report such as ``ESC [ < 0 ; 1 ; 1 M``."""
        buf = self._buffer
        invalid = EventType.INVALID.as_event()
        if len(buf) < 9 or not self.mouse:
            return invalid, size

        rest = bytes(buf[size:])
        ends = [i for i in (rest.find(b"m"), rest.find(b"M")) if i >= 0]
        if not ends:
            return invalid, size
        end = min(ends)

        elems = rest[:end].decode("utf-8", errors="replace").split(";", 2)
        if len(elems) != 3:
            return invalid, size

        t = _atoi(elems[0], -1)
        x = _atoi(elems[1], -1) - 1
        y = _atoi(elems[2], -1) - 1 - self.yoffset
        if t < 0 or x < 0:
            return invalid, size
        size += end + 1

        down = rest[end] == ord("M")

        scroll = 0
        if t >= 64:
            t -= 64
            scroll = -1 if t & 0b1 == 1 else 1

        left = t & 0b11 == 0
        mod = t & 0b1100 > 0
        drag = t & 0b100000 > 0

        if scroll != 0:
            return (
                Event(EventType.MOUSE, "", MouseEvent(y, x, scroll, False, False, False, mod)),
                size,
            )

        double = False
        if down and not drag:
            now = self._clock()
            if not left:
                self._clicks = []
            elif (
                self._prev_down_time is not None
                and now - self._prev_down_time < DOUBLE_CLICK_DURATION
            ):
                self._clicks.append((x, y))
            else:
                self._clicks = [(x, y)]
            self._prev_down_time = now
        elif (
            len(self._clicks) > 1
            and self._clicks[-2] == self._clicks[-1]
            and self._prev_down_time is not None
            and self._clock() - self._prev_down_time < DOUBLE_CLICK_DURATION
        ):
            double = True
            self._clicks = []

        return (
            Event(EventType.MOUSE, "", MouseEvent(y, x, 0, left, down, double, mod)),
            size,
        )