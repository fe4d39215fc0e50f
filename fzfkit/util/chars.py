"""Text of one input line, with cached whitespace measurements."""

from __future__ import annotations

from typing import Iterable, Union

from fzfkit.util.common import as_uint16

# Python treats these separators as whitespace; the matcher does not.
_NOT_SPACE = frozenset("\x1c\x1d\x1e\x1f")


def _is_space(ch: str) -> bool:
    return ch.isspace() and ch not in _NOT_SPACE


class Chars:
    """A line of text that remembers whether it is plain ASCII."""

    __slots__ = ("_text", "_in_bytes", "_trim_length", "index")

    def __init__(self, text: str, in_bytes: bool, index: int = 0) -> None:
        self._text = text
        self._in_bytes = in_bytes
        self._trim_length: int | None = None
        self.index = index

    def is_bytes(self) -> bool:
        """True if every character is ASCII."""
        return self._in_bytes

    def __len__(self) -> int:
        return len(self._text)

    def __getitem__(self, index):
        return self._text[index]

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return (
            f"Chars(text={self._text!r}, in_bytes={self._in_bytes}, "
            f"trim_length={self._trim_length}, index={self.index})"
        )

    def trim_length(self) -> int:
        """Length after leading and trailing whitespace is removed."""
        if self._trim_length is None:
            trailing = self.trailing_whitespaces()
            if trailing == len(self._text):
                self._trim_length = 0
            else:
                leading = self.leading_whitespaces()
                self._trim_length = as_uint16(len(self._text) - leading - trailing)
        return self._trim_length

    def leading_whitespaces(self) -> int:
        """Number of whitespace characters at the start."""
        count = 0
        for ch in self._text:
            if not _is_space(ch):
                break
            count += 1
        return count

    def trailing_whitespaces(self) -> int:
        """Number of whitespace characters at the end."""
        count = 0
        for ch in reversed(self._text):
            if not _is_space(ch):
                break
            count += 1
        return count

    def trim_trailing_whitespaces(self) -> None:
        """Drop whitespace from the end of the text."""
        trailing = self.trailing_whitespaces()
        if trailing:
            self._text = self._text[: len(self._text) - trailing]

    def to_runes(self) -> list[str]:
        """The text as a list of single characters."""
        return list(self._text)

    def prepend(self, prefix: str) -> None:
        """Put ``prefix`` in front of the text."""
        self._text = prefix + self._text
        self._in_bytes = self._in_bytes and prefix.isascii()
        self._trim_length = None


def to_chars(data: Union[bytes, bytearray, str]) -> Chars:
    """Build a Chars from UTF-8 bytes (invalid sequences become U+FFFD) or a str."""
    if isinstance(data, str):
        text = data
    else:
        text = bytes(data).decode("utf-8", errors="replace")
    return Chars(text, text.isascii())


def runes_to_chars(runes: Iterable[Union[str, int]]) -> Chars:
    """Build a non-ASCII-mode Chars from characters or code points."""
    text = "".join(chr(r) if isinstance(r, int) else r for r in runes)
    return Chars(text, False)