"""Splitting input lines into fields and selecting fields by index ranges."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern, Sequence

from fzfkit.util.chars import Chars, to_chars

RANGE_ELLIPSIS = 0

_INTEGER = re.compile(r"[+-]?[0-9]+")
_AWK_FIELD = re.compile(r"[^\t ]+[\t ]*")


@dataclass(frozen=True)
class Range:
    """A field range; ``RANGE_ELLIPSIS`` marks an open end."""

    begin: int
    end: int


@dataclass
class Token:
    """A field of a line and the number of characters that precede it."""

    text: Chars
    prefix_length: int

    def __str__(self) -> str:
        return f"Token{{text: {self.text!r}, prefix_length: {self.prefix_length}}}"


@dataclass(frozen=True)
class Delimiter:
    """How a line is split: by a regular expression, a literal string, or AWK-style."""

    regex: Optional[Pattern[str]] = None
    string: Optional[str] = None


def _new_range(begin: int, end: int) -> Range:
    if begin == 1:
        begin = RANGE_ELLIPSIS
    if end == -1:
        end = RANGE_ELLIPSIS
    return Range(begin, end)


def _nonzero_int(text: str, expression: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid range expression: {expression!r}")
    value = int(text)
    if value == 0:
        raise ValueError(f"invalid range expression: {expression!r}")
    return value


def parse_range(text: str) -> Range:
    """Parse a field expression such as ``3``, ``..5``, ``2..`` or ``-3..-1``.

    Raises ValueError for malformed expressions or a zero index.
    """
    if text == "..":
        return _new_range(RANGE_ELLIPSIS, RANGE_ELLIPSIS)
    if text.startswith(".."):
        return _new_range(RANGE_ELLIPSIS, _nonzero_int(text[2:], text))
    if text.endswith(".."):
        return _new_range(_nonzero_int(text[:-2], text), RANGE_ELLIPSIS)
    if ".." in text:
        parts = text.split("..")
        if len(parts) != 2:
            raise ValueError(f"invalid range expression: {text!r}")
        return _new_range(_nonzero_int(parts[0], text), _nonzero_int(parts[1], text))
    value = _nonzero_int(text, text)
    return _new_range(value, value)


def _with_prefix_lengths(pieces: Iterable[str], begin: int) -> list[Token]:
    fields = []
    prefix_length = begin
    for piece in pieces:
        chars = to_chars(piece)
        fields.append(Token(chars, prefix_length))
        prefix_length += len(chars)
    return fields


def _split_after(text: str, separator: str) -> list[str]:
    if not separator:
        return list(text)
    parts = text.split(separator)
    return [part + separator for part in parts[:-1]] + [parts[-1]]


def _split_regex(text: str, pattern: Pattern[str]) -> list[str]:
    pieces = []
    begin = 0
    for match in pattern.finditer(text):
        pieces.append(text[begin : match.end()])
        begin = match.end()
    if begin < len(text):
        pieces.append(text[begin:])
    return pieces


def tokenize(text: str, delimiter: Delimiter) -> list[Token]:
    """Split ``text`` into tokens, each keeping its trailing delimiter."""
    if delimiter.string is None and delimiter.regex is None:
        stripped = text.lstrip("\t ")
        prefix_length = len(text) - len(stripped)
        return _with_prefix_lengths(_AWK_FIELD.findall(stripped), prefix_length)
    if delimiter.string is not None:
        return _with_prefix_lengths(_split_after(text, delimiter.string), 0)
    return _with_prefix_lengths(_split_regex(text, delimiter.regex), 0)


def join_tokens(tokens: Iterable[Token]) -> str:
    """Concatenate the text of the tokens."""
    return "".join(str(item.text) for item in tokens)


def _resolve(index: int, count: int) -> int:
    return index + count + 1 if index < 0 else index


def transform(tokens: Sequence[Token], with_nth: Iterable[Range]) -> list[Token]:
    """Build one token per range from the selected input tokens."""
    count = len(tokens)
    result = []
    for rng in with_nth:
        parts: list[Chars] = []
        min_idx = 0
        if rng.begin == rng.end:
            if rng.begin == RANGE_ELLIPSIS:
                parts.append(to_chars(join_tokens(tokens)))
            else:
                idx = _resolve(rng.begin, count)
                if 1 <= idx <= count:
                    min_idx = idx - 1
                    parts.append(tokens[idx - 1].text)
        else:
            if rng.begin == RANGE_ELLIPSIS:
                begin, end = 1, _resolve(rng.end, count)
            elif rng.end == RANGE_ELLIPSIS:
                begin, end = _resolve(rng.begin, count), count
            else:
                begin, end = _resolve(rng.begin, count), _resolve(rng.end, count)
            min_idx = max(0, begin - 1)
            parts.extend(
                tokens[idx - 1].text for idx in range(max(begin, 1), min(end, count) + 1)
            )

        if not parts:
            merged = to_chars("")
        elif len(parts) == 1:
            merged = parts[0]
        else:
            merged = to_chars("".join(str(part) for part in parts))

        prefix_length = tokens[min_idx].prefix_length if min_idx < count else 0
        result.append(Token(merged, prefix_length))
    return result