"""Preallocated scratch arrays for the matching algorithms."""

from __future__ import annotations

from array import array
from dataclasses import dataclass


@dataclass
class Slab:
    """A pair of reusable integer buffers: 16-bit and 32-bit signed."""

    i16: array
    i32: array


def make_slab(size16: int, size32: int) -> Slab:
    """Allocate a zero-filled slab of the given sizes."""
    if size16 < 0 or size32 < 0:
        raise ValueError("slab sizes must not be negative")
    return Slab(i16=array("h", [0]) * size16, i32=array("i", [0]) * size32)