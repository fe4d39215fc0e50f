"""A boolean flag that is safe to share between threads."""

from __future__ import annotations

import threading


class AtomicBool:
    """Synchronized access to a single boolean value."""

    __slots__ = ("_lock", "_state")

    def __init__(self, initial_state: bool = False) -> None:
        self._lock = threading.Lock()
        self._state = bool(initial_state)

    def get(self) -> bool:
        """Return the current value."""
        with self._lock:
            return self._state

    def set(self, value: bool) -> bool:
        """Store a new value and return it."""
        value = bool(value)
        with self._lock:
            self._state = value
        return value

    def __repr__(self) -> str:
        return f"AtomicBool({self.get()!r})"