"""Locating the controlling terminal device."""

from __future__ import annotations

import os
import sys
from typing import IO

from fzfkit.util.common import is_windows

CONSOLE_DEVICE = "/dev/tty"
_DEV_PREFIXES = ("/dev/pts/", "/dev/")


def ttyname() -> str:
    """Path of the device that standard error refers to, or ``""``."""
    if is_windows():
        return ""
    try:
        stderr_rdev = os.fstat(2).st_rdev
    except OSError:
        return ""

    for prefix in _DEV_PREFIXES:
        try:
            names = os.listdir(prefix)
        except OSError:
            continue
        for name in names:
            try:
                info = os.lstat(prefix + name)
            except OSError:
                continue
            if info.st_rdev == stderr_rdev:
                return prefix + name
    return ""


def tty_in() -> IO:
    """Open the terminal for reading; fall back to ``sys.stdin``."""
    if is_windows():
        return sys.stdin
    try:
        return open(CONSOLE_DEVICE, "rb", buffering=0)
    except OSError:
        pass
    tty = ttyname()
    if tty:
        try:
            return open(tty, "rb", buffering=0)
        except OSError:
            pass
    return sys.stdin