"""Debug logging, block signatures and random numbers."""

from __future__ import annotations

import hashlib
import os
import secrets
import stat
import sys
from typing import TextIO

_UINT32_MAX = 0xFFFFFFFF


class DebugLog:
    """A debug log that is silent until enabled; writes to stderr by default."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.enabled = False
        self._stream = stream
        self._owned: TextIO | None = None

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def enable(self) -> None:
        self.enabled = True

    def set_logfile(self, filename: str | os.PathLike[str]) -> None:
        """Send the log to a file, creating it with owner-only permissions."""
        fd = os.open(filename, os.O_CREAT | os.O_WRONLY, stat.S_IRUSR | stat.S_IWUSR)
        self.close()
        self._owned = os.fdopen(fd, "w", encoding="utf-8")
        self._stream = self._owned

    def log(self, fmt: str, *args: object) -> None:
        """Write one formatted line if logging is enabled."""
        if not self.enabled:
            return
        stream = self.stream
        stream.write((fmt % args if args else fmt) + "\n")
        stream.flush()

    def close(self) -> None:
        """Close a log file opened by set_logfile."""
        if self._owned is not None:
            self._owned.close()
            if self._stream is self._owned:
                self._stream = None
            self._owned = None


def sha1_sig(buf: bytes) -> str:
    """Return the first 15 bytes of the SHA-1 digest as '0x.. ' groups."""
    digest = hashlib.sha1(bytes(buf)).digest()
    return "".join(f"0x{byte:02x} " for byte in digest[:15])


def get_rand(minimum: int, maximum: int) -> int:
    """Return a cryptographically random 32-bit number scaled into [minimum, maximum]."""
    if maximum < minimum:
        raise ValueError(f"empty range: {minimum}..{maximum}")
    value = secrets.randbits(32)
    span = (maximum - minimum + 1) & _UINT32_MAX
    if span == 0:
        return value
    value = (value // (_UINT32_MAX // span) + minimum) & _UINT32_MAX
    if value == ((maximum + 1) & _UINT32_MAX):
        value = maximum
    return value