"""A single-reader, single-writer byte FIFO."""

from __future__ import annotations

import threading


class FifoOverflowError(Exception):
    """The writer overran the reader; unread data was lost."""


class ByteFifo:
    """A bounded byte queue.

    When ``reader_throttles_writer`` is true, writes are cut short to the free
    space.  Otherwise the writer never waits; if it overruns the reader, the
    next read or availability query raises :class:`FifoOverflowError` and the
    reader is resynchronised to the writer with all pending data dropped.
    """

    def __init__(self, capacity: int, reader_throttles_writer: bool = True) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.reader_throttles_writer = reader_throttles_writer
        self._data = bytearray()
        self._overrun = False
        self._lock = threading.Lock()

    def _check_overrun(self) -> None:
        if self._overrun:
            self._overrun = False
            self._data.clear()
            raise FifoOverflowError("reader was overrun by the writer")

    def write(self, data: bytes) -> int:
        """Queue ``data`` and return the number of bytes accepted."""
        with self._lock:
            if self.reader_throttles_writer:
                room = self.capacity - len(self._data)
            else:
                room = self.capacity
            chunk = bytes(data[:room])
            self._data.extend(chunk)
            if len(self._data) > self.capacity:
                self._overrun = True
            return len(chunk)

    def read(self, size: int) -> bytes:
        """Take up to ``size`` bytes from the front of the queue."""
        if size < 0:
            raise ValueError("size must not be negative")
        with self._lock:
            self._check_overrun()
            chunk = bytes(self._data[:size])
            del self._data[:size]
            return chunk

    def available_to_read(self) -> int:
        """Number of bytes waiting to be read."""
        with self._lock:
            self._check_overrun()
            return len(self._data)

    def available_to_write(self) -> int:
        """Number of bytes a write may accept right now."""
        with self._lock:
            if not self.reader_throttles_writer:
                return self.capacity
            return max(0, self.capacity - len(self._data))

    def flush(self) -> int:
        """Drop everything unread and return how many bytes were dropped."""
        with self._lock:
            dropped = len(self._data)
            self._data.clear()
            self._overrun = False
            return dropped