"""Reference-audio helpers for echo cancellation: downmixing and timestamp tracking."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .fifo import ByteFifo
from .fir import clamp16
from .hwconfig import AecInfo

logger = logging.getLogger(__name__)


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def timespec_to_usec(sec: int, nsec: int) -> int:
    """Convert seconds and nanoseconds to whole microseconds."""
    return sec * 1_000_000 + _trunc_div(nsec, 1000)


def downmix_to_mono(samples: Sequence[int], channels: int) -> list[int]:
    """Average each interleaved frame of ``channels`` samples into one sample."""
    if channels <= 0:
        raise ValueError("channel count must be positive")
    frames = len(samples) // channels
    return [
        clamp16(_trunc_div(sum(samples[f * channels : (f + 1) * channels]), channels))
        for f in range(frames)
    ]


class SpeakerTimestampTracker:
    """Matches bytes read from the speaker FIFO to the timestamps of their writes.

    Each write to the speaker FIFO is accompanied by one packed :class:`AecInfo`
    record in ``ts_fifo``.  ``read_write_diff_bytes`` is negative while the
    reader is still inside the packet described by ``last_info``.
    """

    def __init__(self, ts_fifo: ByteFifo) -> None:
        self.ts_fifo = ts_fifo
        self.read_write_diff_bytes = 0
        self.last_info = AecInfo()

    def _read_info(self) -> AecInfo:
        return AecInfo.unpack(self.ts_fifo.read(AecInfo.SIZE))

    def next_timestamp(self, read_bytes: int, usec_per_byte: float) -> int:
        """Timestamp in microseconds of the first of ``read_bytes`` just read.

        Returns 0 when no timestamp is available.
        """
        offset = 0
        if self.read_write_diff_bytes < 0:
            remaining = self.last_info.bytes + self.read_write_diff_bytes
            offset = int(remaining * usec_per_byte)
            logger.debug("Reusing previous timestamp, offset (usec) %d", offset)
        else:
            if not self.ts_fifo.available_to_read():
                logger.error("Timestamp error: no new timestamps!")
                return 0
            self.last_info = self._read_info()
            self.read_write_diff_bytes -= self.last_info.bytes

        spk_time = (
            timespec_to_usec(self.last_info.timestamp_sec, self.last_info.timestamp_nsec)
            + offset
        )

        self.read_write_diff_bytes += read_bytes
        info = self.last_info
        while self.read_write_diff_bytes > 0:
            if not self.ts_fifo.available_to_read():
                logger.debug("At the end of timestamp FIFO")
                break
            info = self._read_info()
            self.read_write_diff_bytes -= info.bytes
        self.last_info = info
        return spk_time

    def reset(self) -> None:
        """Forget the read/write offset and the last timestamp."""
        self.read_write_diff_bytes = 0
        self.last_info = AecInfo()