"""Echo-canceller reference path: speaker loopback FIFOs and reference extraction."""

from __future__ import annotations

import dataclasses
import errno
import logging
import struct
import threading
import time
from collections.abc import Sequence

from .aec_timing import SpeakerTimestampTracker, downmix_to_mono
from .fifo import ByteFifo, FifoOverflowError
from .fir import clamp16
from .hwconfig import (
    CAPTURE_CODEC_SAMPLING_RATE,
    CHANNEL_STEREO,
    PLAYBACK_CODEC_SAMPLING_RATE,
    AecInfo,
)

logger = logging.getLogger(__name__)

MAX_TIMESTAMP_DIFF_USEC = 200000
MAX_READ_WAIT_TIME_MSEC = 80

_INT16_BYTES = 2
_INT32_BYTES = 4


class AecError(OSError):
    """An echo-canceller operation failed; ``errno`` tells why."""


def _resample_linear(samples: Sequence[int], channels: int, out_frames: int) -> list[int]:
    """Resample interleaved ``samples`` to ``out_frames`` frames by linear interpolation."""
    in_frames = len(samples) // channels
    if in_frames == 0 or out_frames <= 0:
        return [0] * (max(out_frames, 0) * channels)
    output: list[int] = []
    for frame in range(out_frames):
        position = frame * in_frames
        index, remainder = divmod(position, out_frames)
        following = min(index + 1, in_frames - 1)
        for channel in range(channels):
            a = samples[index * channels + channel]
            b = samples[following * channels + channel]
            value = a + (b - a) * remainder / out_frames
            output.append(clamp16(round(value)))
    return output


class Aec:
    """State shared between the playback and capture sides of echo cancellation.

    Playback writes each block and its timing into the reference FIFOs;
    capture pulls reference audio matched to the microphone format.
    """

    def __init__(
        self,
        sampling_rate: int = CAPTURE_CODEC_SAMPLING_RATE,
        num_reference_channels: int = 2,
        num_microphone_channels: int = CHANNEL_STEREO,
    ) -> None:
        if sampling_rate <= 0:
            raise AecError(errno.EINVAL, "sampling rate must be positive")
        if num_reference_channels <= 0 or num_microphone_channels <= 0:
            raise AecError(errno.EINVAL, "channel counts must be positive")
        self._lock = threading.Lock()
        self.num_reference_channels = num_reference_channels

        self.mic_initialized = False
        self.mic_sampling_rate = CAPTURE_CODEC_SAMPLING_RATE
        self.mic_frame_size_bytes = CHANNEL_STEREO * _INT32_BYTES
        self.mic_num_channels = CHANNEL_STEREO
        self.mic_buf_size_bytes = 0
        self.last_mic_info = AecInfo()

        self.spk_initialized = False
        self.spk_sampling_rate = PLAYBACK_CODEC_SAMPLING_RATE
        self.spk_frame_size_bytes = CHANNEL_STEREO * _INT16_BYTES
        self.spk_num_channels = CHANNEL_STEREO
        self.spk_buf_size_bytes = 0

        self.spk_fifo: ByteFifo | None = None
        self.ts_fifo: ByteFifo | None = None
        self._tracker: SpeakerTimestampTracker | None = None
        self._resample = False
        self._spk_running = False
        self.prev_spk_running = False

    @property
    def spk_running(self) -> bool:
        """Whether playback is currently running."""
        with self._lock:
            return self._spk_running

    @spk_running.setter
    def spk_running(self, state: bool) -> None:
        with self._lock:
            self._spk_running = bool(state)

    @property
    def last_spk_info(self) -> AecInfo:
        """Timing of the speaker packet most recently matched to a read."""
        return self._tracker.last_info if self._tracker else AecInfo()

    def _destroy_reference_no_lock(self) -> None:
        if not self.spk_initialized:
            return
        self._spk_running = False
        self.spk_fifo = None
        self.ts_fifo = None
        self._tracker = None
        self.spk_initialized = False

    def _destroy_mic_no_lock(self) -> None:
        if not self.mic_initialized:
            return
        self._resample = False
        self.mic_buf_size_bytes = 0
        self.spk_buf_size_bytes = 0
        self.last_mic_info = AecInfo()
        self.mic_initialized = False

    def init_reference_config(
        self,
        rate: int,
        channels: int,
        frame_size: int,
        period_size: int,
        period_count: int,
    ) -> None:
        """Set up the speaker loopback FIFOs for a newly opened output stream."""
        with self._lock:
            if self.spk_initialized:
                self._destroy_reference_no_lock()
            try:
                spk_fifo = ByteFifo(period_count * period_size * frame_size, False)
            except ValueError as exc:
                raise AecError(errno.EINVAL, f"speaker loopback FIFO init failed: {exc}") from exc
            try:
                ts_fifo = ByteFifo(period_count * AecInfo.SIZE, False)
            except ValueError as exc:
                raise AecError(errno.EINVAL, f"speaker timestamp FIFO init failed: {exc}") from exc
            if rate <= 0 or channels <= 0:
                raise AecError(errno.EINVAL, "rate and channel count must be positive")
            self.spk_fifo = spk_fifo
            self.ts_fifo = ts_fifo
            self._tracker = SpeakerTimestampTracker(ts_fifo)
            self.spk_sampling_rate = rate
            self.spk_frame_size_bytes = frame_size
            self.spk_num_channels = channels
            self.spk_initialized = True

    def destroy_reference_config(self) -> None:
        """Tear down the speaker side when the output stream closes."""
        with self._lock:
            self._destroy_reference_no_lock()

    def init_mic_config(self, rate: int, channels: int, frame_size: int, period_size: int) -> None:
        """Set up the microphone side for a newly opened input stream."""
        if rate <= 0 or channels <= 0 or frame_size <= 0 or period_size < 0:
            raise AecError(errno.EINVAL, "invalid microphone configuration")
        with self._lock:
            if self.mic_initialized:
                self._destroy_mic_no_lock()
            self.mic_sampling_rate = rate
            self.mic_frame_size_bytes = frame_size
            self.mic_num_channels = channels
            self.mic_buf_size_bytes = period_size * frame_size
            self.spk_buf_size_bytes = period_size * self.spk_frame_size_bytes
            self._resample = rate != self.spk_sampling_rate
            self._flush_no_lock()
            self.mic_initialized = True

    def destroy_mic_config(self) -> None:
        """Tear down the microphone side when the input stream closes."""
        with self._lock:
            self._destroy_mic_no_lock()

    def _flush_no_lock(self) -> None:
        if self.spk_fifo is not None:
            self.spk_fifo.flush()
        if self.ts_fifo is not None:
            self.ts_fifo.flush()
        if self._tracker is not None:
            self._tracker.read_write_diff_bytes = 0

    def flush_fifos(self) -> None:
        """Drop all queued reference audio and timestamps."""
        self._flush_no_lock()

    def write_to_reference_fifo(self, data: bytes, info: AecInfo) -> None:
        """Queue ``info.bytes`` bytes of played audio with their timing."""
        if not self.spk_initialized or self.spk_fifo is None or self.ts_fifo is None:
            raise AecError(errno.EINVAL, "no reference configured")
        wanted = info.bytes
        written = self.spk_fifo.write(bytes(data[:wanted]))
        record = dataclasses.replace(info, bytes=written)
        self.ts_fifo.write(record.pack())
        if written != wanted:
            raise AecError(errno.ENOMEM, f"could only write {written} of {wanted} bytes")

    def _reference_audio(self, samples: list[int], frames: int) -> list[int]:
        if self.num_reference_channels == self.spk_num_channels:
            return samples
        if self.num_reference_channels != 1:
            logger.error(
                "Invalid reference count - must be 1 or match number of playback channels!"
            )
            return samples
        used = frames * self.spk_num_channels
        return downmix_to_mono(samples[:used], self.spk_num_channels) + samples[used:]

    def get_reference_samples(self, nbytes: int) -> tuple[bytes, int]:
        """Reference audio for ``nbytes`` of microphone data, with its timestamp.

        Returns 32-bit little-endian samples with ``num_reference_channels``
        per frame at the microphone rate, and the timestamp in microseconds
        of the first sample (0 when none is known).
        """
        if not self.spk_initialized or self.spk_fifo is None or self._tracker is None:
            raise AecError(errno.EINVAL, "called with no reference initialized")

        frames = nbytes // self.mic_frame_size_bytes
        ratio = self.spk_sampling_rate // self.mic_sampling_rate
        req_bytes = frames * ratio * self.spk_frame_size_bytes

        wait_count = MAX_READ_WAIT_TIME_MSEC
        while True:
            try:
                available = self.spk_fifo.available_to_read()
            except FifoOverflowError as exc:
                raise AecError(errno.ENOMEM, "reference FIFO overflowed") from exc
            if available >= req_bytes:
                break
            time.sleep(0.001)
            if wait_count == 0:
                raise AecError(errno.ETIMEDOUT, "timed out waiting for reference FIFO")
            wait_count -= 1

        raw = self.spk_fifo.read(req_bytes)
        usec_per_byte = 1e6 / (self.spk_frame_size_bytes * self.spk_sampling_rate)
        timestamp = self._tracker.next_timestamp(len(raw), usec_per_byte)

        count = len(raw) // _INT16_BYTES
        samples = list(struct.unpack(f"<{count}h", raw[: count * _INT16_BYTES]))
        in_frames = frames * ratio
        samples = self._reference_audio(samples, in_frames)

        channels = self.num_reference_channels
        if self._resample:
            samples = _resample_linear(samples[: in_frames * channels], channels, frames)
        elif ratio != 1:
            logger.error(
                "Speaker sample rate %d, mic sample rate %d but no resampler defined!",
                self.spk_sampling_rate,
                self.mic_sampling_rate,
            )

        needed = frames * channels
        samples = (samples + [0] * needed)[:needed]
        data = struct.pack(f"<{needed}i", *(sample << 16 for sample in samples))
        return data, timestamp

    def release(self) -> None:
        """Tear down both sides."""
        with self._lock:
            self._destroy_mic_no_lock()
            self._destroy_reference_no_lock()