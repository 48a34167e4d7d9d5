"""Audio device parameters and the per-write timing record shared with the AEC."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

PORT_HDMI = 0
PORT_INTERNAL_SPEAKER = 1
PORT_BUILTIN_MIC = 3

MIXER_XML_PATH = "/vendor/etc/mixer_paths.xml"
CODEC_BASE_FRAME_COUNT = 32

CHANNEL_STEREO = 2

# Echo cancellation done inside the device uses a mono reference; done in the
# application it uses a stereo one.
HAL_AEC_REFERENCE_CHANNELS = 1
NUM_AEC_REFERENCE_CHANNELS = 2

PCM_OPEN_RETRIES = 100
PCM_OPEN_WAIT_TIME_MS = 20

CAPTURE_PERIOD_MULTIPLIER = 16
CAPTURE_PERIOD_SIZE = CODEC_BASE_FRAME_COUNT * CAPTURE_PERIOD_MULTIPLIER
CAPTURE_PERIOD_COUNT = 4
CAPTURE_PERIOD_START_THRESHOLD = 0
CAPTURE_CODEC_SAMPLING_RATE = 16000

PLAYBACK_PERIOD_MULTIPLIER = 32
PLAYBACK_PERIOD_SIZE = CODEC_BASE_FRAME_COUNT * PLAYBACK_PERIOD_MULTIPLIER
PLAYBACK_PERIOD_COUNT = 4
PLAYBACK_PERIOD_START_THRESHOLD = 2
PLAYBACK_CODEC_SAMPLING_RATE = 48000
MIN_WRITE_SLEEP_US = 5000

SPEAKER_EQ_FILE = "/vendor/etc/speaker_eq.fir"
SPEAKER_MAX_EQ_LENGTH = 512

_AEC_INFO_FORMAT = "<qqQI4xQ"


@dataclass
class AecInfo:
    """Timing of one block of audio.

    ``bytes`` is the number of bytes the timestamp applies to; ``available``
    is the number of frames still queued in the device buffer.  The
    ``timestamp_usec`` field carries a derived timestamp in microseconds.
    """

    timestamp_sec: int = 0
    timestamp_nsec: int = 0
    timestamp_usec: int = 0
    available: int = 0
    bytes: int = 0

    SIZE: ClassVar[int] = struct.calcsize(_AEC_INFO_FORMAT)

    def pack(self) -> bytes:
        """Serialise into a fixed-size record."""
        try:
            return struct.pack(
                _AEC_INFO_FORMAT,
                self.timestamp_sec,
                self.timestamp_nsec,
                self.timestamp_usec,
                self.available,
                self.bytes,
            )
        except struct.error as exc:
            raise ValueError(f"field out of range: {exc}") from exc

    @staticmethod
    def unpack(data: bytes) -> AecInfo:
        """Deserialise a record produced by :meth:`pack`."""
        if len(data) < AecInfo.SIZE:
            raise ValueError(f"need {AecInfo.SIZE} bytes, got {len(data)}")
        return AecInfo(*struct.unpack_from(_AEC_INFO_FORMAT, data))


@dataclass
class StreamConfig:
    """The PCM configuration of one stream."""

    channels: int
    rate: int
    bytes_per_sample: int = 2
    period_size: int = PLAYBACK_PERIOD_SIZE
    period_count: int = PLAYBACK_PERIOD_COUNT
    start_threshold: int = 0
    avail_min: int = 0

    def __post_init__(self) -> None:
        if self.channels <= 0:
            raise ValueError("channel count must be positive")
        if self.rate <= 0:
            raise ValueError("sampling rate must be positive")
        if self.bytes_per_sample <= 0:
            raise ValueError("sample size must be positive")
        if self.period_size < 0 or self.period_count < 0:
            raise ValueError("period size and count must not be negative")

    def frame_size(self) -> int:
        """Bytes in one frame: one sample of every channel."""
        return self.channels * self.bytes_per_sample