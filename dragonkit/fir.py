"""Fixed-point FIR filtering of interleaved 16-bit audio."""

from __future__ import annotations

import enum
from collections.abc import Sequence

INT16_MIN = -32768
INT16_MAX = 32767


class FirMode(enum.IntEnum):
    """How the coefficient array is shared between channels."""

    SINGLE_FILTER = 0
    PER_CHANNEL_FILTER = 1


def clamp16(value: int) -> int:
    """Saturate an integer to the signed 16-bit range."""
    return max(INT16_MIN, min(INT16_MAX, value))


class FirFilter:
    """A Q15 FIR filter with state kept across calls.

    In ``SINGLE_FILTER`` mode every channel uses the same ``filter_length``
    coefficients.  In ``PER_CHANNEL_FILTER`` mode the coefficients hold one
    set of ``filter_length`` taps per channel, one after another.
    """

    def __init__(
        self,
        channels: int,
        mode: FirMode | int,
        filter_length: int,
        input_length: int,
        coeffs: Sequence[int] | None,
    ) -> None:
        if channels <= 0 or filter_length <= 0 or coeffs is None:
            raise ValueError("invalid channel count, filter length or coefficient array")
        if input_length < 0:
            raise ValueError("input length must not be negative")

        self.channels = channels
        self.filter_length = filter_length
        self.mode = (
            FirMode.PER_CHANNEL_FILTER
            if mode == FirMode.PER_CHANNEL_FILTER
            else FirMode.SINGLE_FILTER
        )
        needed = filter_length * (channels if self.mode is FirMode.PER_CHANNEL_FILTER else 1)
        coeff_list = [int(c) for c in coeffs]
        if len(coeff_list) < needed:
            raise ValueError(f"expected {needed} coefficients, got {len(coeff_list)}")
        self.coeffs = tuple(coeff_list[:needed])
        self.buffer_size = (input_length + filter_length) * channels
        self._state = [0] * self.buffer_size

    def reset(self) -> None:
        """Clear the filter history."""
        self._state = [0] * self.buffer_size

    def _taps_for(self, channel: int) -> Sequence[int]:
        if self.mode is FirMode.PER_CHANNEL_FILTER and self.channels > 1:
            start = channel * self.filter_length
            return self.coeffs[start : start + self.filter_length]
        return self.coeffs[: self.filter_length]

    def process_interleaved(self, samples: Sequence[int], frames: int | None = None) -> list[int]:
        """Filter ``frames`` interleaved frames and return the filtered samples."""
        channels = self.channels
        if frames is None:
            frames = len(samples) // channels
        count = frames * channels
        if frames < 0 or len(samples) < count:
            raise ValueError("not enough samples for the requested number of frames")
        start = (self.filter_length - 1) * channels
        if start + count > self.buffer_size:
            raise ValueError("more frames than the filter was sized for")

        state = self._state
        state[start : start + count] = [int(s) for s in samples[:count]]

        output = [0] * count
        for channel in range(channels):
            taps = self._taps_for(channel)
            for frame in range(frames):
                newest = start + frame * channels + channel
                acc = sum(
                    coeff * state[newest - k * channels] for k, coeff in enumerate(taps)
                )
                output[frame * channels + channel] = clamp16(acc >> 15)

        history = (self.filter_length - 1) * channels
        state[:history] = state[count : count + history]
        return output