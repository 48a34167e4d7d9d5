import pytest

from dragonkit.fir import FirFilter, FirMode, clamp16


def test_clamp16_saturates_to_int16_range():
    assert clamp16(10**9) == 32767
    assert clamp16(-(10**9)) == -32768
    assert clamp16(1234) == 1234


def test_zero_coefficients_give_silence():
    fir = FirFilter(2, FirMode.SINGLE_FILTER, 4, 8, [0, 0, 0, 0])
    out = fir.process_interleaved([100, -200, 300, -400, 500, -600])
    assert out == [0] * 6


def test_delay_tap_carries_state_between_calls():
    fir = FirFilter(1, FirMode.SINGLE_FILTER, 2, 4, [0, 16384])
    assert fir.process_interleaved([1000, 2000]) == [0, 500]
    assert fir.process_interleaved([3000]) == [1000]


def test_negative_values_shift_towards_minus_infinity():
    fir = FirFilter(1, FirMode.SINGLE_FILTER, 1, 4, [16384])
    assert fir.process_interleaved([-1]) == [-1]


def test_single_filter_uses_same_taps_for_all_channels():
    fir = FirFilter(2, FirMode.SINGLE_FILTER, 1, 4, [16384, 0])
    out = fir.process_interleaved([1000, 1000, -2000, -2000])
    assert out[0::2] == out[1::2]
    assert out[0] == 500


def test_per_channel_filter_uses_separate_taps():
    fir = FirFilter(2, FirMode.PER_CHANNEL_FILTER, 1, 4, [16384, 0])
    out = fir.process_interleaved([1000, 1000, -2000, 4000])
    assert out == [500, 0, -1000, 0]


def test_per_channel_filter_with_odd_channel_count():
    fir = FirFilter(3, FirMode.PER_CHANNEL_FILTER, 1, 2, [16384, 0, 16384])
    out = fir.process_interleaved([1000, 1000, 1000])
    assert out == [500, 0, 500]


def test_output_saturates():
    fir = FirFilter(1, FirMode.SINGLE_FILTER, 2, 4, [32767, 32767])
    out = fir.process_interleaved([32767, 32767])
    assert out[1] == 32767
    fir.reset()
    out = fir.process_interleaved([-32768, -32768])
    assert out[1] == -32768


def test_chunked_processing_matches_single_block():
    coeffs = [8192, 16384, -8192]
    signal = [(i * 977) % 20000 - 10000 for i in range(32)]
    whole = FirFilter(2, FirMode.SINGLE_FILTER, 3, 16, coeffs)
    chunked = FirFilter(2, FirMode.SINGLE_FILTER, 3, 16, coeffs)
    expected = whole.process_interleaved(signal, 16)
    got = chunked.process_interleaved(signal[:16], 8) + chunked.process_interleaved(signal[16:], 8)
    assert got == expected


def test_reset_clears_history():
    coeffs = [4096, 8192, 4096]
    fir = FirFilter(1, FirMode.SINGLE_FILTER, 3, 8, coeffs)
    fresh = FirFilter(1, FirMode.SINGLE_FILTER, 3, 8, coeffs)
    fir.process_interleaved([30000, -30000, 30000, -30000])
    fir.reset()
    block = [100, 200, 300, 400]
    assert fir.process_interleaved(block) == fresh.process_interleaved(block)


def test_unknown_mode_falls_back_to_single():
    fir = FirFilter(2, 7, 1, 2, [16384])
    assert fir.mode is FirMode.SINGLE_FILTER


@pytest.mark.parametrize(
    "channels, length, coeffs",
    [(0, 1, [1]), (1, 0, [1]), (1, 1, None), (2, 2, [1, 2, 3])],
)
def test_invalid_construction_raises(channels, length, coeffs):
    mode = FirMode.PER_CHANNEL_FILTER
    with pytest.raises(ValueError):
        FirFilter(channels, mode, length, 4, coeffs)


def test_too_many_frames_raises():
    fir = FirFilter(1, FirMode.SINGLE_FILTER, 2, 2, [1, 1])
    with pytest.raises(ValueError):
        fir.process_interleaved([1, 2, 3, 4])


def test_too_few_samples_raises():
    fir = FirFilter(2, FirMode.SINGLE_FILTER, 1, 8, [1])
    with pytest.raises(ValueError):
        fir.process_interleaved([1, 2, 3], 2)