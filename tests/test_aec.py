import errno
import struct

import pytest

from dragonkit.aec import Aec, AecError
from dragonkit.aec_timing import timespec_to_usec
from dragonkit.hwconfig import AecInfo


def _pcm16(samples):
    return struct.pack(f"<{len(samples)}h", *samples)


def _int32(data):
    return list(struct.unpack(f"<{len(data) // 4}i", data))


def _stereo_same_rate(num_ref=2):
    aec = Aec(16000, num_ref, 2)
    aec.init_reference_config(16000, 2, 4, 64, 4)
    aec.init_mic_config(16000, 2, 8, 64)
    return aec


def _write(aec, samples, sec=1, nsec=0):
    data = _pcm16(samples)
    aec.write_to_reference_fifo(data, AecInfo(timestamp_sec=sec, timestamp_nsec=nsec, bytes=len(data)))


def test_reference_samples_shifted_to_32_bit():
    aec = _stereo_same_rate()
    _write(aec, [1, -1], sec=1, nsec=500000)
    data, timestamp = aec.get_reference_samples(8)
    assert _int32(data) == [65536, -65536]
    assert timestamp == timespec_to_usec(1, 500000)


def test_reference_keeps_sample_order():
    aec = _stereo_same_rate()
    samples = list(range(1, 17))
    _write(aec, samples)
    data, _ = aec.get_reference_samples(8 * 8)
    assert [value >> 16 for value in _int32(data)] == samples


def test_mono_reference_is_downmixed():
    aec = _stereo_same_rate(num_ref=1)
    _write(aec, [10, 20, -4, -6])
    data, _ = aec.get_reference_samples(16)
    assert [value >> 16 for value in _int32(data)] == [15, -5]


def test_resampled_constant_signal_stays_constant():
    aec = Aec(16000, 2, 2)
    aec.init_reference_config(48000, 2, 4, 64, 4)
    aec.init_mic_config(16000, 2, 8, 64)
    _write(aec, [100] * 96)
    data, _ = aec.get_reference_samples(16 * 8)
    values = _int32(data)
    assert len(values) == 32
    assert all(value >> 16 == 100 for value in values)
    assert aec.spk_fifo.available_to_read() == 0


def test_timestamps_follow_write_packets():
    aec = _stereo_same_rate()
    first = timespec_to_usec(10, 0)
    second = timespec_to_usec(20, 0)
    _write(aec, [0] * 16, sec=10)
    _write(aec, [0] * 16, sec=20)
    _, t1 = aec.get_reference_samples(32)
    _, t2 = aec.get_reference_samples(32)
    _, t3 = aec.get_reference_samples(32)
    assert t1 == first
    assert first < t2 < second
    assert t3 == second


def test_uninitialized_reference_raises_einval():
    aec = Aec(16000, 2, 2)
    with pytest.raises(AecError) as info:
        aec.get_reference_samples(8)
    assert info.value.errno == errno.EINVAL


def test_write_without_reference_raises_einval():
    aec = Aec(16000, 2, 2)
    with pytest.raises(AecError) as info:
        aec.write_to_reference_fifo(b"\0" * 4, AecInfo(bytes=4))
    assert info.value.errno == errno.EINVAL


def test_empty_fifo_times_out():
    aec = _stereo_same_rate()
    with pytest.raises(AecError) as info:
        aec.get_reference_samples(8)
    assert info.value.errno == errno.ETIMEDOUT


def test_oversized_write_raises_enomem():
    aec = Aec(16000, 2, 2)
    aec.init_reference_config(16000, 2, 4, 2, 2)
    capacity = 2 * 2 * 4
    data = b"\1" * (capacity * 2)
    with pytest.raises(AecError) as info:
        aec.write_to_reference_fifo(data, AecInfo(bytes=len(data)))
    assert info.value.errno == errno.ENOMEM
    assert aec.ts_fifo.available_to_read() == AecInfo.SIZE


def test_flush_empties_fifos():
    aec = _stereo_same_rate()
    _write(aec, [1, 2, 3, 4])
    aec.flush_fifos()
    assert aec.spk_fifo.available_to_read() == 0
    assert aec.ts_fifo.available_to_read() == 0


def test_invalid_reference_config_raises():
    aec = Aec(16000, 2, 2)
    with pytest.raises(AecError) as info:
        aec.init_reference_config(16000, 2, 4, 0, 4)
    assert info.value.errno == errno.EINVAL
    assert aec.spk_initialized is False


def test_destroy_reference_stops_speaker():
    aec = _stereo_same_rate()
    aec.spk_running = True
    assert aec.spk_running is True
    aec.destroy_reference_config()
    assert aec.spk_initialized is False
    assert aec.spk_running is False
    assert aec.spk_fifo is None


def test_mic_config_records_sizes_and_destroy():
    aec = Aec(16000, 2, 2)
    aec.init_mic_config(16000, 2, 8, 64)
    assert aec.mic_initialized is True
    assert aec.mic_buf_size_bytes == 64 * 8
    assert aec.spk_buf_size_bytes == 64 * aec.spk_frame_size_bytes
    aec.destroy_mic_config()
    assert aec.mic_initialized is False


def test_release_clears_both_sides():
    aec = _stereo_same_rate()
    aec.release()
    assert aec.mic_initialized is False
    assert aec.spk_initialized is False


def test_reinit_reference_drops_old_data():
    aec = _stereo_same_rate()
    _write(aec, [5, 6])
    aec.init_reference_config(16000, 2, 4, 64, 4)
    assert aec.spk_fifo.available_to_read() == 0
    assert aec.last_spk_info == AecInfo()