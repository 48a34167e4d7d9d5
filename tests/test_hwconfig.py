import pytest

from dragonkit.hwconfig import AecInfo, StreamConfig


def test_aec_info_round_trip():
    info = AecInfo(
        timestamp_sec=12,
        timestamp_nsec=345678,
        timestamp_usec=12000345,
        available=17,
        bytes=4096,
    )
    assert AecInfo.unpack(info.pack()) == info


def test_aec_info_pack_has_fixed_size():
    assert len(AecInfo().pack()) == AecInfo.SIZE
    assert len(AecInfo(bytes=10, available=3).pack()) == AecInfo.SIZE


def test_aec_info_default_is_all_zero():
    assert AecInfo().pack() == bytes(AecInfo.SIZE)


def test_aec_info_negative_nsec_round_trips():
    info = AecInfo(timestamp_sec=5, timestamp_nsec=-250)
    assert AecInfo.unpack(info.pack()).timestamp_nsec == -250


def test_aec_info_unpack_short_raises():
    with pytest.raises(ValueError):
        AecInfo.unpack(b"\x00" * (AecInfo.SIZE - 1))


def test_aec_info_unpack_ignores_trailing_bytes():
    info = AecInfo(timestamp_sec=1, bytes=8)
    assert AecInfo.unpack(info.pack() + b"extra") == info


def test_aec_info_negative_byte_count_rejected():
    with pytest.raises(ValueError):
        AecInfo(bytes=-1).pack()


def test_frame_size_is_channels_times_sample_size():
    config = StreamConfig(channels=2, rate=48000, bytes_per_sample=2)
    assert config.frame_size() == config.channels * config.bytes_per_sample


def test_frame_size_scales_with_sample_size():
    narrow = StreamConfig(channels=2, rate=16000, bytes_per_sample=2)
    wide = StreamConfig(channels=2, rate=16000, bytes_per_sample=4)
    assert wide.frame_size() == 2 * narrow.frame_size()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"channels": 0, "rate": 48000},
        {"channels": 2, "rate": 0},
        {"channels": 2, "rate": 48000, "bytes_per_sample": 0},
        {"channels": 2, "rate": 48000, "period_size": -1},
    ],
)
def test_stream_config_rejects_invalid(kwargs):
    with pytest.raises(ValueError):
        StreamConfig(**kwargs)