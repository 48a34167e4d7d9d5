# dragonkit

A small toolkit with no dependencies. Most of it deals with audio on
development boards, and a couple of modules handle protection-domain
descriptors.

| Module | What it holds |
| --- | --- |
| `dragonkit.fir` | `FirFilter`, a multi-channel FIR filter for interleaved 16-bit audio with Q15 coefficients; `FirMode`; `clamp16` |
| `dragonkit.fifo` | `ByteFifo`, a bounded byte queue with one reader and one writer; `FifoOverflowError` |
| `dragonkit.hwconfig` | audio stream constants, `StreamConfig`, and the timing record `AecInfo` |
| `dragonkit.aec_timing` | `timespec_to_usec`, `downmix_to_mono`, `SpeakerTimestampTracker` |
| `dragonkit.aec` | `Aec`, the reference path of an echo canceller; `AecError` |
| `dragonkit.pdjson` | a deliberately narrow JSON reader: `parse`, `parse_file`, `JsonValue`, `JsonType`, `JsonParseError` |
| `dragonkit.servreg` | service-registry locator messages with their TLV encoding |

## FIR equaliser

```python
from dragonkit.fir import FirFilter, FirMode

# Two channels share one 3-tap filter. Each call handles at most 256 frames.
eq = FirFilter(2, FirMode.SINGLE_FILTER, 3, 256, [16384, 8192, 4096])
out = eq.process_interleaved([1000, -1000, 2000, -2000], 2)
eq.reset()  # clear the history
```

The filter history carries over from one call to the next, so a stream can
be fed in consecutive blocks. Each output sample is the accumulated sum
shifted right by 15 and then saturated with `clamp16`.

In `FirMode.PER_CHANNEL_FILTER` the coefficient list holds one set of
`filter_length` taps for each channel, placed one after another.

The constructor raises `ValueError` for these inputs:
- a channel count of zero or less;
- a filter length of zero or less;
- missing coefficients;
- too few coefficients.

`process_interleaved` also raises `ValueError` when it is given more frames
than `input_length`.

## Byte FIFO

```python
from dragonkit.fifo import ByteFifo

fifo = ByteFifo(1024, False)
fifo.write(b"\x01\x02\x03\x04")   # 4 bytes accepted
fifo.available_to_read()          # 4
fifo.read(2)                      # b"\x01\x02"
fifo.flush()                      # drops the rest and returns 2
```

The second argument, `reader_throttles_writer`, decides what happens when
the queue is full:
- `True`: a write is cut short to the free space.
- `False`: the writer never waits. If it overruns the reader, the next
  `read` or `available_to_read` raises `FifoOverflowError` and drops
  everything that was pending.

## Echo-canceller reference path

`Aec` connects the two sides of echo cancellation:
- The playback side writes each played block into a speaker FIFO, together
  with a packed `AecInfo` timing record.
- The capture side asks for reference audio in the microphone's format.

```python
from dragonkit.aec import Aec
from dragonkit.hwconfig import AecInfo

aec = Aec()  # 16 kHz, 2 reference channels, 2 microphone channels
aec.init_reference_config(rate=48000, channels=2, frame_size=4,
                          period_size=1024, period_count=4)
aec.init_mic_config(rate=16000, channels=2, frame_size=8, period_size=512)

played = bytes(4 * 96)  # 96 stereo 16-bit frames
aec.write_to_reference_fifo(played, AecInfo(timestamp_sec=10, bytes=len(played)))

data, timestamp_usec = aec.get_reference_samples(8 * 32)  # 32 mic frames
```

`get_reference_samples` returns two things:
- 32-bit little-endian samples, with `num_reference_channels` samples per
  frame at the microphone rate;
- the timestamp of the first sample in microseconds, or 0 when none is known.

On the way it does the following:
- A mono reference is made by averaging the speaker channels.
- When the speaker and microphone rates differ, it resamples by linear
  interpolation.
- Each sample is shifted left by 16 to make it 32-bit.

Failures raise `AecError`, which is an `OSError` carrying an `errno`:
- `EINVAL` when the reference is not set up;
- `ENOMEM` after a FIFO overflow, or after a short write in
  `write_to_reference_fifo`;
- `ETIMEDOUT` when not enough reference audio arrives within about 80 ms.

Other members:
- `spk_running` records whether playback is running.
- `flush_fifos` drops all queued audio and timestamps.
- `destroy_reference_config`, `destroy_mic_config` and `release` tear the
  state down.

`SpeakerTimestampTracker` is the part that matches bytes read from the
speaker FIFO to the timestamps of the writes they came from. It can be used
on its own with any `ByteFifo` of packed `AecInfo` records.

## Domain descriptor JSON

```python
from dragonkit.pdjson import parse

root = parse('{"sr_domain": {"soc": "example", "qmi_instance_id": 74}}')
domain = root.get_child("sr_domain")
domain.get_string("soc")               # "example"
domain.get_number("qmi_instance_id")   # 74.0
```

The grammar is narrow on purpose:
- Numbers are runs of decimal digits only.
- Strings have no escapes and are cut to 127 characters.
- Arrays and objects need at least one element.
- Anything after the top-level value is ignored.

Input it does not accept raises `JsonParseError`. `get_child`, `get_string`
and `get_number` return `None` when the key is missing or has the wrong
type. `count_children` raises `TypeError` on anything that is not an array.

## Service-registry locator messages

`dragonkit.servreg` holds these dataclasses:
- `QmiResult`
- `DomainListEntry`
- `GetDomainListRequest`
- `GetDomainListResponse`
- `PfrRequest`
- `PfrResponse`

Each class has `encode()`, which gives the message body as little-endian
TLVs, and a `decode()` classmethod that reads that encoding back. Optional
fields set to `None` are left out of the encoding. Strings longer than 255
bytes raise `ValueError`, and so do truncated messages. The module also
defines the service number, version and message IDs as constants
(`SERVREG_QMI_SERVICE`, `SERVREG_LOC_GET_DOMAIN_LIST`, …).

## What this package does not do

- It does not open audio devices or mixers.
- It does not cancel echo: `Aec` only prepares and times the reference
  signal.
- It does not load domain maps, and it runs no service that answers
  domain-list requests. `dragonkit.servreg` only encodes and decodes the
  messages.
- It does not talk to Bluetooth controllers.
- It installs no command-line tools.

## Running the tests

Install the `test` extra and run `pytest` from the project root.