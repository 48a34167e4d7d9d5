"""Service-registry locator messages and their QMI TLV encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

SERVREG_QMI_SERVICE = 64
SERVREG_QMI_VERSION = 257
SERVREG_QMI_INSTANCE = 0

QMI_RESULT_SUCCESS = 0
QMI_RESULT_FAILURE = 1
QMI_ERR_NONE = 0
QMI_ERR_INTERNAL = 1
QMI_ERR_MALFORMED_MSG = 2

SERVREG_LOC_GET_DOMAIN_LIST = 33
SERVREG_LOC_PFR = 36

MAX_STRING_LENGTH = 255
MAX_DOMAIN_LIST = 255


def _pack(fmt: str, *values: int) -> bytes:
    try:
        return struct.pack(fmt, *values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _unpack(fmt: str, data: bytes, offset: int = 0) -> tuple[int, ...]:
    try:
        return struct.unpack_from(fmt, data, offset)
    except struct.error as exc:
        raise ValueError("message truncated") from exc


def _tlv(tlv_type: int, payload: bytes) -> bytes:
    return _pack("<BH", tlv_type, len(payload)) + payload


def _split_tlvs(data: bytes) -> dict[int, bytes]:
    tlvs: dict[int, bytes] = {}
    offset = 0
    while offset < len(data):
        tlv_type, length = _unpack("<BH", data, offset)
        offset += 3
        if offset + length > len(data):
            raise ValueError("TLV length exceeds message")
        tlvs[tlv_type] = bytes(data[offset : offset + length])
        offset += length
    return tlvs


def _string_bytes(text: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) > MAX_STRING_LENGTH:
        raise ValueError(f"string longer than {MAX_STRING_LENGTH} bytes")
    return raw


def _decode_text(raw: bytes) -> str:
    if len(raw) > MAX_STRING_LENGTH:
        raise ValueError(f"string longer than {MAX_STRING_LENGTH} bytes")
    return raw.decode("utf-8")


def _require(tlvs: dict[int, bytes], tlv_type: int) -> bytes:
    if tlv_type not in tlvs:
        raise ValueError(f"mandatory TLV {tlv_type} missing")
    return tlvs[tlv_type]


@dataclass
class QmiResult:
    """The result code and error code of a response."""

    result: int = QMI_RESULT_SUCCESS
    error: int = QMI_ERR_NONE

    def encode(self) -> bytes:
        return _pack("<HH", self.result, self.error)

    @classmethod
    def decode(cls, data: bytes) -> QmiResult:
        result, error = _unpack("<HH", data)
        return cls(result, error)


@dataclass
class DomainListEntry:
    """One protection domain that hosts a service."""

    name: str
    instance_id: int = 0
    service_data_valid: bool = False
    service_data: int = 0

    def encode(self) -> bytes:
        raw = _string_bytes(self.name)
        return (
            _pack("<H", len(raw))
            + raw
            + _pack("<IBI", self.instance_id, int(self.service_data_valid), self.service_data)
        )

    @classmethod
    def decode(cls, data: bytes, offset: int = 0) -> tuple[DomainListEntry, int]:
        """Decode one entry at ``offset``; return it and the offset after it."""
        (length,) = _unpack("<H", data, offset)
        offset += 2
        if offset + length > len(data):
            raise ValueError("domain name exceeds message")
        name = _decode_text(bytes(data[offset : offset + length]))
        offset += length
        instance_id, valid, service_data = _unpack("<IBI", data, offset)
        offset += struct.calcsize("<IBI")
        return cls(name, instance_id, bool(valid), service_data), offset


@dataclass
class GetDomainListRequest:
    """Ask which domains provide ``name``."""

    name: str
    offset: int | None = None

    def encode(self) -> bytes:
        body = _tlv(1, _string_bytes(self.name))
        if self.offset is not None:
            body += _tlv(16, _pack("<I", self.offset))
        return body

    @classmethod
    def decode(cls, data: bytes) -> GetDomainListRequest:
        tlvs = _split_tlvs(data)
        name = _decode_text(_require(tlvs, 1))
        offset = _unpack("<I", tlvs[16])[0] if 16 in tlvs else None
        return cls(name, offset)


@dataclass
class GetDomainListResponse:
    """The domains that provide a requested service."""

    result: QmiResult = field(default_factory=QmiResult)
    total_domains: int | None = None
    db_revision: int | None = None
    domain_list: list[DomainListEntry] | None = None

    def encode(self) -> bytes:
        body = _tlv(2, self.result.encode())
        if self.total_domains is not None:
            body += _tlv(16, _pack("<H", self.total_domains))
        if self.db_revision is not None:
            body += _tlv(17, _pack("<H", self.db_revision))
        if self.domain_list is not None:
            if len(self.domain_list) > MAX_DOMAIN_LIST:
                raise ValueError(f"more than {MAX_DOMAIN_LIST} domain entries")
            payload = _pack("<B", len(self.domain_list))
            payload += b"".join(entry.encode() for entry in self.domain_list)
            body += _tlv(18, payload)
        return body

    @classmethod
    def decode(cls, data: bytes) -> GetDomainListResponse:
        tlvs = _split_tlvs(data)
        result = QmiResult.decode(_require(tlvs, 2))
        total = _unpack("<H", tlvs[16])[0] if 16 in tlvs else None
        revision = _unpack("<H", tlvs[17])[0] if 17 in tlvs else None
        entries: list[DomainListEntry] | None = None
        if 18 in tlvs:
            payload = tlvs[18]
            (count,) = _unpack("<B", payload)
            offset = 1
            entries = []
            for _ in range(count):
                entry, offset = DomainListEntry.decode(payload, offset)
                entries.append(entry)
        return cls(result, total, revision, entries)


@dataclass
class PfrRequest:
    """Report a protection-domain restart of ``service`` with a ``reason``."""

    service: str
    reason: str

    def encode(self) -> bytes:
        return _tlv(1, _string_bytes(self.service)) + _tlv(2, _string_bytes(self.reason))

    @classmethod
    def decode(cls, data: bytes) -> PfrRequest:
        tlvs = _split_tlvs(data)
        return cls(_decode_text(_require(tlvs, 1)), _decode_text(_require(tlvs, 2)))


@dataclass
class PfrResponse:
    """The answer to a :class:`PfrRequest`."""

    result: QmiResult = field(default_factory=QmiResult)

    def encode(self) -> bytes:
        return _tlv(2, self.result.encode())

    @classmethod
    def decode(cls, data: bytes) -> PfrResponse:
        return cls(QmiResult.decode(_require(_split_tlvs(data), 2)))