"""A small JSON reader for domain map files.

The grammar is deliberately narrow. Numbers are runs of decimal digits only.
Strings have no escapes and are cut to 127 characters. Arrays and objects
must hold at least one element. Anything after the top-level value is
ignored.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from typing import Iterator, Union

_WHITESPACE = " \t\n\v\f\r"
_DIGITS = "0123456789"
MAX_STRING_LENGTH = 127
MAX_NUMBER_DIGITS = 19


class JsonParseError(ValueError):
    """The input is not a document this reader accepts."""


class JsonType(enum.IntEnum):
    """The kind of a parsed value."""

    UNKNOWN = 0
    TRUE = 1
    FALSE = 2
    NULL = 3
    NUMBER = 4
    STRING = 5
    ARRAY = 6
    OBJECT = 7


Payload = Union[float, str, "list[JsonValue]", None]


@dataclass
class JsonValue:
    """A parsed value; object members carry their ``key``."""

    type: JsonType
    value: Payload = None
    key: str | None = None
    children: list[JsonValue] = field(default_factory=list)

    def __iter__(self) -> Iterator[JsonValue]:
        return iter(self.children)

    def _member(self, key: str) -> JsonValue | None:
        if self.type is not JsonType.OBJECT:
            return None
        return next((child for child in self.children if child.key == key), None)

    def get_child(self, key: str) -> JsonValue | None:
        """Return the first member named ``key`` of an object, or None."""
        return self._member(key)

    def count_children(self) -> int:
        """Return the number of elements of an array."""
        if self.type is not JsonType.ARRAY:
            raise TypeError("only arrays have countable children")
        return len(self.children)

    def get_number(self, key: str) -> float | None:
        """Return the number stored under ``key``, or None if absent or not a number."""
        member = self._member(key)
        if member is None or member.type is not JsonType.NUMBER:
            return None
        return member.value  # type: ignore[return-value]

    def get_string(self, key: str) -> str | None:
        """Return the string stored under ``key``, or None if absent or not a string."""
        member = self._member(key)
        if member is None or member.type is not JsonType.STRING:
            return None
        return member.value  # type: ignore[return-value]


class _Cursor:
    """Reads characters one by one and can step back by one."""

    def __init__(self, text: str) -> None:
        self.text = text.split("\0", 1)[0]
        self.pos = 0

    def input(self) -> str:
        if self.pos >= len(self.text):
            return ""
        ch = self.text[self.pos]
        self.pos += 1
        return ch

    def unput(self) -> None:
        self.pos -= 1

    def skip_whitespace(self) -> None:
        while True:
            ch = self.input()
            if not ch or ch not in _WHITESPACE:
                break
        self.unput()


def _parse_string(cur: _Cursor) -> str | None:
    if cur.input() != '"':
        cur.unput()
        return None
    chars: list[str] = []
    while True:
        ch = cur.input()
        if not ch or ch == '"' or len(chars) >= MAX_STRING_LENGTH:
            break
        chars.append(ch)
    if not ch:
        raise JsonParseError("unterminated string")
    return "".join(chars)


def _parse_number(cur: _Cursor) -> float | None:
    digits: list[str] = []
    while True:
        ch = cur.input()
        if not ch or ch not in _DIGITS or len(digits) >= MAX_NUMBER_DIGITS:
            break
        digits.append(ch)
    cur.unput()
    if not digits:
        return None
    return float("".join(digits))


_KEYWORDS = {
    "t": ("true", JsonType.TRUE),
    "f": ("false", JsonType.FALSE),
    "n": ("null", JsonType.NULL),
}


def _parse_keyword(cur: _Cursor) -> JsonValue | None:
    ch = cur.input()
    if ch not in _KEYWORDS or not ch:
        cur.unput()
        return None
    word, kind = _KEYWORDS[ch]
    index = 0
    while index < len(word):
        matched = word[index] == ch
        index += 1
        if not matched:
            break
        ch = cur.input()
    cur.unput()
    if index != len(word):
        raise JsonParseError(f"invalid keyword, expected {word!r}")
    return JsonValue(kind)


def _parse_array(cur: _Cursor) -> JsonValue | None:
    if cur.input() != "[":
        cur.unput()
        return None
    items: list[JsonValue] = []
    while True:
        items.append(_parse_value(cur))
        ch = cur.input()
        if ch == "]":
            return JsonValue(JsonType.ARRAY, items, children=items)
        if ch != ",":
            raise JsonParseError(f"expected ',' got {ch!r}")


def _parse_property(cur: _Cursor) -> JsonValue:
    cur.skip_whitespace()
    key = _parse_string(cur)
    if key is None:
        raise JsonParseError("expected a string key")
    cur.skip_whitespace()
    if cur.input() != ":":
        raise JsonParseError("expected ':' after key")
    member = _parse_value(cur)
    member.key = key
    return member


def _parse_object(cur: _Cursor) -> JsonValue | None:
    if cur.input() != "{":
        cur.unput()
        return None
    members: list[JsonValue] = []
    while True:
        members.append(_parse_property(cur))
        ch = cur.input()
        if ch == "}":
            return JsonValue(JsonType.OBJECT, members, children=members)
        if ch != ",":
            raise JsonParseError(f"expected ',' got {ch!r}")


def _parse_value(cur: _Cursor) -> JsonValue:
    cur.skip_whitespace()
    result = _parse_object(cur) or _parse_array(cur)
    if result is None:
        text = _parse_string(cur)
        if text is not None:
            result = JsonValue(JsonType.STRING, text)
    if result is None:
        number = _parse_number(cur)
        if number is not None:
            result = JsonValue(JsonType.NUMBER, number)
    if result is None:
        result = _parse_keyword(cur)
    if result is None:
        raise JsonParseError("unable to match a value")
    cur.skip_whitespace()
    return result


def parse(text: str) -> JsonValue:
    """Parse ``text`` and return its top-level value."""
    return _parse_value(_Cursor(text))


def parse_file(path: str | os.PathLike[str]) -> JsonValue:
    """Read and parse the file at ``path``."""
    with open(path, encoding="utf-8") as handle:
        return parse(handle.read())