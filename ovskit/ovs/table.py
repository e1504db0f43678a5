"""Parsing of OpenFlow tables as printed by 'ovs-ofctl dump-tables'."""

from __future__ import annotations

import re
from dataclasses import dataclass

_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"[0-9]+")
_MAX_INT64 = (1 << 63) - 1
_MIN_INT64 = -(1 << 63)
_MAX_UINT64 = (1 << 64) - 1


class InvalidTableError(ValueError):
    """Raised when a table entry does not match the expected format."""

    def __init__(self, message: str = "invalid openflow table") -> None:
        super().__init__(message)


@dataclass
class Table:
    """An Open vSwitch OpenFlow table."""

    id: int = 0
    name: str = ""
    wild: str = ""
    max: int = 0
    active: int = 0
    lookup: int = 0
    matched: int = 0


def _parse_int(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    value = int(text)
    if not _MIN_INT64 <= value <= _MAX_INT64:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def _parse_uint(text: str) -> int:
    if not _UINT_RE.fullmatch(text):
        raise ValueError(f"invalid unsigned integer: {text!r}")
    value = int(text)
    if value > _MAX_UINT64:
        raise ValueError(f"unsigned integer out of range: {text!r}")
    return value


def parse_table(text: str | bytes) -> Table:
    """Parse one table entry from 'ovs-ofctl dump-tables' output.

    Raises InvalidTableError for a malformed layout and ValueError for
    numbers that cannot be parsed.
    """
    if isinstance(text, bytes):
        text = text.decode()

    fields = text.split()
    if len(fields) not in (7, 8):
        raise InvalidTableError()

    table_id = _parse_int(fields[0].removesuffix(":"))

    # Names without a trailing colon are followed by a lone ':' field.
    start = 2 if fields[1].endswith(":") else 3
    name = fields[1].removesuffix(":")

    wild = ""
    numbers: list[int] = []
    for position, token in enumerate(fields[start:]):
        pair = token.removesuffix(",").split("=")
        if len(pair) != 2:
            raise InvalidTableError()
        if position == 0:
            wild = pair[1]
            continue
        numbers.append(_parse_uint(pair[1]))

    if len(numbers) < 4:
        raise InvalidTableError()

    return Table(
        id=table_id,
        name=name,
        wild=wild,
        max=numbers[0],
        active=numbers[1],
        lookup=numbers[2],
        matched=numbers[3],
    )