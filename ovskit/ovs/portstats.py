"""Parsing of port statistics as printed by 'ovs-ofctl dump-ports'."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

PORT_LOCAL = 65534
_PORT_LOCAL_NAME = "LOCAL"

_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"[0-9]+")
_MAX_INT64 = (1 << 63) - 1
_MIN_INT64 = -(1 << 63)
_MAX_UINT64 = (1 << 64) - 1


class InvalidPortStatsError(ValueError):
    """Raised when port statistics do not match the expected format."""

    def __init__(self, message: str = "invalid port statistics") -> None:
        super().__init__(message)


@dataclass
class PortStatsReceive:
    """Counters for received traffic."""

    packets: int = 0
    bytes: int = 0
    dropped: int = 0
    errors: int = 0
    frame: int = 0
    over: int = 0
    crc: int = 0


@dataclass
class PortStatsTransmit:
    """Counters for transmitted traffic."""

    packets: int = 0
    bytes: int = 0
    dropped: int = 0
    errors: int = 0
    collisions: int = 0


@dataclass
class PortStats:
    """Statistics for one Open vSwitch port."""

    port_id: int = 0
    received: PortStatsReceive = field(default_factory=PortStatsReceive)
    transmitted: PortStatsTransmit = field(default_factory=PortStatsTransmit)


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


def parse_port_stats(text: str | bytes) -> PortStats:
    """Parse one port's entry from 'ovs-ofctl dump-ports' output.

    Raises InvalidPortStatsError for a malformed layout and ValueError for
    numbers that cannot be parsed.
    """
    if isinstance(text, bytes):
        text = text.decode()

    fields = text.split()
    if len(fields) != 16:
        raise InvalidPortStatsError()
    if fields[0] != "port" or fields[2] != "rx" or fields[10] != "tx":
        raise InvalidPortStatsError()

    port_name = fields[1].removesuffix(":")
    port_id = PORT_LOCAL if port_name == _PORT_LOCAL_NAME else _parse_int(port_name)

    counters: dict[str, dict[str, int]] = {"rx": {}, "tx": {}}
    prefix = "rx"
    for item in fields[2:]:
        item = item.removesuffix(",")
        if item in counters:
            prefix = item
            continue

        pair = item.split("=")
        if len(pair) != 2:
            raise InvalidPortStatsError()
        name, value = pair
        # Tunnel interfaces report some counters as '?'.
        counters[prefix][name] = 0 if value == "?" else _parse_uint(value)

    rx, tx = counters["rx"], counters["tx"]
    return PortStats(
        port_id=port_id,
        received=PortStatsReceive(
            packets=rx.get("pkts", 0),
            bytes=rx.get("bytes", 0),
            dropped=rx.get("drop", 0),
            errors=rx.get("errs", 0),
            frame=rx.get("frame", 0),
            over=rx.get("over", 0),
            crc=rx.get("crc", 0),
        ),
        transmitted=PortStatsTransmit(
            packets=tx.get("pkts", 0),
            bytes=tx.get("bytes", 0),
            dropped=tx.get("drop", 0),
            errors=tx.get("errs", 0),
            collisions=tx.get("coll", 0),
        ),
    )