"""Open vSwitch in-kernel datapaths over the "ovs_datapath" generic netlink family."""

from __future__ import annotations

import enum
import struct
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

DATAPATH_FAMILY = "ovs_datapath"

# Datapath commands and attributes of the "ovs_datapath" family.
DP_CMD_GET = 3
DP_ATTR_NAME = 1
DP_ATTR_STATS = 3
DP_ATTR_MEGAFLOW_STATS = 4
DP_ATTR_USER_FEATURES = 5

# Netlink message flags.
NETLINK_REQUEST = 0x1
NETLINK_DUMP = 0x300

_HEADER = struct.Struct("=i")
_DP_STATS = struct.Struct("=QQQQ")
_DP_MEGAFLOW_STATS = struct.Struct("=QIIQQ")
_ATTR_HEADER = struct.Struct("=HH")
_UINT32 = struct.Struct("=I")
_ATTR_TYPE_MASK = 0x3FFF
_MAX_UINT16 = 0xFFFF


@dataclass(frozen=True)
class Family:
    """A generic netlink family."""

    id: int = 0
    version: int = 0
    name: str = ""


@dataclass(frozen=True)
class Message:
    """A generic netlink message: its command, version and payload."""

    command: int = 0
    version: int = 0
    data: bytes = b""


class DatapathFeatures(enum.IntFlag):
    """Bit flags for the features of a datapath."""

    UNALIGNED = 1 << 0
    VPORT_PIDS = 1 << 1

    def __str__(self) -> str:
        value = int(self)
        names = [
            name
            for bit, name in ((0, "unaligned"), (1, "vportpids"))
            if value & (1 << bit)
        ]
        return "|".join(names) or "0"


@dataclass(frozen=True)
class DatapathStats:
    """Statistics about packets that passed through a datapath."""

    hit: int = 0
    missed: int = 0
    lost: int = 0
    flows: int = 0


@dataclass(frozen=True)
class DatapathMegaflowStats:
    """Statistics about megaflow mask usage of a datapath."""

    mask_hits: int = 0
    masks: int = 0


@dataclass
class Datapath:
    """An Open vSwitch in-kernel datapath."""

    index: int = 0
    name: str = ""
    features: DatapathFeatures = DatapathFeatures(0)
    stats: DatapathStats = field(default_factory=DatapathStats)
    megaflow_stats: DatapathMegaflowStats = field(
        default_factory=DatapathMegaflowStats
    )


def header_bytes(ifindex: int) -> bytes:
    """Encode the OVS message header carrying a datapath interface index."""
    return _HEADER.pack(ifindex)


def parse_header(data: bytes) -> int:
    """Return the interface index from the OVS message header at the start of data."""
    if len(data) < _HEADER.size:
        raise ValueError(
            f"not enough data for OVS message header: {len(data)} bytes"
        )
    (ifindex,) = _HEADER.unpack_from(data)
    return ifindex


def _align(length: int) -> int:
    return (length + 3) & ~3


def marshal_attributes(attrs: Iterable[tuple[int, bytes]]) -> bytes:
    """Encode (type, data) pairs as padded netlink attributes."""
    out = bytearray()
    for attr_type, data in attrs:
        length = _ATTR_HEADER.size + len(data)
        if not 0 <= attr_type <= _MAX_UINT16 or length > _MAX_UINT16:
            raise ValueError(f"invalid attribute type {attr_type} or length {length}")
        out += _ATTR_HEADER.pack(length, attr_type)
        out += data
        out += bytes(_align(length) - length)
    return bytes(out)


def unmarshal_attributes(data: bytes) -> list[tuple[int, bytes]]:
    """Decode netlink attributes into (type, data) pairs."""
    attrs: list[tuple[int, bytes]] = []
    offset = 0
    while offset < len(data):
        remaining = len(data) - offset
        if remaining < _ATTR_HEADER.size:
            raise ValueError("invalid attribute; length too short")
        length, attr_type = _ATTR_HEADER.unpack_from(data, offset)
        if length < _ATTR_HEADER.size or length > remaining:
            raise ValueError("invalid attribute; length too short or too large")
        attrs.append(
            (attr_type & _ATTR_TYPE_MASK, bytes(data[offset + _ATTR_HEADER.size : offset + length]))
        )
        offset += min(_align(length), remaining)
    return attrs


def parse_dp_stats(data: bytes) -> DatapathStats:
    """Decode the datapath stats structure."""
    if len(data) != _DP_STATS.size:
        raise ValueError(
            "unexpected datapath stats structure size, "
            f"want {_DP_STATS.size}, got {len(data)}"
        )
    hit, missed, lost, flows = _DP_STATS.unpack(data)
    return DatapathStats(hit=hit, missed=missed, lost=lost, flows=flows)


def parse_dp_megaflow_stats(data: bytes) -> DatapathMegaflowStats:
    """Decode the datapath megaflow stats structure."""
    if len(data) != _DP_MEGAFLOW_STATS.size:
        raise ValueError(
            "unexpected datapath megaflow stats structure size, "
            f"want {_DP_MEGAFLOW_STATS.size}, got {len(data)}"
        )
    mask_hits, masks, _, _, _ = _DP_MEGAFLOW_STATS.unpack(data)
    return DatapathMegaflowStats(mask_hits=mask_hits, masks=masks)


def _parse_uint32(data: bytes) -> int:
    if len(data) != _UINT32.size:
        raise ValueError(f"unexpected uint32 attribute size: {len(data)} bytes")
    (value,) = _UINT32.unpack(data)
    return value


def _parse_string(data: bytes) -> str:
    return data.decode(errors="replace").removesuffix("\x00")


def parse_datapaths(messages: Iterable[Message]) -> list[Datapath]:
    """Decode datapaths from generic netlink messages."""
    datapaths: list[Datapath] = []
    for message in messages:
        datapath = Datapath(index=parse_header(message.data))
        for attr_type, data in unmarshal_attributes(message.data[_HEADER.size :]):
            if attr_type == DP_ATTR_NAME:
                datapath.name = _parse_string(data)
            elif attr_type == DP_ATTR_USER_FEATURES:
                datapath.features = DatapathFeatures(_parse_uint32(data))
            elif attr_type == DP_ATTR_STATS:
                datapath.stats = parse_dp_stats(data)
            elif attr_type == DP_ATTR_MEGAFLOW_STATS:
                datapath.megaflow_stats = parse_dp_megaflow_stats(data)
        datapaths.append(datapath)
    return datapaths


class DatapathService:
    """Access to the "ovs_datapath" generic netlink family.

    conn must provide execute(message, family_id, flags) returning the reply
    messages.
    """

    def __init__(self, conn: Any, family: Family) -> None:
        self._conn = conn
        self._family = family

    def list(self) -> list[Datapath]:
        """Return all datapaths in the kernel."""
        request = Message(
            command=DP_CMD_GET,
            version=self._family.version,
            data=header_bytes(0),
        )
        messages = self._conn.execute(
            request, self._family.id, NETLINK_REQUEST | NETLINK_DUMP
        )
        return parse_datapaths(messages)