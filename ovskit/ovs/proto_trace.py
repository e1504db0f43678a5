"""Parsing of 'ovs-appctl ofproto/trace' output."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_DATAPATH_ACTIONS_RE = re.compile(r"Datapath actions: (.*)")
_INITIAL_FLOW_RE = re.compile(r"Flow: (.*)")
_FINAL_FLOW_RE = re.compile(r"Final flow: (.*)")
_MEGAFLOW_RE = re.compile(r"Megaflow: (.*)")
_TRACE_START_RE = re.compile(r'bridge\("(.*)"\)')
_TRACE_FLOW_RE = re.compile(r" *[0-9]+[.] ([A-Za-z].*)")
_TRACE_ACTION_RE = re.compile(r" +([A-Za-z].*)")
_RECIRC_ID_RE = re.compile(r"recirc_id=")
_RECIRC_RE = re.compile(r"recirc\(")

# Informational lines about conntrack and tunnels that carry no action.
_SKIPPED_LINE_RES = (
    re.compile(r"^\s+->"),
    re.compile(r"thaw"),
    re.compile(r"Resuming from table"),
    re.compile(r"resume conntrack with"),
    re.compile(r"native tunnel"),
)

_PROTOCOLS = frozenset(
    {"arp", "icmp", "icmp6", "ip", "ipv6", "tcp", "tcp6", "udp", "udp6"}
)
_SKIPPED_KEYWORDS = frozenset({"eth", "unchanged"})

_IN_PORT = "in_port"
_PORT_LOCAL_NAME = "LOCAL"
_LOCAL_PORT = 65534


@dataclass(frozen=True)
class DataPathActions:
    """The datapath actions reported at the end of a trace."""

    actions: str = ""


@dataclass
class DataPathFlows:
    """An initial or final flow of a trace: its protocol and match fields."""

    protocol: str = ""
    matches: list[tuple[str, str]] = field(default_factory=list)


@dataclass
class ProtoTrace:
    """The result of an 'ofproto/trace' run."""

    command_str: str = ""
    input_flow: DataPathFlows | None = None
    final_flow: DataPathFlows | None = None
    data_path_actions: DataPathActions | None = None
    flow_actions: list[str] = field(default_factory=list)
    raw_output: bytes = b""


def _as_text(text: str | bytes) -> str:
    return text.decode() if isinstance(text, bytes) else text


def parse_data_path_flows(text: str | bytes) -> DataPathFlows:
    """Parse a comma separated flow description from trace output.

    Raises ValueError for an element that is not a keyword or a key=value pair.
    """
    flows = DataPathFlows()
    for match in _as_text(text).split(","):
        if match in _PROTOCOLS:
            flows.protocol = match
            continue
        if match in _SKIPPED_KEYWORDS or _RECIRC_ID_RE.search(match):
            continue

        pair = match.split("=")
        if len(pair) != 2:
            raise ValueError(f"unexpected match format for match {match!r}")
        key, value = pair[0].strip(), pair[1]

        if key == _IN_PORT and value.strip() == _PORT_LOCAL_NAME:
            flows.matches.append((_IN_PORT, str(_LOCAL_PORT)))
            continue

        flows.matches.append((key, value))
    return flows


def parse_proto_trace(text: str | bytes) -> ProtoTrace:
    """Parse the full output of 'ovs-appctl ofproto/trace'."""
    trace = ProtoTrace()
    for line in _as_text(text).split("\n"):
        found = _DATAPATH_ACTIONS_RE.search(line)
        if found:
            if _RECIRC_RE.search(line):
                trace.flow_actions.append("recirc")
            trace.data_path_actions = DataPathActions(found.group(1))
            continue

        found = _INITIAL_FLOW_RE.search(line)
        if found:
            trace.input_flow = parse_data_path_flows(found.group(1))
            continue

        found = _FINAL_FLOW_RE.search(line)
        if found:
            trace.final_flow = parse_data_path_flows(found.group(1))
            continue

        if (
            _MEGAFLOW_RE.search(line)
            or _TRACE_START_RE.search(line)
            or _TRACE_FLOW_RE.search(line)
        ):
            continue

        if any(pattern.search(line) for pattern in _SKIPPED_LINE_RES):
            continue

        found = _TRACE_ACTION_RE.search(line)
        if found:
            trace.flow_actions.append(found.group(1))
    return trace