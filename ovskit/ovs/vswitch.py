"""Management of bridges, ports and interfaces through 'ovs-vsctl'."""

from __future__ import annotations

import json
import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

# Disables ingress policing, which is what Open vSwitch does by default.
DEFAULT_INGRESS_RATE_POLICING = -1

# Resets the ingress policing burst to its default size of 1000 kb.
DEFAULT_INGRESS_BURST_POLICING = -1

_EMPTY = "[]"
_MAX_UINT32 = (1 << 32) - 1
_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"[0-9]+")
_MAC_LENGTHS = (6, 8, 20)

Executor = Callable[..., "bytes | str | None"]


@dataclass
class BridgeOptions:
    """Configuration of a bridge."""

    uuid: uuid.UUID | None = None
    protocols: list[str] = field(default_factory=list)

    def args(self) -> list[str]:
        """Return the non-empty options as 'ovs-vsctl set' arguments."""
        result: list[str] = []
        if self.protocols:
            result.append(f"protocols={','.join(self.protocols)}")
        return result


@dataclass
class PortOptions:
    """Configuration of a port."""

    uuid: uuid.UUID | None = None
    tag: list[int] = field(default_factory=list)
    vlan_mode: list[str] = field(default_factory=list)
    trunks: list[int] = field(default_factory=list)
    external_ids: dict[str, str] = field(default_factory=dict)

    def args(self) -> list[str]:
        """Return the non-empty options as 'ovs-vsctl set' arguments."""
        result: list[str] = []
        if self.tag:
            result.append(f"tag={self.tag[0]},")
        if self.vlan_mode:
            result.append(f"vlan_mode={self.vlan_mode[0]}")
        if self.trunks:
            result.append("trunk=" + "".join(f"{trunk}," for trunk in self.trunks))
        return result


@dataclass
class InterfaceOptions:
    """Configuration of an interface."""

    uuid: uuid.UUID | None = None
    if_index: int = 0
    hardware_addr: bytes | None = None
    type: str = ""
    peer: str = ""
    mtu_request: int = 0
    ingress_rate_policing: int = 0
    ingress_burst_policing: int = 0
    remote_ip: str = ""
    key: str = ""

    def args(self) -> list[str]:
        """Return the non-empty options as 'ovs-vsctl set' arguments."""
        result: list[str] = []
        if self.type:
            result.append(f"type={self.type}")
        if self.peer:
            result.append(f"options:peer={self.peer}")
        if self.mtu_request > 0:
            result.append(f"mtu_request={self.mtu_request}")

        if self.ingress_rate_policing == DEFAULT_INGRESS_RATE_POLICING:
            result.append("ingress_policing_rate=0")
        elif self.ingress_rate_policing > 0:
            result.append(f"ingress_policing_rate={self.ingress_rate_policing}")

        if self.ingress_burst_policing == DEFAULT_INGRESS_BURST_POLICING:
            result.append("ingress_policing_burst=0")
        elif self.ingress_burst_policing > 0:
            result.append(f"ingress_policing_burst={self.ingress_burst_policing}")

        if self.remote_ip:
            result.append(f"options:remote_ip={self.remote_ip}")
        if self.key:
            result.append(f"options:key={self.key}")
        return result


class VSwitchService:
    """Runs 'ovs-vsctl' subcommands through an executor callable.

    The executor receives the 'ovs-vsctl' arguments and returns the command's
    output; it raises to report a failure.
    """

    def __init__(self, execute: Executor) -> None:
        self._execute = execute
        self.get = VSwitchGetService(self)
        self.set = VSwitchSetService(self)

    def _exec(self, *args: str) -> str:
        out = self._execute(*args)
        if out is None:
            return ""
        if isinstance(out, bytes):
            out = out.decode()
        return out.strip()

    def add_bridge(self, bridge: str) -> None:
        """Attach a bridge; it may already exist."""
        self._exec("--may-exist", "add-br", bridge)

    def add_port(self, bridge: str, port: str) -> None:
        """Attach a port to a bridge; it may already exist."""
        self._exec("--may-exist", "add-port", bridge, port)

    def delete_bridge(self, bridge: str) -> None:
        """Detach a bridge; it need not exist."""
        self._exec("--if-exists", "del-br", bridge)

    def delete_port(self, bridge: str, port: str) -> None:
        """Detach a port from a bridge; it need not exist."""
        self._exec("--if-exists", "del-port", bridge, port)

    def list_ports(self, bridge: str) -> list[str]:
        """Return the ports attached to a bridge."""
        return _lines(self._exec("list-ports", bridge))

    def list_bridges(self) -> list[str]:
        """Return all bridges."""
        return _lines(self._exec("list-br"))

    def port_to_bridge(self, port: str) -> str:
        """Return the bridge a port is attached to."""
        return self._exec("port-to-br", port)

    def get_fail_mode(self, bridge: str) -> str:
        """Return the fail mode of a bridge."""
        return self._exec("get-fail-mode", bridge)

    def set_fail_mode(self, bridge: str, mode: str) -> None:
        """Set the fail mode of a bridge."""
        self._exec("set-fail-mode", bridge, str(mode))

    def set_controller(self, bridge: str, address: str) -> None:
        """Set the OpenFlow controller address of a bridge."""
        self._exec("set-controller", bridge, address)

    def get_controller(self, bridge: str) -> str:
        """Return the OpenFlow controller address of a bridge."""
        return self._exec("get-controller", bridge).strip()


class VSwitchGetService:
    """Runs 'ovs-vsctl get' subcommands."""

    def __init__(self, service: VSwitchService) -> None:
        self._service = service

    def bridge(self, bridge: str) -> BridgeOptions:
        """Return the protocols configured on a bridge."""
        out = self._service._exec(
            "--format=json", "get", "bridge", bridge, "_uuid", "protocols"
        )
        protocols = json.loads(out)
        if protocols is None:
            protocols = []
        if not isinstance(protocols, list) or not all(
            isinstance(p, str) for p in protocols
        ):
            raise ValueError(f"unexpected protocols value: {out!r}")
        return BridgeOptions(protocols=protocols)

    def port(self, port: str) -> PortOptions:
        """Return the UUID, tag, VLAN mode and trunks of a port."""
        out = self._service._exec(
            "--format=json", "get", "port", port, "_uuid", "tag", "vlan_mode", "trunks"
        )
        options = _fields(out, 4)

        port_uuid = _parse_uuid(options[0])

        tag: list[int] = []
        if options[1] != _EMPTY:
            tag = [_parse_int(options[1], bits=12)]

        vlan_mode = [options[2]] if options[2] != _EMPTY else []

        trunks: list[int] = []
        if options[3] != _EMPTY:
            parsed = json.loads(options[3])
            if not isinstance(parsed, list) or not all(
                isinstance(t, int) and not isinstance(t, bool) for t in parsed
            ):
                raise ValueError(f"unexpected trunks value: {options[3]!r}")
            trunks = parsed

        return PortOptions(uuid=port_uuid, tag=tag, vlan_mode=vlan_mode, trunks=trunks)

    def interface(self, name: str) -> InterfaceOptions:
        """Return the UUID, interface index and MAC address of an interface."""
        out = self._service._exec(
            "--format=json", "get", "interface", name, "_uuid", "ifindex", "mac_in_use"
        )
        options = _fields(out, 3)

        iface_uuid = _parse_uuid(options[0])

        if_index = 0
        if options[1] != _EMPTY:
            if not _UINT_RE.fullmatch(options[1]):
                raise ValueError(f"invalid ifindex: {options[1]!r}")
            if_index = int(options[1])
            if if_index > _MAX_UINT32:
                raise ValueError(f"ifindex out of range: {options[1]!r}")

        mac = None
        if options[2] != _EMPTY:
            mac = _parse_mac(options[2].replace('"', ""))

        return InterfaceOptions(uuid=iface_uuid, if_index=if_index, hardware_addr=mac)


class VSwitchSetService:
    """Runs 'ovs-vsctl set' subcommands."""

    def __init__(self, service: VSwitchService) -> None:
        self._service = service

    def bridge(self, bridge: str, options: BridgeOptions) -> None:
        """Apply bridge options."""
        self._service._exec("set", "bridge", bridge, *options.args())

    def port(self, port: str, options: PortOptions) -> None:
        """Apply port options."""
        self._service._exec("set", "port", port, *options.args())

    def interface(self, name: str, options: InterfaceOptions) -> None:
        """Apply interface options."""
        self._service._exec("set", "interface", name, *options.args())


def _lines(output: str) -> list[str]:
    if not output:
        return []
    return output.strip().split("\n")


def _fields(output: str, count: int) -> list[str]:
    options = output.strip().split("\n")
    if len(options) < count:
        raise ValueError(
            f"expected {count} values from ovs-vsctl, got {len(options)}"
        )
    return options


def _parse_uuid(text: str) -> uuid.UUID | None:
    if text == _EMPTY:
        return None
    return uuid.UUID(text)


def _parse_int(text: str, bits: int) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    value = int(text)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def _parse_mac(text: str) -> bytes:
    if "." in text:
        groups = text.split(".")
        if not all(re.fullmatch(r"[0-9A-Fa-f]{4}", g) for g in groups):
            raise ValueError(f"invalid MAC address: {text!r}")
        octets = bytes.fromhex("".join(groups))
    else:
        groups = re.split(r"[:-]", text)
        separators = set(re.findall(r"[:-]", text))
        if len(separators) > 1 or not all(
            re.fullmatch(r"[0-9A-Fa-f]{2}", g) for g in groups
        ):
            raise ValueError(f"invalid MAC address: {text!r}")
        octets = bytes.fromhex("".join(groups))
    if len(octets) not in _MAC_LENGTHS:
        raise ValueError(f"invalid MAC address: {text!r}")
    return octets