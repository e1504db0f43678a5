"""Open vSwitch tooling: ovs-vsctl argument building, output parsers, an OVSDB client and datapath netlink decoding."""

__version__ = "0.1.0"