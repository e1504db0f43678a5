# ovskit

Tools for working with Open vSwitch from Python. The package needs nothing
beyond the standard library and supports Python 3.10 and later.

- **`ovskit.ovs`** – builds `ovs-vsctl` argument lists and reads back their
  output. Parses the text that `ovs-ofctl dump-ports`, `ovs-ofctl dump-tables`
  and `ovs-appctl ofproto/trace` print. Turns port ranges into bitwise
  OpenFlow matches.
- **`ovskit.ovsdb`** – an OVSDB client (RFC 7047) that speaks JSON-RPC over a
  stream socket. It lists databases, sends echo requests and runs `select`
  transactions. It can also keep the connection alive with background echoes.
- **`ovskit.ovsnl`** – decodes and requests in-kernel datapath information
  from the `ovs_datapath` generic netlink family.

## Installation

```
pip install ovskit
```

## Port ranges as bitwise matches

OpenFlow matches transport ports with a value and a mask, not with a range.
`PortRange.bitwise_match()` in `ovskit.ovs.portrange` splits an inclusive range
into the fewest aligned `BitRange(value, mask)` pairs that cover it:

```python
from ovskit.ovs.portrange import PortRange

for bits in PortRange(start=16, end=32).bitwise_match():
    print(hex(bits.value), hex(bits.mask))
# 0x10 0xfff0
# 0x20 0xffff
```

`InvalidPortRangeError` (a `ValueError`) is raised for a zero start or end, a
value above 65535, or a start greater than the end.

## Parsing `ovs-ofctl` output

```python
from ovskit.ovs.portstats import parse_port_stats
from ovskit.ovs.table import parse_table

stats = parse_port_stats(
    "port  1: rx pkts=10, bytes=20, drop=0, errs=0, frame=0, over=0, crc=0\n"
    "         tx pkts=30, bytes=40, drop=0, errs=0, coll=0\n"
)
print(stats.port_id, stats.received.packets, stats.transmitted.bytes)

table = parse_table(
    "0: classifier: wild=0x3fffff, max=1000000, active=1\n"
    "               lookup=2, matched=3\n"
)
print(table.name, table.active, table.matched)
```

Both functions accept `str` or `bytes`.

- `parse_port_stats` returns a `PortStats`, which has a `port_id`, a
  `received` `PortStatsReceive` and a `transmitted` `PortStatsTransmit`. The
  port name `LOCAL` becomes port 65534.
- Counters that OVS reports as `?` (for example on tunnel ports) come back
  as 0.
- `parse_table` returns a `Table` with `id`, `name`, `wild`, `max`, `active`,
  `lookup` and `matched`.

A malformed layout raises `InvalidPortStatsError` or `InvalidTableError`. A
field that is not a valid number raises `ValueError`.

## Parsing `ofproto/trace` output

```python
from ovskit.ovs.proto_trace import parse_proto_trace

trace = parse_proto_trace(trace_text)
print(trace.data_path_actions.actions)   # e.g. "1" or "drop"
print(trace.flow_actions)                # e.g. ["resubmit(,2)", "output:1"]
```

`parse_proto_trace` returns a `ProtoTrace`.

- `input_flow` and `final_flow` are `DataPathFlows` objects. Each holds the
  flow's `protocol` and its `matches` as `(key, value)` pairs. `in_port=LOCAL`
  becomes `("in_port", "65534")`.
- Each `recirc(...)` on a datapath actions line adds a `"recirc"` entry to
  `flow_actions`.
- `parse_data_path_flows` parses a single comma separated flow. It raises
  `ValueError` for an element that is neither a known keyword nor a `key=value`
  pair.

## Driving `ovs-vsctl`

`VSwitchService` in `ovskit.ovs.vswitch` builds the `ovs-vsctl` arguments for
each operation. It does not start any process. You pass it a callable that
takes the arguments (without the `ovs-vsctl` name itself) and returns the
command's output as `bytes`, `str` or `None`. The callable raises to report a
failure, and that exception reaches the caller unchanged.

```python
from ovskit.ovs.vswitch import InterfaceOptions, PortOptions, VSwitchService

vswitch = VSwitchService(execute)          # execute(*args) -> output

vswitch.add_bridge("br0")                  # --may-exist add-br br0
vswitch.add_port("br0", "bond0")           # --may-exist add-port br0 bond0
print(vswitch.list_ports("br0"))           # [] when there are none
print(vswitch.list_bridges())
print(vswitch.port_to_bridge("bond0"))

vswitch.set.interface("bond0", InterfaceOptions(mtu_request=9000))
vswitch.set.port("bond0", PortOptions(vlan_mode=["trunk"], trunks=[1, 2, 3]))

print(vswitch.get.bridge("br0").protocols)
print(vswitch.get.port("bond0").trunks)
print(vswitch.get.interface("bond0").if_index)
```

Other operations:

- `delete_bridge` and `delete_port` use `--if-exists`.
- `get_fail_mode` / `set_fail_mode` and `get_controller` / `set_controller`
  read and write those bridge settings.
- `vswitch.get` and `vswitch.set` are the `VSwitchGetService` and
  `VSwitchSetService` bound to the service.

`BridgeOptions`, `PortOptions` and `InterfaceOptions` each have an `args()`
method that returns the `key=value` arguments for their non-empty fields. In
`InterfaceOptions`, setting `ingress_rate_policing` or `ingress_burst_policing`
to `DEFAULT_INGRESS_RATE_POLICING` / `DEFAULT_INGRESS_BURST_POLICING` (-1)
writes `0`, which restores the Open vSwitch default.

## Talking to ovsdb-server

```python
from ovskit.ovsdb.client import dial
from ovskit.ovsdb.transact import Select, equal

with dial("unix", "/var/run/openvswitch/db.sock") as client:
    print(client.list_databases(timeout=2.0))
    client.echo(timeout=2.0)

    rows = client.transact(
        "Open_vSwitch",
        [Select(table="Bridge", where=[equal("name", "br0")])],
        timeout=2.0,
    )
    for row in rows:
        print(row)

    print(client.stats())
```

`dial` accepts these network types:

- `"unix"`, with a socket path.
- `"tcp"`, `"tcp4"` or `"tcp6"`, with a `"host:port"` address.

`Client` can also wrap a socket you have already connected.

RPC methods take a `timeout` in seconds:

- `None` waits without limit.
- A value of zero or less raises `TimeoutError` before anything is sent.
- An RPC that runs out of time raises `TimeoutError`.

Other errors:

- Errors that the server reports inside a result raise `OVSDBError`, which has
  `error`, `details` and `syntax` fields.
- JSON-RPC level errors raise `JSONRPCError`.
- Calls on a closed connection raise `ConnectionError`.

Echo and statistics:

- With `echo_interval` above zero, the client sends echo requests in the
  background at that interval.
- The client always answers echo requests that the server sends.
- `stats()` returns a `ClientStats` with the number of pending callbacks and
  the background echo successes and failures.

Lower-level pieces:

- `ovskit.ovsdb.jsonrpc.Conn` sends `Request` objects and receives `Response`
  objects over a socket.
- `ovskit.ovsdb.result.parse_result` checks a decoded result for a server
  error.
- `ovskit.ovsdb.transact.transact_params` builds the parameters of a transact
  call.

## Datapath information over generic netlink

`ovskit.ovsnl.datapath` decodes `ovs_datapath` family messages into `Datapath`
values. Each value has the datapath's:

- `name` and `index`
- `features` (a `DatapathFeatures` flag)
- `stats` (hits, misses, lost, flows)
- `megaflow_stats`

`parse_datapaths()` decodes `Message` objects you already have.
`marshal_attributes` / `unmarshal_attributes` and `header_bytes` /
`parse_header` handle the wire format.

`DatapathService.list()` sends a dump request through a connection object that
you provide. That object must have `execute(message, family_id, flags)`.

`ovskit.ovsnl.nlclient.Client` does the setup for you:

- It takes a connection that also provides `list_families()` and `close()`.
- It sets up `client.datapath` when the `ovs_datapath` family is present.
- Otherwise it raises `FileNotFoundError` and closes the connection.

## What the package does not do

- It does not run `ovs-vsctl`, `ovs-ofctl` or `ovs-appctl`. It builds
  arguments and parses text, and you supply the means to run the commands.
- It does not open netlink sockets. The generic netlink connection used by
  `ovskit.ovsnl` must come from elsewhere.
- It only decodes the datapath family. It has no support for the flow, vport,
  packet or meter families.
- It has no command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```