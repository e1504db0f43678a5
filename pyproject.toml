[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ovskit"
version = "0.1.0"
description = "Open vSwitch tooling: ovs-vsctl argument building, output parsers, an OVSDB JSON-RPC client and datapath netlink decoding"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "openvswitch",
    "ovs",
    "ovsdb",
    "ovs-vsctl",
    "openflow",
    "netlink",
    "json-rpc",
    "sdn",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ovskit"]

[tool.pytest.ini_options]
addopts = "-ra"
