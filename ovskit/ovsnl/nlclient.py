"""A client for the Open vSwitch generic netlink families."""

from __future__ import annotations

import errno
import os
from typing import Any

from ovskit.ovsnl.datapath import DATAPATH_FAMILY, DatapathService, Family

_OVS_PREFIX = "ovs_"


class Client:
    """An Open vSwitch generic netlink client.

    conn is a generic netlink connection providing list_families(),
    execute(message, family_id, flags) and close(). If no known OVS family
    is available, FileNotFoundError is raised and conn is closed.
    """

    def __init__(self, conn: Any) -> None:
        self._conn = conn
        self.datapath: DatapathService | None = None
        try:
            families = conn.list_families()
            self._init_families(families)
        except BaseException:
            conn.close()
            raise

    def _init_families(self, families: list[Family]) -> None:
        known = 0
        for family in families:
            if not family.name.startswith(_OVS_PREFIX):
                continue
            if family.name == DATAPATH_FAMILY:
                self.datapath = DatapathService(self._conn, family)
                known += 1
        if known == 0:
            raise FileNotFoundError(
                errno.ENOENT, os.strerror(errno.ENOENT), "OVS generic netlink families"
            )

    def close(self) -> None:
        """Close the generic netlink connection."""
        self._conn.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()