"""Decoding and listing of Open vSwitch datapaths through a supplied generic netlink connection."""