"""ovs-vsctl argument building, port range matches, and parsers for ovs-ofctl and ofproto/trace output."""