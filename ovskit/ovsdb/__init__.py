"""An OVSDB client speaking JSON-RPC over a stream socket, as described in RFC 7047."""