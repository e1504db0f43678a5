import json
import logging
import socket

import pytest

from ovskit.ovsdb.jsonrpc import Conn, JSONRPCError, Request, Response


@pytest.fixture
def pair():
    client_sock, server_sock = socket.socketpair()
    client = Conn(client_sock, None)
    server = Conn(server_sock, None)
    yield client, server, server_sock
    client_sock.close()
    server_sock.close()


def _reply(sock, response):
    sock.sendall((json.dumps(response.to_json()) + "\n").encode())


def test_send_no_request_id(pair):
    client, _, _ = pair
    with pytest.raises(ValueError):
        client.send(Request())


def test_receive_eof(pair):
    client, _, server_sock = pair
    server_sock.close()
    with pytest.raises(EOFError):
        client.receive()


def test_send_receive_error(pair):
    client, server, server_sock = pair
    client.send(Request(id="10"))
    got = server.receive()
    assert got.id == "10"
    _reply(server_sock, Response(id="10", error={"Details": "some error"}))

    res = client.receive()
    with pytest.raises(JSONRPCError):
        res.raise_for_error()


def test_send_receive_ok(pair):
    client, server, server_sock = pair
    req = Request(id="1", method="hello", params=["world"])
    client.send(req)

    got = server.receive()
    assert (got.id, got.method, got.params) == ("1", "hello", ["world"])

    _reply(server_sock, Response(id="1", result={"message": "hello world"}))
    res = client.receive()
    res.raise_for_error()
    assert res.id == "1"
    assert res.result == {"message": "hello world"}


def test_send_empty_params_as_array(pair):
    client, server, _ = pair
    client.send(Request(id="1", method="list_dbs"))
    got = server.receive()
    assert got.params == []


def test_send_receive_notifications(pair):
    client, server, server_sock = pair
    req = Request(id="10", method="monitor", params=["Open_vSwitch"])

    note = Response(method="notify")
    _reply(server_sock, note)
    _reply(server_sock, note)

    client.send(req)
    got = server.receive()
    assert got.method == "monitor"
    _reply(server_sock, Response(id="10", result="some bytes"))

    responses = notes = 0
    for _ in range(3):
        res = client.receive()
        if res.id is not None:
            responses += 1
            assert res.id == req.id
            continue
        notes += 1
        assert res.method == note.method

    assert responses == 1
    assert notes == 2


def test_receive_multiple_messages_in_one_write(pair):
    client, _, server_sock = pair
    server_sock.sendall(b'{"id":null,"method":"a"}{"id":null,"method":"b"}')
    assert client.receive().method == "a"
    assert client.receive().method == "b"


def test_receive_split_utf8(pair):
    client, _, server_sock = pair
    server_sock.sendall(b'{"id":"1","result":"\xc3')
    server_sock.sendall(b'\xa9"}')
    res = client.receive()
    assert res.result == "\u00e9"


def test_receive_invalid_json(pair):
    client, _, server_sock = pair
    server_sock.sendall(b"not json")
    server_sock.close()
    with pytest.raises(JSONRPCError):
        client.receive()


def test_receive_truncated_message(pair):
    client, _, server_sock = pair
    server_sock.sendall(b'{"id":"1",')
    server_sock.close()
    with pytest.raises(JSONRPCError):
        client.receive()


def test_receive_invalid_id(pair):
    client, _, server_sock = pair
    server_sock.sendall(b'{"id":5}')
    with pytest.raises(JSONRPCError):
        client.receive()


def test_response_without_error():
    assert Response(id="1", result=[]).raise_for_error() is None
    assert Response(id="1", result=[]).error is None


def test_response_json_round_trip():
    original = Response(id="7", result={"rows": []}, method="", params=None)
    assert Response.from_json(json.loads(json.dumps(original.to_json()))) == original


def test_debug_logging(caplog):
    client_sock, server_sock = socket.socketpair()
    logger = logging.getLogger("ovskit.tests.jsonrpc")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    client = Conn(client_sock, logger)
    try:
        client.send(Request(id="1", method="echo"))
        server_sock.sendall(b'{"id":"1","result":[]}')
        assert client.receive().result == []
        client.close()
    finally:
        server_sock.close()
    assert "write: " in caplog.text
    assert " read: " in caplog.text
    assert "close: " in caplog.text