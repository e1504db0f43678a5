"""An OVSDB client speaking JSON-RPC over a stream socket."""

from __future__ import annotations

import itertools
import json
import logging
import queue
import socket
import threading
from dataclasses import dataclass
from typing import Any

from ovskit.ovsdb.jsonrpc import Conn, JSONRPCError, Request
from ovskit.ovsdb.result import parse_result
from ovskit.ovsdb.transact import transact_params

ECHO_PAYLOAD = "ovskit"

_CLOSED = object()
_JOIN_TIMEOUT = 5.0


@dataclass(frozen=True)
class ClientStats:
    """Statistics about a Client."""

    # Callbacks currently registered and waiting for RPC responses.
    callbacks: int = 0
    # Successful and failed echo RPCs sent by the background echo loop.
    echo_success: int = 0
    echo_failure: int = 0


def dial(
    network: str,
    address: str,
    logger: logging.Logger | None = None,
    echo_interval: float = 0.0,
) -> Client:
    """Connect to an OVSDB server and return a Client.

    network is "unix" for a socket path, or "tcp", "tcp4" or "tcp6" for a
    "host:port" address.
    """
    if network == "unix":
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(address)
        except OSError:
            sock.close()
            raise
    elif network in ("tcp", "tcp4", "tcp6"):
        host, sep, port = address.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"invalid address: {address!r}")
        host = host.strip("[]") or "localhost"
        sock = socket.create_connection((host, int(port)))
    else:
        raise ValueError(f"unsupported network: {network!r}")
    return Client(sock, logger, echo_interval)


class Client:
    """An OVSDB client over a connected socket.

    RPC methods accept a timeout in seconds; None waits without limit and a
    value of zero or less fails before anything is sent. A timed-out RPC
    raises TimeoutError.

    If echo_interval is non-zero, echo RPCs are sent at that interval to keep
    the connection alive. Echo requests from the server always trigger an
    echo RPC from the client.
    """

    def __init__(
        self,
        sock: Any,
        logger: logging.Logger | None = None,
        echo_interval: float = 0.0,
    ) -> None:
        self._sock = sock
        self._conn = Conn(sock, logger)
        self._lock = threading.Lock()
        self._callbacks: dict[str, queue.Queue[Any]] = {}
        self._ids = itertools.count(1)
        self._echo_ok = 0
        self._echo_fail = 0
        self._closed = False
        self._listening = True
        self._stop = threading.Event()
        self._echo_trigger: queue.Queue[bool | None] = queue.Queue()
        self._threads: list[threading.Thread] = []

        if echo_interval:
            self._start(self._echo_ticker, echo_interval)
        self._start(self._echo_loop)
        self._start(self._listen)

    def _start(self, target: Any, *args: Any) -> None:
        thread = threading.Thread(target=target, args=args, daemon=True)
        self._threads.append(thread)
        thread.start()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection and stop background work."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            waiters = list(self._callbacks.values())
            self._callbacks.clear()
        for waiter in waiters:
            waiter.put_nowait(_CLOSED)

        self._stop.set()
        self._echo_trigger.put(None)
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            self._conn.close()
        finally:
            current = threading.current_thread()
            for thread in self._threads:
                if thread is not current:
                    thread.join(_JOIN_TIMEOUT)

    def stats(self) -> ClientStats:
        """Return current statistics for the Client."""
        with self._lock:
            return ClientStats(
                callbacks=len(self._callbacks),
                echo_success=self._echo_ok,
                echo_failure=self._echo_fail,
            )

    def list_databases(self, timeout: float | None = None) -> list[str]:
        """Return the names of all databases known to the server."""
        result = self._rpc("list_dbs", None, timeout)
        if not isinstance(result, list) or not all(
            isinstance(name, str) for name in result
        ):
            raise ValueError(f"unexpected list_dbs result: {result!r}")
        return result

    def echo(self, timeout: float | None = None) -> None:
        """Verify that the connection is alive."""
        result = self._rpc("echo", [ECHO_PAYLOAD], timeout)
        if not isinstance(result, list) or not all(
            isinstance(item, str) for item in result
        ):
            raise ValueError(f"unexpected echo result: {result!r}")
        reply = result[0] if result else ""
        if reply != ECHO_PAYLOAD:
            raise ValueError(f"invalid echo response: {reply!r}")

    def transact(
        self, database: str, ops: list[Any], timeout: float | None = None
    ) -> list[dict[str, Any]]:
        """Run operations in order on a database and return all selected rows."""
        result = self._rpc("transact", transact_params(database, ops), timeout)
        if result is None:
            return []
        if not isinstance(result, list):
            raise ValueError(f"unexpected transact result: {result!r}")

        rows: list[dict[str, Any]] = []
        for item in result:
            if item is None:
                continue
            if not isinstance(item, dict):
                raise ValueError(f"unexpected transact result element: {item!r}")
            found = item.get("rows") or []
            if not isinstance(found, list) or not all(
                isinstance(row, dict) for row in found
            ):
                raise ValueError(f"unexpected rows: {found!r}")
            rows.extend(found)
        return rows

    def _next_id(self) -> str:
        with self._lock:
            return str(next(self._ids))

    def _rpc(self, method: str, params: Any, timeout: float | None) -> Any:
        if timeout is not None and timeout <= 0:
            raise TimeoutError(f"{method} RPC timed out")

        request_id = self._next_id()
        waiter: queue.Queue[Any] = queue.Queue(maxsize=1)
        with self._lock:
            if self._closed or not self._listening:
                raise ConnectionError("client is closed")
            if request_id in self._callbacks:
                raise RuntimeError(
                    f"OVSDB callback with ID {request_id!r} already registered"
                )
            self._callbacks[request_id] = waiter

        try:
            self._conn.send(Request(id=request_id, method=method, params=params))
            try:
                outcome = waiter.get(timeout=timeout)
            except queue.Empty:
                raise TimeoutError(f"{method} RPC timed out") from None
        finally:
            with self._lock:
                self._callbacks.pop(request_id, None)

        if outcome is _CLOSED:
            raise ConnectionError("client is closed")
        if isinstance(outcome, BaseException):
            raise outcome
        return parse_result(outcome)

    def _deliver(self, request_id: str, outcome: Any) -> None:
        with self._lock:
            waiter = self._callbacks.pop(request_id, None)
        if waiter is not None:
            waiter.put_nowait(outcome)

    def _listen(self) -> None:
        try:
            self._receive_loop()
        finally:
            with self._lock:
                self._listening = False
                waiters = list(self._callbacks.values())
                self._callbacks.clear()
            for waiter in waiters:
                waiter.put_nowait(_CLOSED)

    def _receive_loop(self) -> None:
        while True:
            try:
                response = self._conn.receive()
            except (EOFError, OSError):
                return
            except JSONRPCError as exc:
                if self._stop.is_set() or isinstance(
                    exc.__cause__, (json.JSONDecodeError, UnicodeDecodeError)
                ):
                    return
                continue

            if response.method == "echo":
                # The server asks for an echo; the echo loop sends it so that
                # this thread stays free to receive the reply.
                if not self._stop.is_set():
                    self._echo_trigger.put(True)
                continue

            if response.id is None:
                continue

            try:
                response.raise_for_error()
            except JSONRPCError as exc:
                self._deliver(response.id, exc)
                continue
            self._deliver(response.id, response.result)

    def _echo_ticker(self, interval: float) -> None:
        while not self._stop.wait(interval):
            self._echo_trigger.put(True)

    def _echo_loop(self) -> None:
        while True:
            item = self._echo_trigger.get()
            if item is None or self._stop.is_set():
                return
            try:
                self.echo()
            except ConnectionError:
                # The connection is going away; the loop stops on close.
                continue
            except Exception:
                with self._lock:
                    self._echo_fail += 1
                continue
            with self._lock:
                self._echo_ok += 1