"""A minimal JSON-RPC 1.0 connection over a stream socket."""

from __future__ import annotations

import codecs
import json
import logging
import threading
from dataclasses import dataclass
from typing import Any

_CHUNK_SIZE = 4096


class JSONRPCError(Exception):
    """Raised for JSON-RPC level failures and errors reported by the peer."""


@dataclass
class Request:
    """A JSON-RPC request."""

    id: str = ""
    method: str = ""
    params: Any = None

    def to_json(self) -> dict[str, Any]:
        """Return the request as a JSON-ready object."""
        # ovsdb-server only replies when params is an array.
        params = [] if self.params is None else self.params
        return {"id": self.id, "method": self.method, "params": params}


@dataclass
class Response:
    """A JSON-RPC response, or a notification request when id is None."""

    id: str | None = None
    result: Any = None
    error: Any = None
    method: str = ""
    params: Any = None

    def raise_for_error(self) -> None:
        """Raise JSONRPCError if the response carries an error."""
        if self.error is not None:
            raise JSONRPCError(f"received JSON-RPC error: {self.error!r}")

    def to_json(self) -> dict[str, Any]:
        """Return the response as a JSON-ready object."""
        out: dict[str, Any] = {"id": self.id}
        if self.result is not None:
            out["result"] = self.result
        out["error"] = self.error
        if self.method:
            out["method"] = self.method
        if self.params is not None:
            out["params"] = self.params
        return out

    @classmethod
    def from_json(cls, obj: Any) -> Response:
        """Build a response from a decoded JSON object."""
        if not isinstance(obj, dict):
            raise ValueError("JSON-RPC message is not an object")
        message_id = obj.get("id")
        if message_id is not None and not isinstance(message_id, str):
            raise ValueError(f"invalid JSON-RPC id: {message_id!r}")
        method = obj.get("method")
        if method is None:
            method = ""
        if not isinstance(method, str):
            raise ValueError(f"invalid JSON-RPC method: {method!r}")
        return cls(
            id=message_id,
            result=obj.get("result"),
            error=obj.get("error"),
            method=method,
            params=obj.get("params"),
        )


class Conn:
    """A JSON-RPC connection over a socket-like object.

    The socket needs recv, sendall and close. If a logger is given, all
    traffic is logged at debug level.
    """

    def __init__(self, sock: Any, logger: logging.Logger | None = None) -> None:
        self._sock = sock
        self._logger = logger
        self._send_lock = threading.Lock()
        self._recv_lock = threading.Lock()
        self._decoder = json.JSONDecoder()
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._eof = False

    def close(self) -> None:
        """Close the underlying socket."""
        try:
            self._sock.close()
        except OSError as exc:
            if self._logger is not None:
                self._logger.debug("close: %s", exc)
            raise
        if self._logger is not None:
            self._logger.debug("close: %s", None)

    def send(self, request: Request) -> None:
        """Send a single request; its id must not be empty."""
        if not request.id:
            raise ValueError("JSON-RPC request ID must not be empty")
        try:
            payload = json.dumps(request.to_json(), separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise JSONRPCError(f"failed to encode JSON-RPC request: {exc}") from exc
        data = (payload + "\n").encode()
        with self._send_lock:
            self._sock.sendall(data)
            if self._logger is not None:
                self._logger.debug("write: %s", data.decode())

    def receive(self) -> Response:
        """Receive a single response or notification.

        Raises EOFError when the peer closed the connection cleanly.
        """
        with self._recv_lock:
            value = self._decode_next()
        try:
            return Response.from_json(value)
        except ValueError as exc:
            raise JSONRPCError(f"failed to decode JSON-RPC response: {exc}") from exc

    def _decode_next(self) -> Any:
        while True:
            text = self._buffer.lstrip()
            self._buffer = text
            if text:
                try:
                    value, end = self._decoder.raw_decode(text)
                except json.JSONDecodeError as exc:
                    if self._eof:
                        raise JSONRPCError(
                            f"failed to decode JSON-RPC response: {exc}"
                        ) from exc
                else:
                    self._buffer = text[end:]
                    return value
            elif self._eof:
                raise EOFError("connection closed")
            self._fill()

    def _fill(self) -> None:
        chunk = self._sock.recv(_CHUNK_SIZE)
        if not chunk:
            self._eof = True
            try:
                self._buffer += self._utf8.decode(b"", final=True)
            except UnicodeDecodeError as exc:
                raise JSONRPCError(
                    f"failed to decode JSON-RPC response: {exc}"
                ) from exc
            return
        if self._logger is not None:
            self._logger.debug(" read: %s", chunk.decode(errors="replace"))
        try:
            self._buffer += self._utf8.decode(chunk)
        except UnicodeDecodeError as exc:
            raise JSONRPCError(f"failed to decode JSON-RPC response: {exc}") from exc