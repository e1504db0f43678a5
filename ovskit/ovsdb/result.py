"""Checking OVSDB results for server-reported errors."""

from __future__ import annotations

import json
from typing import Any

_ERROR_PREFIX = b'{"error":'


class OVSDBError(Exception):
    """An error returned by an OVSDB server."""

    def __init__(self, error: str = "", details: str = "", syntax: str = "") -> None:
        super().__init__(error, details, syntax)
        self.error = error
        self.details = details
        self.syntax = syntax

    def __str__(self) -> str:
        return f"{self.error}: {self.details}: {self.syntax}"


def _string_field(obj: dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"OVSDB error field {key!r} is not a string: {value!r}")
    return value


def _raise_error(obj: Any) -> None:
    if not isinstance(obj, dict):
        raise ValueError(f"malformed OVSDB error: {obj!r}")
    raise OVSDBError(
        error=_string_field(obj, "error"),
        details=_string_field(obj, "details"),
        syntax=_string_field(obj, "syntax"),
    )


def parse_result(result: Any) -> Any:
    """Return an RPC result, raising OVSDBError if it reports an error.

    Raw JSON (str or bytes) is decoded first; it is an error when it starts
    with an "error" member. An already decoded object is an error when its
    first member is "error".
    """
    if isinstance(result, (bytes, bytearray, str)):
        raw = result.encode() if isinstance(result, str) else bytes(result)
        value = json.loads(raw)
        if raw.startswith(_ERROR_PREFIX):
            _raise_error(value)
        return value

    if isinstance(result, dict) and next(iter(result), None) == "error":
        _raise_error(result)
    return result