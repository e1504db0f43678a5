"""Operations and conditions for OVSDB transactions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class Cond:
    """A conditional expression evaluated by the OVSDB server."""

    column: str
    function: str
    value: str

    def to_json(self) -> list[str]:
        """Return the condition as a three element array."""
        return [self.column, self.function, self.value]


def equal(column: str, value: str) -> Cond:
    """Return a Cond requiring a column to equal a value."""
    return Cond(column=column, function="==", value=value)


class _TransactOp(Protocol):
    def to_json(self) -> Any: ...


@dataclass
class Select:
    """A transaction operation that fetches rows from a table."""

    table: str = ""
    where: list[Cond] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        """Return the operation as a JSON-ready object."""
        return {
            "op": "select",
            "table": self.table,
            "where": [cond.to_json() for cond in self.where],
        }


def transact_params(database: str, ops: Iterable[_TransactOp]) -> list[Any]:
    """Return the parameters of a transact RPC: the database, then each op."""
    return [database, *(op.to_json() for op in ops)]