"""Backend-neutral query description used by the RecordStore port."""

from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence, Tuple

OPERATORS = ("eq", "neq", "in", "cs", "gt", "lt")


@dataclass(frozen=True)
class Condition:
    column: str
    op: str  # one of OPERATORS; "cs" = array column contains value
    value: Any


@dataclass(frozen=True)
class Query:
    """Immutable query over one table.

    `conditions` are ANDed. `any_of`, when set, is an OR group that is
    ANDed with the rest.

        Query("tickets").eq("status", "open").order("last_activity_at").limit(50)
    """

    table: str
    conditions: Tuple[Condition, ...] = ()
    any_of: Tuple[Condition, ...] = ()
    order_by: Optional[str] = None
    descending: bool = True
    nulls_last: bool = True
    max_rows: Optional[int] = None
    columns: Tuple[str, ...] = ()

    def _where(self, column: str, op: str, value: Any) -> "Query":
        if op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {op!r}")
        return replace(self, conditions=self.conditions + (Condition(column, op, value),))

    def eq(self, column: str, value: Any) -> "Query":
        return self._where(column, "eq", value)

    def neq(self, column: str, value: Any) -> "Query":
        return self._where(column, "neq", value)

    def in_(self, column: str, values: Sequence[Any]) -> "Query":
        return self._where(column, "in", tuple(values))

    def contains(self, column: str, value: Any) -> "Query":
        return self._where(column, "cs", value)

    def gt(self, column: str, value: Any) -> "Query":
        return self._where(column, "gt", value)

    def lt(self, column: str, value: Any) -> "Query":
        return self._where(column, "lt", value)

    def or_(self, *conditions: Condition) -> "Query":
        return replace(self, any_of=tuple(conditions))

    def order(self, column: str, descending: bool = True, nulls_last: bool = True) -> "Query":
        return replace(self, order_by=column, descending=descending, nulls_last=nulls_last)

    def limit(self, n: Optional[int]) -> "Query":
        return replace(self, max_rows=n)

    def select(self, *columns: str) -> "Query":
        return replace(self, columns=tuple(columns))

    @property
    def is_empty_in(self) -> bool:
        """True when an `in` condition has no values, so nothing can match."""
        return any(c.op == "in" and not c.value for c in self.conditions)


def cond(column: str, op: str, value: Any) -> Condition:
    if op not in OPERATORS:
        raise ValueError(f"Unsupported operator: {op!r}")
    if op == "in":
        value = tuple(value)
    return Condition(column, op, value)
