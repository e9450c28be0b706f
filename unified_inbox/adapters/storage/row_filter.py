"""Evaluate a Query against plain dict rows (used by local stores)."""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Tuple

from unified_inbox.domain.records import parse_timestamp
from unified_inbox.ports.query import Condition, Query


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        parsed = parse_timestamp(value) if "T" in value or "-" in value else None
        return parsed if parsed is not None else value
    if isinstance(value, datetime):
        return parse_timestamp(value)
    return value


def _test(row: Dict[str, Any], c: Condition) -> bool:
    actual = row.get(c.column)
    if c.op == "eq":
        return actual == c.value
    if c.op == "neq":
        return actual != c.value
    if c.op == "in":
        return actual in c.value
    if c.op == "cs":
        return isinstance(actual, (list, tuple, set)) and c.value in actual
    if actual is None or c.value is None:
        return False
    left, right = _comparable(actual), _comparable(c.value)
    try:
        if c.op == "gt":
            return left > right
        if c.op == "lt":
            return left < right
    except TypeError:
        return False
    raise ValueError(f"Unsupported operator: {c.op!r}")


def matches(row: Dict[str, Any], query: Query) -> bool:
    if not all(_test(row, c) for c in query.conditions):
        return False
    if query.any_of and not any(_test(row, c) for c in query.any_of):
        return False
    return True


def matches_values(row: Dict[str, Any], match: Dict[str, Any]) -> bool:
    return all(row.get(k) == v for k, v in match.items())


def _sort_groups(rows: List[Dict[str, Any]], col: str) -> Tuple[List[tuple], List[Dict[str, Any]]]:
    """Split rows into (key, row) pairs that sort together and rows treated as null.

    In a timestamp column, values that do not parse count as null, as they
    would once projected.
    """
    keyed = [(_comparable(r[col]), r) for r in rows if r.get(col) is not None]
    missing = [r for r in rows if r.get(col) is None]
    if any(isinstance(k, datetime) for k, _ in keyed):
        missing.extend(r for k, r in keyed if not isinstance(k, datetime))
        keyed = [(k, r) for k, r in keyed if isinstance(k, datetime)]
    elif len({type(k) for k, _ in keyed}) > 1:
        keyed = [((type(k).__name__, str(k)), r) for k, r in keyed]
    return keyed, missing


def apply_query(rows: Iterable[Dict[str, Any]], query: Query) -> List[Dict[str, Any]]:
    """Filter, order, limit and project rows as the query describes."""
    selected = [row for row in rows if matches(row, query)]

    if query.order_by:
        keyed, missing = _sort_groups(selected, query.order_by)
        keyed.sort(key=lambda pair: pair[0], reverse=query.descending)
        present = [r for _, r in keyed]
        selected = present + missing if query.nulls_last else missing + present

    if query.max_rows is not None:
        selected = selected[: query.max_rows]

    if query.columns:
        return [{c: row.get(c) for c in query.columns} for row in selected]
    return [dict(row) for row in selected]
