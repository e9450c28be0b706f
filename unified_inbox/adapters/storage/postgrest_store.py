"""PostgREST (Supabase REST) record store using aiohttp."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from unified_inbox.config import CONFIG
from unified_inbox.errors import StoreError
from unified_inbox.ports.query import Condition, Query

logger = logging.getLogger(__name__)


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _quote(value: Any) -> str:
    text = _literal(value)
    if any(ch in text for ch in ',()"{}'):
        escaped = text.replace('"', '\\"')
        return f'"{escaped}"'
    return text


def encode_condition(c: Condition) -> str:
    """Render `op.value` in PostgREST filter syntax."""
    if c.op == "eq" and c.value is None:
        return "is.null"
    if c.op == "in":
        return "in.(" + ",".join(_quote(v) for v in c.value) + ")"
    if c.op == "cs":
        return "cs.{" + _quote(c.value) + "}"
    return f"{c.op}.{_literal(c.value)}"


def encode_query(query: Query) -> List[tuple]:
    """Translate a Query into PostgREST query parameters."""
    params: List[tuple] = [("select", ",".join(query.columns) if query.columns else "*")]
    for c in query.conditions:
        params.append((c.column, encode_condition(c)))
    if query.any_of:
        group = ",".join(f"{c.column}.{encode_condition(c)}" for c in query.any_of)
        params.append(("or", f"({group})"))
    if query.order_by:
        direction = "desc" if query.descending else "asc"
        nulls = "nullslast" if query.nulls_last else "nullsfirst"
        params.append(("order", f"{query.order_by}.{direction}.{nulls}"))
    if query.max_rows is not None:
        params.append(("limit", str(query.max_rows)))
    return params


def _filters_only(params: List[tuple]) -> List[tuple]:
    return [(k, v) for k, v in params if k not in ("select", "order", "limit")]


class PostgrestRecordStore:
    """Async REST client over a PostgREST endpoint. Implements RecordStorePort."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, timeout: float = 10.0):
        self._base_url = (base_url if base_url is not None else CONFIG["postgrest_url"]).rstrip("/")
        self._api_key = api_key if api_key is not None else CONFIG["postgrest_api_key"]
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url)

    def _url(self, table: str) -> str:
        return f"{self._base_url}/{table}"

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[List[tuple]] = None,
        json_body: Any = None,
        prefer: Optional[str] = None,
    ):
        if not self.is_configured:
            raise StoreError("PostgREST store is not configured (POSTGREST_URL)")
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(
                    method,
                    self._url(table),
                    params=params or [],
                    json=json_body,
                    headers=self._headers(prefer),
                ) as resp:
                    if resp.status >= 400:
                        detail = await resp.text()
                        raise StoreError(f"{method} {table} failed ({resp.status}): {detail}")
                    if resp.status == 204:
                        return [], resp.headers
                    return await resp.json(), resp.headers
        except asyncio.TimeoutError as e:
            raise StoreError(f"{method} {table} timed out after {self._timeout}s") from e
        except aiohttp.ClientError as e:
            raise StoreError(f"{method} {table} failed: {e}") from e

    async def select(self, query: Query) -> List[Dict[str, Any]]:
        if query.is_empty_in:
            return []
        data, _ = await self._request("GET", query.table, params=encode_query(query))
        return data if isinstance(data, list) else []

    async def count(self, query: Query) -> int:
        if query.is_empty_in:
            return 0
        params = _filters_only(encode_query(query))
        params.append(("select", "*"))
        _, headers = await self._request("HEAD", query.table, params=params, prefer="count=exact")
        # Content-Range: "0-24/25" or "*/0"
        content_range = headers.get("Content-Range", "")
        _, _, total = content_range.partition("/")
        try:
            return int(total)
        except ValueError:
            raise StoreError(f"Missing count for {query.table}: {content_range!r}")

    async def update(self, query: Query, values: Dict[str, Any]) -> int:
        if query.is_empty_in:
            return 0
        params = _filters_only(encode_query(query))
        data, _ = await self._request(
            "PATCH", query.table, params=params, json_body=values, prefer="return=representation",
        )
        return len(data) if isinstance(data, list) else 0

    async def upsert(
        self,
        table: str,
        rows: Sequence[Dict[str, Any]],
        on_conflict: Sequence[str],
    ) -> None:
        if not rows:
            return
        await self._request(
            "POST",
            table,
            params=[("on_conflict", ",".join(on_conflict))],
            json_body=list(rows),
            prefer="resolution=merge-duplicates,return=minimal",
        )
        logger.debug("Upserted %d row(s) into %s", len(rows), table)

    async def delete(self, table: str, match: Dict[str, Any]) -> int:
        params = [(k, encode_condition(Condition(k, "eq", v))) for k, v in match.items()]
        data, _ = await self._request("DELETE", table, params=params, prefer="return=representation")
        return len(data) if isinstance(data, list) else 0
