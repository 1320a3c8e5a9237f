"""
Academy Backend: Table Query Builder
=====================================

What:  Chainable builder for requests against the table service (`/rest/v1`).
How:   Each call appends a query-string filter or header; `execute()` sends
       one request and returns an `APIResponse`.
Who:   Returned by `BackendClient.table(name)`; used only by the adapters.

Examples:
    await client.table("events").select("*").eq("is_past", False).order("date").execute()
    await client.table("students").update({"status": "approved"}).eq("id", sid).single().execute()
    await client.table("messages").select("id", count="exact", head=True).eq("is_read", False).execute()
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from academy.exceptions import BackendError
from academy.remote.base import HeadersFactory, send
from academy.remote.types import APIResponse

SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"

_CONTENT_RANGE = re.compile(r"^(?:\d+-\d+|\*)/(\d+)$")


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def parse_count(content_range: Optional[str]) -> Optional[int]:
    """Read the total from a `Content-Range` header such as `0-24/3573` or `*/0`."""
    if not content_range:
        return None
    match = _CONTENT_RANGE.match(content_range.strip())
    return int(match.group(1)) if match else None


class QueryBuilder:
    """
    One request against one table.

    A builder is used once: create it through `BackendClient.table()`,
    chain, then await `execute()`.
    """

    def __init__(self, http: httpx.AsyncClient, url: str, headers: HeadersFactory, table: str):
        self._http = http
        self._url = url
        self._headers = headers
        self.table = table
        self._method = "GET"
        self._mutating = False
        self._params: List[Tuple[str, str]] = []
        self._prefer: List[str] = []
        self._body: Any = None
        self._single = False
        self._maybe_single = False

    # ── Operations ────────────────────────────────────────────────────────

    def select(self, columns: str = "*", count: Optional[str] = None, head: bool = False) -> "QueryBuilder":
        """
        Choose returned columns. After a mutation this selects what comes back.

        `count="exact"` asks for the total row count; `head=True` skips the rows.
        """
        self._params.append(("select", columns))
        if count:
            self._prefer.append(f"count={count}")
        if not self._mutating:
            self._method = "HEAD" if head else "GET"
        return self

    def insert(self, values: Any, returning: str = "representation") -> "QueryBuilder":
        """
        Insert one row (dict) or many (list of dicts).

        `returning="minimal"` skips reading the row back, for callers that
        may write a table but not read it.
        """
        return self._mutation("POST", values, returning)

    def update(self, values: Dict[str, Any], returning: str = "representation") -> "QueryBuilder":
        return self._mutation("PATCH", values, returning)

    def delete(self, returning: str = "representation") -> "QueryBuilder":
        return self._mutation("DELETE", None, returning)

    def _mutation(self, method: str, body: Any, returning: str) -> "QueryBuilder":
        self._method = method
        self._mutating = True
        self._body = body
        self._prefer.append(f"return={returning}")
        return self

    # ── Filters ───────────────────────────────────────────────────────────

    def _filter(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        self._params.append((column, f"{operator}.{_format_value(value)}"))
        return self

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "neq", value)

    def gt(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "gt", value)

    def gte(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "gte", value)

    def lt(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "lt", value)

    def lte(self, column: str, value: Any) -> "QueryBuilder":
        return self._filter(column, "lte", value)

    def is_(self, column: str, value: Optional[bool]) -> "QueryBuilder":
        return self._filter(column, "is", value)

    def in_(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        joined = ",".join(_format_value(v) for v in values)
        self._params.append((column, f"in.({joined})"))
        return self

    # ── Modifiers ─────────────────────────────────────────────────────────

    def order(self, column: str, ascending: bool = True) -> "QueryBuilder":
        self._params.append(("order", f"{column}.{'asc' if ascending else 'desc'}"))
        return self

    def limit(self, count: int) -> "QueryBuilder":
        self._params.append(("limit", str(count)))
        return self

    def single(self) -> "QueryBuilder":
        """Expect exactly one row; zero or many rows fail with code PGRST116."""
        self._single = True
        return self

    def maybe_single(self) -> "QueryBuilder":
        """Expect at most one row; zero rows yield `data=None`."""
        self._maybe_single = True
        return self

    # ── Execution ─────────────────────────────────────────────────────────

    async def execute(self) -> APIResponse:
        headers = dict(self._headers())
        if self._prefer:
            headers["Prefer"] = ",".join(self._prefer)
        if self._single:
            headers["Accept"] = SINGLE_OBJECT_MEDIA_TYPE

        response = await send(
            self._http,
            self._method,
            self._url,
            headers=headers,
            params=self._params,
            json=self._body,
        )

        data = response.json() if response.content else None
        count = parse_count(response.headers.get("content-range"))

        if self._maybe_single and not self._single:
            rows = data or []
            if len(rows) > 1:
                raise BackendError(
                    message=f"Expected at most one row from '{self.table}', got {len(rows)}",
                    status=406,
                    code="PGRST116",
                )
            data = rows[0] if rows else None

        return APIResponse(data=data, count=count)
