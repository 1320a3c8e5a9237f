"""
Academy Backend: Table Adapter Base
====================================

What:  Generic CRUD over one table, returning `Result` values.
How:   Inputs are validated with the entity's pydantic model before any
       request is made. Every `BackendError` from the remote client is
       caught here and becomes a `RemoteError` inside the result.
Who:   Subclassed once per entity in `academy.adapters`.

Failure policy:
    Domain failures (bad input, missing row, refused by a policy, service
    down) come back as `Result.failure(...)`. Only programmer errors raise:
    an empty id, or an argument that is neither a dict nor the expected
    model.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from academy.exceptions import BackendError
from academy.remote import BackendClient, QueryBuilder
from academy.results import ErrorKind, RemoteError, Result

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
CreateT = TypeVar("CreateT", bound=BaseModel)
UpdateT = TypeVar("UpdateT", bound=BaseModel)


def validation_message(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into one readable line: 'name: Field required; age: ...'."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(parts)


def require_id(value: Any, name: str = "id") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string, got {value!r}")
    return value


class TableAdapter(Generic[RecordT, CreateT, UpdateT]):
    """
    Typed access to one table.

    Subclasses set:
        table:            table name on the service
        resource:         human name used in messages ("coach")
        record_model:     row schema
        create_model:     insert schema (required fields enforced)
        update_model:     partial update schema
        order_column / order_ascending: default listing order
    """

    table: str
    resource: str = "record"
    record_model: Type[RecordT]
    create_model: Type[CreateT]
    update_model: Type[UpdateT]
    order_column: Optional[str] = "created_at"
    order_ascending: bool = False

    def __init__(self, client: BackendClient):
        self._client = client

    # ── Helpers ───────────────────────────────────────────────────────────

    def _query(self) -> QueryBuilder:
        return self._client.table(self.table)

    def _ordered(self, query: QueryBuilder) -> QueryBuilder:
        if self.order_column:
            query = query.order(self.order_column, ascending=self.order_ascending)
        return query

    def _coerce(self, payload: Union[Dict[str, Any], BaseModel], model: Type[BaseModel]) -> BaseModel:
        if isinstance(payload, model):
            return payload
        if isinstance(payload, dict):
            return model.model_validate(payload)
        raise TypeError(
            f"{type(self).__name__} expects a dict or {model.__name__}, got {type(payload).__name__}"
        )

    def _failure(self, exc: BackendError, operation: str, source: str = "table") -> Result:
        error = RemoteError.from_backend_error(exc, source=source)
        if error.kind == ErrorKind.NOT_FOUND and source == "table":
            error = RemoteError(
                kind=ErrorKind.NOT_FOUND,
                message=f"{self.resource.capitalize()} not found",
                status=error.status,
                code=error.code,
            )
        logger.warning(
            "%s.%s failed: kind=%s status=%s code=%s message=%s",
            self.table,
            operation,
            error.kind.value,
            error.status,
            error.code,
            error.message,
        )
        return Result.failure(error)

    def _parse_row(self, row: Any) -> RecordT:
        return self.record_model.model_validate(row)

    def _parse_rows(self, rows: Any) -> List[RecordT]:
        return [self.record_model.model_validate(row) for row in rows or []]

    async def _fetch_one(self, query: QueryBuilder, operation: str) -> Result[RecordT]:
        try:
            response = await query.single().execute()
        except BackendError as e:
            return self._failure(e, operation)
        return Result.success(self._parse_row(response.data))

    async def _fetch_many(self, query: QueryBuilder, operation: str) -> Result[List[RecordT]]:
        try:
            response = await query.execute()
        except BackendError as e:
            return self._failure(e, operation)
        return Result.success(self._parse_rows(response.data))

    async def _count(self, query: QueryBuilder, operation: str = "count") -> Result[int]:
        try:
            response = await query.execute()
        except BackendError as e:
            return self._failure(e, operation)
        return Result.success(response.count or 0)

    # ── Operations ────────────────────────────────────────────────────────

    async def get_all(self) -> Result[List[RecordT]]:
        """Every row, in the adapter's default order."""
        return await self._fetch_many(self._ordered(self._query().select("*")), "get_all")

    async def get_by_id(self, record_id: str) -> Result[RecordT]:
        require_id(record_id)
        return await self._fetch_one(self._query().select("*").eq("id", record_id), "get_by_id")

    async def create(self, payload: Union[Dict[str, Any], CreateT]) -> Result[RecordT]:
        """
        Insert one row.

        Missing or malformed required fields fail with kind `validation`
        without contacting the service.
        """
        try:
            model = self._coerce(payload, self.create_model)
        except PydanticValidationError as e:
            return Result.failure(RemoteError.validation(validation_message(e)))
        values = model.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude_none=True)
        return await self._fetch_one(self._query().insert(values).select("*"), "create")

    async def update(self, record_id: str, changes: Union[Dict[str, Any], UpdateT]) -> Result[RecordT]:
        """Apply a partial update; fields the caller did not set are left alone."""
        require_id(record_id)
        try:
            model = self._coerce(changes, self.update_model)
        except PydanticValidationError as e:
            return Result.failure(RemoteError.validation(validation_message(e)))
        values = model.model_dump(mode="json", by_alias=True, exclude_unset=True)
        if not values:
            return Result.failure(RemoteError.validation("No fields to update"))
        query = self._query().update(values).eq("id", record_id).select("*")
        return await self._fetch_one(query, "update")

    async def delete(self, record_id: str) -> Result[RecordT]:
        """Delete one row and return it; a missing id fails with kind `not_found`."""
        require_id(record_id)
        query = self._query().delete().eq("id", record_id).select("*")
        return await self._fetch_one(query, "delete")

    async def count(self, **filters: Any) -> Result[int]:
        """Exact row count, optionally narrowed by equality filters."""
        query = self._query().select("id", count="exact", head=True)
        for column, value in filters.items():
            query = query.eq(column, value)
        return await self._count(query)
