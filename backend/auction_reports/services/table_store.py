"""Narrow async persistence contract used by the report engine.

Every call is scoped by table name and returns an `OperationResult` envelope
instead of raising on database errors. Writes never commit on their own; wrap
them in `TableStore.transaction()` so a multi-table save is all-or-nothing.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterable, Mapping, Optional, Sequence

from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auction_reports import models  # noqa: F401  (registers tables on Base.metadata)
from auction_reports.database import Base

logger = logging.getLogger("auction_reports.table_store")

_OPERATORS = {"lt", "lte", "gt", "gte", "ne", "in", "is_null"}


@dataclass(frozen=True)
class OperationResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    # "validation" | "store" | "gate" | "not_found" | ... ; None on success.
    error_kind: Optional[str] = None
    details: Any = None

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, *, kind: str = "store", details: Any = None) -> "OperationResult":
        return cls(success=False, error=error, error_kind=kind, details=details)


Filters = Mapping[str, Any]


def _table(name: str) -> Table:
    try:
        return Base.metadata.tables[name]
    except KeyError:
        raise ValueError(f"Unknown table: {name}") from None


def _where_clauses(table: Table, filters: Optional[Filters]) -> list:
    """Translate a filter mapping into SQL clauses.

    Keys are column names with an optional operator suffix:
    `auction_id`, `auction_date__lt`, `status__in`, `buyer_id__is_null`.
    A bare key with a list value means IN; with None it means IS NULL.
    """

    clauses = []
    for key, value in (filters or {}).items():
        name, _, op = key.partition("__")
        if name not in table.c:
            raise ValueError(f"Unknown column {table.name}.{name}")
        if op and op not in _OPERATORS:
            raise ValueError(f"Unknown filter operator: {op}")
        col = table.c[name]

        if not op:
            if value is None:
                clauses.append(col.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                clauses.append(col.in_(list(value)))
            else:
                clauses.append(col == value)
        elif op == "in":
            clauses.append(col.in_(list(value)))
        elif op == "ne":
            clauses.append(col.is_not(None) if value is None else col != value)
        elif op == "is_null":
            clauses.append(col.is_(None) if value else col.is_not(None))
        elif op == "lt":
            clauses.append(col < value)
        elif op == "lte":
            clauses.append(col <= value)
        elif op == "gt":
            clauses.append(col > value)
        elif op == "gte":
            clauses.append(col >= value)
    return clauses


def _order_clauses(table: Table, order_by: Optional[Sequence[str] | str]) -> list:
    if not order_by:
        return []
    if isinstance(order_by, str):
        order_by = [order_by]
    out = []
    for key in order_by:
        desc = key.startswith("-")
        name = key[1:] if desc else key
        if name not in table.c:
            raise ValueError(f"Unknown column {table.name}.{name}")
        col = table.c[name]
        out.append(col.desc() if desc else col.asc())
    return out


class TableStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["TableStore"]:
        """Commit on success; roll back every write made inside on any exception."""

        try:
            yield self
        except BaseException:
            await self.db.rollback()
            raise
        else:
            await self.db.commit()

    async def select(
        self,
        table: str,
        *,
        filters: Optional[Filters] = None,
        order_by: Optional[Sequence[str] | str] = None,
        limit: Optional[int] = None,
        columns: Optional[Iterable[str]] = None,
    ) -> OperationResult:
        t = _table(table)
        cols = [t.c[c] for c in columns] if columns else [t]
        stmt = select(*cols).where(*_where_clauses(t, filters)).order_by(*_order_clauses(t, order_by))
        if limit is not None:
            stmt = stmt.limit(int(limit))
        try:
            result = await self.db.execute(stmt)
            rows = [dict(r._mapping) for r in result]
        except SQLAlchemyError as e:
            logger.error("store_select_failed", extra={"table": table, "error": str(e)})
            return OperationResult.fail(str(e), details={"table": table})
        return OperationResult.ok(rows)

    async def select_one(self, table: str, *, filters: Filters) -> OperationResult:
        """Like `select` with limit 1; `data` is the row dict or None."""

        res = await self.select(table, filters=filters, limit=1)
        if not res.success:
            return res
        return OperationResult.ok(res.data[0] if res.data else None)

    async def count(self, table: str, *, filters: Optional[Filters] = None) -> OperationResult:
        t = _table(table)
        stmt = select(func.count()).select_from(t).where(*_where_clauses(t, filters))
        try:
            n = (await self.db.execute(stmt)).scalar_one()
        except SQLAlchemyError as e:
            logger.error("store_count_failed", extra={"table": table, "error": str(e)})
            return OperationResult.fail(str(e), details={"table": table})
        return OperationResult.ok(int(n or 0))

    async def insert(self, table: str, rows: Mapping[str, Any] | Sequence[Mapping[str, Any]]) -> OperationResult:
        """Insert one row or a list of rows; `data` is the list of stored rows."""

        t = _table(table)
        payloads = [rows] if isinstance(rows, Mapping) else list(rows)
        inserted: list[dict] = []
        try:
            for row in payloads:
                result = await self.db.execute(insert(t).values(**dict(row)).returning(t))
                inserted.append(dict(result.one()._mapping))
        except SQLAlchemyError as e:
            logger.error(
                "store_insert_failed",
                extra={"table": table, "rows": len(payloads), "error": str(e)},
            )
            return OperationResult.fail(str(e), details={"table": table})
        return OperationResult.ok(inserted)

    async def update(self, table: str, values: Mapping[str, Any], *, filters: Filters) -> OperationResult:
        t = _table(table)
        clauses = _where_clauses(t, filters)
        if not clauses:
            raise ValueError(f"Refusing unscoped update on {table}")
        try:
            result = await self.db.execute(update(t).where(*clauses).values(**dict(values)).returning(t))
            rows = [dict(r._mapping) for r in result]
        except SQLAlchemyError as e:
            logger.error("store_update_failed", extra={"table": table, "error": str(e)})
            return OperationResult.fail(str(e), details={"table": table})
        return OperationResult.ok(rows)

    async def delete(self, table: str, *, filters: Filters) -> OperationResult:
        """Delete matching rows; `data` is the number of rows removed."""

        t = _table(table)
        clauses = _where_clauses(t, filters)
        if not clauses:
            raise ValueError(f"Refusing unscoped delete on {table}")
        try:
            result = await self.db.execute(delete(t).where(*clauses))
        except SQLAlchemyError as e:
            logger.error("store_delete_failed", extra={"table": table, "error": str(e)})
            return OperationResult.fail(str(e), details={"table": table})
        return OperationResult.ok(int(result.rowcount or 0))
