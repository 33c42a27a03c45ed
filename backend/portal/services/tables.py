"""Row-level table access: select, count, insert and update over an async session.

Rows go in and come out as plain dicts. Every write commits on its own, and
every database failure surfaces as a ``PersistenceError``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from sqlalchemy import ColumnElement, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.orm import Base
from portal.services.errors import PersistenceError

logger = logging.getLogger(__name__)


class RemoteTable:
    """One table, accessed through a session owned by the caller."""

    def __init__(self, session: AsyncSession, model: type[Base]) -> None:
        self.session = session
        self.table = model.__table__
        self.name = self.table.name

    def _criteria(
        self,
        filters: Mapping[str, Any] | None,
        where: Iterable[ColumnElement[bool]] = (),
    ) -> list[ColumnElement[bool]]:
        criteria = [self.table.c[column] == value for column, value in (filters or {}).items()]
        criteria.extend(where)
        return criteria

    async def _run(self, stmt, *, write: bool = False):
        try:
            result = await self.session.execute(stmt)
            rows = [dict(row) for row in result.mappings().all()]
            if write:
                await self.session.commit()
            return rows
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError.from_sqlalchemy(e) from e

    async def select(
        self,
        *,
        filters: Mapping[str, Any] | None = None,
        where: Iterable[ColumnElement[bool]] = (),
        columns: Sequence[str] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
    ) -> list[dict[str, Any]]:
        cols = [self.table.c[c] for c in columns] if columns else [self.table]
        stmt = select(*cols).where(*self._criteria(filters, where))
        if order_by:
            column = self.table.c[order_by]
            stmt = stmt.order_by(column.asc() if ascending else column.desc())
        rows = await self._run(stmt)
        logger.debug("select %s filters=%s -> %d rows", self.name, filters, len(rows))
        return rows

    async def maybe_single(
        self,
        *,
        filters: Mapping[str, Any],
        columns: Sequence[str] | None = None,
    ) -> dict[str, Any] | None:
        """Zero-or-one lookup. More than one matching row is an error."""
        rows = await self.select(filters=filters, columns=columns)
        if len(rows) > 1:
            raise PersistenceError(
                f"Expected at most one row from {self.name}, got {len(rows)}",
                code="MULTIPLE_ROWS",
            )
        return rows[0] if rows else None

    async def count(
        self,
        *,
        filters: Mapping[str, Any] | None = None,
        where: Iterable[ColumnElement[bool]] = (),
    ) -> int:
        stmt = select(func.count()).select_from(self.table).where(*self._criteria(filters, where))
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError.from_sqlalchemy(e) from e
        return result.scalar_one() or 0

    async def insert(self, rows: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Insert one or more rows in a single transaction and return them as stored."""
        inserted: list[dict[str, Any]] = []
        try:
            for row in rows:
                stmt = insert(self.table).values(**row).returning(*self.table.c)
                result = await self.session.execute(stmt)
                inserted.extend(dict(r) for r in result.mappings().all())
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError.from_sqlalchemy(e) from e
        logger.debug("insert %s -> %d rows", self.name, len(inserted))
        return inserted

    async def insert_one(self, row: Mapping[str, Any]) -> dict[str, Any]:
        return (await self.insert([row]))[0]

    async def update(
        self,
        values: Mapping[str, Any],
        *,
        filters: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        stmt = (
            update(self.table)
            .where(*self._criteria(filters))
            .values(**values)
            .returning(*self.table.c)
        )
        rows = await self._run(stmt, write=True)
        logger.debug("update %s filters=%s -> %d rows", self.name, filters, len(rows))
        return rows

    async def update_one(
        self,
        values: Mapping[str, Any],
        *,
        filters: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Update exactly one row; no match raises ``PersistenceError(NOT_FOUND)``."""
        rows = await self.update(values, filters=filters)
        if not rows:
            raise PersistenceError(
                f"No row in {self.name} matches {dict(filters)}",
                code="NOT_FOUND",
            )
        return rows[0]
