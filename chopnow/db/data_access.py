"""
ChopNow Storefront — Data access collaborator

A thin, generic row API over the Supabase Postgres tables, shaped after the
PostgREST query builder the web client used: filters, ordering, limit and
embedded relation selects. Each call is its own round trip; nothing here spans
a transaction across calls.

Every SQLAlchemy error is re-raised as CollaboratorFailure.
"""
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import Table, and_, func, insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chopnow.core.exceptions import CollaboratorFailure
from chopnow.db.database import Base

# Import for table registration on Base.metadata
from chopnow.models import order as _order_models  # noqa: F401
from chopnow.models import user as _user_models  # noqa: F401
from chopnow.models import vendor as _vendor_models  # noqa: F401

logger = logging.getLogger(__name__)


# ─── Query vocabulary ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    @classmethod
    def eq(cls, column: str, value: Any) -> "Filter":
        return cls(column, "eq", value)


class AnyOf:
    """OR-group of filters, e.g. a search term matched against several columns."""

    def __init__(self, *filters: Filter):
        self.filters = tuple(filters)


@dataclass(frozen=True)
class Ordering:
    column: str
    descending: bool = False


@dataclass(frozen=True)
class Embed:
    """Attach the related row under `relation` (PostgREST `relation(col, ...)`)."""
    relation: str
    columns: tuple[str, ...] = ()


# (entity, relation) → (local column, remote column)
RELATIONS: dict[tuple[str, str], tuple[str, str]] = {
    ("orders", "vendors"): ("vendor_id", "id"),
    ("orders", "profiles"): ("user_id", "id"),
    ("menu_items", "vendors"): ("vendor_id", "id"),
    ("vendors", "profiles"): ("user_id", "id"),
    ("reviews", "profiles"): ("user_id", "id"),
}

FilterSpec = Filter | AnyOf


class DataAccess(Protocol):
    async def query_rows(
        self,
        entity: str,
        filters: Sequence[FilterSpec] = (),
        ordering: Sequence[Ordering] = (),
        limit: int | None = None,
        embed: Sequence[Embed] = (),
    ) -> list[dict[str, Any]]: ...

    async def count_rows(self, entity: str, filters: Sequence[FilterSpec] = ()) -> int: ...

    async def update_row(self, entity: str, row_id: str, patch: dict[str, Any]) -> dict[str, Any]: ...

    async def insert_row(self, entity: str, values: dict[str, Any]) -> dict[str, Any]: ...


# ─── SQLAlchemy implementation ────────────────────────────────────────────────

def _table(entity: str) -> Table:
    try:
        return Base.metadata.tables[entity]
    except KeyError:
        raise CollaboratorFailure("resolve", entity, KeyError(f"unknown entity '{entity}'"))


def _clause(table: Table, spec: FilterSpec):
    if isinstance(spec, AnyOf):
        return or_(*(_clause(table, f) for f in spec.filters))
    column = table.c[spec.column]
    if spec.op == "eq":
        return column == spec.value
    if spec.op == "neq":
        return column != spec.value
    if spec.op == "in":
        return column.in_(list(spec.value))
    if spec.op == "ilike":
        return column.ilike(spec.value)
    if spec.op == "gte":
        return column >= spec.value
    if spec.op == "lte":
        return column <= spec.value
    raise ValueError(f"Unsupported filter operator '{spec.op}'")


def _where(table: Table, filters: Sequence[FilterSpec]):
    return and_(*(_clause(table, f) for f in filters)) if filters else None


class SqlDataAccess:
    """DataAccess over an async_sessionmaker; one session per call."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    async def query_rows(
        self,
        entity: str,
        filters: Sequence[FilterSpec] = (),
        ordering: Sequence[Ordering] = (),
        limit: int | None = None,
        embed: Sequence[Embed] = (),
    ) -> list[dict[str, Any]]:
        table = _table(entity)
        query = select(table)
        where = _where(table, filters)
        if where is not None:
            query = query.where(where)
        for o in ordering:
            column = table.c[o.column]
            query = query.order_by(column.desc() if o.descending else column.asc())
        if limit is not None:
            query = query.limit(limit)

        try:
            async with self._sessionmaker() as session:
                result = await session.execute(query)
                rows = [dict(r) for r in result.mappings().all()]
                for e in embed:
                    await self._attach(session, entity, rows, e)
        except SQLAlchemyError as exc:
            raise CollaboratorFailure("query", entity, exc) from exc
        return rows

    async def _attach(self, session: AsyncSession, entity: str, rows: list[dict], e: Embed) -> None:
        try:
            local, remote = RELATIONS[(entity, e.relation)]
        except KeyError:
            raise CollaboratorFailure("embed", entity, KeyError(f"no relation '{e.relation}'"))
        keys = {r[local] for r in rows if r.get(local) is not None}
        related: dict[Any, dict] = {}
        if keys:
            target = _table(e.relation)
            wanted = {remote, *e.columns} if e.columns else None
            cols = [target.c[c] for c in wanted] if wanted else [target]
            result = await session.execute(select(*cols).where(target.c[remote].in_(list(keys))))
            related = {m[remote]: dict(m) for m in result.mappings().all()}
        for r in rows:
            match = related.get(r.get(local))
            if match is not None and e.columns:
                match = {c: match[c] for c in e.columns}
            r[e.relation] = match

    async def count_rows(self, entity: str, filters: Sequence[FilterSpec] = ()) -> int:
        table = _table(entity)
        query = select(func.count()).select_from(table)
        where = _where(table, filters)
        if where is not None:
            query = query.where(where)
        try:
            async with self._sessionmaker() as session:
                return int((await session.execute(query)).scalar_one())
        except SQLAlchemyError as exc:
            raise CollaboratorFailure("count", entity, exc) from exc

    async def update_row(self, entity: str, row_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        table = _table(entity)
        stmt = update(table).where(table.c["id"] == row_id).values(**patch).returning(*table.c)
        try:
            async with self._sessionmaker() as session:
                row = (await session.execute(stmt)).mappings().one_or_none()
                if row is None:
                    await session.rollback()
                    raise CollaboratorFailure("update", entity, LookupError(f"no row with id '{row_id}'"))
                await session.commit()
                return dict(row)
        except SQLAlchemyError as exc:
            raise CollaboratorFailure("update", entity, exc) from exc

    async def insert_row(self, entity: str, values: dict[str, Any]) -> dict[str, Any]:
        table = _table(entity)
        stmt = insert(table).values(**values).returning(*table.c)
        try:
            async with self._sessionmaker() as session:
                row = (await session.execute(stmt)).mappings().one()
                await session.commit()
                logger.info("Inserted %s row %s", entity, row["id"])
                return dict(row)
        except SQLAlchemyError as exc:
            raise CollaboratorFailure("insert", entity, exc) from exc
