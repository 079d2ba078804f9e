"""
SQLAlchemy-backed document store (TiDB/MySQL in production, SQLite locally).

Every call runs in its own transaction. Edge writes lock the owning rows
(SELECT … FOR UPDATE) in a stable order before touching the JSON
sequences, so concurrent appends serialise on the row instead of
overwriting each other. Unique-constraint violations come back as
UniquenessError; any other driver failure surfaces as StoreError, flagged
transient when the database says so. Nothing is retried here.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from socialgraph.clients.document_store import (
    Document,
    DocumentStore,
    EdgeOp,
    OrderBy,
    apply_to_sequence,
)
from socialgraph.clock import advance
from socialgraph.constraints import unique_fields
from socialgraph.database import Base, build_engine, build_sessionmaker, init_db
from socialgraph.errors import NotFoundError, StoreError, UniquenessError
from socialgraph.models import MODELS
from socialgraph.schemas import EntityKind

logger = logging.getLogger(__name__)


def _to_document(row: Base) -> Document:
    doc = {attr.key: getattr(row, attr.key) for attr in row.__mapper__.column_attrs}
    for key, value in doc.items():
        if isinstance(value, list):
            doc[key] = list(value)
    return doc


def _column(model: type[Base], field: str) -> Any:
    if field not in model.__mapper__.column_attrs:
        raise ValueError(f"{model.__tablename__} has no column {field!r}")
    return getattr(model, field)


def _is_transient(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, (OperationalError, PoolTimeoutError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def _uniqueness_error(kind: Optional[EntityKind], exc: IntegrityError) -> Exception:
    """Map an IntegrityError to the unique field whose constraint it names."""
    message = str(exc.orig).lower()
    if kind is not None:
        table = MODELS[kind].__tablename__
        for field in unique_fields(kind):
            # MySQL/TiDB report the constraint name, SQLite reports table.column
            if f"uq_{table}_{field}" in message or f"{table}.{field}" in message:
                return UniquenessError.for_field(field)
    return StoreError(f"Integrity error: {exc.orig}", transient=False)


class SqlDocumentStore(DocumentStore):
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._sessions = build_sessionmaker(engine)

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> "SqlDocumentStore":
        return cls(build_engine(url, **engine_kwargs))

    async def init(self) -> None:
        try:
            await init_db(self._engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"Schema initialisation failed: {exc}", transient=_is_transient(exc)) from exc

    async def close(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def _transaction(self, kind: Optional[EntityKind] = None) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessions.begin() as session:
                yield session
        except IntegrityError as exc:
            raise _uniqueness_error(kind, exc) from exc
        except SQLAlchemyError as exc:
            logger.error("Store call failed (%s): %s", kind.value if kind else "-", exc)
            raise StoreError(str(exc), transient=_is_transient(exc)) from exc

    # ─────────────────────── CRUD ─────────────────────────────────────────

    async def insert(self, kind: EntityKind, document: Document) -> Document:
        async with self._transaction(kind) as session:
            row = MODELS[kind](**document)
            session.add(row)
            await session.flush()
            doc = _to_document(row)
        logger.debug("Inserted %s %s", kind.value, doc["id"])
        return doc

    async def get(self, kind: EntityKind, entity_id: str) -> Optional[Document]:
        async with self._transaction(kind) as session:
            row = await session.get(MODELS[kind], entity_id)
            return _to_document(row) if row is not None else None

    async def find(
        self,
        kind: EntityKind,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        model = MODELS[kind]
        stmt = select(model)
        for field, value in (where or {}).items():
            stmt = stmt.where(_column(model, field) == value)
        for field, direction in order_by or ():
            col = _column(model, field)
            stmt = stmt.order_by(col.desc() if direction == "desc" else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._transaction(kind) as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_to_document(row) for row in rows]

    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        changes: Mapping[str, Any],
        now: datetime,
    ) -> Optional[Document]:
        async with self._transaction(kind) as session:
            row = await session.get(MODELS[kind], entity_id, with_for_update=True)
            if row is None:
                return None
            for field, value in changes.items():
                setattr(row, field, list(value) if isinstance(value, list) else value)
            row.updated_at = advance(row.updated_at, now)
            await session.flush()
            return _to_document(row)

    async def delete(self, kind: EntityKind, entity_id: str) -> bool:
        async with self._transaction(kind) as session:
            row = await session.get(MODELS[kind], entity_id, with_for_update=True)
            if row is None:
                return False
            await session.delete(row)
            return True

    # ─────────────────────── Edges ────────────────────────────────────────

    async def apply_edges(self, ops: Sequence[EdgeOp], now: datetime) -> list[Document]:
        owners = list(dict.fromkeys((op.kind, op.entity_id) for op in ops))

        async with self._transaction() as session:
            rows: dict[tuple[EntityKind, str], Base] = {}
            # Lock in a fixed order so two multi-row writers cannot deadlock
            for kind, entity_id in sorted(owners, key=lambda k: (k[0].value, k[1])):
                row = await session.get(MODELS[kind], entity_id, with_for_update=True)
                if row is None:
                    raise NotFoundError(kind.value, entity_id)
                rows[(kind, entity_id)] = row

            touched = set()
            for op in ops:
                row = rows[(op.kind, op.entity_id)]
                sequence = list(getattr(row, op.field) or [])
                if apply_to_sequence(sequence, op):
                    # Assign a new list so the JSON column is flagged dirty
                    setattr(row, op.field, sequence)
                    touched.add((op.kind, op.entity_id))

            for key in touched:
                rows[key].updated_at = advance(rows[key].updated_at, now)
            await session.flush()
            return [_to_document(rows[key]) for key in owners]
