"""
In-process document store.

Backs tests and demos. A single asyncio.Lock serialises writes, which gives
the same guarantees the SQL adapter gets from row locks and unique indexes.
Documents are deep-copied on the way in and out so callers never share
state with the store.
"""
import asyncio
import copy
import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from socialgraph.clients.document_store import (
    Document,
    DocumentStore,
    EdgeOp,
    OrderBy,
    apply_to_sequence,
)
from socialgraph.clock import advance
from socialgraph.constraints import unique_fields
from socialgraph.errors import NotFoundError, StoreError, UniquenessError
from socialgraph.schemas import EntityKind

logger = logging.getLogger(__name__)


class MemoryDocumentStore(DocumentStore):
    def __init__(self) -> None:
        self._collections: dict[EntityKind, dict[str, Document]] = {kind: {} for kind in EntityKind}
        # kind -> field -> value -> id
        self._unique: dict[EntityKind, dict[str, dict[Any, str]]] = {
            kind: {name: {} for name in unique_fields(kind)} for kind in EntityKind
        }
        self._lock = asyncio.Lock()

    async def insert(self, kind: EntityKind, document: Document) -> Document:
        async with self._lock:
            collection = self._collections[kind]
            if document["id"] in collection:
                raise StoreError(f"{kind.value} id {document['id']} already exists")
            self._check_unique(kind, document, entity_id=None)
            stored = copy.deepcopy(document)
            collection[stored["id"]] = stored
            self._index(kind, stored)
            return copy.deepcopy(stored)

    async def get(self, kind: EntityKind, entity_id: str) -> Optional[Document]:
        doc = self._collections[kind].get(entity_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def find(
        self,
        kind: EntityKind,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        docs = [
            doc
            for doc in self._collections[kind].values()
            if all(doc.get(k) == v for k, v in (where or {}).items())
        ]
        # Stable sorts applied last-key-first give a multi-key ordering
        for field, direction in reversed(list(order_by or ())):
            docs.sort(
                key=lambda d: (d.get(field) is not None, d.get(field)),
                reverse=direction == "desc",
            )
        if limit is not None:
            docs = docs[:limit]
        return [copy.deepcopy(doc) for doc in docs]

    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        changes: Mapping[str, Any],
        now: datetime,
    ) -> Optional[Document]:
        async with self._lock:
            doc = self._collections[kind].get(entity_id)
            if doc is None:
                return None
            self._check_unique(kind, changes, entity_id=entity_id)
            self._unindex(kind, doc)
            doc.update(copy.deepcopy(dict(changes)))
            doc["updated_at"] = advance(doc["updated_at"], now)
            self._index(kind, doc)
            return copy.deepcopy(doc)

    async def delete(self, kind: EntityKind, entity_id: str) -> bool:
        async with self._lock:
            doc = self._collections[kind].pop(entity_id, None)
            if doc is None:
                return False
            self._unindex(kind, doc)
            return True

    async def apply_edges(self, ops: Sequence[EdgeOp], now: datetime) -> list[Document]:
        async with self._lock:
            owners = list(dict.fromkeys((op.kind, op.entity_id) for op in ops))
            for kind, entity_id in owners:
                if entity_id not in self._collections[kind]:
                    raise NotFoundError(kind.value, entity_id)

            staged = {
                (kind, entity_id): copy.deepcopy(self._collections[kind][entity_id])
                for kind, entity_id in owners
            }
            touched = set()
            for op in ops:
                key = (op.kind, op.entity_id)
                sequence = staged[key].setdefault(op.field, [])
                if apply_to_sequence(sequence, op):
                    touched.add(key)

            for key in touched:
                staged[key]["updated_at"] = advance(staged[key]["updated_at"], now)
            for (kind, entity_id), doc in staged.items():
                self._collections[kind][entity_id] = doc
            return [copy.deepcopy(staged[key]) for key in owners]

    # ─────────────────────── Unique index ─────────────────────────────────

    def _check_unique(self, kind: EntityKind, values: Mapping[str, Any], entity_id: Optional[str]) -> None:
        for name, index in self._unique[kind].items():
            value = values.get(name)
            if value is None:
                continue
            owner = index.get(value)
            if owner is not None and owner != entity_id:
                logger.debug("Unique index hit on %s.%s", kind.value, name)
                raise UniquenessError.for_field(name, value)

    def _index(self, kind: EntityKind, doc: Document) -> None:
        for name, index in self._unique[kind].items():
            if doc.get(name) is not None:
                index[doc[name]] = doc["id"]

    def _unindex(self, kind: EntityKind, doc: Document) -> None:
        for name, index in self._unique[kind].items():
            if index.get(doc.get(name)) == doc["id"]:
                del index[doc[name]]
