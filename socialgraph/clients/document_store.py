"""
Document store contract.

The engine only ever talks to persistence through this interface: one
collection per EntityKind, documents keyed by identifier, reference
sequences embedded in the owning document.

Adapters must guarantee two things the engine cannot:
  • uniqueness of Account.external_id / email / username is enforced at
    write time (unique index), raising UniquenessError
  • edge mutations are atomic appends/removals on the owning document, so
    two concurrent appends are both observed
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

from socialgraph.schemas import EntityKind

if TYPE_CHECKING:
    from socialgraph.config import Settings

Document = dict[str, Any]
OrderBy = Sequence[tuple[str, str]]   # [(field, "asc" | "desc")]


class EdgeAction(str, Enum):
    APPEND = "append"
    REMOVE_FIRST = "remove_first"
    REMOVE_ALL = "remove_all"


@dataclass(frozen=True)
class EdgeOp:
    kind: EntityKind
    entity_id: str
    field: str
    value: str
    action: EdgeAction = EdgeAction.APPEND


def apply_to_sequence(sequence: list[str], op: EdgeOp) -> bool:
    """Mutate `sequence` in place according to `op`. Returns True if it changed."""
    if op.action is EdgeAction.APPEND:
        sequence.append(op.value)
        return True
    if op.action is EdgeAction.REMOVE_FIRST:
        if op.value in sequence:
            sequence.remove(op.value)
            return True
        return False
    before = len(sequence)
    sequence[:] = [item for item in sequence if item != op.value]
    return len(sequence) != before


class DocumentStore(ABC):
    async def init(self) -> None:
        """Prepare collections and indexes (idempotent)."""

    async def close(self) -> None:
        """Release connections."""

    @abstractmethod
    async def insert(self, kind: EntityKind, document: Document) -> Document:
        ...

    @abstractmethod
    async def get(self, kind: EntityKind, entity_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def find(
        self,
        kind: EntityKind,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        ...

    @abstractmethod
    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        changes: Mapping[str, Any],
        now: datetime,
    ) -> Optional[Document]:
        """Set fields and advance updated_at past its previous value. None if absent."""

    @abstractmethod
    async def delete(self, kind: EntityKind, entity_id: str) -> bool:
        ...

    @abstractmethod
    async def apply_edges(self, ops: Sequence[EdgeOp], now: datetime) -> list[Document]:
        """
        Apply every op in one atomic write and return the touched owners in
        first-seen order. Raises NotFoundError (writing nothing) if any owner
        is missing.
        """


def build_store(settings: "Settings") -> DocumentStore:
    """Create the adapter selected by `settings.store_backend`."""
    if settings.store_backend == "memory":
        from socialgraph.clients.memory_store import MemoryDocumentStore

        return MemoryDocumentStore()

    from socialgraph.clients.sql_store import SqlDocumentStore

    return SqlDocumentStore.from_url(
        settings.database_url,
        echo=settings.db_echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )
