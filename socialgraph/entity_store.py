"""
EntityStore: validated create/read/update/delete over the four collections.

Every write goes through the ConstraintValidator first and is only handed
to the document store once it passes, so a caller never observes a
partially-accepted entity. Deletes are plain removals: references held by
other entities are left dangling (see RelationshipIndex.prune).
"""
import logging
import uuid
from typing import Any, Mapping, Optional

from socialgraph.clients.document_store import DocumentStore, OrderBy
from socialgraph.clock import utc_now
from socialgraph.constraints import rules_for, sequence_fields
from socialgraph.errors import NotFoundError, RejectedField, ValidationError
from socialgraph.schemas import RECORD_TYPES, EntityKind, Record
from socialgraph.telemetry import ENTITY_WRITES_TOTAL, VALIDATION_REJECTIONS_TOTAL
from socialgraph.validator import ConstraintValidator

logger = logging.getLogger(__name__)

SORTABLE_SYSTEM_FIELDS = ("id", "created_at", "updated_at")


def to_record(kind: EntityKind, doc: Mapping[str, Any]) -> Record:
    return RECORD_TYPES[kind].model_validate(doc)


class EntityStore:
    def __init__(self, store: DocumentStore, validator: Optional[ConstraintValidator] = None) -> None:
        self._store = store
        self.validator = validator or ConstraintValidator(store)

    async def create(self, kind: EntityKind, fields: Mapping[str, Any]) -> Record:
        candidate = self.validator.normalize(kind, fields)
        document: dict[str, Any] = {}
        for rule in rules_for(kind).values():
            value = candidate.get(rule.name)
            if value is None and not rule.required and not rule.nullable:
                value = rule.default_value()
            document[rule.name] = value

        now = utc_now()
        document.update(id=str(uuid.uuid4()), created_at=now, updated_at=now)

        await self._check(kind, document)
        stored = await self._store.insert(kind, document)
        ENTITY_WRITES_TOTAL.labels(kind=kind.value, operation="create").inc()
        logger.info("Created %s %s", kind.value, stored["id"])
        return to_record(kind, stored)

    async def update(self, kind: EntityKind, entity_id: str, patch: Mapping[str, Any]) -> Record:
        """
        Apply `patch` to an existing entity.

        Only the touched fields are re-validated. Clearing an optional field
        with None restores its default. A patch with no known field is a
        no-op and leaves updated_at alone.
        """
        changes = self.validator.normalize(kind, patch)
        current = await self.get(kind, entity_id)
        if not changes:
            return current

        rules = rules_for(kind)
        for name, value in changes.items():
            rule = rules[name]
            if value is None and not rule.required and not rule.nullable:
                changes[name] = rule.default_value()

        await self._check(kind, changes, partial=True, entity_id=entity_id)
        stored = await self._store.update(kind, entity_id, changes, utc_now())
        if stored is None:
            # Deleted between our read and the write
            raise NotFoundError(kind.value, entity_id)
        ENTITY_WRITES_TOTAL.labels(kind=kind.value, operation="update").inc()
        logger.info("Updated %s %s (%s)", kind.value, entity_id, ", ".join(changes))
        return to_record(kind, stored)

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        if not await self._store.delete(kind, entity_id):
            raise NotFoundError(kind.value, entity_id)
        ENTITY_WRITES_TOTAL.labels(kind=kind.value, operation="delete").inc()
        logger.info("Deleted %s %s", kind.value, entity_id)

    async def find_by_id(self, kind: EntityKind, entity_id: str) -> Optional[Record]:
        doc = await self._store.get(kind, entity_id)
        return to_record(kind, doc) if doc is not None else None

    async def get(self, kind: EntityKind, entity_id: str) -> Record:
        record = await self.find_by_id(kind, entity_id)
        if record is None:
            raise NotFoundError(kind.value, entity_id)
        return record

    async def find_many(
        self,
        kind: EntityKind,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[Record]:
        """
        Equality filter plus ordering, e.g.
        find_many(EntityKind.COMMENT, {"post": post_id}, [("created_at", "asc")]).
        """
        filters = self.validator.normalize(kind, where or {})
        if where and len(filters) != len(where):
            unknown = [key for key in where if key not in filters]
            raise ValidationError(
                [RejectedField(key, "not_allowed", f"cannot filter on {key}") for key in unknown]
            )
        sequences = set(sequence_fields(kind))
        bad = [key for key in filters if key in sequences]
        bad += [
            field
            for field, direction in order_by or ()
            if direction not in ("asc", "desc")
            or (field not in rules_for(kind) and field not in SORTABLE_SYSTEM_FIELDS)
            or field in sequences
        ]
        if bad:
            raise ValidationError(
                [RejectedField(key, "not_allowed", f"cannot filter or sort on {key}") for key in bad]
            )

        docs = await self._store.find(kind, filters, order_by, limit)
        return [to_record(kind, doc) for doc in docs]

    async def _check(
        self,
        kind: EntityKind,
        fields: Mapping[str, Any],
        *,
        partial: bool = False,
        entity_id: Optional[str] = None,
    ) -> None:
        try:
            await self.validator.check(kind, fields, partial=partial, entity_id=entity_id)
        except ValidationError as exc:
            for rejected in exc.rejected:
                VALIDATION_REJECTIONS_TOTAL.labels(kind=kind.value, reason=rejected.reason).inc()
            raise
