"""
ConstraintValidator: pure checks run before anything reaches the store.

Phases run in a fixed order and the first failing phase aborts:

  1. required-field presence
  2. type / format
  3. length bounds (content 280, bio 160)
  4. enum membership (Notification.type)
  5. uniqueness (external_id, email, username), one read per field

The uniqueness phase is advisory: two concurrent inserts can both pass it.
The store adapters enforce the same fields with a unique index, and that is
the guarantee callers can rely on.
"""
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from socialgraph.clients.document_store import DocumentStore
from socialgraph.constraints import (
    READ_ONLY_FIELDS,
    FieldRule,
    FieldType,
    canonical_name,
    rules_for,
)
from socialgraph.errors import RejectedField, UniquenessError, ValidationError
from socialgraph.schemas import EntityKind

logger = logging.getLogger(__name__)

Phase = Callable[[FieldRule, Any], Optional[RejectedField]]


def is_reference(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


# ─────────────────────────── Phases ──────────────────────────────────────

def _presence(rule: FieldRule, value: Any) -> Optional[RejectedField]:
    if rule.required and (value is None or value == ""):
        return RejectedField(rule.name, "missing", f"{rule.name} is required")
    return None


def _type_and_format(rule: FieldRule, value: Any) -> Optional[RejectedField]:
    if value is None:
        return None

    if rule.type in (FieldType.TEXT, FieldType.ENUM):
        if not isinstance(value, str):
            return RejectedField(rule.name, "invalid_type", f"{rule.name} must be a string")
        return None

    if rule.type is FieldType.REF:
        if not isinstance(value, str):
            return RejectedField(rule.name, "invalid_type", f"{rule.name} must be an identifier")
        if not is_reference(value):
            return RejectedField(rule.name, "invalid_format", f"{rule.name} is not a valid identifier")
        return None

    # REF_LIST
    if not isinstance(value, (list, tuple)):
        return RejectedField(rule.name, "invalid_type", f"{rule.name} must be a list of identifiers")
    if not all(is_reference(item) for item in value):
        return RejectedField(rule.name, "invalid_format", f"{rule.name} contains an invalid identifier")
    return None


def _length(rule: FieldRule, value: Any) -> Optional[RejectedField]:
    if rule.max_length is not None and isinstance(value, str) and len(value) > rule.max_length:
        return RejectedField(
            rule.name,
            "too_long",
            f"{rule.name} must be at most {rule.max_length} characters (got {len(value)})",
        )
    return None


def _enum(rule: FieldRule, value: Any) -> Optional[RejectedField]:
    if rule.choices and value is not None and value not in rule.choices:
        allowed = ", ".join(rule.choices)
        return RejectedField(rule.name, "not_allowed", f"{rule.name} must be one of: {allowed}")
    return None


PHASES: tuple[Phase, ...] = (_presence, _type_and_format, _length, _enum)


class ConstraintValidator:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def normalize(self, kind: EntityKind, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Map aliases to field names and drop keys the entity does not define."""
        out: dict[str, Any] = {}
        for key, value in fields.items():
            name = canonical_name(kind, key)
            if name is None:
                if key not in READ_ONLY_FIELDS:
                    logger.debug("Dropping unknown %s field %r", kind.value, key)
                continue
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, tuple):
                value = list(value)
            out[name] = value
        return out

    async def validate(
        self,
        kind: EntityKind,
        fields: Mapping[str, Any],
        *,
        partial: bool = False,
        entity_id: Optional[str] = None,
    ) -> list[RejectedField]:
        """
        Return the rejected fields of the first failing phase, or [] if valid.

        With partial=True only the supplied keys are checked (update path);
        entity_id excludes the entity itself from the uniqueness check.
        """
        fields = self.normalize(kind, fields)
        rules = rules_for(kind)
        targets = [rules[name] for name in fields] if partial else list(rules.values())

        for phase in PHASES:
            rejected = [r for rule in targets if (r := phase(rule, fields.get(rule.name)))]
            if rejected:
                return rejected

        return await self._uniqueness(kind, targets, fields, entity_id)

    async def check(
        self,
        kind: EntityKind,
        fields: Mapping[str, Any],
        *,
        partial: bool = False,
        entity_id: Optional[str] = None,
    ) -> None:
        rejected = await self.validate(kind, fields, partial=partial, entity_id=entity_id)
        if not rejected:
            return
        logger.info(
            "Rejected %s write: %s",
            kind.value,
            ", ".join(f"{r.field}={r.reason}" for r in rejected),
        )
        if any(r.reason == "duplicate" for r in rejected):
            raise UniquenessError(rejected)
        raise ValidationError(rejected)

    def check_reference(self, field: str, value: Any) -> None:
        if not is_reference(value):
            raise ValidationError(
                [RejectedField(field, "invalid_format", f"{field} is not a valid identifier")]
            )

    async def _uniqueness(
        self,
        kind: EntityKind,
        targets: list[FieldRule],
        fields: Mapping[str, Any],
        entity_id: Optional[str],
    ) -> list[RejectedField]:
        rejected: list[RejectedField] = []
        for rule in targets:
            value = fields.get(rule.name)
            if not rule.unique or value is None:
                continue
            matches = await self._store.find(kind, {rule.name: value}, limit=2)
            if any(doc["id"] != entity_id for doc in matches):
                rejected.append(
                    RejectedField(rule.name, "duplicate", f"{rule.name} '{value}' already exists")
                )
        return rejected
