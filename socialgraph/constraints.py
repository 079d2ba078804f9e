"""
Field rules for the four entity collections.

One table drives validation, default filling, alias mapping and the
unique/sequence bookkeeping of the store adapters, so the storage contract
and the validator can never disagree about what a field is.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic.alias_generators import to_camel

from socialgraph.schemas import EntityKind, NotificationType

BIO_MAX_LENGTH = 160
CONTENT_MAX_LENGTH = 280

# Assigned by the store, ignored on input
READ_ONLY_FIELDS = frozenset({"id", "_id", "created_at", "createdAt", "updated_at", "updatedAt"})


class FieldType(str, Enum):
    TEXT = "text"
    REF = "ref"            # identifier of another entity
    REF_LIST = "ref_list"  # ordered sequence of identifiers, duplicates allowed
    ENUM = "enum"


@dataclass(frozen=True)
class FieldRule:
    name: str
    type: FieldType
    required: bool = False
    nullable: bool = False
    unique: bool = False
    max_length: Optional[int] = None
    choices: tuple[str, ...] = ()
    default: Any = None
    alias: Optional[str] = field(default=None)

    @property
    def wire_name(self) -> str:
        return self.alias or to_camel(self.name)

    def default_value(self) -> Any:
        if self.type is FieldType.REF_LIST:
            return []
        return self.default


RULES: dict[EntityKind, tuple[FieldRule, ...]] = {
    EntityKind.ACCOUNT: (
        FieldRule("external_id", FieldType.TEXT, required=True, unique=True),
        FieldRule("email", FieldType.TEXT, required=True, unique=True),
        FieldRule("first_name", FieldType.TEXT, required=True),
        FieldRule("last_name", FieldType.TEXT, required=True),
        FieldRule("username", FieldType.TEXT, required=True, unique=True),
        FieldRule("profile_picture", FieldType.TEXT, default=""),
        FieldRule("banner_image", FieldType.TEXT, default=""),
        FieldRule("bio", FieldType.TEXT, default="", max_length=BIO_MAX_LENGTH),
        FieldRule("location", FieldType.TEXT, default=""),
        FieldRule("followers", FieldType.REF_LIST),
        FieldRule("following", FieldType.REF_LIST),
    ),
    EntityKind.POST: (
        FieldRule("user", FieldType.REF, required=True),
        FieldRule("content", FieldType.TEXT, nullable=True, max_length=CONTENT_MAX_LENGTH),
        FieldRule("image", FieldType.TEXT, default=""),
        FieldRule("likes", FieldType.REF_LIST),
        FieldRule("comments", FieldType.REF_LIST),
    ),
    EntityKind.COMMENT: (
        FieldRule("user", FieldType.REF, required=True),
        FieldRule("post", FieldType.REF, required=True),
        FieldRule("content", FieldType.TEXT, required=True, max_length=CONTENT_MAX_LENGTH),
        FieldRule("likes", FieldType.REF_LIST),
    ),
    EntityKind.NOTIFICATION: (
        FieldRule("from_user", FieldType.REF, required=True, alias="from"),
        FieldRule("to_user", FieldType.REF, required=True, alias="to"),
        FieldRule(
            "type",
            FieldType.ENUM,
            required=True,
            choices=tuple(t.value for t in NotificationType),
        ),
        FieldRule("post", FieldType.REF, nullable=True),
        FieldRule("comment", FieldType.REF, nullable=True),
    ),
}

_BY_NAME = {kind: {rule.name: rule for rule in rules} for kind, rules in RULES.items()}
_BY_WIRE_NAME = {kind: {rule.wire_name: rule.name for rule in rules} for kind, rules in RULES.items()}


def rules_for(kind: EntityKind) -> dict[str, FieldRule]:
    return _BY_NAME[kind]


def canonical_name(kind: EntityKind, key: str) -> Optional[str]:
    """Map a snake_case or camelCase key to the field name, or None if unknown."""
    if key in _BY_NAME[kind]:
        return key
    return _BY_WIRE_NAME[kind].get(key)


def unique_fields(kind: EntityKind) -> tuple[str, ...]:
    return tuple(rule.name for rule in RULES[kind] if rule.unique)


def sequence_fields(kind: EntityKind) -> tuple[str, ...]:
    return tuple(rule.name for rule in RULES[kind] if rule.type is FieldType.REF_LIST)
