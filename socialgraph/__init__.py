"""Social-graph consistency engine: validated entities, embedded edges, derived notifications."""
from socialgraph.engine import SocialGraph
from socialgraph.entity_store import EntityStore
from socialgraph.errors import (
    NotFoundError,
    RejectedField,
    SocialGraphError,
    StoreError,
    UniquenessError,
    ValidationError,
)
from socialgraph.notifications import NotificationDeriver
from socialgraph.relationships import EdgeKind, RelationshipIndex
from socialgraph.schemas import EntityKind, NotificationType
from socialgraph.validator import ConstraintValidator

__all__ = [
    "ConstraintValidator",
    "EdgeKind",
    "EntityKind",
    "EntityStore",
    "NotFoundError",
    "NotificationDeriver",
    "NotificationType",
    "RejectedField",
    "RelationshipIndex",
    "SocialGraph",
    "SocialGraphError",
    "StoreError",
    "UniquenessError",
    "ValidationError",
]
