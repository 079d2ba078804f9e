"""
Exception hierarchy for the consistency engine.

Every failure is raised synchronously to the caller. Nothing here is retried
by the engine itself; retry policy belongs to the caller or the store adapter.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class RejectedField:
    """One offending field reported by the validator."""
    field: str
    reason: str   # missing | invalid_type | invalid_format | too_long | not_allowed | duplicate
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class SocialGraphError(Exception):
    """Base exception for engine errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self), "details": self.details}


class ValidationError(SocialGraphError):
    """Missing, malformed, too long or out-of-enum field. Nothing was written."""

    code = "VALIDATION_ERROR"

    def __init__(self, rejected: list[RejectedField], code: Optional[str] = None) -> None:
        self.rejected = list(rejected)
        fields = ", ".join(r.field for r in self.rejected)
        super().__init__(
            f"Rejected field(s): {fields}",
            code=code or self.code,
            details={"rejected": [r.to_dict() for r in self.rejected]},
        )

    @property
    def fields(self) -> list[str]:
        return [r.field for r in self.rejected]


class UniquenessError(ValidationError):
    """A unique field (external_id, email, username) collides with a stored entity."""

    code = "UNIQUENESS_ERROR"

    @classmethod
    def for_field(cls, field: str, value: Any = None) -> "UniquenessError":
        shown = f" '{value}'" if value is not None else ""
        return cls([RejectedField(field, "duplicate", f"{field}{shown} already exists")])


class NotFoundError(SocialGraphError):
    """The operation targets an identifier that is not in the store."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(
            f"{kind} with id '{entity_id}' not found",
            code="NOT_FOUND",
            details={"kind": kind, "id": entity_id},
        )
        self.kind = kind
        self.entity_id = entity_id


class StoreError(SocialGraphError):
    """The underlying persistence call failed."""

    def __init__(self, message: str, transient: bool = False) -> None:
        super().__init__(message, code="STORE_ERROR", details={"transient": transient})
        self.transient = transient
