"""
NotificationDeriver: one Notification row per notifiable graph mutation.

Derivation is not idempotent: calling derive_like twice for the
same logical like yields two independent rows. Callers that want
at-most-once semantics must de-duplicate upstream.
"""
import logging
from typing import Optional

from socialgraph.entity_store import EntityStore
from socialgraph.schemas import EntityKind, NotificationRecord, NotificationType
from socialgraph.telemetry import NOTIFICATIONS_DERIVED_TOTAL

logger = logging.getLogger(__name__)


class NotificationDeriver:
    def __init__(self, entities: EntityStore) -> None:
        self._entities = entities

    async def derive_follow(self, from_id: str, to_id: str) -> NotificationRecord:
        return await self._derive(NotificationType.FOLLOW, from_id, to_id)

    async def derive_like(
        self,
        from_id: str,
        to_id: str,
        post_id: str,
        comment_id: Optional[str] = None,
    ) -> NotificationRecord:
        """comment_id is set when the like targets a comment rather than the post itself."""
        return await self._derive(NotificationType.LIKE, from_id, to_id, post_id, comment_id)

    async def derive_comment(
        self,
        from_id: str,
        to_id: str,
        post_id: str,
        comment_id: str,
    ) -> NotificationRecord:
        return await self._derive(NotificationType.COMMENT, from_id, to_id, post_id, comment_id)

    async def _derive(
        self,
        type_: NotificationType,
        from_id: str,
        to_id: str,
        post_id: Optional[str] = None,
        comment_id: Optional[str] = None,
    ) -> NotificationRecord:
        notification = await self._entities.create(
            EntityKind.NOTIFICATION,
            {
                "from_user": from_id,
                "to_user": to_id,
                "type": type_,
                "post": post_id,
                "comment": comment_id,
            },
        )
        NOTIFICATIONS_DERIVED_TOTAL.labels(type=type_.value).inc()
        logger.info("Derived %s notification %s → %s", type_.value, from_id, to_id)
        return notification
