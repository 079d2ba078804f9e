"""
SocialGraph: the mutation pipeline wired end to end.

  request → ConstraintValidator → EntityStore write
          → RelationshipIndex update   (if the mutation touches an edge)
          → NotificationDeriver        (if the mutation is notifiable)

Each step is its own store call; there is no transaction spanning them.
A failure part-way leaves the earlier writes in place and is raised to the
caller unchanged.
"""
import logging
from typing import Any, Mapping, NamedTuple, Optional, Union

from opentelemetry import trace

from socialgraph.clients.document_store import DocumentStore, build_store
from socialgraph.config import Settings, settings
from socialgraph.entity_store import EntityStore
from socialgraph.notifications import NotificationDeriver
from socialgraph.relationships import EdgeKind, RelationshipIndex
from socialgraph.schemas import (
    AccountRecord,
    CommentRecord,
    EntityKind,
    NotificationRecord,
    PostRecord,
)
from socialgraph.validator import ConstraintValidator

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class FollowResult(NamedTuple):
    follower: AccountRecord
    followee: AccountRecord
    notification: Optional[NotificationRecord]


class LikeResult(NamedTuple):
    target: Union[PostRecord, CommentRecord]
    notification: Optional[NotificationRecord]


class CommentResult(NamedTuple):
    comment: CommentRecord
    post: PostRecord
    notification: Optional[NotificationRecord]


class SocialGraph:
    def __init__(self, store: DocumentStore, *, notify_self: bool = False) -> None:
        self.store = store
        self.validator = ConstraintValidator(store)
        self.entities = EntityStore(store, self.validator)
        self.relationships = RelationshipIndex(store, self.validator)
        self.notifications = NotificationDeriver(self.entities)
        self._notify_self = notify_self

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "SocialGraph":
        return cls(build_store(config), notify_self=config.notify_self)

    async def start(self) -> None:
        await self.store.init()

    async def stop(self) -> None:
        await self.store.close()

    # ─────────────────────── Accounts ─────────────────────────────────────

    async def register_account(self, fields: Mapping[str, Any]) -> AccountRecord:
        with tracer.start_as_current_span("register_account"):
            return await self.entities.create(EntityKind.ACCOUNT, fields)

    async def update_account(self, account_id: str, patch: Mapping[str, Any]) -> AccountRecord:
        with tracer.start_as_current_span("update_account"):
            return await self.entities.update(EntityKind.ACCOUNT, account_id, patch)

    async def follow(self, follower_id: str, followee_id: str) -> FollowResult:
        with tracer.start_as_current_span("follow") as span:
            span.set_attribute("follow.follower_id", follower_id)
            span.set_attribute("follow.followee_id", followee_id)

            follower, followee = await self.relationships.follow(follower_id, followee_id)
            notification = await self._notify(
                follower_id, followee_id, self.notifications.derive_follow
            )
            logger.info("%s followed %s", follower_id, followee_id)
            return FollowResult(follower, followee, notification)

    async def unfollow(self, follower_id: str, followee_id: str) -> tuple[AccountRecord, AccountRecord]:
        with tracer.start_as_current_span("unfollow"):
            return await self.relationships.unfollow(follower_id, followee_id)

    # ─────────────────────── Posts ────────────────────────────────────────

    async def publish_post(self, fields: Mapping[str, Any]) -> PostRecord:
        """Create a post after checking its author exists."""
        with tracer.start_as_current_span("publish_post") as span:
            candidate = self.validator.normalize(EntityKind.POST, fields)
            await self.validator.check(EntityKind.POST, candidate)
            await self.entities.get(EntityKind.ACCOUNT, candidate["user"])

            post = await self.entities.create(EntityKind.POST, candidate)
            span.set_attribute("post.id", post.id)
            return post

    async def delete_post(self, post_id: str) -> None:
        """Remove the post only. Its comments and notifications stay retrievable."""
        with tracer.start_as_current_span("delete_post"):
            await self.entities.delete(EntityKind.POST, post_id)

    async def like_post(self, account_id: str, post_id: str) -> LikeResult:
        with tracer.start_as_current_span("like_post"):
            await self.entities.get(EntityKind.ACCOUNT, account_id)
            post = await self.relationships.add_edge(EdgeKind.POST_LIKES, post_id, account_id)
            notification = await self._notify(
                account_id, post.user, self.notifications.derive_like, post.id
            )
            return LikeResult(post, notification)

    async def unlike_post(self, account_id: str, post_id: str) -> PostRecord:
        with tracer.start_as_current_span("unlike_post"):
            return await self.relationships.remove_edge(EdgeKind.POST_LIKES, post_id, account_id)

    async def comment_on_post(
        self,
        account_id: str,
        post_id: str,
        content: Optional[str],
    ) -> CommentResult:
        with tracer.start_as_current_span("comment_on_post") as span:
            await self.entities.get(EntityKind.ACCOUNT, account_id)
            await self.entities.get(EntityKind.POST, post_id)

            comment = await self.entities.create(
                EntityKind.COMMENT,
                {"user": account_id, "post": post_id, "content": content},
            )
            span.set_attribute("comment.id", comment.id)
            post = await self.relationships.add_edge(EdgeKind.POST_COMMENTS, post_id, comment.id)
            notification = await self._notify(
                account_id, post.user, self.notifications.derive_comment, post.id, comment.id
            )
            return CommentResult(comment, post, notification)

    async def like_comment(self, account_id: str, comment_id: str) -> LikeResult:
        with tracer.start_as_current_span("like_comment"):
            await self.entities.get(EntityKind.ACCOUNT, account_id)
            comment = await self.relationships.add_edge(EdgeKind.COMMENT_LIKES, comment_id, account_id)
            notification = await self._notify(
                account_id,
                comment.user,
                self.notifications.derive_like,
                comment.post,
                comment.id,
            )
            return LikeResult(comment, notification)

    # ─────────────────────── Notifications ────────────────────────────────

    async def notifications_for(
        self,
        account_id: str,
        limit: Optional[int] = None,
    ) -> list[NotificationRecord]:
        """Notifications addressed to account_id, newest first."""
        return await self.entities.find_many(
            EntityKind.NOTIFICATION,
            {"to_user": account_id},
            order_by=[("created_at", "desc")],
            limit=limit,
        )

    async def _notify(self, from_id: str, to_id: str, derive, *args: str) -> Optional[NotificationRecord]:  # noqa: ANN001
        if from_id == to_id and not self._notify_self:
            logger.debug("Skipping self-notification for %s", from_id)
            return None
        return await derive(from_id, to_id, *args)
