"""
RelationshipIndex: directed edges stored as ordered reference sequences
embedded in the owning entity.

  followers      Account.followers      ← accounts following the owner
  following      Account.following      → accounts the owner follows
  post_likes     Post.likes             ← accounts that liked the post
  post_comments  Post.comments          → comments made on the post
  comment_likes  Comment.likes          ← accounts that liked the comment

Sequences are multisets: appending the same id twice keeps both entries,
and add_edge never checks that the target still exists. follow/unfollow
write both sides of the account edge in one atomic store call; the raw
add_edge on followers/following stays a single-sided write.
"""
import logging
from enum import Enum
from typing import NamedTuple

from socialgraph.clients.document_store import DocumentStore, EdgeAction, EdgeOp
from socialgraph.clock import utc_now
from socialgraph.entity_store import to_record
from socialgraph.errors import NotFoundError
from socialgraph.schemas import AccountRecord, EntityKind, Record
from socialgraph.telemetry import EDGE_MUTATIONS_TOTAL
from socialgraph.validator import ConstraintValidator

logger = logging.getLogger(__name__)


class EdgeKind(str, Enum):
    FOLLOWERS = "followers"
    FOLLOWING = "following"
    POST_LIKES = "post_likes"
    POST_COMMENTS = "post_comments"
    COMMENT_LIKES = "comment_likes"


class EdgeSpec(NamedTuple):
    owner: EntityKind
    field: str
    target: EntityKind


EDGES: dict[EdgeKind, EdgeSpec] = {
    EdgeKind.FOLLOWERS: EdgeSpec(EntityKind.ACCOUNT, "followers", EntityKind.ACCOUNT),
    EdgeKind.FOLLOWING: EdgeSpec(EntityKind.ACCOUNT, "following", EntityKind.ACCOUNT),
    EdgeKind.POST_LIKES: EdgeSpec(EntityKind.POST, "likes", EntityKind.ACCOUNT),
    EdgeKind.POST_COMMENTS: EdgeSpec(EntityKind.POST, "comments", EntityKind.COMMENT),
    EdgeKind.COMMENT_LIKES: EdgeSpec(EntityKind.COMMENT, "likes", EntityKind.ACCOUNT),
}


class RelationshipIndex:
    def __init__(self, store: DocumentStore, validator: ConstraintValidator) -> None:
        self._store = store
        self._validator = validator

    async def add_edge(self, kind: EdgeKind, owner_id: str, target_id: str) -> Record:
        """Append target_id to the owner's sequence. No dedup, no existence check on the target."""
        spec = EDGES[kind]
        self._validator.check_reference(spec.field, target_id)
        (doc,) = await self._store.apply_edges(
            [EdgeOp(spec.owner, owner_id, spec.field, target_id)], utc_now()
        )
        EDGE_MUTATIONS_TOTAL.labels(edge=kind.value, action="append").inc()
        logger.debug("Edge %s: %s += %s", kind.value, owner_id, target_id)
        return to_record(spec.owner, doc)

    async def remove_edge(
        self,
        kind: EdgeKind,
        owner_id: str,
        target_id: str,
        *,
        all_occurrences: bool = False,
    ) -> Record:
        """Remove the first (default) or every occurrence of target_id."""
        spec = EDGES[kind]
        action = EdgeAction.REMOVE_ALL if all_occurrences else EdgeAction.REMOVE_FIRST
        (doc,) = await self._store.apply_edges(
            [EdgeOp(spec.owner, owner_id, spec.field, target_id, action)], utc_now()
        )
        EDGE_MUTATIONS_TOTAL.labels(edge=kind.value, action=action.value).inc()
        logger.debug("Edge %s: %s -= %s (%s)", kind.value, owner_id, target_id, action.value)
        return to_record(spec.owner, doc)

    async def edges(self, kind: EdgeKind, owner_id: str) -> list[str]:
        spec = EDGES[kind]
        doc = await self._store.get(spec.owner, owner_id)
        if doc is None:
            raise NotFoundError(spec.owner.value, owner_id)
        return list(doc.get(spec.field) or [])

    async def follow(self, follower_id: str, followee_id: str) -> tuple[AccountRecord, AccountRecord]:
        """
        Write follower.following += followee and followee.followers += follower
        atomically. Returns (follower, followee).
        """
        return await self._both_sides(follower_id, followee_id, EdgeAction.APPEND)

    async def unfollow(
        self,
        follower_id: str,
        followee_id: str,
        *,
        all_occurrences: bool = False,
    ) -> tuple[AccountRecord, AccountRecord]:
        action = EdgeAction.REMOVE_ALL if all_occurrences else EdgeAction.REMOVE_FIRST
        return await self._both_sides(follower_id, followee_id, action)

    async def prune(self, kind: EdgeKind, owner_id: str) -> int:
        """
        Drop references to entities that no longer exist from one owner's
        sequence. Returns the number of entries removed. Nothing calls this
        implicitly; deletes never cascade.
        """
        spec = EDGES[kind]
        sequence = await self.edges(kind, owner_id)
        missing = [
            target
            for target in dict.fromkeys(sequence)
            if await self._store.get(spec.target, target) is None
        ]
        if not missing:
            return 0

        ops = [
            EdgeOp(spec.owner, owner_id, spec.field, target, EdgeAction.REMOVE_ALL)
            for target in missing
        ]
        await self._store.apply_edges(ops, utc_now())
        removed = sum(1 for target in sequence if target in missing)
        EDGE_MUTATIONS_TOTAL.labels(edge=kind.value, action="prune").inc(removed)
        logger.info("Pruned %d dangling %s reference(s) from %s", removed, kind.value, owner_id)
        return removed

    async def _both_sides(
        self,
        follower_id: str,
        followee_id: str,
        action: EdgeAction,
    ) -> tuple[AccountRecord, AccountRecord]:
        self._validator.check_reference("following", followee_id)
        self._validator.check_reference("followers", follower_id)
        ops = [
            EdgeOp(EntityKind.ACCOUNT, follower_id, "following", followee_id, action),
            EdgeOp(EntityKind.ACCOUNT, followee_id, "followers", follower_id, action),
        ]
        docs = await self._store.apply_edges(ops, utc_now())
        EDGE_MUTATIONS_TOTAL.labels(edge=EdgeKind.FOLLOWING.value, action=action.value).inc()
        EDGE_MUTATIONS_TOTAL.labels(edge=EdgeKind.FOLLOWERS.value, action=action.value).inc()

        by_id = {doc["id"]: doc for doc in docs}
        follower = to_record(EntityKind.ACCOUNT, by_id[follower_id])
        followee = to_record(EntityKind.ACCOUNT, by_id[followee_id])
        return follower, followee
