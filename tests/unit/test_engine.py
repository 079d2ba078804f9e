"""End-to-end mutation flows through SocialGraph on the in-process store."""

import pytest

from socialgraph.clients.memory_store import MemoryDocumentStore
from socialgraph.config import Settings
from socialgraph.engine import SocialGraph
from socialgraph.errors import NotFoundError, ValidationError
from socialgraph.schemas import CommentRecord, EntityKind, NotificationType, PostRecord


class TestLikes:
    @pytest.mark.asyncio
    async def test_like_post_notifies_author(self, graph, make_account, make_post):
        author = await make_account("author")
        fan = await make_account("fan")
        post = await make_post(author.id)

        result = await graph.like_post(fan.id, post.id)

        assert isinstance(result.target, PostRecord)
        assert result.target.likes == [fan.id]
        assert result.notification.type is NotificationType.LIKE
        assert result.notification.from_user == fan.id
        assert result.notification.to_user == author.id
        assert result.notification.post == post.id
        assert result.notification.comment is None

    @pytest.mark.asyncio
    async def test_self_like_is_not_notified(self, graph, make_account, make_post):
        author = await make_account()
        post = await make_post(author.id)

        result = await graph.like_post(author.id, post.id)

        assert result.target.likes == [author.id]
        assert result.notification is None
        assert await graph.notifications_for(author.id) == []

    @pytest.mark.asyncio
    async def test_notify_self_enabled(self, account_payload):
        graph = SocialGraph(MemoryDocumentStore(), notify_self=True)
        author = await graph.register_account(account_payload())
        post = await graph.publish_post({"user": author.id, "content": "me"})

        result = await graph.like_post(author.id, post.id)

        assert result.notification is not None
        assert result.notification.to_user == author.id

    @pytest.mark.asyncio
    async def test_like_by_unknown_account(self, graph, make_account, make_post, new_id):
        author = await make_account()
        post = await make_post(author.id)

        with pytest.raises(NotFoundError):
            await graph.like_post(new_id(), post.id)
        assert (await graph.entities.get(EntityKind.POST, post.id)).likes == []

    @pytest.mark.asyncio
    async def test_unlike_post(self, graph, make_account, make_post):
        author = await make_account("author")
        fan = await make_account("fan")
        post = await make_post(author.id)
        await graph.like_post(fan.id, post.id)
        await graph.like_post(fan.id, post.id)

        updated = await graph.unlike_post(fan.id, post.id)
        assert updated.likes == [fan.id]

    @pytest.mark.asyncio
    async def test_like_comment_notifies_comment_author(self, graph, make_account, make_post):
        author = await make_account("author")
        commenter = await make_account("commenter")
        fan = await make_account("fan")
        post = await make_post(author.id)
        comment = (await graph.comment_on_post(commenter.id, post.id, "nice")).comment

        result = await graph.like_comment(fan.id, comment.id)

        assert isinstance(result.target, CommentRecord)
        assert result.target.likes == [fan.id]
        assert result.notification.to_user == commenter.id
        assert result.notification.post == post.id
        assert result.notification.comment == comment.id


class TestComments:
    @pytest.mark.asyncio
    async def test_comment_flow(self, graph, make_account, make_post):
        author = await make_account("author")
        commenter = await make_account("commenter")
        post = await make_post(author.id)

        result = await graph.comment_on_post(commenter.id, post.id, "Great post!")

        assert result.comment.user == commenter.id
        assert result.comment.post == post.id
        assert result.post.comments == [result.comment.id]
        assert result.notification.type is NotificationType.COMMENT
        assert result.notification.to_user == author.id
        assert result.notification.comment == result.comment.id

    @pytest.mark.asyncio
    async def test_invalid_comment_writes_nothing(self, graph, make_account, make_post):
        author = await make_account("author")
        commenter = await make_account("commenter")
        post = await make_post(author.id)

        with pytest.raises(ValidationError):
            await graph.comment_on_post(commenter.id, post.id, "x" * 281)

        assert (await graph.entities.get(EntityKind.POST, post.id)).comments == []
        assert await graph.entities.find_many(EntityKind.COMMENT) == []
        assert await graph.notifications_for(author.id) == []

    @pytest.mark.asyncio
    async def test_comment_on_missing_post(self, graph, make_account, new_id):
        commenter = await make_account()
        with pytest.raises(NotFoundError) as exc_info:
            await graph.comment_on_post(commenter.id, new_id(), "hello")
        assert exc_info.value.kind == "post"


class TestFollowFlow:
    @pytest.mark.asyncio
    async def test_follow_notifies_followee(self, graph, make_account):
        alice = await make_account("alice")
        bob = await make_account("bob")

        result = await graph.follow(alice.id, bob.id)

        assert result.follower.following == [bob.id]
        assert result.followee.followers == [alice.id]
        assert result.notification.type is NotificationType.FOLLOW
        assert result.notification.post is None

        unfollowed, _ = await graph.unfollow(alice.id, bob.id)
        assert unfollowed.following == []

    @pytest.mark.asyncio
    async def test_update_account(self, graph, make_account):
        account = await make_account(bio="old")
        updated = await graph.update_account(account.id, {"bio": "new", "location": "Porto"})

        assert updated.bio == "new"
        assert updated.location == "Porto"
        assert updated.updated_at > account.updated_at


class TestPosts:
    @pytest.mark.asyncio
    async def test_publish_for_missing_author(self, graph, new_id):
        with pytest.raises(NotFoundError) as exc_info:
            await graph.publish_post({"user": new_id(), "content": "hi"})
        assert exc_info.value.kind == "account"
        assert await graph.entities.find_many(EntityKind.POST) == []

    @pytest.mark.asyncio
    async def test_publish_validates_before_lookup(self, graph, new_id):
        with pytest.raises(ValidationError):
            await graph.publish_post({"user": new_id(), "content": "x" * 281})

    @pytest.mark.asyncio
    async def test_delete_post_does_not_cascade(self, graph, make_account, make_post):
        author = await make_account("author")
        commenter = await make_account("commenter")
        post = await make_post(author.id)
        result = await graph.comment_on_post(commenter.id, post.id, "hi")

        await graph.delete_post(post.id)

        assert await graph.entities.find_by_id(EntityKind.POST, post.id) is None
        assert await graph.entities.get(EntityKind.COMMENT, result.comment.id)
        notifications = await graph.notifications_for(author.id)
        assert [n.post for n in notifications] == [post.id]


class TestNotificationsFor:
    @pytest.mark.asyncio
    async def test_newest_first_and_limit(self, graph, make_account, make_post):
        author = await make_account("author")
        fans = [await make_account(f"fan{i}") for i in range(3)]
        post = await make_post(author.id)
        for fan in fans:
            await graph.like_post(fan.id, post.id)
            await graph.follow(fan.id, author.id)

        notifications = await graph.notifications_for(author.id)
        stamps = [n.created_at for n in notifications]
        assert len(notifications) == 6
        assert stamps == sorted(stamps, reverse=True)

        assert len(await graph.notifications_for(author.id, limit=2)) == 2
        assert await graph.notifications_for(fans[0].id) == []


class TestFromSettings:
    @pytest.mark.asyncio
    async def test_memory_backend(self, account_payload):
        graph = SocialGraph.from_settings(Settings(store_backend="memory", notify_self=True))
        await graph.start()
        try:
            assert isinstance(graph.store, MemoryDocumentStore)
            account = await graph.register_account(account_payload())
            assert account.username == "alice"
        finally:
            await graph.stop()
