"""
Tests for threaded comments.
"""

from unittest.mock import AsyncMock

import pytest
from conftest import get_auth_headers
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from main import app
from videotube.exceptions import AuthorizationError, CommentNotFoundError, ValidationError, VideoNotFoundError
from videotube.models.comment import Comment
from videotube.models.like import Like
from videotube.models.user import User
from videotube.models.video import Video
from videotube.services.comment_service import CommentService
from videotube.services.websocket_manager import MessageType, get_websocket_manager


@pytest.fixture
def ws_manager():
    manager = AsyncMock()
    app.dependency_overrides[get_websocket_manager] = lambda: manager
    yield manager
    app.dependency_overrides.pop(get_websocket_manager, None)


class TestCommentService:
    """Tests for CommentService."""

    async def test_create_comment(self, test_db: AsyncSession, viewer: User, video: Video):
        """Test creating a top-level comment."""
        service = CommentService(test_db)

        comment = await service.create_comment(video_id=video.id, user_id=viewer.id, body="  Great video!  ")

        assert comment.id is not None
        assert comment.body == "Great video!"
        assert comment.parent_id is None
        assert comment.user.username == "viewer"
        assert comment.is_edited is False

    async def test_create_reply_to_reply(self, test_db: AsyncSession, owner: User, viewer: User, video: Video):
        """Replies can nest below other replies."""
        service = CommentService(test_db)
        top = await service.create_comment(video.id, viewer.id, "Top")
        reply = await service.create_comment(video.id, owner.id, "Reply", parent_id=top.id)
        nested = await service.create_comment(video.id, viewer.id, "Nested", parent_id=reply.id)

        _, replies = await service.get_thread(top.id)

        assert [c.body for c in service.walk_replies(top.id, replies)] == ["Reply", "Nested"]
        assert nested.parent_id == reply.id

    async def test_create_comment_missing_video(self, test_db: AsyncSession, viewer: User):
        with pytest.raises(VideoNotFoundError):
            await CommentService(test_db).create_comment(999, viewer.id, "Hello")

    async def test_create_reply_missing_parent(self, test_db: AsyncSession, viewer: User, video: Video):
        with pytest.raises(CommentNotFoundError):
            await CommentService(test_db).create_comment(video.id, viewer.id, "Hello", parent_id=999)

    async def test_reply_parent_on_other_video(self, test_db: AsyncSession, make_video, owner: User, viewer: User, video: Video):
        """A reply must stay on its parent's video."""
        other = await make_video(owner, title="Other")
        service = CommentService(test_db)
        parent = await service.create_comment(other.id, viewer.id, "Elsewhere")

        with pytest.raises(ValidationError):
            await service.create_comment(video.id, viewer.id, "Reply", parent_id=parent.id)

    async def test_get_video_comments_newest_first(self, test_db: AsyncSession, viewer: User, video: Video):
        service = CommentService(test_db)
        for i in range(3):
            await service.create_comment(video.id, viewer.id, f"Comment {i}")

        comments, _ = await service.get_video_comments(video.id)

        assert [c.body for c in comments] == ["Comment 2", "Comment 1", "Comment 0"]
        assert await service.get_comment_count(video.id) == 3

    async def test_update_comment_by_author(self, test_db: AsyncSession, viewer: User, video: Video):
        service = CommentService(test_db)
        comment = await service.create_comment(video.id, viewer.id, "Original")

        updated = await service.update_comment(comment.id, viewer.id, "Edited")

        assert updated.body == "Edited"
        assert updated.is_edited is True

    async def test_update_comment_by_other_user(self, test_db: AsyncSession, owner: User, viewer: User, video: Video):
        """Even the video owner cannot edit someone else's comment."""
        service = CommentService(test_db)
        comment = await service.create_comment(video.id, viewer.id, "Original")

        with pytest.raises(AuthorizationError):
            await service.update_comment(comment.id, owner.id, "Edited")

    async def test_delete_removes_subtree_and_likes(self, test_db: AsyncSession, owner: User, viewer: User, video: Video):
        """Deleting a comment removes all replies below it and their likes."""
        service = CommentService(test_db)
        top = await service.create_comment(video.id, viewer.id, "Top")
        reply = await service.create_comment(video.id, owner.id, "Reply", parent_id=top.id)
        nested = await service.create_comment(video.id, viewer.id, "Nested", parent_id=reply.id)
        sibling = await service.create_comment(video.id, viewer.id, "Sibling")
        top_id, reply_id, nested_id, sibling_id = top.id, reply.id, nested.id, sibling.id
        test_db.add_all([Like(user_id=owner.id, comment_id=nested_id), Like(user_id=owner.id, comment_id=sibling_id)])
        await test_db.commit()

        await service.delete_comment(top_id, viewer.id)

        remaining = (await test_db.execute(select(Comment.id).where(Comment.video_id == video.id))).scalars().all()
        assert remaining == [sibling_id]
        likes = (await test_db.execute(select(Like.comment_id))).scalars().all()
        assert likes == [sibling_id]
        with pytest.raises(CommentNotFoundError):
            await service.get_comment(reply_id)

    async def test_video_owner_can_delete_any_comment(self, test_db: AsyncSession, owner: User, viewer: User, video: Video):
        service = CommentService(test_db)
        comment = await service.create_comment(video.id, viewer.id, "Spam")

        await service.delete_comment(comment.id, owner.id)

        assert await service.get_comment_count(video.id) == 0

    async def test_stranger_cannot_delete(self, test_db: AsyncSession, make_user, viewer: User, video: Video):
        stranger = await make_user("stranger")
        service = CommentService(test_db)
        comment = await service.create_comment(video.id, viewer.id, "Mine")

        with pytest.raises(AuthorizationError):
            await service.delete_comment(comment.id, stranger.id)


class TestCommentRoutes:
    """Tests for comment API endpoints."""

    async def test_create_comment_broadcasts(self, client, ws_manager, viewer, video):
        response = await client.post(
            f"/api/v1/comments/{video.id}", json={"content": "First!"}, headers=get_auth_headers(viewer)
        )

        assert response.status_code == 201
        body = response.json()
        assert body["content"] == "First!"
        assert body["author"]["username"] == "viewer"
        assert body["is_owner"] is True

        ws_manager.emit_to_video.assert_awaited_once()
        video_id, event, data = ws_manager.emit_to_video.await_args.args
        assert (video_id, event) == (video.id, MessageType.COMMENT_CREATED)
        assert data["comment"]["id"] == body["id"]

    async def test_reply_broadcasts_reply_event(self, client, ws_manager, owner, viewer, video):
        top = await client.post(f"/api/v1/comments/{video.id}", json={"content": "Q?"}, headers=get_auth_headers(viewer))

        response = await client.post(
            f"/api/v1/comments/{video.id}",
            json={"content": "A!", "parent_id": top.json()["id"]},
            headers=get_auth_headers(owner),
        )

        assert response.status_code == 201
        assert ws_manager.emit_to_video.await_args.args[1] == MessageType.COMMENT_REPLY

    async def test_reply_to_comment_on_other_video(self, client, ws_manager, make_video, owner, viewer, video):
        other = await make_video(owner, title="Other")
        top = await client.post(f"/api/v1/comments/{other.id}", json={"content": "Hi"}, headers=get_auth_headers(viewer))

        response = await client.post(
            f"/api/v1/comments/{video.id}",
            json={"content": "Cross", "parent_id": top.json()["id"]},
            headers=get_auth_headers(viewer),
        )

        assert response.status_code == 400

    async def test_create_comment_requires_auth(self, client, ws_manager, video):
        response = await client.post(f"/api/v1/comments/{video.id}", json={"content": "Hi"})

        assert response.status_code == 401
        ws_manager.emit_to_video.assert_not_awaited()

    async def test_empty_comment_rejected(self, client, ws_manager, viewer, video):
        response = await client.post(f"/api/v1/comments/{video.id}", json={"content": ""}, headers=get_auth_headers(viewer))

        assert response.status_code == 422

    async def test_list_comments_with_nested_replies(self, client, test_db, ws_manager, owner, viewer, video):
        service = CommentService(test_db)
        top = await service.create_comment(video.id, viewer.id, "Top")
        reply = await service.create_comment(video.id, owner.id, "Reply", parent_id=top.id)
        await service.create_comment(video.id, viewer.id, "Nested", parent_id=reply.id)
        test_db.add(Like(user_id=owner.id, comment_id=top.id))
        await test_db.commit()

        response = await client.get(f"/api/v1/comments/{video.id}", headers=get_auth_headers(owner))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        thread = body["comments"][0]
        assert thread["like_count"] == 1
        assert thread["reply_count"] == 1
        assert thread["is_owner"] is False
        assert thread["replies"][0]["is_owner"] is True
        assert thread["replies"][0]["replies"][0]["content"] == "Nested"

    async def test_get_replies(self, client, test_db, owner, viewer, video):
        service = CommentService(test_db)
        top = await service.create_comment(video.id, viewer.id, "Top")
        await service.create_comment(video.id, owner.id, "Reply 1", parent_id=top.id)
        await service.create_comment(video.id, owner.id, "Reply 2", parent_id=top.id)

        response = await client.get(f"/api/v1/comments/c/{top.id}/replies")

        assert [r["content"] for r in response.json()] == ["Reply 1", "Reply 2"]

    async def test_update_comment(self, client, test_db, ws_manager, viewer, video):
        comment = await CommentService(test_db).create_comment(video.id, viewer.id, "Tpyo")

        response = await client.patch(
            f"/api/v1/comments/c/{comment.id}", json={"content": "Typo"}, headers=get_auth_headers(viewer)
        )

        assert response.status_code == 200
        assert response.json()["is_edited"] is True
        assert ws_manager.emit_to_video.await_args.args[1] == MessageType.COMMENT_UPDATED

    async def test_update_comment_forbidden(self, client, test_db, ws_manager, owner, viewer, video):
        comment = await CommentService(test_db).create_comment(video.id, viewer.id, "Mine")

        response = await client.patch(
            f"/api/v1/comments/c/{comment.id}", json={"content": "Yours"}, headers=get_auth_headers(owner)
        )

        assert response.status_code == 403
        assert response.json()["error"]["error_code"] == "AUTH_PERMISSION_DENIED"

    async def test_delete_comment(self, client, test_db, ws_manager, owner, viewer, video):
        service = CommentService(test_db)
        top = await service.create_comment(video.id, viewer.id, "Top")
        await service.create_comment(video.id, viewer.id, "Reply", parent_id=top.id)
        top_id, video_id = top.id, video.id

        response = await client.delete(f"/api/v1/comments/c/{top_id}", headers=get_auth_headers(owner))

        assert response.status_code == 204
        ws_manager.emit_to_video.assert_awaited_once_with(
            video_id, MessageType.COMMENT_DELETED, {"comment_id": top_id, "parent_id": None}
        )
        count = await test_db.scalar(select(func.count(Comment.id)).where(Comment.video_id == video_id))
        assert count == 0

    async def test_comments_on_missing_video(self, client):
        response = await client.get("/api/v1/comments/999")

        assert response.status_code == 404
