"""
Comment Service

Threaded comments on videos. Replies may nest to any depth; a thread is
assembled in memory from the video's reply rows so no lazy loads happen
while rendering it.
"""

import logging
from collections import defaultdict

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.exceptions import AuthorizationError, CommentNotFoundError, ValidationError, VideoNotFoundError
from videotube.models.comment import Comment
from videotube.models.like import Like
from videotube.models.video import Video
from videotube.utils.clock import utcnow

logger = logging.getLogger(__name__)

RepliesByParent = dict[int, list[Comment]]


class CommentService:
    """Service for managing comments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_comment(
        self,
        video_id: int,
        user_id: int,
        body: str,
        parent_id: int | None = None,
    ) -> Comment:
        """
        Create a comment, or a reply when ``parent_id`` is given.

        Args:
            video_id: ID of the video being commented on
            user_id: ID of the author
            body: Comment text
            parent_id: Optional parent comment ID for replies

        Returns:
            Created comment with its author loaded

        Raises:
            VideoNotFoundError: If the video does not exist
            CommentNotFoundError: If the parent comment does not exist
            ValidationError: If the parent belongs to another video
        """
        if await self.db.get(Video, video_id) is None:
            raise VideoNotFoundError(video_id)

        if parent_id is not None:
            parent = await self.db.get(Comment, parent_id)
            if parent is None:
                raise CommentNotFoundError(parent_id)
            if parent.video_id != video_id:
                raise ValidationError("Parent comment belongs to a different video", field="parent_id")

        comment = Comment(video_id=video_id, user_id=user_id, body=body.strip(), parent_id=parent_id)
        self.db.add(comment)
        await self.db.commit()

        logger.info(f"Comment created: id={comment.id}, video={video_id}, user={user_id}, parent={parent_id}")
        return await self.get_comment(comment.id)

    async def get_comment(self, comment_id: int) -> Comment:
        """Get a comment by ID with its author loaded."""
        result = await self.db.execute(
            select(Comment).where(Comment.id == comment_id).execution_options(populate_existing=True)
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            raise CommentNotFoundError(comment_id)
        return comment

    async def get_video_comments(
        self,
        video_id: int,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Comment], RepliesByParent]:
        """
        Get a page of top-level comments (newest first) and the video's replies.

        Returns:
            Tuple of (top-level comments, replies grouped by parent id, oldest first)
        """
        if await self.db.get(Video, video_id) is None:
            raise VideoNotFoundError(video_id)

        result = await self.db.execute(
            select(Comment)
            .where(Comment.video_id == video_id, Comment.parent_id.is_(None))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .offset(skip)
            .limit(limit)
        )
        comments = list(result.scalars().all())
        return comments, await self._replies_by_parent(video_id)

    async def get_comment_count(self, video_id: int) -> int:
        """Number of top-level comments on a video."""
        result = await self.db.execute(
            select(func.count(Comment.id)).where(Comment.video_id == video_id, Comment.parent_id.is_(None))
        )
        return result.scalar() or 0

    async def get_thread(self, comment_id: int) -> tuple[Comment, RepliesByParent]:
        """A comment together with the replies beneath it."""
        comment = await self.get_comment(comment_id)
        return comment, await self._replies_by_parent(comment.video_id)

    async def get_like_counts(self, comment_ids: list[int]) -> dict[int, int]:
        if not comment_ids:
            return {}
        result = await self.db.execute(
            select(Like.comment_id, func.count(Like.id)).where(Like.comment_id.in_(comment_ids)).group_by(Like.comment_id)
        )
        return {comment_id: count for comment_id, count in result.all()}

    async def update_comment(self, comment_id: int, user_id: int, body: str) -> Comment:
        """
        Update a comment's text.

        Only the original author can update their comment.
        """
        comment = await self.get_comment(comment_id)
        if comment.user_id != user_id:
            raise AuthorizationError("Only the author can edit this comment")

        comment.body = body.strip()
        comment.is_edited = True
        comment.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"Comment updated: id={comment_id}")
        return await self.get_comment(comment_id)

    async def delete_comment(self, comment_id: int, user_id: int) -> Comment:
        """
        Delete a comment together with every reply beneath it.

        The author and the owner of the video may delete a comment. Likes on
        the deleted comments go with them.

        Returns:
            The deleted comment
        """
        comment = await self.get_comment(comment_id)
        video_owner_id = await self.db.scalar(select(Video.owner_id).where(Video.id == comment.video_id))
        if user_id not in (comment.user_id, video_owner_id):
            raise AuthorizationError("Only the author or the video owner can delete this comment")

        replies = await self._replies_by_parent(comment.video_id)
        subtree_ids = [comment.id, *(c.id for c in self.walk_replies(comment.id, replies))]

        await self.db.execute(delete(Like).where(Like.comment_id.in_(subtree_ids)))
        await self.db.execute(delete(Comment).where(Comment.id.in_(subtree_ids)))
        await self.db.commit()

        logger.info(f"Comment deleted: id={comment_id}, removed={len(subtree_ids)}, by user={user_id}")
        return comment

    @staticmethod
    def walk_replies(comment_id: int, replies: RepliesByParent):
        """Yield every descendant of a comment, depth first."""
        stack = list(reversed(replies.get(comment_id, [])))
        while stack:
            reply = stack.pop()
            yield reply
            stack.extend(reversed(replies.get(reply.id, [])))

    # ============== Private Methods ==============

    async def _replies_by_parent(self, video_id: int) -> RepliesByParent:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.video_id == video_id, Comment.parent_id.is_not(None))
            .order_by(Comment.created_at, Comment.id)
        )
        grouped: RepliesByParent = defaultdict(list)
        for reply in result.scalars().all():
            grouped[reply.parent_id].append(reply)
        return grouped
