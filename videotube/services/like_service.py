"""
Like Service

One like per user and target. Toggling an existing like removes it.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.exceptions import CommentNotFoundError, TweetNotFoundError, VideoNotFoundError
from videotube.models.comment import Comment
from videotube.models.like import Like
from videotube.models.tweet import Tweet
from videotube.models.video import Video

logger = logging.getLogger(__name__)


class LikeService:
    """Service for video, comment and tweet likes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def toggle_video_like(self, video_id: int, user_id: int) -> tuple[bool, int]:
        """
        Like or unlike a video.

        Returns:
            Tuple of (liked after the toggle, current like count)
        """
        if await self.db.get(Video, video_id) is None:
            raise VideoNotFoundError(video_id)

        liked = await self._toggle(Like.video_id, video_id, user_id)
        count = await self.db.scalar(select(func.count(Like.id)).where(Like.video_id == video_id))
        logger.info(f"Video {'liked' if liked else 'unliked'}: video={video_id}, user={user_id}")
        return liked, count or 0

    async def toggle_comment_like(self, comment_id: int, user_id: int) -> tuple[bool, int, int]:
        """
        Like or unlike a comment.

        Returns:
            Tuple of (liked after the toggle, current like count, the comment's video id)
        """
        comment = await self.db.get(Comment, comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)
        video_id = comment.video_id

        liked = await self._toggle(Like.comment_id, comment_id, user_id)
        count = await self.db.scalar(select(func.count(Like.id)).where(Like.comment_id == comment_id))
        logger.info(f"Comment {'liked' if liked else 'unliked'}: comment={comment_id}, user={user_id}")
        return liked, count or 0, video_id

    async def toggle_tweet_like(self, tweet_id: int, user_id: int) -> tuple[bool, int]:
        if await self.db.get(Tweet, tweet_id) is None:
            raise TweetNotFoundError(tweet_id)

        liked = await self._toggle(Like.tweet_id, tweet_id, user_id)
        count = await self.db.scalar(select(func.count(Like.id)).where(Like.tweet_id == tweet_id))
        logger.info(f"Tweet {'liked' if liked else 'unliked'}: tweet={tweet_id}, user={user_id}")
        return liked, count or 0

    async def get_liked_videos(self, user_id: int) -> list[Video]:
        """Videos the user liked, most recently liked first."""
        result = await self.db.execute(
            select(Video)
            .join(Like, Like.video_id == Video.id)
            .where(Like.user_id == user_id, Video.is_published.is_(True))
            .order_by(Like.created_at.desc(), Like.id.desc())
        )
        return list(result.scalars().all())

    # ============== Private Methods ==============

    async def _toggle(self, target_column, target_id: int, user_id: int) -> bool:
        existing = await self.db.scalar(select(Like).where(target_column == target_id, Like.user_id == user_id))
        if existing is not None:
            await self.db.delete(existing)
            await self.db.commit()
            return False

        self.db.add(Like(user_id=user_id, **{target_column.key: target_id}))
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent request liked it first
            await self.db.rollback()
        return True
