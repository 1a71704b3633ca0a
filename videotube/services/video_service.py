"""
Video Service

Catalog operations: publishing, listing, search, detail and owner-only
updates. The ``views`` counter is never written here; see ``ViewService``.
"""

import logging
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.exceptions import AuthorizationError, UserNotFoundError, VideoNotFoundError
from videotube.models.like import Like
from videotube.models.subscription import Subscription
from videotube.models.user import User
from videotube.models.video import Video
from videotube.schemas.video import VideoCreate, VideoUpdate
from videotube.utils.clock import utcnow

logger = logging.getLogger(__name__)


class VideoService:
    """Service for managing videos."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def publish_video(self, owner_id: int, data: VideoCreate) -> Video:
        video = Video(owner_id=owner_id, **data.model_dump())
        self.db.add(video)
        await self.db.commit()

        logger.info(f"Video published: id={video.id}, owner={owner_id}")
        return await self.get_video(video.id, viewer_id=owner_id)

    async def get_video(self, video_id: int, viewer_id: int | None = None) -> Video:
        """
        Get a video with its owner loaded.

        Unpublished videos are only visible to their owner.

        Raises:
            VideoNotFoundError: If the video does not exist or is hidden from the viewer
        """
        result = await self.db.execute(
            select(Video).where(Video.id == video_id).execution_options(populate_existing=True)
        )
        video = result.scalar_one_or_none()
        if video is None or (not video.is_published and not video.is_owned_by(viewer_id)):
            raise VideoNotFoundError(video_id)
        return video

    async def get_video_detail(self, video_id: int, viewer_id: int | None = None) -> dict[str, Any]:
        """
        Video detail with engagement figures for the viewer.

        Returns:
            Dictionary with the video, ``like_count``, ``is_liked``, and the
            owner's ``subscriber_count`` and ``is_subscribed``
        """
        video = await self.get_video(video_id, viewer_id)

        like_count = await self.db.scalar(select(func.count(Like.id)).where(Like.video_id == video_id))
        subscriber_count = await self.db.scalar(
            select(func.count(Subscription.id)).where(Subscription.channel_id == video.owner_id)
        )

        is_liked = False
        is_subscribed = False
        if viewer_id is not None:
            is_liked = (
                await self.db.scalar(select(Like.id).where(Like.video_id == video_id, Like.user_id == viewer_id))
            ) is not None
            is_subscribed = (
                await self.db.scalar(
                    select(Subscription.id).where(
                        Subscription.channel_id == video.owner_id, Subscription.subscriber_id == viewer_id
                    )
                )
            ) is not None

        return {
            "video": video,
            "like_count": like_count or 0,
            "is_liked": is_liked,
            "subscriber_count": subscriber_count or 0,
            "is_subscribed": is_subscribed,
        }

    async def list_videos(
        self,
        skip: int = 0,
        limit: int = 20,
        query: str | None = None,
    ) -> tuple[list[Video], int]:
        """
        List published videos, newest first.

        Args:
            skip: Number of videos to skip
            limit: Maximum number of videos to return
            query: Optional case-insensitive substring matched against title and description

        Returns:
            Tuple of (videos, total matching count)
        """
        conditions = [Video.is_published.is_(True)]
        if query:
            pattern = f"%{query.strip()}%"
            conditions.append(or_(Video.title.ilike(pattern), Video.description.ilike(pattern)))

        total = await self.db.scalar(select(func.count(Video.id)).where(*conditions))
        result = await self.db.execute(
            select(Video).where(*conditions).order_by(Video.created_at.desc(), Video.id.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def list_channel_videos(self, username: str, viewer_id: int | None = None) -> list[Video]:
        """Videos of a channel, newest first. Owners also see their unpublished videos."""
        channel = await self.db.scalar(select(User).where(User.username == username.lower()))
        if channel is None:
            raise UserNotFoundError(username)

        query = select(Video).where(Video.owner_id == channel.id)
        if channel.id != viewer_id:
            query = query.where(Video.is_published.is_(True))

        result = await self.db.execute(query.order_by(Video.created_at.desc(), Video.id.desc()))
        return list(result.scalars().all())

    async def update_video(self, video_id: int, user_id: int, data: VideoUpdate) -> Video:
        video = await self.get_video(video_id, viewer_id=user_id)
        if not video.is_owned_by(user_id):
            raise AuthorizationError("Only the owner can update this video")

        for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(video, key, value)
        video.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"Video updated: id={video_id}")
        return await self.get_video(video_id, viewer_id=user_id)

    async def delete_video(self, video_id: int, user_id: int) -> None:
        """
        Delete a video.

        Comments, likes, view events, playlist links and history entries are
        removed by the database's ON DELETE CASCADE rules.
        """
        video = await self.get_video(video_id, viewer_id=user_id)
        if not video.is_owned_by(user_id):
            raise AuthorizationError("Only the owner can delete this video")

        await self.db.delete(video)
        await self.db.commit()

        logger.info(f"Video deleted: id={video_id}, by user={user_id}")
