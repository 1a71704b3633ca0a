"""Dashboard service for a creator's channel statistics."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.models.like import Like
from videotube.models.subscription import Subscription
from videotube.models.video import Video


async def get_channel_stats(db: AsyncSession, owner_id: int) -> dict:
    """Totals over the owner's videos using batched aggregation."""
    video_row = (
        await db.execute(
            select(
                func.count(Video.id).label("total_videos"),
                func.coalesce(func.sum(Video.views), 0).label("total_views"),
            ).where(Video.owner_id == owner_id)
        )
    ).one()

    total_subscribers = await db.scalar(
        select(func.count(Subscription.id)).where(Subscription.channel_id == owner_id)
    )
    total_likes = await db.scalar(
        select(func.count(Like.id)).join(Video, Like.video_id == Video.id).where(Video.owner_id == owner_id)
    )

    return {
        "total_videos": video_row.total_videos or 0,
        "total_views": int(video_row.total_views or 0),
        "total_subscribers": total_subscribers or 0,
        "total_likes": total_likes or 0,
    }


async def get_channel_videos(db: AsyncSession, owner_id: int) -> list[tuple[Video, int]]:
    """All of the owner's videos, published or not, newest first, with like counts."""
    like_counts = (
        select(Like.video_id, func.count(Like.id).label("like_count"))
        .where(Like.video_id.is_not(None))
        .group_by(Like.video_id)
        .subquery()
    )
    result = await db.execute(
        select(Video, func.coalesce(like_counts.c.like_count, 0))
        .outerjoin(like_counts, like_counts.c.video_id == Video.id)
        .where(Video.owner_id == owner_id)
        .order_by(Video.created_at.desc(), Video.id.desc())
    )
    return [(video, like_count) for video, like_count in result.all()]
