from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth import get_current_user
from videotube.database import get_db
from videotube.models.user import User
from videotube.schemas.social import ChannelStats
from videotube.schemas.video import ChannelVideo, VideoResponse
from videotube.services import dashboard_service

router = APIRouter(tags=["Dashboard"])


@router.get("/stats", response_model=ChannelStats)
async def get_channel_stats(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    return await dashboard_service.get_channel_stats(db, current_user.id)


@router.get("/videos", response_model=list[ChannelVideo])
async def get_channel_videos(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    """The caller's videos, including unpublished ones, with like counts."""
    rows = await dashboard_service.get_channel_videos(db, current_user.id)
    return [
        ChannelVideo(**VideoResponse.model_validate(video).model_dump(), like_count=like_count)
        for video, like_count in rows
    ]
