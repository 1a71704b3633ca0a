from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth import get_current_user
from videotube.database import get_db
from videotube.models.user import User
from videotube.schemas.social import LikeToggleResponse
from videotube.schemas.video import VideoResponse
from videotube.services.like_service import LikeService
from videotube.services.websocket_manager import MessageType, WebSocketManager, get_websocket_manager

router = APIRouter(tags=["Likes"])


@router.post("/toggle/v/{video_id}", response_model=LikeToggleResponse)
async def toggle_video_like(
    video_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    liked, like_count = await LikeService(db).toggle_video_like(video_id, current_user.id)
    return LikeToggleResponse(liked=liked, like_count=like_count)


@router.post("/toggle/c/{comment_id}", response_model=LikeToggleResponse)
async def toggle_comment_like(
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    manager: WebSocketManager = Depends(get_websocket_manager),
):
    liked, like_count, video_id = await LikeService(db).toggle_comment_like(comment_id, current_user.id)
    await manager.emit_to_video(
        video_id,
        MessageType.COMMENT_LIKED,
        {"comment_id": comment_id, "like_count": like_count, "liked": liked, "user_id": current_user.id},
    )
    return LikeToggleResponse(liked=liked, like_count=like_count)


@router.post("/toggle/t/{tweet_id}", response_model=LikeToggleResponse)
async def toggle_tweet_like(
    tweet_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    liked, like_count = await LikeService(db).toggle_tweet_like(tweet_id, current_user.id)
    return LikeToggleResponse(liked=liked, like_count=like_count)


@router.get("/videos", response_model=list[VideoResponse])
async def get_liked_videos(db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Videos the caller liked, most recent first."""
    return await LikeService(db).get_liked_videos(current_user.id)
