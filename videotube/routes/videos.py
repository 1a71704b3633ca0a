"""
Video Routes

Publishing, browsing, search and owner-only management of videos.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth import get_current_user, get_optional_user
from videotube.database import get_db
from videotube.models.user import User
from videotube.schemas.user import UserPublic
from videotube.schemas.video import (
    VideoCreate,
    VideoDetail,
    VideoListResponse,
    VideoOwner,
    VideoResponse,
    VideoUpdate,
)
from videotube.services.video_service import VideoService
from videotube.utils.pagination import PaginationParams

router = APIRouter(tags=["Videos"])


@router.get("/", response_model=VideoListResponse)
async def list_videos(
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
) -> VideoListResponse:
    """List published videos, newest first."""
    videos, total = await VideoService(db).list_videos(skip=pagination.skip, limit=pagination.limit)
    return VideoListResponse(
        items=[VideoResponse.model_validate(v) for v in videos],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        has_next=pagination.skip + len(videos) < total,
    )


@router.get("/search", response_model=VideoListResponse)
async def search_videos(
    query: str = Query(..., min_length=1, max_length=200),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
) -> VideoListResponse:
    """Case-insensitive search over titles and descriptions of published videos."""
    videos, total = await VideoService(db).list_videos(skip=pagination.skip, limit=pagination.limit, query=query)
    return VideoListResponse(
        items=[VideoResponse.model_validate(v) for v in videos],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        has_next=pagination.skip + len(videos) < total,
    )


@router.get("/channel/{username}", response_model=list[VideoResponse])
async def list_channel_videos(
    username: str,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    return await VideoService(db).list_channel_videos(username, current_user.id if current_user else None)


@router.post("/", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def publish_video(
    data: VideoCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await VideoService(db).publish_video(current_user.id, data)


@router.get("/{video_id}", response_model=VideoDetail)
async def get_video(
    video_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> VideoDetail:
    """Video detail with like and subscription state for the caller, if logged in."""
    detail = await VideoService(db).get_video_detail(video_id, current_user.id if current_user else None)
    video = detail["video"]

    owner = VideoOwner(
        **UserPublic.model_validate(video.owner).model_dump(),
        subscriber_count=detail["subscriber_count"],
        is_subscribed=detail["is_subscribed"],
    )
    return VideoDetail(
        **VideoResponse.model_validate(video).model_dump(exclude={"owner"}),
        owner=owner,
        like_count=detail["like_count"],
        is_liked=detail["is_liked"],
    )


@router.patch("/{video_id}", response_model=VideoResponse)
async def update_video(
    video_id: int,
    data: VideoUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await VideoService(db).update_video(video_id, current_user.id, data)


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_video(
    video_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> None:
    await VideoService(db).delete_video(video_id, current_user.id)
