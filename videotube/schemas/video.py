from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from videotube.schemas.user import UserPublic


class VideoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    video_url: str = Field(..., min_length=1)
    thumbnail_url: str = Field(..., min_length=1)
    duration: float = Field(0.0, ge=0)
    is_published: bool = True


class VideoUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    thumbnail_url: str | None = Field(None, min_length=1)
    is_published: bool | None = None


class VideoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    title: str
    description: str
    video_url: str
    thumbnail_url: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    updated_at: datetime
    owner: UserPublic | None = None


class VideoOwner(UserPublic):
    subscriber_count: int
    is_subscribed: bool


class VideoDetail(VideoResponse):
    owner: VideoOwner
    like_count: int
    is_liked: bool


class ChannelVideo(VideoResponse):
    like_count: int


class VideoListResponse(BaseModel):
    items: list[VideoResponse]
    total: int
    page: int
    limit: int
    has_next: bool
