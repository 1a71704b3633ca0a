from datetime import datetime

from pydantic import BaseModel, Field

from videotube.schemas.user import UserPublic


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)
    parent_id: int | None = None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)


class CommentResponse(BaseModel):
    id: int
    video_id: int
    parent_id: int | None
    content: str
    author: UserPublic | None = None
    like_count: int = 0
    reply_count: int = 0
    is_owner: bool = False
    is_edited: bool
    created_at: datetime
    updated_at: datetime
    replies: list["CommentResponse"] = []


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    total: int
    page: int
    limit: int
