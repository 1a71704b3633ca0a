from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from videotube.schemas.user import UserPublic


class TweetCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Content is required")
        return v


class TweetUpdate(TweetCreate):
    pass


class TweetResponse(BaseModel):
    id: int
    content: str
    owner: UserPublic
    like_count: int = 0
    is_owner: bool = False
    created_at: datetime
    updated_at: datetime
