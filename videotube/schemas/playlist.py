from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from videotube.schemas.user import UserPublic
from videotube.schemas.video import VideoResponse


class PlaylistCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: str = Field("", max_length=2000)


class PlaylistUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=150)
    description: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def require_a_field(self):
        if self.name is None and self.description is None:
            raise ValueError("At least one field (name or description) must be provided")
        return self


class PlaylistResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    owner: UserPublic
    videos: list[VideoResponse] = []
    created_at: datetime
    updated_at: datetime


class PlaylistSaveToggle(BaseModel):
    playlist_id: int


class PlaylistSaveToggleResponse(BaseModel):
    saved: bool
