from datetime import datetime

from pydantic import BaseModel, ConfigDict

from videotube.schemas.video import VideoResponse


class HistoryAdd(BaseModel):
    video_id: int


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    video: VideoResponse
    watched_at: datetime


class WatchLaterToggle(BaseModel):
    video_id: int


class WatchLaterToggleResponse(BaseModel):
    in_watch_later: bool
