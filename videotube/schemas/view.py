from datetime import datetime

from pydantic import BaseModel, ConfigDict

from videotube.schemas.user import UserPublic


class ViewAdmissionResponse(BaseModel):
    admitted: bool
    total_views: int
    reason: str


class ViewCountsResponse(BaseModel):
    video_id: int
    title: str
    views: int
    ledger_views: int
    ledger_admissions: int


class ViewEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user: UserPublic | None = None
    ip_address: str | None
    view_count: int
    created_at: datetime
    last_viewed_at: datetime


class ReconcileResponse(BaseModel):
    video_id: int
    previous_views: int
    views: int


class ViewResetResponse(BaseModel):
    video_id: int
    deleted_view_events: int
    views: int = 0
