"""
View Routes

View admission for watch signals, counter reads, and owner-only ledger
inspection, reconciliation and reset.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth import get_current_user, get_optional_user
from videotube.database import get_db
from videotube.exceptions import AuthorizationError
from videotube.models.user import User
from videotube.schemas.view import (
    ReconcileResponse,
    ViewAdmissionResponse,
    ViewCountsResponse,
    ViewEventResponse,
    ViewResetResponse,
)
from videotube.services.view_service import ViewService
from videotube.services.websocket_manager import MessageType, WebSocketManager, get_websocket_manager
from videotube.utils.clock import Clock, get_clock
from videotube.utils.network import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Views"])


async def _require_owner(service: ViewService, video_id: int, user: User) -> None:
    video = await service.get_video(video_id, user.id)
    if not video.is_owned_by(user.id):
        raise AuthorizationError("Only the video owner can manage its views")


@router.post("/v/{video_id}", response_model=ViewAdmissionResponse)
async def add_view(
    video_id: int,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
    clock: Clock = Depends(get_clock),
    manager: WebSocketManager = Depends(get_websocket_manager),
) -> ViewAdmissionResponse:
    """
    Report a watch signal for a video.

    Responds 201 when the view was counted and 200 when it was not (own
    video, or a repeat inside the cooldown window). Counted views are pushed
    to the video's real-time room as ``view.counted``.
    """
    service = ViewService(db, clock=clock)
    admission = await service.admit_view(
        video_id,
        viewer_id=current_user.id if current_user else None,
        network_address=get_client_ip(request),
    )

    if admission.admitted:
        response.status_code = status.HTTP_201_CREATED
        await manager.emit_to_video(video_id, MessageType.VIEW_COUNTED, {"views": admission.total_views})

    return ViewAdmissionResponse(
        admitted=admission.admitted,
        total_views=admission.total_views,
        reason=admission.reason.value,
    )


@router.get("/v/{video_id}", response_model=ViewCountsResponse)
async def get_view_counts(
    video_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    """Counter and ledger figures. Unpublished videos are visible to their owner only."""
    return await ViewService(db).get_view_counts(video_id, current_user.id if current_user else None)


@router.get("/debug/{video_id}", response_model=list[ViewEventResponse])
async def get_view_ledger(
    video_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Ledger rows for a video, most recently viewed first."""
    service = ViewService(db)
    await _require_owner(service, video_id, current_user)
    return await service.list_view_events(video_id)


@router.post("/sync/{video_id}", response_model=ReconcileResponse)
async def sync_views(
    video_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ReconcileResponse:
    """Recompute the cached counter from the ledger."""
    service = ViewService(db)
    await _require_owner(service, video_id, current_user)

    previous = await service.current_views(video_id)
    views = await service.reconcile(video_id)
    return ReconcileResponse(video_id=video_id, previous_views=previous, views=views)


@router.delete("/reset/{video_id}", response_model=ViewResetResponse)
async def reset_views(
    video_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ViewResetResponse:
    service = ViewService(db)
    await _require_owner(service, video_id, current_user)

    deleted = await service.reset_views(video_id)
    logger.warning(f"View ledger reset by owner: video={video_id}, user={current_user.id}")
    return ViewResetResponse(video_id=video_id, deleted_view_events=deleted)
