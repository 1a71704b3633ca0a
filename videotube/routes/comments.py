"""
Comment Routes

Threaded comments on videos. Every mutation is pushed to the video's
real-time room.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth import get_current_user, get_optional_user
from videotube.database import get_db
from videotube.models.comment import Comment
from videotube.models.user import User
from videotube.schemas.comment import CommentCreate, CommentListResponse, CommentResponse, CommentUpdate
from videotube.schemas.user import UserPublic
from videotube.services.comment_service import CommentService, RepliesByParent
from videotube.services.websocket_manager import MessageType, WebSocketManager, get_websocket_manager
from videotube.utils.pagination import PaginationParams

router = APIRouter(tags=["Comments"])


@router.get("/{video_id}", response_model=CommentListResponse)
async def get_video_comments(
    video_id: int,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> CommentListResponse:
    """
    Get top-level comments of a video, newest first.

    Each comment carries its nested replies, oldest first.
    """
    service = CommentService(db)
    comments, replies = await service.get_video_comments(video_id, skip=pagination.skip, limit=pagination.limit)
    total = await service.get_comment_count(video_id)

    thread_ids = [c.id for c in comments]
    for comment in comments:
        thread_ids.extend(r.id for r in service.walk_replies(comment.id, replies))
    like_counts = await service.get_like_counts(thread_ids)

    viewer_id = current_user.id if current_user else None
    return CommentListResponse(
        comments=[_comment_to_response(c, replies, like_counts, viewer_id) for c in comments],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.post("/{video_id}", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    video_id: int,
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    manager: WebSocketManager = Depends(get_websocket_manager),
) -> CommentResponse:
    """Create a comment on a video, or a reply when ``parent_id`` is set."""
    comment = await CommentService(db).create_comment(
        video_id=video_id,
        user_id=current_user.id,
        body=data.content,
        parent_id=data.parent_id,
    )
    response = _comment_to_response(comment, {}, {}, current_user.id)

    event = MessageType.COMMENT_REPLY if comment.parent_id else MessageType.COMMENT_CREATED
    await manager.emit_to_video(video_id, event, {"comment": response.model_dump(mode="json")})
    return response


@router.get("/c/{comment_id}/replies", response_model=list[CommentResponse])
async def get_comment_replies(
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    """Direct replies of a comment, each with its own nested replies."""
    service = CommentService(db)
    comment, replies = await service.get_thread(comment_id)
    like_counts = await service.get_like_counts([r.id for r in service.walk_replies(comment.id, replies)])

    viewer_id = current_user.id if current_user else None
    return [_comment_to_response(r, replies, like_counts, viewer_id) for r in replies.get(comment.id, [])]


@router.patch("/c/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    data: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    manager: WebSocketManager = Depends(get_websocket_manager),
) -> CommentResponse:
    """
    Update a comment.

    Only the original author can update their comment.
    """
    service = CommentService(db)
    comment = await service.update_comment(comment_id, current_user.id, data.content)
    like_counts = await service.get_like_counts([comment.id])
    response = _comment_to_response(comment, {}, like_counts, current_user.id)

    await manager.emit_to_video(comment.video_id, MessageType.COMMENT_UPDATED, {"comment": response.model_dump(mode="json")})
    return response


@router.delete("/c/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    manager: WebSocketManager = Depends(get_websocket_manager),
) -> None:
    """
    Delete a comment and all replies beneath it.

    Authors can delete their own comments; video owners can delete any
    comment on their videos.
    """
    comment = await CommentService(db).delete_comment(comment_id, current_user.id)
    await manager.emit_to_video(
        comment.video_id,
        MessageType.COMMENT_DELETED,
        {"comment_id": comment_id, "parent_id": comment.parent_id},
    )


# ============== Helpers ==============


def _comment_to_response(
    comment: Comment,
    replies: RepliesByParent,
    like_counts: dict[int, int],
    viewer_id: int | None,
) -> CommentResponse:
    """Convert a comment and its reply subtree to a response."""
    children = replies.get(comment.id, [])
    return CommentResponse(
        id=comment.id,
        video_id=comment.video_id,
        parent_id=comment.parent_id,
        content=comment.body,
        author=UserPublic.model_validate(comment.user) if comment.user else None,
        like_count=like_counts.get(comment.id, 0),
        reply_count=len(children),
        is_owner=viewer_id is not None and comment.user_id == viewer_id,
        is_edited=comment.is_edited,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        replies=[_comment_to_response(c, replies, like_counts, viewer_id) for c in children],
    )
