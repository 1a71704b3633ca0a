"""
WebSocket Routes

Real-time endpoint clients use to follow comment and view activity on the
videos they are watching.
"""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from videotube.auth import get_user_from_token
from videotube.database import get_db_context
from videotube.services.websocket_manager import MessageType, WebSocketManager, get_websocket_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


@router.websocket("")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Annotated[str | None, Query()] = None,
):
    """
    WebSocket connection endpoint.

    Optionally provide an access token as the ``token`` query parameter.

    Message Types (Client -> Server):
    - ping: Keep connection alive
    - join-video: Join a video's room (requires integer video_id)
    - leave-video: Leave a video's room (requires integer video_id)

    Message Types (Server -> Client):
    - connected, pong, joined, left, error
    - comment.created / comment.reply / comment.updated / comment.deleted / comment.liked
    - view.counted
    """
    manager = get_websocket_manager()

    user_id = None
    if token:
        async with get_db_context() as db:
            user = await get_user_from_token(token, db)
            if user:
                user_id = user.id

    connection_id = await manager.connect(websocket, user_id)

    try:
        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({"type": MessageType.ERROR.value, "message": "Invalid JSON"})
                continue

            if not isinstance(message, dict):
                await websocket.send_json({"type": MessageType.ERROR.value, "message": "Expected a JSON object"})
                continue

            response = await manager.handle_message(connection_id, message)
            if response:
                await websocket.send_json(response)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {connection_id}")
    finally:
        await manager.disconnect(connection_id)


@router.get("/stats")
async def get_websocket_stats(
    manager: WebSocketManager = Depends(get_websocket_manager),
) -> dict:
    """Current connection counts and room memberships."""
    return manager.get_stats()
