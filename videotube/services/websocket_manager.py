"""
WebSocket Manager

Manages WebSocket connections and per-video rooms for real-time updates.
Comment and view events are fanned out to everyone watching a video.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """WebSocket message types."""

    # System messages
    CONNECTED = "connected"
    PONG = "pong"
    JOINED = "joined"
    LEFT = "left"
    ERROR = "error"

    # Comment events
    COMMENT_CREATED = "comment.created"
    COMMENT_REPLY = "comment.reply"
    COMMENT_UPDATED = "comment.updated"
    COMMENT_DELETED = "comment.deleted"
    COMMENT_LIKED = "comment.liked"

    # View events
    VIEW_COUNTED = "view.counted"


def video_room(video_id: int) -> str:
    return f"video:{video_id}"


@dataclass
class WebSocketConnection:
    """Represents an active WebSocket connection."""

    websocket: WebSocket
    user_id: int | None
    rooms: set = field(default_factory=set)
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_heartbeat: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class WebSocketManager:
    """
    Tracks open connections and the video rooms they have joined.

    A connection may join any number of rooms; emitting to a room sends to
    every connection currently in it. Failed sends drop the connection.
    """

    def __init__(self):
        self._connections: dict[str, WebSocketConnection] = {}

        # One user can have several tabs open
        self._user_connections: dict[int, set[str]] = defaultdict(set)

        self._room_members: dict[str, set[str]] = defaultdict(set)

        self._lock = asyncio.Lock()

    async def connect(
        self,
        websocket: WebSocket,
        user_id: int | None = None,
        connection_id: str | None = None,
    ) -> str:
        """
        Accept and register a new WebSocket connection.

        Args:
            websocket: The WebSocket instance
            user_id: Optional user ID for authenticated connections
            connection_id: Optional custom connection ID

        Returns:
            Connection ID
        """
        await websocket.accept()

        if not connection_id:
            connection_id = str(uuid.uuid4())

        async with self._lock:
            self._connections[connection_id] = WebSocketConnection(websocket=websocket, user_id=user_id)
            if user_id:
                self._user_connections[user_id].add(connection_id)

        logger.info(f"WebSocket connected: {connection_id} (user: {user_id})")

        await self._send_to_connection(
            connection_id,
            {
                "type": MessageType.CONNECTED.value,
                "connection_id": connection_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        async with self._lock:
            connection = self._connections.pop(connection_id, None)
            if not connection:
                return

            if connection.user_id:
                self._user_connections[connection.user_id].discard(connection_id)
                if not self._user_connections[connection.user_id]:
                    del self._user_connections[connection.user_id]

            for room in connection.rooms:
                members = self._room_members.get(room)
                if members is not None:
                    members.discard(connection_id)
                    if not members:
                        del self._room_members[room]

        logger.info(f"WebSocket disconnected: {connection_id}")

    async def join_room(self, connection_id: str, room: str) -> bool:
        """Add a connection to a room. Returns False for unknown connections."""
        async with self._lock:
            connection = self._connections.get(connection_id)
            if not connection:
                return False

            connection.rooms.add(room)
            self._room_members[room].add(connection_id)

        logger.debug(f"Connection {connection_id} joined {room}")
        return True

    async def leave_room(self, connection_id: str, room: str) -> bool:
        async with self._lock:
            connection = self._connections.get(connection_id)
            if not connection:
                return False

            connection.rooms.discard(room)
            members = self._room_members.get(room)
            if members is not None:
                members.discard(connection_id)
                if not members:
                    del self._room_members[room]

        logger.debug(f"Connection {connection_id} left {room}")
        return True

    async def send_to_room(self, room: str, message_type: str, data: dict) -> int:
        """
        Send a message to every connection in a room.

        Args:
            room: Target room name
            message_type: Type of message
            data: Message payload

        Returns:
            Number of connections the message was sent to
        """
        message = self._create_message(message_type, data)
        connection_ids = self._room_members.get(room, set()).copy()

        sent_count = 0
        for connection_id in connection_ids:
            if await self._send_to_connection(connection_id, message):
                sent_count += 1

        return sent_count

    async def emit_to_video(self, video_id: int, message_type: MessageType, data: dict) -> int:
        return await self.send_to_room(video_room(video_id), message_type.value, {"video_id": video_id, **data})

    async def handle_message(self, connection_id: str, message: dict) -> dict | None:
        """
        Handle an incoming client message.

        Supported types are ``ping``, ``join-video`` and ``leave-video``; the
        room messages require an integer ``video_id``.

        Returns:
            Response message, or None for unknown message types
        """
        msg_type = message.get("type", "unknown")

        if msg_type in ("ping", "heartbeat"):
            async with self._lock:
                connection = self._connections.get(connection_id)
                if connection:
                    connection.last_heartbeat = datetime.now(timezone.utc)
            return {"type": MessageType.PONG.value, "timestamp": datetime.now(timezone.utc).isoformat()}

        if msg_type in ("join-video", "leave-video"):
            video_id = message.get("video_id")
            if isinstance(video_id, bool) or not isinstance(video_id, int):
                return {"type": MessageType.ERROR.value, "message": "video_id must be an integer"}

            room = video_room(video_id)
            if msg_type == "join-video":
                success = await self.join_room(connection_id, room)
                reply = MessageType.JOINED
            else:
                success = await self.leave_room(connection_id, room)
                reply = MessageType.LEFT
            return {"type": reply.value if success else MessageType.ERROR.value, "room": room}

        return None

    def get_stats(self) -> dict:
        """Get WebSocket manager statistics."""
        return {
            "total_connections": len(self._connections),
            "unique_users": len(self._user_connections),
            "rooms": len(self._room_members),
            "room_stats": {room: len(members) for room, members in self._room_members.items()},
        }

    # ============== Private Methods ==============

    def _create_message(self, message_type: str, data: dict) -> dict:
        """Create a standardized message envelope."""
        return {
            "type": message_type,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def _send_to_connection(self, connection_id: str, message: dict) -> bool:
        connection = self._connections.get(connection_id)
        if not connection:
            return False

        try:
            await connection.websocket.send_json(message)
            return True
        except WebSocketDisconnect:
            await self.disconnect(connection_id)
            return False
        except RuntimeError as e:
            # Starlette raises RuntimeError when sending on a closed socket
            logger.error(f"Error sending to {connection_id}: {e}")
            await self.disconnect(connection_id)
            return False


# Singleton instance
websocket_manager = WebSocketManager()


def get_websocket_manager() -> WebSocketManager:
    """Get the WebSocket manager singleton."""
    return websocket_manager
