"""
Playlist Service

User-curated, ordered lists of videos. Only the owner may change a playlist.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.exceptions import (
    AuthorizationError,
    InvalidOperationError,
    PlaylistNotFoundError,
    UserNotFoundError,
    VideoNotFoundError,
)
from videotube.models.playlist import Playlist
from videotube.models.user import User
from videotube.models.video import Video
from videotube.utils.clock import utcnow

logger = logging.getLogger(__name__)


class PlaylistService:
    """Service for managing playlists."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_playlist(self, owner_id: int, name: str, description: str = "") -> Playlist:
        playlist = Playlist(owner_id=owner_id, name=name.strip(), description=description.strip())
        self.db.add(playlist)
        await self.db.commit()

        logger.info(f"Playlist created: id={playlist.id}, owner={owner_id}")
        return await self.get_playlist(playlist.id)

    async def get_playlist(self, playlist_id: int) -> Playlist:
        """Get a playlist with owner and videos loaded."""
        result = await self.db.execute(
            select(Playlist).where(Playlist.id == playlist_id).execution_options(populate_existing=True)
        )
        playlist = result.scalar_one_or_none()
        if playlist is None:
            raise PlaylistNotFoundError(playlist_id)
        return playlist

    async def get_user_playlists(self, user_id: int) -> list[Playlist]:
        if await self.db.get(User, user_id) is None:
            raise UserNotFoundError(user_id)

        result = await self.db.execute(
            select(Playlist).where(Playlist.owner_id == user_id).order_by(Playlist.created_at.desc(), Playlist.id.desc())
        )
        return list(result.scalars().all())

    async def update_playlist(
        self,
        playlist_id: int,
        user_id: int,
        name: str | None = None,
        description: str | None = None,
    ) -> Playlist:
        playlist = await self._get_owned(playlist_id, user_id)
        if name is not None:
            playlist.name = name.strip()
        if description is not None:
            playlist.description = description.strip()
        playlist.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"Playlist updated: id={playlist_id}")
        return await self.get_playlist(playlist_id)

    async def delete_playlist(self, playlist_id: int, user_id: int) -> None:
        playlist = await self._get_owned(playlist_id, user_id)
        await self.db.delete(playlist)
        await self.db.commit()
        logger.info(f"Playlist deleted: id={playlist_id}")

    async def add_video(self, playlist_id: int, video_id: int, user_id: int) -> Playlist:
        """
        Append a video to a playlist.

        Raises:
            InvalidOperationError: If the video is already in the playlist
        """
        playlist = await self._get_owned(playlist_id, user_id)
        video = await self.db.get(Video, video_id)
        if video is None:
            raise VideoNotFoundError(video_id)

        if any(v.id == video_id for v in playlist.videos):
            raise InvalidOperationError("Video already exists in playlist", details={"video_id": video_id})

        playlist.videos.append(video)
        playlist.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"Video {video_id} added to playlist {playlist_id}")
        return await self.get_playlist(playlist_id)

    async def remove_video(self, playlist_id: int, video_id: int, user_id: int) -> Playlist:
        """
        Remove a video from a playlist.

        Raises:
            InvalidOperationError: If the video is not in the playlist
        """
        playlist = await self._get_owned(playlist_id, user_id)
        video = next((v for v in playlist.videos if v.id == video_id), None)
        if video is None:
            raise InvalidOperationError("Video does not exist in playlist", details={"video_id": video_id})

        playlist.videos.remove(video)
        playlist.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"Video {video_id} removed from playlist {playlist_id}")
        return await self.get_playlist(playlist_id)

    async def _get_owned(self, playlist_id: int, user_id: int) -> Playlist:
        playlist = await self.get_playlist(playlist_id)
        if playlist.owner_id != user_id:
            raise AuthorizationError("Only the owner can modify this playlist")
        return playlist
