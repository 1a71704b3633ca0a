"""
User Service

Profile and account management, channel profiles, and the per-user library:
watch history, watch later and saved playlists.
"""

import logging
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.exceptions import (
    AuthorizationError,
    DuplicateResourceError,
    HistoryEntryNotFoundError,
    PlaylistNotFoundError,
    UserNotFoundError,
    VideoNotFoundError,
)
from videotube.models.playlist import Playlist, saved_playlists
from videotube.models.user import User
from videotube.models.video import Video
from videotube.models.watch_history import WatchHistoryEntry, watch_later
from videotube.services.subscription_service import SubscriptionService
from videotube.utils.clock import utcnow

logger = logging.getLogger(__name__)


class UserService:
    """Service for user accounts and libraries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============== Account ==============

    async def update_account(self, user: User, full_name: str, email: str) -> User:
        email = email.lower()
        if email != user.email:
            taken = await self.db.scalar(select(User.id).where(User.email == email, User.id != user.id))
            if taken is not None:
                raise DuplicateResourceError("User", "email", email)

        user.full_name = full_name.strip()
        user.email = email
        user.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"Account updated: user={user.id}")
        return user

    async def update_image(self, user: User, field: str, url: str) -> User:
        """Set ``avatar_url`` or ``cover_image_url`` to an already uploaded image."""
        if field not in ("avatar_url", "cover_image_url"):
            raise ValueError(f"Unknown image field: {field}")

        setattr(user, field, url)
        user.updated_at = utcnow()
        await self.db.commit()

        logger.info(f"{field} updated: user={user.id}")
        return user

    async def delete_account(self, user: User) -> None:
        """Delete the account and everything it owns; its view ledger rows become anonymous."""
        user_id = user.id
        await self.db.delete(user)
        await self.db.commit()
        logger.info(f"Account deleted: user={user_id}")

    async def get_channel_profile(self, username: str, viewer_id: int | None = None) -> dict[str, Any]:
        channel = await self.db.scalar(select(User).where(User.username == username.strip().lower()))
        if channel is None:
            raise UserNotFoundError(username)

        subscriptions = SubscriptionService(self.db)
        return {
            "id": channel.id,
            "username": channel.username,
            "full_name": channel.full_name,
            "email": channel.email,
            "avatar_url": channel.avatar_url,
            "cover_image_url": channel.cover_image_url,
            "subscribers_count": await subscriptions.subscriber_count(channel.id),
            "channels_subscribed_to_count": await subscriptions.subscribed_to_count(channel.id),
            "is_subscribed": await subscriptions.is_subscribed(viewer_id, channel.id),
        }

    # ============== Watch history ==============

    async def get_history(self, user_id: int) -> list[WatchHistoryEntry]:
        """Watch history, most recent first."""
        result = await self.db.execute(
            select(WatchHistoryEntry)
            .where(WatchHistoryEntry.user_id == user_id)
            .order_by(WatchHistoryEntry.watched_at.desc(), WatchHistoryEntry.id.desc())
        )
        return list(result.scalars().all())

    async def add_to_history(self, user_id: int, video_id: int) -> WatchHistoryEntry:
        """Record a watch. A video already in the history moves to the top."""
        await self._require_video(video_id)

        await self.db.execute(
            delete(WatchHistoryEntry).where(WatchHistoryEntry.user_id == user_id, WatchHistoryEntry.video_id == video_id)
        )
        entry = WatchHistoryEntry(user_id=user_id, video_id=video_id, watched_at=utcnow())
        self.db.add(entry)
        await self.db.commit()

        logger.info(f"History entry added: user={user_id}, video={video_id}")
        result = await self.db.execute(
            select(WatchHistoryEntry)
            .where(WatchHistoryEntry.id == entry.id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def delete_history_entry(self, user_id: int, entry_id: int) -> None:
        entry = await self.db.get(WatchHistoryEntry, entry_id)
        if entry is None:
            raise HistoryEntryNotFoundError(entry_id)
        if entry.user_id != user_id:
            raise AuthorizationError("You can only remove entries from your own history")

        await self.db.delete(entry)
        await self.db.commit()

    async def clear_history(self, user_id: int) -> int:
        result = await self.db.execute(delete(WatchHistoryEntry).where(WatchHistoryEntry.user_id == user_id))
        await self.db.commit()
        logger.info(f"History cleared: user={user_id}, removed={result.rowcount}")
        return result.rowcount or 0

    # ============== Watch later ==============

    async def get_watch_later(self, user_id: int) -> list[Video]:
        result = await self.db.execute(
            select(Video)
            .join(watch_later, watch_later.c.video_id == Video.id)
            .where(watch_later.c.user_id == user_id)
            .order_by(watch_later.c.added_at.desc())
        )
        return list(result.scalars().all())

    async def toggle_watch_later(self, user_id: int, video_id: int) -> bool:
        """Add or remove a video from watch later. Returns True if it is now in the list."""
        await self._require_video(video_id)
        condition = (watch_later.c.user_id == user_id) & (watch_later.c.video_id == video_id)

        result = await self.db.execute(delete(watch_later).where(condition))
        if result.rowcount:
            await self.db.commit()
            return False

        await self.db.execute(insert(watch_later).values(user_id=user_id, video_id=video_id, added_at=utcnow()))
        await self.db.commit()
        return True

    async def clear_watch_later(self, user_id: int) -> int:
        result = await self.db.execute(delete(watch_later).where(watch_later.c.user_id == user_id))
        await self.db.commit()
        return result.rowcount or 0

    # ============== Saved playlists ==============

    async def toggle_saved_playlist(self, user_id: int, playlist_id: int) -> bool:
        """Save or unsave another user's playlist. Returns True if it is now saved."""
        if await self.db.get(Playlist, playlist_id) is None:
            raise PlaylistNotFoundError(playlist_id)
        condition = (saved_playlists.c.user_id == user_id) & (saved_playlists.c.playlist_id == playlist_id)

        result = await self.db.execute(delete(saved_playlists).where(condition))
        if result.rowcount:
            await self.db.commit()
            return False

        await self.db.execute(
            insert(saved_playlists).values(user_id=user_id, playlist_id=playlist_id, saved_at=utcnow())
        )
        await self.db.commit()
        return True

    async def get_saved_playlists(self, user_id: int) -> list[Playlist]:
        result = await self.db.execute(
            select(Playlist)
            .join(saved_playlists, saved_playlists.c.playlist_id == Playlist.id)
            .where(saved_playlists.c.user_id == user_id)
            .order_by(saved_playlists.c.saved_at.desc())
        )
        return list(result.scalars().all())

    async def _require_video(self, video_id: int) -> None:
        if await self.db.scalar(select(Video.id).where(Video.id == video_id)) is None:
            raise VideoNotFoundError(video_id)
