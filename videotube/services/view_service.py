"""
View Service

Decides whether a watch signal counts as a view, keeps the per-viewer view
ledger (``view_events``) and the cached ``videos.views`` counter in step, and
repairs the counter from the ledger on demand.

Admission rules, in order:

1. An authenticated viewer watching their own video is never counted.
2. An authenticated viewer's first view is counted and creates their ledger row.
3. A repeat view by the same viewer is counted again only once the cooldown
   window has elapsed since their last counted view; the existing row is
   updated in place.
4. Anonymous viewers are keyed by network address: a view inside the cooldown
   window of the last counted view from that address is ignored, otherwise
   it is counted and the address's row is created or updated in place.

Every admission writes one ledger row and increments the counter by one in a
single transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.config import settings
from videotube.exceptions import TransientStoreError, VideoNotFoundError
from videotube.models.video import Video
from videotube.models.view_event import ViewEvent
from videotube.utils.clock import Clock, to_naive_utc, utcnow

logger = logging.getLogger(__name__)


class AdmissionReason(str, Enum):
    """Why a view was or was not counted."""

    FIRST_VIEW = "first_view"
    REPEAT_VIEW = "repeat_view"
    OWN_VIDEO = "own_video"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class ViewAdmission:
    admitted: bool
    total_views: int
    reason: AdmissionReason


class ViewService:
    """Service for view admission and counter reconciliation."""

    def __init__(
        self,
        db: AsyncSession,
        cooldown: timedelta | None = None,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.cooldown = cooldown if cooldown is not None else timedelta(seconds=settings.view_cooldown_seconds)
        self.clock = clock

    # ============== Admission ==============

    async def admit_view(
        self,
        video_id: int,
        viewer_id: int | None = None,
        network_address: str | None = None,
        now: datetime | None = None,
    ) -> ViewAdmission:
        """
        Decide whether a watch signal counts as a view.

        Args:
            video_id: ID of the watched video
            viewer_id: Authenticated user ID, or None for anonymous viewers
            network_address: Requester address, used only for anonymous viewers
            now: Time of the watch signal; defaults to the service clock

        Returns:
            ViewAdmission with the post-decision counter value

        Raises:
            VideoNotFoundError: If the video does not exist, or is unpublished and
                the viewer is not its owner
            TransientStoreError: If the database failed; nothing was persisted
        """
        now = to_naive_utc(now) if now is not None else self.clock()

        try:
            admission = await self._admit(video_id, viewer_id, network_address, now)
        except (DBAPIError, PoolTimeoutError) as e:
            await self.db.rollback()
            logger.error(f"View admission failed for video {video_id}: {e}")
            raise TransientStoreError(operation="admit_view") from e

        logger.info(
            f"View {'admitted' if admission.admitted else 'rejected'}: video={video_id}, "
            f"viewer={viewer_id}, reason={admission.reason.value}, total={admission.total_views}"
        )
        return admission

    async def _admit(
        self,
        video_id: int,
        viewer_id: int | None,
        network_address: str | None,
        now: datetime,
    ) -> ViewAdmission:
        video = await self.get_video(video_id, viewer_id)

        if video.is_owned_by(viewer_id):
            return ViewAdmission(False, await self.current_views(video_id), AdmissionReason.OWN_VIDEO)

        if viewer_id is None:
            event = await self._find_anonymous_event(video_id, network_address)
            if event is None:
                self.db.add(self._new_event(video_id, None, network_address, now))
                total = await self._increment_and_commit(video_id)
                return ViewAdmission(True, total, AdmissionReason.FIRST_VIEW)
            return await self._readmit(video_id, event, now)

        event = await self._find_viewer_event(video_id, viewer_id)
        if event is None:
            if await self._try_create_viewer_event(video_id, viewer_id, network_address, now):
                total = await self._increment_and_commit(video_id)
                return ViewAdmission(True, total, AdmissionReason.FIRST_VIEW)

            # Another request created the row first; continue as a repeat view
            event = await self._find_viewer_event(video_id, viewer_id)
            if event is None:
                raise TransientStoreError("Conflicting view write, retry the request", operation="admit_view")

        return await self._readmit(video_id, event, now)

    async def _readmit(self, video_id: int, event: ViewEvent, now: datetime) -> ViewAdmission:
        if now - event.last_viewed_at < self.cooldown:
            return ViewAdmission(False, await self.current_views(video_id), AdmissionReason.COOLDOWN)

        # Guarded on the stored timestamp so only one of several concurrent repeats wins
        result = await self.db.execute(
            update(ViewEvent)
            .where(ViewEvent.id == event.id, ViewEvent.last_viewed_at <= now - self.cooldown)
            .values(last_viewed_at=now, view_count=ViewEvent.view_count + 1)
        )
        if result.rowcount != 1:
            return ViewAdmission(False, await self.current_views(video_id), AdmissionReason.COOLDOWN)

        total = await self._increment_and_commit(video_id)
        return ViewAdmission(True, total, AdmissionReason.REPEAT_VIEW)

    async def _try_create_viewer_event(
        self,
        video_id: int,
        viewer_id: int,
        network_address: str | None,
        now: datetime,
    ) -> bool:
        """Insert the viewer's first ledger row; False if the unique constraint rejected it."""
        self.db.add(self._new_event(video_id, viewer_id, network_address, now))
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Concurrent first view for video={video_id}, viewer={viewer_id}; using existing row")
            return False
        return True

    async def _increment_and_commit(self, video_id: int) -> int:
        await self.db.execute(update(Video).where(Video.id == video_id).values(views=Video.views + 1))
        total = await self.current_views(video_id)
        await self.db.commit()
        return total

    # ============== Reconciliation ==============

    async def reconcile(self, video_id: int) -> int:
        """
        Overwrite a video's counter with the number of its ledger rows.

        Each ledger row counts once, however many repeat views it absorbed.
        Calling this twice with no admissions in between returns the same value.
        """
        try:
            await self._require_video(video_id)
            ledger_views = await self._ledger_row_count(video_id)
            await self.db.execute(update(Video).where(Video.id == video_id).values(views=ledger_views))
            await self.db.commit()
        except (DBAPIError, PoolTimeoutError) as e:
            await self.db.rollback()
            raise TransientStoreError(operation="reconcile") from e

        logger.info(f"Reconciled view counter: video={video_id}, views={ledger_views}")
        return ledger_views

    async def reconcile_all(self) -> int:
        """Reconcile every video whose counter drifted from its ledger. Returns the number repaired."""
        ledger_count = (
            select(func.count(ViewEvent.id)).where(ViewEvent.video_id == Video.id).correlate(Video).scalar_subquery()
        )
        try:
            result = await self.db.execute(
                update(Video)
                .where(Video.views != ledger_count)
                .values(views=ledger_count)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except (DBAPIError, PoolTimeoutError) as e:
            await self.db.rollback()
            raise TransientStoreError(operation="reconcile_all") from e

        repaired = result.rowcount or 0
        if repaired:
            logger.info(f"Reconciled view counters for {repaired} videos")
        return repaired

    # ============== Reads & maintenance ==============

    async def get_view_counts(self, video_id: int, viewer_id: int | None = None) -> dict[str, Any]:
        """Cached counter next to the ledger figures it is derived from."""
        video = await self.get_video(video_id, viewer_id)
        result = await self.db.execute(
            select(func.count(ViewEvent.id), func.coalesce(func.sum(ViewEvent.view_count), 0)).where(
                ViewEvent.video_id == video_id
            )
        )
        ledger_views, ledger_admissions = result.one()

        return {
            "video_id": video_id,
            "title": video.title,
            "views": await self.current_views(video_id),
            "ledger_views": ledger_views,
            "ledger_admissions": int(ledger_admissions),
        }

    async def list_view_events(self, video_id: int) -> list[ViewEvent]:
        await self._require_video(video_id)
        result = await self.db.execute(
            select(ViewEvent).where(ViewEvent.video_id == video_id).order_by(ViewEvent.last_viewed_at.desc())
        )
        return list(result.scalars().all())

    async def reset_views(self, video_id: int) -> int:
        """Delete a video's ledger and zero its counter. Returns the number of rows deleted."""
        await self._require_video(video_id)
        result = await self.db.execute(
            delete(ViewEvent).where(ViewEvent.video_id == video_id)
        )
        await self.db.execute(update(Video).where(Video.id == video_id).values(views=0))
        await self.db.commit()

        deleted = result.rowcount or 0
        logger.info(f"Views reset: video={video_id}, deleted_events={deleted}")
        return deleted

    async def get_video(self, video_id: int, viewer_id: int | None = None) -> Video:
        """Unpublished videos are only visible to their owner."""
        video = await self.db.get(Video, video_id)
        if video is None or (not video.is_published and not video.is_owned_by(viewer_id)):
            raise VideoNotFoundError(video_id)
        return video

    async def current_views(self, video_id: int) -> int:
        return (await self.db.scalar(select(Video.views).where(Video.id == video_id))) or 0

    # ============== Private Methods ==============

    async def _require_video(self, video_id: int) -> None:
        if await self.db.scalar(select(Video.id).where(Video.id == video_id)) is None:
            raise VideoNotFoundError(video_id)

    async def _ledger_row_count(self, video_id: int) -> int:
        return (await self.db.scalar(select(func.count(ViewEvent.id)).where(ViewEvent.video_id == video_id))) or 0

    async def _find_viewer_event(self, video_id: int, viewer_id: int) -> ViewEvent | None:
        result = await self.db.execute(
            select(ViewEvent)
            .where(ViewEvent.video_id == video_id, ViewEvent.user_id == viewer_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _find_anonymous_event(self, video_id: int, network_address: str | None) -> ViewEvent | None:
        address_match = (
            ViewEvent.ip_address.is_(None) if network_address is None else ViewEvent.ip_address == network_address
        )
        result = await self.db.execute(
            select(ViewEvent)
            .where(ViewEvent.video_id == video_id, ViewEvent.user_id.is_(None), address_match)
            .order_by(ViewEvent.last_viewed_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    def _new_event(video_id: int, viewer_id: int | None, network_address: str | None, now: datetime) -> ViewEvent:
        return ViewEvent(
            video_id=video_id,
            user_id=viewer_id,
            ip_address=network_address,
            view_count=1,
            created_at=now,
            last_viewed_at=now,
        )
