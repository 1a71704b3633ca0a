"""
Tests for ViewService: admission, cooldown dedup, reconciliation and
ledger maintenance.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.exceptions import TransientStoreError, VideoNotFoundError
from videotube.models.video import Video
from videotube.models.view_event import ViewEvent
from videotube.services.view_service import AdmissionReason, ViewService

T0 = datetime(2026, 3, 1, 9, 0, 0)
COOLDOWN = timedelta(minutes=5)


async def ledger_rows(db: AsyncSession, video_id: int) -> list[ViewEvent]:
    result = await db.execute(
        select(ViewEvent).where(ViewEvent.video_id == video_id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def stored_views(db: AsyncSession, video_id: int) -> int:
    return await db.scalar(select(Video.views).where(Video.id == video_id))


@pytest.fixture
def service(test_db: AsyncSession) -> ViewService:
    return ViewService(test_db, cooldown=COOLDOWN)


class TestSelfViewExclusion:
    async def test_owner_view_is_not_counted(self, service, test_db, owner, video):
        admission = await service.admit_view(video.id, viewer_id=owner.id, network_address="10.0.0.1", now=T0)

        assert admission.admitted is False
        assert admission.reason == AdmissionReason.OWN_VIDEO
        assert admission.total_views == 0
        assert await ledger_rows(test_db, video.id) == []

    async def test_repeated_owner_views_never_touch_counter(self, service, test_db, owner, video):
        for minutes in (0, 10, 60):
            await service.admit_view(video.id, viewer_id=owner.id, now=T0 + timedelta(minutes=minutes))

        assert await stored_views(test_db, video.id) == 0
        assert await ledger_rows(test_db, video.id) == []

    async def test_anonymous_request_never_counts_as_owner(self, service, video):
        admission = await service.admit_view(video.id, viewer_id=None, network_address="10.0.0.1", now=T0)

        assert admission.admitted is True
        assert admission.reason == AdmissionReason.FIRST_VIEW


class TestAuthenticatedViews:
    async def test_first_view_increments_by_one(self, service, test_db, viewer, video):
        video_id, viewer_id = video.id, viewer.id

        admission = await service.admit_view(video_id, viewer_id=viewer_id, network_address="10.0.0.2", now=T0)

        assert admission.admitted is True
        assert admission.reason == AdmissionReason.FIRST_VIEW
        assert admission.total_views == 1
        assert await stored_views(test_db, video_id) == 1

        rows = await ledger_rows(test_db, video_id)
        assert len(rows) == 1
        assert rows[0].user_id == viewer_id
        assert rows[0].created_at == T0
        assert rows[0].last_viewed_at == T0
        assert rows[0].view_count == 1

    async def test_repeat_within_cooldown_is_rejected(self, service, test_db, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)

        admission = await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + timedelta(minutes=1))

        assert admission.admitted is False
        assert admission.reason == AdmissionReason.COOLDOWN
        assert admission.total_views == 1
        rows = await ledger_rows(test_db, video_id)
        assert rows[0].last_viewed_at == T0
        assert rows[0].view_count == 1

    async def test_repeat_after_cooldown_reuses_row(self, service, test_db, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)

        later = T0 + timedelta(minutes=6)
        admission = await service.admit_view(video_id, viewer_id=viewer_id, now=later)

        assert admission.admitted is True
        assert admission.reason == AdmissionReason.REPEAT_VIEW
        assert admission.total_views == 2

        rows = await ledger_rows(test_db, video_id)
        assert len(rows) == 1
        assert rows[0].created_at == T0
        assert rows[0].last_viewed_at == later
        assert rows[0].view_count == 2

    async def test_cooldown_boundary_admits(self, service, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)

        just_before = await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + COOLDOWN - timedelta(seconds=1))
        exactly = await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + COOLDOWN)

        assert just_before.admitted is False
        assert exactly.admitted is True

    async def test_rejected_view_does_not_extend_window(self, service, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + timedelta(minutes=4))

        admission = await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + timedelta(minutes=5))

        assert admission.admitted is True

    async def test_concrete_scenario(self, service, owner, viewer, video):
        video_id, owner_id, viewer_id = video.id, owner.id, viewer.id

        results = [
            await service.admit_view(video_id, viewer_id=owner_id, now=T0),
            await service.admit_view(video_id, viewer_id=viewer_id, now=T0),
            await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + timedelta(minutes=1)),
            await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + timedelta(minutes=6)),
        ]

        assert [(r.admitted, r.total_views) for r in results] == [(False, 0), (True, 1), (False, 1), (True, 2)]

    async def test_viewers_are_counted_independently(self, service, make_user, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        other = await make_user("other")
        other_id = other.id

        first = await service.admit_view(video_id, viewer_id=viewer_id, now=T0)
        second = await service.admit_view(video_id, viewer_id=other_id, now=T0)

        assert first.admitted and second.admitted
        assert second.total_views == 2

    async def test_aware_timestamps_are_normalized(self, service, test_db, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        aware = datetime(2026, 3, 1, 11, 0, 0, tzinfo=timezone(timedelta(hours=2)))

        await service.admit_view(video_id, viewer_id=viewer_id, now=aware)

        rows = await ledger_rows(test_db, video_id)
        assert rows[0].last_viewed_at == T0

    async def test_default_clock_is_used(self, test_db, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        service = ViewService(test_db, cooldown=COOLDOWN, clock=lambda: T0)

        await service.admit_view(video_id, viewer_id=viewer_id)

        rows = await ledger_rows(test_db, video_id)
        assert rows[0].last_viewed_at == T0


class TestAnonymousViews:
    async def test_two_calls_inside_window_admit_once(self, service, test_db, video):
        video_id = video.id

        first = await service.admit_view(video_id, network_address="203.0.113.7", now=T0)
        second = await service.admit_view(video_id, network_address="203.0.113.7", now=T0 + timedelta(minutes=2))

        assert first.admitted is True
        assert second.admitted is False
        assert second.reason == AdmissionReason.COOLDOWN
        assert await stored_views(test_db, video_id) == 1

    async def test_stale_row_is_updated_in_place(self, service, test_db, video):
        video_id = video.id
        await service.admit_view(video_id, network_address="203.0.113.7", now=T0)

        later = T0 + timedelta(minutes=10)
        admission = await service.admit_view(video_id, network_address="203.0.113.7", now=later)

        assert admission.admitted is True
        assert admission.reason == AdmissionReason.REPEAT_VIEW
        rows = await ledger_rows(test_db, video_id)
        assert len(rows) == 1
        assert rows[0].user_id is None
        assert rows[0].last_viewed_at == later
        assert rows[0].view_count == 2

    async def test_different_addresses_are_distinct_viewers(self, service, video):
        video_id = video.id

        await service.admit_view(video_id, network_address="203.0.113.7", now=T0)
        admission = await service.admit_view(video_id, network_address="198.51.100.4", now=T0)

        assert admission.admitted is True
        assert admission.total_views == 2

    async def test_authenticated_row_does_not_shadow_anonymous(self, service, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, network_address="203.0.113.7", now=T0)

        admission = await service.admit_view(video_id, network_address="203.0.113.7", now=T0)

        assert admission.admitted is True


class TestFirstViewRace:
    async def test_conflicting_insert_falls_back_to_repeat_path(self, service, test_db, viewer, video, monkeypatch):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)

        # The first lookup misses the row another request already wrote
        original = ViewService._find_viewer_event
        calls = []

        async def racing_lookup(self, vid, uid):
            calls.append(uid)
            if len(calls) == 1:
                return None
            return await original(self, vid, uid)

        monkeypatch.setattr(ViewService, "_find_viewer_event", racing_lookup)

        admission = await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + timedelta(seconds=30))

        assert len(calls) == 2
        assert admission.admitted is False
        assert admission.reason == AdmissionReason.COOLDOWN
        assert admission.total_views == 1
        assert len(await ledger_rows(test_db, video_id)) == 1

    async def test_conflict_after_cooldown_admits_as_repeat(self, service, test_db, viewer, video, monkeypatch):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)

        original = ViewService._find_viewer_event
        calls = []

        async def racing_lookup(self, vid, uid):
            calls.append(uid)
            return None if len(calls) == 1 else await original(self, vid, uid)

        monkeypatch.setattr(ViewService, "_find_viewer_event", racing_lookup)

        admission = await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + timedelta(minutes=7))

        assert admission.admitted is True
        assert admission.reason == AdmissionReason.REPEAT_VIEW
        assert admission.total_views == 2
        assert len(await ledger_rows(test_db, video_id)) == 1

    async def test_stale_repeat_loses_to_concurrent_admission(self, service, test_db, viewer, video, monkeypatch):
        """Two repeats past the cooldown: the one holding a stale row is rejected."""
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)
        stale = await service._find_viewer_event(video_id, viewer_id)
        later = T0 + timedelta(minutes=6)

        # Another request admits the repeat first, without refreshing our copy of the row
        await test_db.execute(
            update(ViewEvent)
            .where(ViewEvent.id == stale.id)
            .values(last_viewed_at=later, view_count=2)
            .execution_options(synchronize_session=False)
        )
        await test_db.execute(
            update(Video).where(Video.id == video_id).values(views=2).execution_options(synchronize_session=False)
        )
        await test_db.commit()
        assert stale.last_viewed_at == T0

        async def stale_lookup(self, vid, uid):
            return stale

        monkeypatch.setattr(ViewService, "_find_viewer_event", stale_lookup)

        admission = await service.admit_view(video_id, viewer_id=viewer_id, now=later)

        assert admission.admitted is False
        assert admission.reason == AdmissionReason.COOLDOWN
        assert admission.total_views == 2
        assert (await ledger_rows(test_db, video_id))[0].view_count == 2


class TestUnpublishedVideos:
    async def test_draft_views_rejected_for_other_viewers(self, service, test_db, make_video, owner, viewer):
        draft = await make_video(owner, title="Draft", is_published=False)
        draft_id, viewer_id = draft.id, viewer.id

        with pytest.raises(VideoNotFoundError):
            await service.admit_view(draft_id, viewer_id=viewer_id, now=T0)
        with pytest.raises(VideoNotFoundError):
            await service.admit_view(draft_id, network_address="203.0.113.7", now=T0)

        assert await ledger_rows(test_db, draft_id) == []
        assert await stored_views(test_db, draft_id) == 0

    async def test_owner_preview_of_draft_is_not_counted(self, service, make_video, owner):
        draft = await make_video(owner, title="Draft", is_published=False)

        admission = await service.admit_view(draft.id, viewer_id=owner.id, now=T0)

        assert admission.admitted is False
        assert admission.reason == AdmissionReason.OWN_VIDEO

    async def test_draft_counts_visible_to_owner_only(self, service, make_video, owner, viewer):
        draft = await make_video(owner, title="Draft", is_published=False)

        with pytest.raises(VideoNotFoundError):
            await service.get_view_counts(draft.id)
        with pytest.raises(VideoNotFoundError):
            await service.get_view_counts(draft.id, viewer_id=viewer.id)

        counts = await service.get_view_counts(draft.id, viewer_id=owner.id)
        assert counts["title"] == "Draft"


class TestFailures:
    async def test_unknown_video_raises_not_found(self, service, test_db, viewer):
        viewer_id = viewer.id

        with pytest.raises(VideoNotFoundError):
            await service.admit_view(9999, viewer_id=viewer_id, now=T0)

        assert await test_db.scalar(select(func.count(ViewEvent.id))) == 0

    async def test_storage_error_becomes_transient(self, service, viewer, video, monkeypatch):
        video_id, viewer_id = video.id, viewer.id

        async def broken(self, video_id):
            raise OperationalError("UPDATE videos", {}, Exception("database is locked"))

        monkeypatch.setattr(ViewService, "_increment_and_commit", broken)

        with pytest.raises(TransientStoreError) as exc_info:
            await service.admit_view(video_id, viewer_id=viewer_id, now=T0)

        assert exc_info.value.status_code == 503

    async def test_nothing_persisted_after_storage_error(self, service, test_db, viewer, video, monkeypatch):
        video_id, viewer_id = video.id, viewer.id
        original = ViewService._increment_and_commit

        async def broken(self, vid):
            raise OperationalError("UPDATE videos", {}, Exception("database is locked"))

        monkeypatch.setattr(ViewService, "_increment_and_commit", broken)
        with pytest.raises(TransientStoreError):
            await service.admit_view(video_id, viewer_id=viewer_id, now=T0)
        monkeypatch.setattr(ViewService, "_increment_and_commit", original)

        assert await ledger_rows(test_db, video_id) == []
        assert await stored_views(test_db, video_id) == 0


class TestReconciliation:
    async def test_reconcile_counts_ledger_rows(self, service, test_db, make_user, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        other_id = (await make_user("other")).id

        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + timedelta(minutes=6))
        await service.admit_view(video_id, viewer_id=other_id, now=T0)
        await service.admit_view(video_id, network_address="203.0.113.7", now=T0)

        assert await stored_views(test_db, video_id) == 4
        assert await service.reconcile(video_id) == 3
        assert await stored_views(test_db, video_id) == 3

    async def test_reconcile_is_idempotent(self, service, test_db, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)
        await test_db.execute(Video.__table__.update().where(Video.id == video_id).values(views=42))
        await test_db.commit()

        first = await service.reconcile(video_id)
        second = await service.reconcile(video_id)

        assert first == second == 1

    async def test_reconcile_unknown_video(self, service):
        with pytest.raises(VideoNotFoundError):
            await service.reconcile(12345)

    async def test_reconcile_all_repairs_drifted_counters(self, service, test_db, make_video, owner, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        untouched_id = (await make_video(owner, title="Quiet video")).id
        drifted_id = (await make_video(owner, title="Drifted video", views=17)).id

        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)

        repaired = await service.reconcile_all()

        assert repaired == 1
        assert await stored_views(test_db, drifted_id) == 0
        assert await stored_views(test_db, video_id) == 1
        assert await stored_views(test_db, untouched_id) == 0
        assert await service.reconcile_all() == 0


class TestLedgerMaintenance:
    async def test_view_counts_report_ledger_figures(self, service, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + timedelta(minutes=6))

        counts = await service.get_view_counts(video_id)

        assert counts["video_id"] == video_id
        assert counts["views"] == 2
        assert counts["ledger_views"] == 1
        assert counts["ledger_admissions"] == 2

    async def test_list_view_events_newest_first(self, service, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)
        await service.admit_view(video_id, network_address="203.0.113.7", now=T0 + timedelta(minutes=1))

        events = await service.list_view_events(video_id)

        assert [e.user_id for e in events] == [None, viewer_id]
        assert events[1].user.username == "viewer"

    async def test_reset_clears_ledger_and_counter(self, service, test_db, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)
        await service.admit_view(video_id, network_address="203.0.113.7", now=T0)

        deleted = await service.reset_views(video_id)

        assert deleted == 2
        assert await stored_views(test_db, video_id) == 0
        assert await ledger_rows(test_db, video_id) == []

        admission = await service.admit_view(video_id, viewer_id=viewer_id, now=T0 + timedelta(seconds=10))
        assert admission.admitted is True
        assert admission.reason == AdmissionReason.FIRST_VIEW

    async def test_deleting_video_cascades_ledger(self, service, test_db, viewer, video):
        video_id, viewer_id = video.id, viewer.id
        await service.admit_view(video_id, viewer_id=viewer_id, now=T0)

        await test_db.execute(Video.__table__.delete().where(Video.id == video_id))
        await test_db.commit()

        assert await test_db.scalar(select(func.count(ViewEvent.id))) == 0
