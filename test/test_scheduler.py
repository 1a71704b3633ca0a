"""
Tests for the periodic view reconciliation job
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import update

from videotube import scheduler as scheduler_module
from videotube.exceptions import TransientStoreError
from videotube.models.video import Video
from videotube.scheduler import RECONCILE_JOB_ID, reconcile_view_counters, schedule_view_reconciliation, scheduler
from videotube.services.view_service import ViewService


@pytest.fixture
def patched_db_context(session_factory):
    @asynccontextmanager
    async def _context():
        async with session_factory() as session:
            yield session

    with patch.object(scheduler_module, "get_db_context", _context):
        yield


@pytest.fixture
def clean_scheduler():
    yield scheduler
    while scheduler.get_job(RECONCILE_JOB_ID):
        scheduler.remove_job(RECONCILE_JOB_ID)


class TestScheduleViewReconciliation:
    def test_disabled_by_non_positive_interval(self, clean_scheduler):
        assert schedule_view_reconciliation(0) is False
        assert scheduler.get_job(RECONCILE_JOB_ID) is None

    def test_registers_interval_job(self, clean_scheduler):
        assert schedule_view_reconciliation(15) is True

        job = scheduler.get_job(RECONCILE_JOB_ID)
        assert job is not None
        assert job.trigger.interval.total_seconds() == 15 * 60


class TestReconcileViewCounters:
    async def test_repairs_drifted_counters(self, patched_db_context, test_db, viewer, video):
        video_id = video.id
        await ViewService(test_db).admit_view(video_id, viewer_id=viewer.id)
        await test_db.execute(update(Video).where(Video.id == video_id).values(views=40))
        await test_db.commit()

        repaired = await reconcile_view_counters()

        assert repaired == 1
        assert await ViewService(test_db).current_views(video_id) == 1

    async def test_nothing_to_repair(self, patched_db_context, video):
        assert await reconcile_view_counters() == 0

    async def test_store_failure_is_skipped(self, patched_db_context):
        with patch.object(ViewService, "reconcile_all", AsyncMock(side_effect=TransientStoreError())):
            assert await reconcile_view_counters() == 0
