"""
Tests for the creator dashboard.
"""

from conftest import get_auth_headers
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.models.like import Like
from videotube.models.subscription import Subscription
from videotube.services import dashboard_service
from videotube.services.view_service import ViewService


class TestDashboardService:
    async def test_channel_stats(self, test_db: AsyncSession, make_video, owner, viewer, video):
        """Totals cover every video of the owner, published or not."""
        draft = await make_video(owner, title="Draft", is_published=False)
        await ViewService(test_db).admit_view(video.id, viewer_id=viewer.id)
        test_db.add_all(
            [
                Like(user_id=viewer.id, video_id=video.id),
                Like(user_id=viewer.id, video_id=draft.id),
                Subscription(subscriber_id=viewer.id, channel_id=owner.id),
            ]
        )
        await test_db.commit()

        stats = await dashboard_service.get_channel_stats(test_db, owner.id)

        assert stats == {"total_videos": 2, "total_views": 1, "total_subscribers": 1, "total_likes": 2}

    async def test_stats_for_empty_channel(self, test_db: AsyncSession, viewer):
        stats = await dashboard_service.get_channel_stats(test_db, viewer.id)

        assert stats == {"total_videos": 0, "total_views": 0, "total_subscribers": 0, "total_likes": 0}

    async def test_channel_videos_with_like_counts(self, test_db: AsyncSession, make_video, owner, viewer, video):
        second = await make_video(owner, title="Second", is_published=False)
        test_db.add(Like(user_id=viewer.id, video_id=video.id))
        await test_db.commit()

        rows = await dashboard_service.get_channel_videos(test_db, owner.id)

        assert {v.id: count for v, count in rows} == {video.id: 1, second.id: 0}


class TestDashboardRoutes:
    async def test_stats_endpoint(self, client, owner, video):
        response = await client.get("/api/v1/dashboard/stats", headers=get_auth_headers(owner))

        assert response.status_code == 200
        assert response.json()["total_videos"] == 1

    async def test_videos_endpoint(self, client, owner, video):
        response = await client.get("/api/v1/dashboard/videos", headers=get_auth_headers(owner))

        assert response.status_code == 200
        assert response.json()[0]["like_count"] == 0
        assert response.json()[0]["owner"]["username"] == "owner"

    async def test_dashboard_requires_auth(self, client):
        response = await client.get("/api/v1/dashboard/stats")

        assert response.status_code == 401
