"""
Pytest configuration and fixtures for VideoTube tests
"""

import os
import sys
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

# Settings are read at import time, so configure them before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-access-secret")
os.environ.setdefault("REFRESH_SECRET_KEY", "test-refresh-secret")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["VIEW_RECONCILE_INTERVAL_MINUTES"] = "0"

from main import app  # noqa: E402
from videotube.auth import create_access_token, hash_password  # noqa: E402
from videotube.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from videotube.models.user import User  # noqa: E402
from videotube.models.video import Video  # noqa: E402
from videotube.utils.clock import get_clock  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "Str0ng!Pass"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


class FrozenClock:
    """Callable clock for tests; time only moves when ``advance`` is called."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="function")
async def session_factory():
    """
    Fresh in-memory database per test.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest.fixture(scope="function")
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
async def client(session_factory, clock) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the app, bound to the test database and clock."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(test_db: AsyncSession):
    """Factory creating users with a known password."""

    async def _make_user(username: str, **kwargs) -> User:
        user = User(
            username=username,
            email=kwargs.pop("email", f"{username}@example.com"),
            full_name=kwargs.pop("full_name", username.title()),
            avatar_url=kwargs.pop("avatar_url", f"https://cdn.example.com/avatars/{username}.png"),
            hashed_password=TEST_PASSWORD_HASH,
            **kwargs,
        )
        test_db.add(user)
        await test_db.commit()
        await test_db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_video(test_db: AsyncSession):
    """Factory creating videos for an owner."""

    async def _make_video(owner: User, title: str = "Test Video", **kwargs) -> Video:
        video = Video(
            owner_id=owner.id,
            title=title,
            description=kwargs.pop("description", f"About {title}"),
            video_url=kwargs.pop("video_url", "https://cdn.example.com/videos/test.mp4"),
            thumbnail_url=kwargs.pop("thumbnail_url", "https://cdn.example.com/thumbs/test.png"),
            duration=kwargs.pop("duration", 120.0),
            **kwargs,
        )
        test_db.add(video)
        await test_db.commit()
        await test_db.refresh(video)
        return video

    return _make_video


@pytest.fixture
async def owner(make_user) -> User:
    return await make_user("owner")


@pytest.fixture
async def viewer(make_user) -> User:
    return await make_user("viewer")


@pytest.fixture
async def video(make_video, owner) -> Video:
    return await make_video(owner, title="Owner's first video")


def get_auth_headers(user_or_id) -> dict:
    """Bearer header for a user (or user id)."""
    user_id = getattr(user_or_id, "id", user_or_id)
    token = create_access_token(data={"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}
