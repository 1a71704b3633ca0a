import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from videotube.config import settings
from videotube.database import Base, engine
from videotube.exception_handlers import register_exception_handlers
from videotube.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from videotube.middleware.rate_limit import configure_rate_limiting
from videotube.routes import (
    comments,
    dashboard,
    healthcheck,
    likes,
    playlists,
    subscriptions,
    tweets,
    users,
    videos,
    views,
    websocket,
)
from videotube.scheduler import schedule_view_reconciliation, scheduler

setup_structured_logging(log_level="DEBUG" if settings.debug else "INFO", json_format=settings.log_json)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Tasks to run at application startup and shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")
    if settings.debug:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created (if not existing).")

    if schedule_view_reconciliation():
        scheduler.start()

    yield

    logger.info("Shutting down the application...")
    if scheduler.running:
        scheduler.shutdown(wait=False)
    await engine.dispose()


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Video sharing backend with deduplicated view counting",
        debug=settings.debug,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(app)
    configure_rate_limiting(app)

    # Include routers
    app.include_router(healthcheck.router, prefix="/api/v1/healthcheck")
    app.include_router(users.router, prefix="/api/v1/users")
    app.include_router(videos.router, prefix="/api/v1/videos")
    app.include_router(views.router, prefix="/api/v1/view")
    app.include_router(comments.router, prefix="/api/v1/comments")
    app.include_router(tweets.router, prefix="/api/v1/tweets")
    app.include_router(likes.router, prefix="/api/v1/likes")
    app.include_router(subscriptions.router, prefix="/api/v1/subscriptions")
    app.include_router(playlists.router, prefix="/api/v1/playlist")
    app.include_router(dashboard.router, prefix="/api/v1/dashboard")
    app.include_router(websocket.router, prefix="/ws")

    if settings.debug:
        logger.info(f"Running in {settings.environment} mode")
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
