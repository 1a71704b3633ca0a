import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.config import settings
from videotube.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Healthcheck"])


@router.get("")
async def healthcheck(db: AsyncSession = Depends(get_db)):
    """Liveness plus a database ping. Responds 503 when the database is unreachable."""
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Healthcheck database ping failed: {e}")
        database = "unavailable"

    body = {
        "status": "ok" if database == "ok" else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "database": database,
    }
    return JSONResponse(status_code=200 if database == "ok" else 503, content=body)
