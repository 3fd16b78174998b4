"""Health check endpoints for monitoring."""
import logging

from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

from rangpic.core.database import AsyncDBPool
from rangpic.core.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["health"],
)


@router.get("/health")
async def health_check():
    """Liveness plus catalog reachability."""
    try:
        database_up = await AsyncDBPool.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check could not reach the catalog: %s", e)
        database_up = False

    if not database_up:
        raise ServiceUnavailableError(
            message="Image catalog is unreachable",
            detail={"status": "unhealthy", "database": "down"},
        )
    return {"status": "healthy", "database": "up"}
