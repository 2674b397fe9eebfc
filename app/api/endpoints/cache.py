"""Cache maintenance endpoints."""

import structlog
from fastapi import APIRouter, status

from app.dependencies import CacheManagerDep
from app.services.dimension_service import DimensionService

router = APIRouter()
logger = structlog.get_logger()


@router.post("/revalidate", status_code=status.HTTP_200_OK, summary="Drop cached listings")
async def revalidate(cache_manager: CacheManagerDep) -> dict[str, int | bool]:
    """Invalidate cached dimension lists so the next read goes to the database."""
    removed = DimensionService(cache_manager).invalidate()
    logger.info("cache_revalidated", removed=removed)
    return {"revalidated": True, "removed": removed}
