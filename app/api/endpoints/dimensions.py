"""Dimension listing endpoints."""

import structlog
from fastapi import APIRouter, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InternalErrorException
from app.dependencies import CacheManagerDep, DatabaseSession
from app.schemas.dimensions import (
    BuyersResponse,
    CampaignsResponse,
    DimensionsResponse,
    FunnelsResponse,
    TrafficSourcesResponse,
)
from app.services.dimension_service import DimensionService

router = APIRouter()
logger = structlog.get_logger()


async def _fetch(
    service: DimensionService, db: AsyncSession, dimension: str, label: str
) -> list[dict]:
    """Fetch one dimension, turning store failures into a generic 500."""
    try:
        return await service.list_active(db, dimension)
    except Exception as e:
        logger.error("dimension_fetch_failed", dimension=dimension, error=str(e), exc_info=e)
        raise InternalErrorException(f"Failed to fetch {label}") from e


@router.get("", response_model=DimensionsResponse, status_code=status.HTTP_200_OK)
async def list_dimensions(
    db: DatabaseSession, cache_manager: CacheManagerDep
) -> DimensionsResponse:
    """All active dimensions in one response."""
    service = DimensionService(cache_manager)
    try:
        lists = await service.list_all_active(db)
    except Exception as e:
        logger.error("dimension_fetch_failed", dimension="all", error=str(e), exc_info=e)
        raise InternalErrorException("Failed to fetch dimensions") from e
    return DimensionsResponse.model_validate(lists)


@router.get("/buyers", response_model=BuyersResponse, status_code=status.HTTP_200_OK)
async def list_buyers(db: DatabaseSession, cache_manager: CacheManagerDep) -> BuyersResponse:
    """Active buyers ordered by name."""
    buyers = await _fetch(DimensionService(cache_manager), db, "buyers", "buyers")
    return BuyersResponse.model_validate({"buyers": buyers})


@router.get("/funnels", response_model=FunnelsResponse, status_code=status.HTTP_200_OK)
async def list_funnels(db: DatabaseSession, cache_manager: CacheManagerDep) -> FunnelsResponse:
    """Active funnels ordered by name."""
    funnels = await _fetch(DimensionService(cache_manager), db, "funnels", "funnels")
    return FunnelsResponse.model_validate({"funnels": funnels})


@router.get(
    "/traffic-sources", response_model=TrafficSourcesResponse, status_code=status.HTTP_200_OK
)
async def list_traffic_sources(
    db: DatabaseSession, cache_manager: CacheManagerDep
) -> TrafficSourcesResponse:
    """Active traffic sources ordered by name."""
    sources = await _fetch(
        DimensionService(cache_manager), db, "trafficSources", "traffic sources"
    )
    return TrafficSourcesResponse.model_validate({"traffic_sources": sources})


@router.get("/campaigns", response_model=CampaignsResponse, status_code=status.HTTP_200_OK)
async def list_campaigns(
    db: DatabaseSession, cache_manager: CacheManagerDep
) -> CampaignsResponse:
    """Active campaigns ordered by name."""
    campaigns = await _fetch(DimensionService(cache_manager), db, "campaigns", "campaigns")
    return CampaignsResponse.model_validate({"campaigns": campaigns})
