"""API router configuration."""

from fastapi import APIRouter

from app.api.endpoints import auth, cache, dimensions, health

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(dimensions.router, prefix="/dimensions", tags=["Dimensions"])
api_router.include_router(cache.router, prefix="/cache", tags=["Cache"])
