"""Dimension service: active reference lists for dashboard filters."""

from sqlalchemy import Table, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.redis_client import CacheManager
from app.models.dimensions import buyers, campaigns, funnels, traffic_sources

# Wire name -> table
DIMENSION_TABLES: dict[str, Table] = {
    "buyers": buyers,
    "funnels": funnels,
    "trafficSources": traffic_sources,
    "campaigns": campaigns,
}

CACHE_PREFIX = "dimensions"


class DimensionService:
    """
    Service for dimension listings, optionally cached in Redis.

    With caching on, a record deactivated after its list was cached stays
    visible until the TTL runs out or the cache is revalidated. With a TTL of
    zero every read goes to the database.
    """

    def __init__(self, cache_manager: CacheManager | None = None, ttl: int | None = None):
        """Initialize service with optional cache manager and TTL override."""
        self.ttl = settings.dimension_cache_ttl if ttl is None else ttl
        self.cache = cache_manager
        self.caching = cache_manager is not None and self.ttl > 0

    @staticmethod
    def _cache_key(dimension: str) -> str:
        return f"{CACHE_PREFIX}:{dimension}:active"

    async def list_active(self, db: AsyncSession, dimension: str) -> list[dict]:
        """
        List active records of a dimension ordered by name.

        Args:
            db: Database session
            dimension: Wire name of the dimension (see DIMENSION_TABLES)

        Returns:
            Records with is_active = true, name ascending
        """
        table = DIMENSION_TABLES[dimension]

        if self.caching:
            cached = self.cache.get_json(self._cache_key(dimension))
            if cached is not None:
                return cached

        query = select(table).where(table.c.is_active.is_(True)).order_by(table.c.name.asc())
        result = await db.execute(query)
        rows = [dict(row) for row in result.mappings().all()]

        if self.caching:
            self.cache.set_json(self._cache_key(dimension), rows, ttl=self.ttl)

        return rows

    async def list_all_active(self, db: AsyncSession) -> dict[str, list[dict]]:
        """Active records for every dimension."""
        return {name: await self.list_active(db, name) for name in DIMENSION_TABLES}

    def invalidate(self) -> int:
        """Drop cached dimension lists. Returns the number of keys removed."""
        if not self.cache:
            return 0
        return self.cache.delete_pattern(f"{CACHE_PREFIX}:*")
