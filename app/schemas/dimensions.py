"""Dimension listing schemas."""

from datetime import datetime

from app.schemas.users import CamelModel


class DimensionItem(CamelModel):
    """Fields shared by every dimension record."""

    id: int
    name: str
    partner_id: int
    original_value: str
    original_field: str
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Buyer(DimensionItem):
    """Buyer dimension."""


class Funnel(DimensionItem):
    """Funnel dimension."""

    category: str | None = None


class TrafficSource(DimensionItem):
    """Traffic source dimension."""

    source_type: str | None = None


class Campaign(DimensionItem):
    """Campaign dimension."""

    campaign_type: str | None = None


class BuyersResponse(CamelModel):
    buyers: list[Buyer]


class FunnelsResponse(CamelModel):
    funnels: list[Funnel]


class TrafficSourcesResponse(CamelModel):
    traffic_sources: list[TrafficSource]


class CampaignsResponse(CamelModel):
    campaigns: list[Campaign]


class DimensionsResponse(CamelModel):
    """All dimension lists in one payload."""

    buyers: list[Buyer]
    funnels: list[Funnel]
    traffic_sources: list[TrafficSource]
    campaigns: list[Campaign]
