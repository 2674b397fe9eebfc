"""Normalized dimension tables used for dashboard filtering."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    func,
    true,
)

metadata = MetaData()


def _dimension_columns() -> list[Column]:
    """Columns shared by every dimension table."""
    return [
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", String(255), nullable=False),
        Column("partner_id", Integer, nullable=False),
        # Raw partner value and the partner field it came from (webID, sub2, source...)
        Column("original_value", String(255), nullable=False),
        Column("original_field", String(100), nullable=False),
        Column("is_active", Boolean, nullable=False, server_default=true()),
        Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
        Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    ]


buyers = Table(
    "buyers",
    metadata,
    *_dimension_columns(),
    Index("buyers_partner_value_idx", "partner_id", "original_value"),
    Index("buyers_name_idx", "name"),
)

funnels = Table(
    "funnels",
    metadata,
    *_dimension_columns(),
    # social, search, display...
    Column("category", String(100)),
    Index("funnels_partner_value_idx", "partner_id", "original_value"),
    Index("funnels_name_idx", "name"),
    Index("funnels_category_idx", "category"),
)

traffic_sources = Table(
    "traffic_sources",
    metadata,
    *_dimension_columns(),
    # organic, paid, social...
    Column("source_type", String(100)),
    Index("sources_partner_value_idx", "partner_id", "original_value"),
    Index("sources_name_idx", "name"),
    Index("sources_type_idx", "source_type"),
)

campaigns = Table(
    "campaigns",
    metadata,
    *_dimension_columns(),
    # acquisition, retention...
    Column("campaign_type", String(100)),
    Index("campaigns_partner_value_idx", "partner_id", "original_value"),
    Index("campaigns_name_idx", "name"),
)
