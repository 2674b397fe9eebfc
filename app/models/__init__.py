"""Database models."""

from app.models.dimensions import buyers, campaigns, funnels, traffic_sources
from app.models.users import refresh_tokens, sessions, users

__all__ = [
    "buyers",
    "campaigns",
    "funnels",
    "refresh_tokens",
    "sessions",
    "traffic_sources",
    "users",
]
