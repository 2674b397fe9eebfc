"""User schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserCreate(CamelModel):
    """Schema for creating a new user."""

    email: EmailStr
    password: str = Field(..., min_length=8)


class UserResponse(CamelModel):
    """Public projection of a user; secrets are never part of it."""

    id: int
    email: str
    is_verified: bool
    two_factor_enabled: bool
    created_at: datetime | None = None
