"""
Base Pydantic schemas and common schema utilities.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(from_attributes=True)


class BaseDBSchema(BaseSchema):
    """Base schema for database models with common fields."""

    id: str
    created_at: datetime
    updated_at: datetime


class BaseCreateSchema(BaseSchema):
    """Base schema for creating new records."""
    pass


class BaseUpdateSchema(BaseSchema):
    """
    Base schema for partial updates.

    Only fields present in the request are applied; read them with
    ``model_dump(exclude_unset=True)`` so an explicit null stays distinct
    from an absent field.
    """
    pass
