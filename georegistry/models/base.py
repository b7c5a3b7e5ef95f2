"""
Base model configuration and common model utilities.
"""

import uuid
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declared_attr

from georegistry.core.database import Base

UTC = ZoneInfo("UTC")


def new_id() -> str:
    """Generate an opaque record identifier."""
    return str(uuid.uuid4())


def is_valid_id(value: Any) -> bool:
    """Tell whether a value is structurally a record identifier."""
    if not isinstance(value, str):
        return False
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False


def utcnow() -> datetime:
    return datetime.now(UTC)


class BaseModel(Base):
    """Base model class with common fields and utilities."""

    __abstract__ = True

    @declared_attr
    def __tablename__(cls) -> str:
        """Generate table name automatically based on class name."""
        return f"{cls.__name__.lower()}s"

    id = Column(String(36), primary_key=True, default=new_id)
    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False
    )
