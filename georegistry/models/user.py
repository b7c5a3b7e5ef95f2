"""
User model definition.
"""

from sqlalchemy import Column, String, Boolean

from georegistry.models.base import BaseModel

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class User(BaseModel):
    """User model for storing account and credential information."""

    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(16), default=ROLE_USER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
