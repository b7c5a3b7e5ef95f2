"""
User schema definitions for request/response handling.

Request schemas take emails and passwords as plain strings; the identity
service validates them so every failing field is reported together.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from georegistry.schemas.base import BaseSchema, BaseDBSchema, BaseCreateSchema, BaseUpdateSchema


class RegisterRequest(BaseCreateSchema):
    """Self-service registration."""

    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(BaseSchema):
    email: str
    password: str


class AdminUserCreate(RegisterRequest):
    """Schema for an administrator creating an account."""

    role: str = "user"


class ProfileUpdate(BaseUpdateSchema):
    name: Optional[str] = None
    email: Optional[str] = None


class AdminUserUpdate(ProfileUpdate):
    """Schema for an administrator editing any account."""

    role: Optional[str] = None
    is_active: Optional[bool] = None


class PasswordChange(BaseSchema):
    current_password: str
    new_password: str


class UserResponse(BaseDBSchema):
    """Schema for user data in responses. Never carries the password hash."""

    email: str
    name: str
    role: str
    is_active: bool


class AuthResponse(BaseModel):
    user: UserResponse
    token: str
    token_type: str = "bearer"


class UserIdentity(BaseModel):
    """Resolved identity of the caller, as cached and passed to services."""

    id: str
    email: str
    name: str
    role: str
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
