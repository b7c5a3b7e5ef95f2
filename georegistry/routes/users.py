"""
User API endpoints: the caller's own profile and admin account management.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from georegistry.core.database import get_db
from georegistry.routes.deps import get_current_admin, get_current_user
from georegistry.schemas.user import (
    AdminUserCreate, AdminUserUpdate, PasswordChange, ProfileUpdate, UserIdentity, UserResponse
)
from georegistry.services import auth as auth_service
from georegistry.services import user as user_service


router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def get_profile(
    current: UserIdentity = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> UserResponse:
    """Get the caller's profile."""
    return user_service.get_user(db, current.id)


@router.put("/me", response_model=UserResponse)
def update_profile(
    user_data: ProfileUpdate,
    current: UserIdentity = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> UserResponse:
    """Update the caller's name or email."""
    return user_service.update_user(db, current.id, user_data)


@router.put("/me/password", status_code=204)
def change_password(
    body: PasswordChange,
    current: UserIdentity = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> None:
    """Change the caller's password; the current password is required."""
    auth_service.change_password(db, current, body.current_password, body.new_password)


@router.get("/", response_model=List[UserResponse])
def get_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    admin: UserIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db)
) -> List[UserResponse]:
    """Get list of users with pagination (admin only)."""
    return user_service.get_users(db, skip=skip, limit=limit)


@router.post("/", response_model=UserResponse, status_code=201)
def create_user(
    user_data: AdminUserCreate,
    admin: UserIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db)
) -> UserResponse:
    """Create a user with any role (admin only)."""
    return user_service.create_user(db, user_data)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    user_data: AdminUserUpdate,
    admin: UserIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db)
) -> UserResponse:
    """Update name, email, role or active flag of a user (admin only)."""
    return user_service.update_user(db, user_id, user_data)


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: str,
    admin: UserIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db)
) -> None:
    """Delete a user (admin only)."""
    user_service.delete_user(db, user_id)
