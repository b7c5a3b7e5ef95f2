"""
Registration and login endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from georegistry.core.database import get_db
from georegistry.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from georegistry.services import auth as auth_service


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    user_data: RegisterRequest,
    db: Session = Depends(get_db)
) -> AuthResponse:
    """Create an account and return a session token."""
    user, token = auth_service.register(db, user_data.email, user_data.password, user_data.name)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db)
) -> AuthResponse:
    """Exchange email and password for a session token."""
    user, token = auth_service.login(db, credentials.email, credentials.password)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)
