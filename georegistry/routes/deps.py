"""
Request dependencies shared by the routers.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from georegistry.core.database import get_db
from georegistry.core.errors import AuthenticationError
from georegistry.models.location import Location
from georegistry.schemas.user import UserIdentity
from georegistry.services import auth as auth_service
from georegistry.services import location as location_service

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> UserIdentity:
    """Resolve the bearer token of the request to an active user."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    return auth_service.verify_session(db, credentials.credentials)


def get_current_admin(current: UserIdentity = Depends(get_current_user)) -> UserIdentity:
    auth_service.require_admin(current)
    return current


def get_writable_location(
    location_id: str,
    current: UserIdentity = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Location:
    """
    Load a location the caller may modify.

    Dependencies are solved before the request body is validated, so a caller
    who is neither owner nor admin gets 403 whatever the body contains.
    """
    db_location = location_service.get_location(db, location_id)
    auth_service.require_owner_or_admin(current, db_location.owner_id)
    return db_location
