"""
Identity and access service.

Registration, login and session verification on top of the password and token
primitives in core.security, plus the ownership-or-admin authorization rule
every mutating location operation goes through.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple, Union

from sqlalchemy.orm import Session

from georegistry.core.errors import AuthenticationError, AuthorizationError, ValidationError
from georegistry.core.security import (
    DUMMY_PASSWORD_HASH, TokenError, create_access_token, decode_access_token, verify_password
)
from georegistry.models.user import User
from georegistry.schemas.user import AdminUserCreate, UserIdentity
from georegistry.services import user as user_service

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_SESSION = "Invalid or expired session"


@dataclass(frozen=True)
class Permitted:
    """Authorization granted."""

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Denied:
    """Authorization refused, with the reason reported to the caller."""

    reason: str

    def __bool__(self) -> bool:
        return False


AuthorizationDecision = Union[Permitted, Denied]


def issue_token(user: User) -> str:
    return create_access_token(user.id, user.role)


# PUBLIC_INTERFACE
def register(db: Session, email: str, password: str, name: str) -> Tuple[User, str]:
    """
    Register a new user and log them in.

    The user is committed before the token is issued, so a failure while
    signing the token leaves an account that can still log in.

    Returns:
        Tuple[User, str]: The created user and a session token

    Raises:
        ValidationError: Listing every malformed field
        ConflictError: If the email is already registered
    """
    user = user_service.create_user(
        db, AdminUserCreate(email=email, password=password, name=name, role="user")
    )
    logger.info(f"Registered user {user.id}")
    return user, issue_token(user)


# PUBLIC_INTERFACE
def login(db: Session, email: str, password: str) -> Tuple[User, str]:
    """
    Check credentials and issue a token.

    Unknown email, inactive account and wrong password all raise the same
    AuthenticationError.

    Returns:
        Tuple[User, str]: The stored user and a fresh session token
    """
    user = user_service.get_user_by_email(db, email or "")
    if user is None or not user.is_active:
        # Spend the same hashing time as a real check
        verify_password(password or "", DUMMY_PASSWORD_HASH)
        logger.warning("Login failed: unknown or inactive account")
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not verify_password(password or "", user.hashed_password):
        logger.warning(f"Login failed: wrong password for user {user.id}")
        raise AuthenticationError(INVALID_CREDENTIALS)

    logger.info(f"User {user.id} logged in")
    return user, issue_token(user)


# PUBLIC_INTERFACE
def verify_session(db: Session, token: str) -> UserIdentity:
    """
    Resolve a bearer token to the identity of an active user.

    Raises:
        AuthenticationError: If the token is missing, malformed, tampered with
            or expired, or its subject is no longer an active user
    """
    try:
        payload = decode_access_token(token)
    except TokenError as e:
        logger.info(f"Rejected session token: {e}")
        raise AuthenticationError(INVALID_SESSION)

    identity = user_service.get_identity(db, payload["sub"])
    if identity is None or not identity.is_active:
        logger.info(f"Rejected session token for unknown or inactive user {payload['sub']}")
        raise AuthenticationError(INVALID_SESSION)
    return identity


# PUBLIC_INTERFACE
def authorize_owner_or_admin(actor: UserIdentity, owner_id: str) -> AuthorizationDecision:
    """Permit the resource owner or any admin; a pure function of its arguments."""
    if actor.id == owner_id:
        return Permitted()
    if actor.is_admin:
        return Permitted()
    return Denied("Only the owner or an administrator can modify this resource")


# PUBLIC_INTERFACE
def require_owner_or_admin(actor: UserIdentity, owner_id: str) -> None:
    decision = authorize_owner_or_admin(actor, owner_id)
    if isinstance(decision, Denied):
        logger.warning(f"User {actor.id} denied write on resource owned by {owner_id}")
        raise AuthorizationError(decision.reason)


# PUBLIC_INTERFACE
def require_admin(actor: UserIdentity) -> None:
    if not actor.is_admin:
        logger.warning(f"User {actor.id} denied admin-only operation")
        raise AuthorizationError("Administrator role required")


# PUBLIC_INTERFACE
def change_password(
    db: Session, actor: UserIdentity, current_password: str, new_password: str
) -> None:
    """
    Replace the actor's password after re-checking the current one.

    A live session is not enough: the current password must match the stored
    hash.

    Raises:
        ValidationError: If the current password does not match or the new one
            fails the length policy
    """
    user = user_service.get_user(db, actor.id)

    errors: List[Dict[str, str]] = []
    if not verify_password(current_password or "", user.hashed_password):
        errors.append({"field": "current_password", "message": "Current password is incorrect"})
    user_service.check_password(new_password, errors, field="new_password")
    if errors:
        raise ValidationError(errors)

    user_service.set_password(db, user.id, new_password)
    logger.info(f"User {user.id} changed password")
