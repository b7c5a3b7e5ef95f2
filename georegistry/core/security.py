"""
Password hashing and session token primitives.

Hashing lives behind verify_password/get_password_hash so the scheme and its
cost can change without touching callers; tokens are signed JWTs produced and
checked only through create_access_token/decode_access_token.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt  # PyJWT
from passlib.context import CryptContext

from .config import settings

# PUBLIC_INTERFACE
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=4,  # Number of iterations
    argon2__memory_cost=65536,  # Memory usage in kibibytes (64MB)
    argon2__parallelism=4,  # Number of parallel threads
    argon2__salt_size=16,  # Salt size in bytes
    argon2__hash_len=32,  # Hash length in bytes
)

# Verified against when a login names an unknown email
DUMMY_PASSWORD_HASH = pwd_context.hash("georegistry-dummy-password")


class TokenError(Exception):
    """Raised for any token that is malformed, tampered with or expired."""


# PUBLIC_INTERFACE
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        plain_password: The plaintext password to verify
        hashed_password: The hashed password to verify against

    Returns:
        bool: True if the password matches, False otherwise
    """
    if not hashed_password or plain_password is None:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


# PUBLIC_INTERFACE
def get_password_hash(password: str) -> str:
    """
    Generate a secure password hash using Argon2.

    Args:
        password: The plaintext password to hash

    Returns:
        str: The hashed password
    """
    return pwd_context.hash(password)


# PUBLIC_INTERFACE
def create_access_token(
    user_id: str,
    role: str = "user",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT for a user.

    Args:
        user_id: Identifier stored in the ``sub`` claim
        role: User role, informational only; authorization re-reads the user
        expires_delta: Token lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        str: Encoded token
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


# PUBLIC_INTERFACE
def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode a token, checking signature and expiry.

    Args:
        token: Encoded token

    Returns:
        Dict[str, Any]: Token claims

    Raises:
        TokenError: If the token is malformed, tampered with, expired or has no subject
    """
    if not token:
        raise TokenError("Token is empty")
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenError("Token has expired") from e
    except jwt.PyJWTError as e:
        raise TokenError(f"Invalid token: {e}") from e
    if not isinstance(payload.get("sub"), str) or not payload["sub"]:
        raise TokenError("Token has no subject")
    return payload
