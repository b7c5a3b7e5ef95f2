"""
User service for account administration and identity lookups with Redis caching.
"""

import logging
from typing import Dict, List, Optional

from email_validator import validate_email, EmailNotValidError
from redis import RedisError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from georegistry.core.cache import cache_get, cache_set, cache_delete
from georegistry.core.config import settings
from georegistry.core.database import transaction, translate_store_errors, with_transaction_retry
from georegistry.core.errors import ConflictError, NotFoundError, ValidationError
from georegistry.core.security import get_password_hash
from georegistry.models.base import is_valid_id, utcnow
from georegistry.models.user import User, ROLES, ROLE_USER
from georegistry.schemas.user import AdminUserCreate, ProfileUpdate, UserIdentity

# Configure logging
logger = logging.getLogger(__name__)

# Cache key patterns
USER_KEY = "user:{}"  # Format: user:<id> - resolved identity, never the password hash


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_email(email: Optional[str], errors: List[Dict[str, str]], field: str = "email") -> None:
    """Append an error for a missing or syntactically invalid email."""
    if not email or not email.strip():
        errors.append({"field": field, "message": "Email is required"})
        return
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        errors.append({"field": field, "message": "Enter a valid email address"})


def check_password(password: Optional[str], errors: List[Dict[str, str]], field: str = "password") -> None:
    """Append an error when a password does not meet the length policy."""
    if password is None or len(password) < settings.PASSWORD_MIN_LENGTH:
        errors.append({
            "field": field,
            "message": f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters",
        })


def check_name(name: Optional[str], errors: List[Dict[str, str]]) -> None:
    if name is None or not name.strip():
        errors.append({"field": "name", "message": "Name is required"})


def check_user_id(user_id: str) -> str:
    """Validate a user identifier and return it in its stored, lower-case form."""
    if not is_valid_id(user_id):
        raise ValidationError.single("id", "Invalid identifier")
    return user_id.lower()


def to_identity(user: User) -> UserIdentity:
    return UserIdentity.model_validate(user)


def _email_taken(db: Session, email: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def invalidate_identity(user_id: str) -> bool:
    """
    Drop a cached identity.

    A failed delete leaves the entry in Redis until it expires; get_identity
    checks role and active flag of every cached entry, so it is only ever
    served with the current values.
    """
    if not settings.CACHE_ENABLED:
        return True
    if cache_delete(USER_KEY.format(user_id)):
        return True
    logger.warning(f"Could not invalidate cached identity for user {user_id}, it will be revalidated on read")
    return False


def _revalidate(db: Session, identity: UserIdentity) -> Optional[UserIdentity]:
    """Check a cached identity against the role and active flag stored in the database."""
    with translate_store_errors():
        row = db.query(User.role, User.is_active).filter(User.id == identity.id).first()
    if row is None:
        invalidate_identity(identity.id)
        return None
    if row.role != identity.role or row.is_active != identity.is_active:
        logger.warning(f"Stale cached identity for user {identity.id}")
        invalidate_identity(identity.id)
        return identity.model_copy(update={"role": row.role, "is_active": row.is_active})
    return identity


# PUBLIC_INTERFACE
def get_identity(db: Session, user_id: str) -> Optional[UserIdentity]:
    """
    Resolve a user id to an identity, reading through the cache.

    Cached entries only spare loading the profile; role and is_active always
    come from the database, so a missed invalidation or a concurrent re-cache
    of an old row never keeps a deactivated or demoted user's access alive.

    Args:
        db: Database session
        user_id: User ID

    Returns:
        Optional[UserIdentity]: Identity if the user exists, None otherwise
    """
    if not is_valid_id(user_id):
        return None
    user_id = user_id.lower()
    cache_key = USER_KEY.format(user_id)
    redis_available = True
    try:
        cached = cache_get(cache_key)
    except RedisError as e:
        logger.error(f"Redis error while getting user {user_id}: {e}")
        cached = None
        redis_available = False

    if cached:
        try:
            identity = UserIdentity.model_validate(cached)
        except ValueError as e:
            logger.warning(f"Invalid cache data for user {user_id}: {e}")
            invalidate_identity(user_id)
        else:
            if identity.id == user_id:
                return _revalidate(db, identity)
            invalidate_identity(user_id)

    with translate_store_errors():
        db_user = db.query(User).filter(User.id == user_id).first()
    if db_user is None:
        return None

    identity = to_identity(db_user)
    if redis_available:
        cache_set(cache_key, identity.model_dump(), settings.USER_CACHE_EXPIRE)
    return identity


# PUBLIC_INTERFACE
def get_user(db: Session, user_id: str) -> User:
    """
    Get user by ID.

    Raises:
        ValidationError: If the identifier is malformed
        NotFoundError: If no user has this identifier
    """
    user_id = check_user_id(user_id)
    with translate_store_errors():
        db_user = db.query(User).filter(User.id == user_id).first()
    if db_user is None:
        raise NotFoundError("User not found")
    return db_user


# PUBLIC_INTERFACE
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Get user by email, case-insensitively.

    Returns:
        Optional[User]: User object if found, None otherwise
    """
    with translate_store_errors():
        return db.query(User).filter(User.email == normalize_email(email)).first()


# PUBLIC_INTERFACE
def get_users(db: Session, skip: int = 0, limit: int = 100) -> List[User]:
    """
    Get list of users with pagination.

    Raises:
        ValueError: If skip is negative or limit is not positive
    """
    if skip < 0:
        raise ValueError("skip must be non-negative")
    if limit <= 0:
        raise ValueError("limit must be positive")
    with translate_store_errors():
        return db.query(User).order_by(User.created_at).offset(skip).limit(limit).all()


# PUBLIC_INTERFACE
@with_transaction_retry
def create_user(db: Session, user_data: AdminUserCreate) -> User:
    """
    Create a new user with a freshly hashed password.

    Args:
        db: Database session
        user_data: Account data; role defaults to "user"

    Returns:
        User: Created user object

    Raises:
        ValidationError: Listing every malformed field
        ConflictError: If the email is already registered
    """
    errors: List[Dict[str, str]] = []
    check_email(user_data.email, errors)
    check_password(user_data.password, errors)
    check_name(user_data.name, errors)
    if user_data.role not in ROLES:
        errors.append({"field": "role", "message": f"Role must be one of: {', '.join(ROLES)}"})
    if errors:
        raise ValidationError(errors)

    email = normalize_email(user_data.email)
    if _email_taken(db, email):
        raise ConflictError("Email is already registered")

    db_user = User(
        email=email,
        name=user_data.name.strip(),
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role or ROLE_USER,
        is_active=True,
    )
    try:
        with transaction(db):
            db.add(db_user)
    except IntegrityError:
        # Lost a race against a concurrent registration with the same email
        raise ConflictError("Email is already registered")

    logger.info(f"Created user {db_user.id} with role {db_user.role}")
    return db_user


# PUBLIC_INTERFACE
@with_transaction_retry
def update_user(db: Session, user_id: str, user_data: ProfileUpdate) -> User:
    """
    Apply a partial update to a user.

    Accepts a ProfileUpdate (self-service: name, email) or an AdminUserUpdate
    (adds role and is_active). Absent fields are left untouched.

    Raises:
        ValidationError: Listing every malformed field
        NotFoundError: If the user does not exist
        ConflictError: If the new email belongs to another user
    """
    user_id = check_user_id(user_id)
    update_data = user_data.model_dump(exclude_unset=True)

    errors: List[Dict[str, str]] = []
    values = {}
    if "name" in update_data:
        check_name(update_data["name"], errors)
        if update_data["name"] is not None:
            values[User.name] = update_data["name"].strip()
    if "email" in update_data:
        check_email(update_data["email"], errors)
        if update_data["email"]:
            values[User.email] = normalize_email(update_data["email"])
    if "role" in update_data:
        if update_data["role"] not in ROLES:
            errors.append({"field": "role", "message": f"Role must be one of: {', '.join(ROLES)}"})
        else:
            values[User.role] = update_data["role"]
    if "is_active" in update_data:
        if update_data["is_active"] is None:
            errors.append({"field": "is_active", "message": "is_active must be a boolean"})
        else:
            values[User.is_active] = update_data["is_active"]
    if errors:
        raise ValidationError(errors)

    db_user = get_user(db, user_id)
    if User.email in values and _email_taken(db, values[User.email], exclude_id=user_id):
        raise ConflictError("Email is already registered")

    if values:
        values[User.updated_at] = utcnow()
        try:
            with transaction(db):
                db.query(User).filter(User.id == user_id).update(values, synchronize_session=False)
        except IntegrityError:
            raise ConflictError("Email is already registered")
        db.refresh(db_user)
        invalidate_identity(user_id)
        logger.info(f"Updated user {user_id}: {sorted(column.key for column in values)}")

    return db_user


# PUBLIC_INTERFACE
@with_transaction_retry
def set_password(db: Session, user_id: str, new_password: str) -> None:
    """Store a new password hash for a user and drop the cached identity."""
    hashed = get_password_hash(new_password)
    with transaction(db):
        db.query(User).filter(User.id == user_id).update(
            {User.hashed_password: hashed, User.updated_at: utcnow()},
            synchronize_session=False,
        )
    invalidate_identity(user_id)


# PUBLIC_INTERFACE
@with_transaction_retry
def delete_user(db: Session, user_id: str) -> None:
    """
    Delete a user. Locations owned by the user are left in place.

    Raises:
        ValidationError: If the identifier is malformed
        NotFoundError: If the user does not exist
    """
    db_user = get_user(db, user_id)
    with transaction(db):
        db.delete(db_user)
    invalidate_identity(db_user.id)
    logger.info(f"Deleted user {db_user.id}")
