"""
Startup tasks: create tables and make sure an administrator exists.
"""

import logging

from sqlalchemy.orm import Session

from georegistry.core.config import settings
from georegistry.core.database import Base, SessionLocal, engine, transaction
from georegistry.core.security import get_password_hash
from georegistry.models.user import User, ROLE_ADMIN

logger = logging.getLogger(__name__)


def create_tables() -> None:
    # Importing the models registers their tables on Base.metadata
    import georegistry.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def ensure_default_admin(db: Session) -> None:
    """
    Create the default admin when none exists and credentials are configured.

    Skipped unless DEFAULT_ADMIN_EMAIL and DEFAULT_ADMIN_PASSWORD are set, so a
    deployment never ends up with a well-known password. An existing account
    with that email is promoted instead of duplicated.
    """
    if db.query(User.id).filter(User.role == ROLE_ADMIN).first() is not None:
        return
    if not settings.DEFAULT_ADMIN_EMAIL or not settings.DEFAULT_ADMIN_PASSWORD:
        logger.warning("No admin present and DEFAULT_ADMIN_EMAIL/PASSWORD not set, skipping default admin")
        return

    email = settings.DEFAULT_ADMIN_EMAIL.strip().lower()
    with transaction(db):
        existing = db.query(User).filter(User.email == email).first()
        if existing is not None:
            existing.role = ROLE_ADMIN
            existing.is_active = True
            logger.warning(f"Promoted existing user {existing.id} to admin")
        else:
            admin = User(
                email=email,
                name=settings.DEFAULT_ADMIN_NAME,
                hashed_password=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
                role=ROLE_ADMIN,
                is_active=True,
            )
            db.add(admin)
            logger.warning(f"Created default admin {email}")


def bootstrap() -> None:
    create_tables()
    db = SessionLocal()
    try:
        ensure_default_admin(db)
    finally:
        db.close()
