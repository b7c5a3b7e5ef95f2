"""
Database configuration and session management.

This module provides the engine and connection pool shared by every service,
session management for FastAPI, transaction handling with deadlock retries and
the translation of store availability failures into TransientError.
"""

import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Generator, Any, Callable, Dict, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.exc import (
    SQLAlchemyError, OperationalError, DBAPIError, TimeoutError as PoolTimeoutError
)

from .config import settings
from .errors import TransientError

# Type variable for generic function return type
T = TypeVar('T')

logger = logging.getLogger(__name__)

# Default retry settings
MAX_RETRIES = 3
RETRY_DELAY = 0.1  # seconds


def engine_options(url: str) -> Dict[str, Any]:
    """
    Build engine keyword arguments for the given database URL.

    Pool sizing only applies to server databases; SQLite needs the
    same-thread check disabled because FastAPI runs sync routes in a thread pool.
    Every backend bounds its operations by DB_OPERATION_TIMEOUT; an expired
    wait raises OperationalError, which transaction() reports as TransientError.
    """
    timeout = settings.DB_OPERATION_TIMEOUT
    if url.startswith("sqlite"):
        # Busy timeout: how long a statement waits on a locked database
        return {"connect_args": {"check_same_thread": False, "timeout": timeout}}
    return {
        "connect_args": {
            "connect_timeout": timeout,
            "read_timeout": timeout,
            "write_timeout": timeout,
        },
        "pool_pre_ping": True,  # Enable automatic reconnection
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "isolation_level": "REPEATABLE READ",
    }


SQLALCHEMY_DATABASE_URL = settings.database_url

# Create SQLAlchemy engine with pooled connections
engine = create_engine(SQLALCHEMY_DATABASE_URL, echo=False, **engine_options(SQLALCHEMY_DATABASE_URL))


# Create SessionLocal class with transaction settings
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False  # Prevent expired object access after commit
)

# Create Base class for declarative models
Base = declarative_base()


def is_transient(error: Exception) -> bool:
    """
    Tell whether a database error means the store is unreachable or busy.

    Integrity and programming errors are not transient, connection loss,
    pool exhaustion and lock timeouts are.
    """
    if isinstance(error, PoolTimeoutError):
        return True
    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return True
    return isinstance(error, OperationalError)


# PUBLIC_INTERFACE
@contextmanager
def transaction(session: Session) -> Generator[Session, None, None]:
    """
    Context manager committing on success and rolling back on error.

    Store availability failures are re-raised as TransientError so callers can
    tell them apart from validation or lookup failures.

    Args:
        session (Session): SQLAlchemy session instance

    Yields:
        Session: The active database session
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        if is_transient(e):
            logger.error(f"Database unavailable: {e}")
            raise TransientError() from e
        raise
    except Exception:
        session.rollback()
        raise


def with_transaction_retry(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator for retrying database operations on deadlock.

    Args:
        func: Function to wrap with retry logic

    Returns:
        Wrapped function with retry logic
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        retries = 0
        while True:
            try:
                return func(*args, **kwargs)
            except TransientError as e:
                cause = e.__cause__
                if retries >= MAX_RETRIES or "deadlock" not in str(cause).lower():
                    raise
                retries += 1
                logger.warning(f"Deadlock detected, retry {retries}/{MAX_RETRIES}")
                time.sleep(RETRY_DELAY * retries)
    return wrapper


@contextmanager
def translate_store_errors() -> Generator[None, None, None]:
    """Re-raise store availability failures from read paths as TransientError."""
    try:
        yield
    except SQLAlchemyError as e:
        if is_transient(e):
            logger.error(f"Database unavailable: {e}")
            raise TransientError() from e
        raise


def check_database_health() -> bool:
    """
    Check that a pooled connection can be checked out.

    Returns:
        bool: True if the database answers, False otherwise
    """
    try:
        with engine.connect() as connection:
            connection.exec_driver_sql("SELECT 1")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return False


def get_db() -> Generator[Session, None, None]:
    """
    Get database session with automatic cleanup.

    Yields:
        Session: Database session

    Note:
        This function should be used as a FastAPI dependency.
        The session is automatically closed after the request is completed.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
