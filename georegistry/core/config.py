"""
Core configuration module for the application.
Handles environment variables and application settings.
"""

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Geo Registry"
    DEBUG: bool = False  # Expose error details in 500 responses
    LOG_LEVEL: str = "INFO"

    # Database Settings
    DB_TYPE: str = "sqlite"  # Options: mysql, sqlite
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_USER: str = "user"
    MYSQL_PASSWORD: str = "password"
    MYSQL_DB: str = "georegistry"
    SQLITE_DB: str = "georegistry.db"  # SQLite database file name
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30  # seconds to wait for a pooled connection
    DB_POOL_RECYCLE: int = 1800  # seconds before a connection is recycled
    DB_OPERATION_TIMEOUT: int = 10  # seconds for connect, read, write or a lock wait

    # Redis Settings
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_TEST_DB: int = 1  # Separate database for testing
    CACHE_ENABLED: bool = True
    USER_CACHE_EXPIRE: int = 3600  # seconds

    # Token Settings
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Account policy
    PASSWORD_MIN_LENGTH: int = 6
    DEFAULT_ADMIN_EMAIL: str = ""
    DEFAULT_ADMIN_PASSWORD: str = ""
    DEFAULT_ADMIN_NAME: str = "Administrator"

    # Location registry
    LOCATION_PROFILE: str = "basic"  # Options: basic, business
    SEARCH_RESULT_LIMIT: int = 10

    model_config = ConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

    @property
    def database_url(self) -> str:
        """Build the SQLAlchemy URL for the configured backend."""
        if self.DB_TYPE == "mysql":
            return (
                f"mysql://{self.MYSQL_USER}:{self.MYSQL_PASSWORD}@"
                f"{self.MYSQL_HOST}:{self.MYSQL_PORT}/{self.MYSQL_DB}"
            )
        return f"sqlite:///{self.SQLITE_DB}"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


# Export settings instance
settings = get_settings()
