"""
Core configuration module for Sessionware.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the SESSIONWARE_ prefix.

The session persistence engine never reads these settings per request: it takes
an immutable snapshot (PersistenceConfig) once, at construction time.

Pattern: Pydantic BaseSettings with an lru_cache singleton accessor
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


SUPPORTED_CACHE_LIMITERS = frozenset(
    {"nocache", "public", "private", "private_no_expire"}
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All fields use the SESSIONWARE_ prefix for environment variables.
    Example: SESSIONWARE_COOKIE_NAME=sid
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="sessionware",
        description="Name of the service for logging and identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    # =========================================================================
    # Persistence Engine
    # =========================================================================
    use_lazy_session: bool = Field(
        default=True,
        description="Defer opening the session store until data is first accessed",
    )
    non_locking: bool = Field(
        default=False,
        description="Read session data and release the store lock immediately",
    )

    # =========================================================================
    # Session Store (Redis)
    # =========================================================================
    store_enabled: bool = Field(
        default=True,
        description="Administrative switch for the session store",
    )
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for session storage",
    )
    redis_key_prefix: str = Field(
        default="session:",
        description="Prefix for session keys in Redis",
    )
    session_ttl_seconds: int = Field(
        default=1440,
        ge=60,
        description="Time-to-live of stored session data in seconds",
    )
    lock_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Maximum time a per-session lock is held before it expires",
    )
    lock_blocking_timeout_seconds: float = Field(
        default=10.0,
        ge=0,
        description="Maximum time to wait for a per-session lock",
    )

    # =========================================================================
    # Session Cookie
    # =========================================================================
    cookie_name: str = Field(
        default="sessionid",
        min_length=1,
        description="Name of the session cookie",
    )
    cookie_lifetime: int = Field(
        default=0,
        ge=0,
        description="Default cookie lifetime in seconds (0 = browser session)",
    )
    cookie_domain: str = Field(default="", description="Cookie Domain attribute")
    cookie_path: str = Field(default="/", description="Cookie Path attribute")
    cookie_secure: bool = Field(default=False, description="Send the Secure flag")
    cookie_httponly: bool = Field(default=False, description="Send the HttpOnly flag")
    cookie_samesite: Optional[str] = Field(
        default=None,
        description="Cookie SameSite attribute (Lax, Strict or None)",
    )

    # =========================================================================
    # Cache Limiter
    # =========================================================================
    cache_limiter: str = Field(
        default="nocache",
        description="Cache headers policy: nocache, public, private, private_no_expire",
    )
    cache_expire: int = Field(
        default=180,
        ge=0,
        description="Cache lifetime in minutes (ignored by nocache)",
    )

    model_config = {
        "env_prefix": "SESSIONWARE_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Validate Redis URL format."""
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("Redis URL must start with redis:// or rediss://")
        return v

    @field_validator("cache_limiter")
    @classmethod
    def validate_cache_limiter(cls, v: str) -> str:
        """Validate cache limiter mode. An empty value disables cache headers."""
        if v and v not in SUPPORTED_CACHE_LIMITERS:
            raise ValueError(
                f"Cache limiter must be empty or one of: {sorted(SUPPORTED_CACHE_LIMITERS)}"
            )
        return v

    @field_validator("cookie_samesite")
    @classmethod
    def validate_cookie_samesite(cls, v: Optional[str]) -> Optional[str]:
        """Normalize SameSite to its canonical capitalization."""
        if v is None or v == "":
            return None
        canonical = {"lax": "Lax", "strict": "Strict", "none": "None"}
        if v.lower() not in canonical:
            raise ValueError("SameSite must be one of: Lax, Strict, None")
        return canonical[v.lower()]


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
