"""
Core module for Sessionware.

This module contains configuration and exceptions.
"""

from sessionware.core.config import SUPPORTED_CACHE_LIMITERS, Settings, get_settings
from sessionware.core.exceptions import (
    ErrorCode,
    InvalidSessionDataError,
    SessionConfigurationError,
    SessionStoreError,
    SessionwareException,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "SUPPORTED_CACHE_LIMITERS",
    # Exceptions
    "ErrorCode",
    "SessionwareException",
    "SessionConfigurationError",
    "InvalidSessionDataError",
    "SessionStoreError",
]
