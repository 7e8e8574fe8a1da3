"""
Custom exceptions for Sessionware.

This module provides the exception hierarchy of the session layer.
All exceptions inherit from SessionwareException and include error codes for
consistent error handling and logging.

Taxonomy:
- SessionConfigurationError: fatal, the session store is administratively disabled
- InvalidSessionDataError: fatal and local, a session was built from bad input
- SessionStoreError: backend failure inside a store adapter; adapters turn it
  into a soft failure outcome at their open/write boundary
"""

from enum import Enum
from typing import Any


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for Sessionware exceptions.

    These codes provide a consistent way to identify error types
    across the API and in logging.
    """

    SESSION_ERROR = "SESSION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    STORE_ERROR = "STORE_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class SessionwareException(Exception):
    """
    Base exception for all Sessionware errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.SESSION_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# SessionConfigurationError
# =============================================================================


class SessionConfigurationError(SessionwareException):
    """
    Exception for a session store that cannot be used at all.

    Raised immediately, without retry, when the store is administratively
    disabled and the engine tries to open it.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.CONFIGURATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)


# =============================================================================
# InvalidSessionDataError
# =============================================================================


class InvalidSessionDataError(SessionwareException):
    """
    Exception for an eager session built from neither a DataContainer nor a mapping.

    Attributes:
        given_type: Name of the rejected argument's type.
    """

    def __init__(
        self,
        message: str,
        given_type: str | None = None,
        error_code: str = ErrorCode.INVALID_INPUT,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.given_type = given_type


# =============================================================================
# SessionStoreError
# =============================================================================


class SessionStoreError(SessionwareException):
    """
    Exception for session store backend failures.

    Attributes:
        session_id: ID of the affected session (if known).
    """

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        error_code: str = ErrorCode.STORE_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.session_id = session_id
