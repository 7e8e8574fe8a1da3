"""
Request Models

Pydantic models for API request validation.
"""

from typing import Any

from pydantic import BaseModel, Field


class SessionValueRequest(BaseModel):
    """
    Value to store under a session key.

    Attributes:
        value: Any JSON value.
    """

    value: Any = None


class PersistRequest(BaseModel):
    """
    Cookie lifetime override.

    Attributes:
        seconds: Lifetime in seconds for the session cookie.
    """

    seconds: int = Field(..., ge=0, description="Cookie lifetime in seconds")
