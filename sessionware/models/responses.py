"""
Response Models

Pydantic models for API responses.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class SessionResponse(BaseModel):
    """
    Current session state as seen by the request handler.

    The id is the one the request was opened with; a regenerated session gets
    its new id only when the response is produced.
    """

    id: str = Field(..., description="Session identifier for this request")
    is_new: bool
    is_regenerated: bool
    lifetime: Optional[int] = None
    data: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    service: str
    version: str
    checks: dict[str, bool] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Error payload for SessionwareException handlers."""

    error_code: str
    message: str
