"""
Models Package

Pydantic request and response models for the API surface.
"""

from sessionware.models.requests import PersistRequest, SessionValueRequest
from sessionware.models.responses import ErrorResponse, HealthResponse, SessionResponse

__all__ = [
    "SessionValueRequest",
    "PersistRequest",
    "SessionResponse",
    "HealthResponse",
    "ErrorResponse",
]
