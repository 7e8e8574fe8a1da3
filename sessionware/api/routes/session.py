"""
Session Router

Endpoints operating on the caller's own cookie session. All state changes
take effect through SessionMiddleware when the response is produced.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from sessionware.api.deps import get_session
from sessionware.models.requests import PersistRequest, SessionValueRequest
from sessionware.models.responses import SessionResponse
from sessionware.sessions.session import AbstractSession


router = APIRouter(
    prefix="/v1/session",
    tags=["Session"],
)


async def _describe(session: AbstractSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        is_new=session.is_new(),
        is_regenerated=session.is_regenerated(),
        lifetime=session.get_lifetime(),
        data=await session.to_array(),
    )


@router.get("", response_model=SessionResponse)
async def read_session(session: AbstractSession = Depends(get_session)) -> SessionResponse:
    """Return the session flags and data."""
    return await _describe(session)


@router.post("/regenerate", response_model=SessionResponse)
async def regenerate_session(
    session: AbstractSession = Depends(get_session),
) -> SessionResponse:
    """Mark the session to be re-keyed under a new id."""
    session.regenerate()
    return await _describe(session)


@router.post("/persist", response_model=SessionResponse)
async def persist_session(
    body: PersistRequest,
    session: AbstractSession = Depends(get_session),
) -> SessionResponse:
    """Override the session cookie lifetime."""
    session.persist_for(body.seconds)
    return await _describe(session)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_session(session: AbstractSession = Depends(get_session)) -> None:
    """Remove all session data."""
    await session.clear()


@router.get("/{key}")
async def read_value(key: str, session: AbstractSession = Depends(get_session)) -> dict:
    """Return a single session value."""
    if not await session.has(key):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session key not found: {key}",
        )
    return {"key": key, "value": await session.get(key)}


@router.put("/{key}")
async def write_value(
    key: str,
    body: SessionValueRequest,
    session: AbstractSession = Depends(get_session),
) -> dict:
    """Store a value under key."""
    await session.set(key, body.value)
    return {"key": key, "value": await session.get(key)}


@router.delete("/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_value(key: str, session: AbstractSession = Depends(get_session)) -> None:
    """Remove key from the session."""
    await session.unset(key)
