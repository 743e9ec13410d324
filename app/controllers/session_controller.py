"""
Session controller — login, logout, update, touch, status & listings.

All routes are PUBLIC: identity fields are trusted as given.
Controllers are THIN — they delegate to the session registry and
return schemas.  Registry errors are translated to responses by the
exception handlers registered in `app.main`.
"""

import logging

from fastapi import APIRouter, Depends, Query

from app.core.dependencies import get_client_address, get_registry
from app.models.record import Identity
from app.schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SessionIdRequest,
    SessionOut,
    SessionResponse,
    SessionStatusOut,
    SessionStatusResponse,
    UpdateSessionRequest,
)
from app.services.session_service import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    client_address: str | None = Depends(get_client_address),
    registry: SessionRegistry = Depends(get_registry),
):
    """Start a session for email + nickname + device, or resume the active one."""
    outcome = await registry.login(
        Identity(email=body.email or "", nickname=body.nickname or ""),
        body.mac_address,
        client_address,
    )
    logger.info(
        "Session %s %s from %s",
        outcome.session_id,
        "reactivated" if outcome.reactivated else "started",
        client_address,
    )
    return LoginResponse(
        detail="Session reactivated" if outcome.reactivated else "Session started",
        session_id=outcome.session_id,
        reactivated=outcome.reactivated,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    body: SessionIdRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    await registry.logout(body.session_id)
    logger.info("Session %s logged out", body.session_id)
    return MessageResponse(detail="Logged out successfully")


@router.put("/update", response_model=SessionResponse)
async def update_session(
    body: UpdateSessionRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Change email and/or nickname; omitted or empty fields stay as they are."""
    record = await registry.update(body.session_id, email=body.email, nickname=body.nickname)
    return SessionResponse(detail="Session updated", session=SessionOut.from_record(record))


@router.post("/touch", response_model=SessionResponse)
async def touch_session(
    body: SessionIdRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    record = await registry.touch(body.session_id)
    return SessionResponse(detail="Session refreshed", session=SessionOut.from_record(record))


@router.get("/status", response_model=SessionStatusResponse)
async def session_status(
    session_id: str | None = Query(None, alias="sessionId"),
    registry: SessionRegistry = Depends(get_registry),
):
    """Report the session with its total duration and current inactivity (seconds)."""
    snapshot = await registry.status(session_id)
    return SessionStatusResponse(
        detail="Session active",
        session=SessionStatusOut.from_snapshot(snapshot),
    )


@router.get("", response_model=list[SessionOut])
async def list_sessions(registry: SessionRegistry = Depends(get_registry)):
    return [SessionOut.from_record(r) for r in await registry.list_all()]


@router.get("/active", response_model=list[SessionOut])
async def list_active_sessions(registry: SessionRegistry = Depends(get_registry)):
    return [SessionOut.from_record(r) for r in await registry.list_active()]
