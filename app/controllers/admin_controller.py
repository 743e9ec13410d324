"""
Admin controller — forced termination and the bulk purge.

Every route depends on `require_admin` (X-Admin-Key header checked
against a bcrypt hash).  The purge is additionally switched off unless
the deployment sets ALLOW_PURGE=true.
"""

import logging

from fastapi import APIRouter, Depends

from app.core.dependencies import get_registry
from app.core.security import require_admin, require_purge_enabled
from app.schemas import MessageResponse, PurgeResponse, SessionIdRequest
from app.services.session_service import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin/sessions",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)


@router.post("/terminate", response_model=MessageResponse)
async def terminate_session(
    body: SessionIdRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Force a session into SystemTerminated, bypassing normal logout."""
    await registry.terminate(body.session_id)
    logger.warning("Session %s terminated by admin", body.session_id)
    return MessageResponse(detail="Session terminated")


@router.delete(
    "",
    response_model=PurgeResponse,
    dependencies=[Depends(require_purge_enabled)],
)
async def purge_sessions(registry: SessionRegistry = Depends(get_registry)):
    """Delete every session record.  Irreversible."""
    deleted = await registry.purge_all()
    logger.warning("Admin purge removed %d session records", deleted)
    return PurgeResponse(detail="All sessions purged", deleted=deleted)
