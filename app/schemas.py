"""
Pydantic schemas for request / response serialization.

Schemas are deliberately decoupled from the session record so the API
surface can evolve independently of storage.  JSON uses camelCase
(`sessionId`, `macAddress`, ...); snake_case is accepted on input too.

Required request fields are declared optional on purpose: the session
registry owns the "missing field" rule and reports it as a 400.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.models.record import SessionRecord
from app.services.session_service import SessionSnapshot


def format_local(ts: float) -> str:
    """Render an epoch instant as a local-zone display string."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).astimezone().strftime("%Y-%m-%d %H:%M:%S%z")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Requests ─────────────────────────────────────────────────────────
class LoginRequest(CamelModel):
    email: str | None = None
    nickname: str | None = None
    mac_address: str | None = None


class SessionIdRequest(CamelModel):
    session_id: str | None = None


class UpdateSessionRequest(SessionIdRequest):
    email: str | None = None
    nickname: str | None = None


# ── Responses ────────────────────────────────────────────────────────
class LoginResponse(CamelModel):
    detail: str
    session_id: str
    reactivated: bool


class SessionOut(CamelModel):
    session_id: str
    email: str
    nickname: str
    mac_address: str
    client_ip: str
    server_ip: str
    server_mac: str
    created_at: str
    last_accessed: str
    inactive_seconds: int
    status: str

    @classmethod
    def from_record(cls, record: SessionRecord) -> "SessionOut":
        return cls(
            session_id=record.session_id,
            email=record.identity.email,
            nickname=record.identity.nickname,
            mac_address=record.device_fingerprint,
            client_ip=record.client_address,
            server_ip=record.server.address,
            server_mac=record.server.hardware_id,
            created_at=format_local(record.created_at),
            last_accessed=format_local(record.last_accessed),
            inactive_seconds=record.inactive_seconds,
            status=record.status.value,
        )


class SessionStatusOut(SessionOut):
    duration: int
    inactivity: int

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "SessionStatusOut":
        base = SessionOut.from_record(snapshot.record)
        return cls(
            **base.model_dump(),
            duration=snapshot.duration,
            inactivity=snapshot.inactivity,
        )


class SessionResponse(CamelModel):
    detail: str
    session: SessionOut


class SessionStatusResponse(CamelModel):
    detail: str
    session: SessionStatusOut


class PurgeResponse(CamelModel):
    detail: str
    deleted: int


# ── Generic ──────────────────────────────────────────────────────────
class MessageResponse(BaseModel):
    detail: str
