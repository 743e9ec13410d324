"""
Session record — the domain object every store reads and writes.

Plain dataclasses, independent of any backend.  Timestamps are epoch
seconds (UTC instants) so duration math never crosses a timezone
conversion; local-zone rendering happens only in `app.schemas`.

Stores persist a record as a flat document (see `to_document`); the
same flat field names are used for filters and patches.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, ClassVar


class SessionStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    LOGGED_OUT = "LoggedOut"
    SYSTEM_TERMINATED = "SystemTerminated"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.LOGGED_OUT, SessionStatus.SYSTEM_TERMINATED)


@dataclass(frozen=True)
class Identity:
    email: str
    nickname: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.email, self.nickname)


@dataclass(frozen=True)
class ServerInfo:
    UNKNOWN: ClassVar[str] = "unknown"

    address: str = UNKNOWN
    hardware_id: str = UNKNOWN

    @classmethod
    def unknown(cls) -> "ServerInfo":
        return cls()


@dataclass(frozen=True)
class SessionRecord:
    session_id: str
    identity: Identity
    device_fingerprint: str
    client_address: str
    created_at: float
    last_accessed: float
    server: ServerInfo = field(default_factory=ServerInfo.unknown)
    inactive_seconds: int = 0
    status: SessionStatus = SessionStatus.ACTIVE

    def to_document(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "email": self.identity.email,
            "nickname": self.identity.nickname,
            "device_fingerprint": self.device_fingerprint,
            "client_address": self.client_address,
            "server_address": self.server.address,
            "server_hardware_id": self.server.hardware_id,
            "created_at": self.created_at,
            "last_accessed": self.last_accessed,
            "inactive_seconds": self.inactive_seconds,
            "status": self.status.value,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "SessionRecord":
        return cls(
            session_id=doc["session_id"],
            identity=Identity(email=doc["email"], nickname=doc["nickname"]),
            device_fingerprint=doc["device_fingerprint"],
            client_address=doc["client_address"],
            server=ServerInfo(
                address=doc["server_address"] or ServerInfo.UNKNOWN,
                hardware_id=doc["server_hardware_id"] or ServerInfo.UNKNOWN,
            ),
            created_at=float(doc["created_at"]),
            last_accessed=float(doc["last_accessed"]),
            inactive_seconds=int(doc["inactive_seconds"]),
            status=SessionStatus(doc["status"]),
        )


DOCUMENT_FIELDS: frozenset[str] = frozenset(
    {
        "session_id",
        "email",
        "nickname",
        "device_fingerprint",
        "client_address",
        "server_address",
        "server_hardware_id",
        "created_at",
        "last_accessed",
        "inactive_seconds",
        "status",
    }
)


def normalize_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Check field names and unwrap enum values for a filter or patch."""
    unknown = set(fields) - DOCUMENT_FIELDS
    if unknown:
        raise ValueError(f"Unknown session fields: {sorted(unknown)}")
    return {
        name: value.value if isinstance(value, SessionStatus) else value
        for name, value in fields.items()
    }
