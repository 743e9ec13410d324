"""
Session service — lifecycle of login sessions.

Handles:
- Login: create a session, or reactivate the identity's Active one
- Logout / admin termination
- Identity updates and explicit touches
- Status checks with lazy inactivity expiry
- Read-only listings and the admin purge

Lifecycle:
    (start) ──login──▶ Active ──login──▶ Active (reactivated, same id)
    Active ──status past threshold──▶ Inactive
    Active | Inactive ──logout──▶ LoggedOut
    any ──terminate──▶ SystemTerminated

Concurrency rules:
- One Active session per identity (email + nickname).  Logins for the
  same identity are serialized in-process, and the store rejects a
  second Active record atomically (`DuplicateError`), which login
  answers by re-reading the now-existing session.
- Writes on one session id are serialized in-process; cross-process
  transitions are conditioned on the status and last_accessed that
  were read.
- Expiry is evaluated only when `status` is called.  An idle session
  stays Active in storage until then.

The registry raises typed errors from `app.core.errors` and never logs
or formats user-facing messages.
"""

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace

from app.core.errors import (
    DuplicateError,
    ExpiredError,
    NotFoundError,
    SessionClosedError,
    StorageUnavailableError,
    ValidationError,
)
from app.core.locks import KeyedLocks
from app.core.network import get_server_network_info
from app.models.record import Identity, ServerInfo, SessionRecord, SessionStatus
from app.services.inactivity import InactivityMonitor
from app.storage.base import SessionStore

_LOGIN_ATTEMPTS = 3
_STATUS_ATTEMPTS = 3

UNKNOWN_CLIENT = "unknown"


@dataclass(frozen=True)
class LoginOutcome:
    session_id: str
    reactivated: bool


@dataclass(frozen=True)
class SessionSnapshot:
    """A record plus the durations computed by the status check."""

    record: SessionRecord
    duration: int
    inactivity: int


def _require(value: str | None, name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    return str(value).strip()


class SessionRegistry:
    def __init__(
        self,
        store: SessionStore,
        monitor: InactivityMonitor | None = None,
        *,
        clock: Callable[[], float] = time.time,
        server_info: Callable[[], ServerInfo] = get_server_network_info,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.store = store
        self.monitor = monitor or InactivityMonitor()
        self._clock = clock
        self._server_info = server_info
        self._new_id = id_factory
        self._identity_locks = KeyedLocks()
        self._session_locks = KeyedLocks()

    # ── Helpers ──────────────────────────────────────────────────────

    async def _get(self, session_id: str | None) -> SessionRecord:
        sid = _require(session_id, "sessionId")
        record = await self.store.find_one({"session_id": sid})
        if record is None:
            raise NotFoundError("Session not found", session_id=sid)
        return record

    def _touch_time(self, record: SessionRecord) -> float:
        # last_accessed never moves backwards, so created_at <= last_accessed holds.
        return max(self._clock(), record.last_accessed)

    # ── Login ────────────────────────────────────────────────────────

    async def login(
        self,
        identity: Identity,
        device_fingerprint: str | None,
        client_address: str | None,
    ) -> LoginOutcome:
        """Create a session, or reactivate the identity's Active one."""
        identity = Identity(
            email=_require(identity.email, "email"),
            nickname=_require(identity.nickname, "nickname"),
        )
        device = _require(device_fingerprint, "macAddress")

        async with self._identity_locks.hold(identity.key):
            for _ in range(_LOGIN_ATTEMPTS):
                existing = await self.store.find_one({
                    "email": identity.email,
                    "nickname": identity.nickname,
                    "status": SessionStatus.ACTIVE,
                })
                if existing is not None:
                    # Identity lock first, then session lock; nothing takes them the other way.
                    async with self._session_locks.hold(existing.session_id):
                        matched = await self.store.update_one(
                            {"session_id": existing.session_id, "status": SessionStatus.ACTIVE},
                            {"last_accessed": self._touch_time(existing), "inactive_seconds": 0},
                        )
                    if matched:
                        return LoginOutcome(existing.session_id, reactivated=True)
                    continue  # left Active under us; look again

                now = self._clock()
                record = SessionRecord(
                    session_id=self._new_id(),
                    identity=identity,
                    device_fingerprint=device,
                    client_address=client_address or UNKNOWN_CLIENT,
                    server=self._server_info(),
                    created_at=now,
                    last_accessed=now,
                    inactive_seconds=0,
                    status=SessionStatus.ACTIVE,
                )
                try:
                    await self.store.insert_one(record)
                except DuplicateError:
                    continue  # another writer won the race; reuse its session
                return LoginOutcome(record.session_id, reactivated=False)

        raise StorageUnavailableError("Could not settle the active session for this identity")

    # ── Logout / terminate ───────────────────────────────────────────

    async def logout(self, session_id: str | None) -> None:
        """Move an Active or Inactive session to LoggedOut.

        Logging out an already closed session is a no-op.
        """
        sid = _require(session_id, "sessionId")
        async with self._session_locks.hold(sid):
            await self._get(sid)
            for status in (SessionStatus.ACTIVE, SessionStatus.INACTIVE):
                await self.store.update_one(
                    {"session_id": sid, "status": status},
                    {"status": SessionStatus.LOGGED_OUT},
                )

    async def terminate(self, session_id: str | None) -> None:
        """Administrative shutdown of a session, whatever its state."""
        sid = _require(session_id, "sessionId")
        async with self._session_locks.hold(sid):
            await self._get(sid)
            await self.store.update_one(
                {"session_id": sid},
                {"status": SessionStatus.SYSTEM_TERMINATED},
            )

    # ── Update / touch ───────────────────────────────────────────────

    async def update(
        self,
        session_id: str | None,
        email: str | None = None,
        nickname: str | None = None,
    ) -> SessionRecord:
        """Replace supplied non-empty identity fields and refresh last_accessed."""
        sid = _require(session_id, "sessionId")
        async with self._session_locks.hold(sid):
            record = await self._get(sid)
            patch: dict = {"last_accessed": self._touch_time(record)}
            if email and email.strip():
                patch["email"] = email.strip()
            if nickname and nickname.strip():
                patch["nickname"] = nickname.strip()
            try:
                matched = await self.store.update_one({"session_id": sid}, patch)
            except DuplicateError as exc:
                raise ValidationError(
                    "Identity already has an active session", session_id=sid,
                ) from exc
            if not matched:
                raise NotFoundError("Session not found", session_id=sid)
            return replace(
                record,
                identity=Identity(
                    email=patch.get("email", record.identity.email),
                    nickname=patch.get("nickname", record.identity.nickname),
                ),
                last_accessed=patch["last_accessed"],
            )

    async def touch(self, session_id: str | None) -> SessionRecord:
        return await self.update(session_id)

    # ── Status ───────────────────────────────────────────────────────

    async def status(self, session_id: str | None) -> SessionSnapshot:
        """
        Recompute durations, persist the refreshed inactivity, and
        expire the session if it crossed the threshold.

        Every write is conditioned on the state that was read; if
        another process changed the record in between, the check is
        redone from fresh state.
        """
        sid = _require(session_id, "sessionId")
        async with self._session_locks.hold(sid):
            for _ in range(_STATUS_ATTEMPTS):
                record = await self._get(sid)
                if record.status.is_terminal:
                    raise SessionClosedError(f"Session is {record.status.value}", session_id=sid)

                now = self._clock()
                check = self.monitor.evaluate(now, record.last_accessed)

                # Another process can reactivate or touch the record after this
                # read, so every write also matches the last_accessed read here.
                read_state = {
                    "session_id": sid,
                    "status": record.status,
                    "last_accessed": record.last_accessed,
                }

                if record.status is SessionStatus.INACTIVE:
                    matched = await self.store.update_one(
                        read_state, {"inactive_seconds": check.inactivity},
                    )
                    if matched:
                        raise ExpiredError("Session expired due to inactivity", session_id=sid)
                    continue

                if check.expired:
                    matched = await self.store.update_one(
                        read_state,
                        {"status": SessionStatus.INACTIVE, "inactive_seconds": check.inactivity},
                    )
                    if matched:
                        raise ExpiredError("Session expired due to inactivity", session_id=sid)
                    continue

                matched = await self.store.update_one(
                    read_state, {"inactive_seconds": check.inactivity},
                )
                if matched:
                    return SessionSnapshot(
                        record=replace(record, inactive_seconds=check.inactivity),
                        duration=int(max(0.0, now - record.created_at)),
                        inactivity=check.inactivity,
                    )

        raise StorageUnavailableError("Session kept changing during the status check", session_id=sid)

    # ── Listings / admin ─────────────────────────────────────────────

    async def list_all(self) -> list[SessionRecord]:
        return await self.store.find()

    async def list_active(self) -> list[SessionRecord]:
        return await self.store.find({"status": SessionStatus.ACTIVE})

    async def purge_all(self) -> int:
        """Delete every record.  Irreversible; gated at the HTTP layer."""
        return await self.store.delete_many()
