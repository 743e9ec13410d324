"""
In-process session store.

Documents live in a dict guarded by one asyncio lock.  The uniqueness
rules (session id, one Active record per identity) are checked inside
the lock, so check-and-write is atomic within the process.
"""

import asyncio
from typing import Any

from app.core.errors import DuplicateError
from app.models.record import SessionRecord, SessionStatus, normalize_fields
from app.storage.base import Filter, Patch


def _matches(doc: dict[str, Any], filter: Filter) -> bool:
    return all(doc.get(name) == value for name, value in filter.items())


class MemorySessionStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._docs: dict[str, dict[str, Any]] = {}

    def _active_conflict(self, doc: dict[str, Any]) -> bool:
        if doc["status"] != SessionStatus.ACTIVE.value:
            return False
        return any(
            other["session_id"] != doc["session_id"]
            and other["status"] == SessionStatus.ACTIVE.value
            and other["email"] == doc["email"]
            and other["nickname"] == doc["nickname"]
            for other in self._docs.values()
        )

    def _select(self, filter: Filter | None) -> list[dict[str, Any]]:
        flt = normalize_fields(filter or {})
        docs = [d for d in self._docs.values() if _matches(d, flt)]
        return sorted(docs, key=lambda d: d["created_at"])

    async def find_one(self, filter: Filter) -> SessionRecord | None:
        async with self._lock:
            docs = self._select(filter)
            return SessionRecord.from_document(docs[0]) if docs else None

    async def insert_one(self, record: SessionRecord) -> None:
        doc = record.to_document()
        async with self._lock:
            if doc["session_id"] in self._docs:
                raise DuplicateError("Session id already exists", session_id=record.session_id)
            if self._active_conflict(doc):
                raise DuplicateError(
                    "Identity already has an active session", session_id=record.session_id,
                )
            self._docs[doc["session_id"]] = doc

    async def update_one(self, filter: Filter, patch: Patch) -> int:
        changes = normalize_fields(patch)
        if "session_id" in changes:
            raise ValueError("session_id is immutable")
        async with self._lock:
            docs = self._select(filter)
            if not docs:
                return 0
            current = docs[0]
            updated = {**current, **changes}
            if self._active_conflict(updated):
                raise DuplicateError(
                    "Identity already has an active session",
                    session_id=current["session_id"],
                )
            self._docs[current["session_id"]] = updated
            return 1

    async def find(self, filter: Filter | None = None) -> list[SessionRecord]:
        async with self._lock:
            return [SessionRecord.from_document(d) for d in self._select(filter)]

    async def delete_many(self, filter: Filter | None = None) -> int:
        async with self._lock:
            doomed = [d["session_id"] for d in self._select(filter)]
            for session_id in doomed:
                del self._docs[session_id]
            return len(doomed)

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None
