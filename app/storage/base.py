"""
Session store contract.

A document-collection style interface over session records.  Filters
and patches are flat field-name -> value mappings (equality only);
field names are those of `SessionRecord.to_document`.

Every implementation must:
- raise `DuplicateError` when an insert or update would leave two
  Active records for one identity, or reuse a session id;
- raise `StorageUnavailableError` when the backend cannot answer;
- return `find` results ordered by `created_at`.
"""

from typing import Any, Protocol

from app.models.record import SessionRecord

Filter = dict[str, Any]
Patch = dict[str, Any]


class SessionStore(Protocol):
    async def find_one(self, filter: Filter) -> SessionRecord | None:
        ...

    async def insert_one(self, record: SessionRecord) -> None:
        ...

    async def update_one(self, filter: Filter, patch: Patch) -> int:
        """Apply `patch` to the first match; return the matched count (0 or 1)."""
        ...

    async def find(self, filter: Filter | None = None) -> list[SessionRecord]:
        ...

    async def delete_many(self, filter: Filter | None = None) -> int:
        ...

    async def ping(self) -> None:
        """Raise `StorageUnavailableError` if the backend is unreachable."""
        ...

    async def close(self) -> None:
        ...
