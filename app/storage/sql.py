"""
SQL session store — SQLAlchemy async implementation of `SessionStore`.

Every call runs in its own short transaction and is bounded by a
timeout.  Driver and connection failures surface as
`StorageUnavailableError`; unique-index violations (session id, or the
partial index on Active identities) surface as `DuplicateError`.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.errors import DuplicateError, StorageUnavailableError
from app.models.record import DOCUMENT_FIELDS, SessionRecord, normalize_fields
from app.models.session import LoginSession
from app.storage.base import Filter, Patch

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _where(filter: Filter | None) -> list[Any]:
    flt = normalize_fields(filter or {})
    return [getattr(LoginSession, name) == value for name, value in flt.items()]


def _filtered(stmt: Any, filter: Filter | None) -> Any:
    conditions = _where(filter)
    return stmt.where(*conditions) if conditions else stmt


def _to_record(row: LoginSession) -> SessionRecord:
    return SessionRecord.from_document({name: getattr(row, name) for name in DOCUMENT_FIELDS})


class SqlSessionStore:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        engine: AsyncEngine | None = None,
        timeout: float = 5.0,
    ):
        self._session_factory = session_factory
        self._engine = engine
        self._timeout = timeout

    async def _run(self, op: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async def _in_transaction() -> T:
            async with self._session_factory() as db:
                async with db.begin():
                    return await work(db)

        try:
            return await asyncio.wait_for(_in_transaction(), timeout=self._timeout)
        except IntegrityError as exc:
            raise DuplicateError(f"{op} violated a uniqueness rule") from exc
        except asyncio.TimeoutError as exc:
            logger.error("Session store %s timed out after %.1fs", op, self._timeout)
            raise StorageUnavailableError(f"{op} timed out") from exc
        except (DBAPIError, SQLAlchemyError, OSError) as exc:
            logger.error("Session store %s failed: %s", op, exc)
            raise StorageUnavailableError(f"{op} failed") from exc

    async def find_one(self, filter: Filter) -> SessionRecord | None:
        async def work(db: AsyncSession) -> SessionRecord | None:
            stmt = (
                _filtered(select(LoginSession), filter)
                .order_by(LoginSession.created_at)
                .limit(1)
            )
            row = (await db.execute(stmt)).scalar_one_or_none()
            return _to_record(row) if row is not None else None

        return await self._run("find_one", work)

    async def insert_one(self, record: SessionRecord) -> None:
        async def work(db: AsyncSession) -> None:
            db.add(LoginSession(**record.to_document()))
            await db.flush()

        await self._run("insert_one", work)

    async def update_one(self, filter: Filter, patch: Patch) -> int:
        conditions = _where(filter)
        values = normalize_fields(patch)
        if "session_id" in values:
            raise ValueError("session_id is immutable")

        async def work(db: AsyncSession) -> int:
            target = (
                await db.execute(
                    _filtered(select(LoginSession.session_id), filter)
                    .order_by(LoginSession.created_at)
                    .limit(1)
                )
            ).scalar_one_or_none()
            if target is None:
                return 0
            # Re-apply the filter so a concurrent writer that changed the
            # row in between makes this a no-op instead of a lost update.
            stmt = (
                update(LoginSession)
                .where(LoginSession.session_id == target, *conditions)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)
            return result.rowcount

        return await self._run("update_one", work)

    async def find(self, filter: Filter | None = None) -> list[SessionRecord]:
        async def work(db: AsyncSession) -> list[SessionRecord]:
            stmt = _filtered(select(LoginSession), filter).order_by(LoginSession.created_at)
            rows = (await db.execute(stmt)).scalars().all()
            return [_to_record(r) for r in rows]

        return await self._run("find", work)

    async def delete_many(self, filter: Filter | None = None) -> int:
        async def work(db: AsyncSession) -> int:
            stmt = _filtered(delete(LoginSession), filter).execution_options(
                synchronize_session=False,
            )
            result = await db.execute(stmt)
            return result.rowcount

        return await self._run("delete_many", work)

    async def ping(self) -> None:
        async def work(db: AsyncSession) -> None:
            await db.execute(select(1))

        await self._run("ping", work)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
