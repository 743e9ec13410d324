import sys
from pathlib import Path

import pytest
import pytest_asyncio

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.core.database import build_engine, build_session_factory  # noqa: E402
from app.models import Base  # noqa: E402
from app.models.record import ServerInfo  # noqa: E402
from app.services.inactivity import InactivityMonitor  # noqa: E402
from app.services.session_service import SessionRegistry  # noqa: E402
from app.storage.memory import MemorySessionStore  # noqa: E402
from app.storage.sql import SqlSessionStore  # noqa: E402

SERVER = ServerInfo(address="10.0.0.5", hardware_id="02:42:ac:11:00:02")


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def registry(memory_store: MemorySessionStore, clock: FakeClock) -> SessionRegistry:
    return SessionRegistry(
        memory_store,
        InactivityMonitor(max_inactivity_seconds=600),
        clock=clock,
        server_info=lambda: SERVER,
    )


async def open_sql_store(tmp_path: Path) -> SqlSessionStore:
    """SQLite-backed store with the schema created from the models."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'sessions.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return SqlSessionStore(build_session_factory(engine), engine=engine, timeout=5.0)


@pytest_asyncio.fixture
async def sql_store(tmp_path: Path):
    store = await open_sql_store(tmp_path)
    yield store
    await store.close()
