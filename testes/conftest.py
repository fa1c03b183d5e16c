import os
import tempfile
import uuid
from pathlib import Path

# Banco dos testes: SQLite local (via aiosqlite), a menos que
# TVCAST_TEST_DATABASE_URL aponte para outro. Precisa ser setado antes de
# qualquer import do pacote tvcast (settings é lido no import).
_TEST_DB = Path(tempfile.gettempdir()) / "tvcast_testes.db"
if _TEST_DB.exists():
    _TEST_DB.unlink()
os.environ["DATABASE_URL"] = os.getenv(
    "TVCAST_TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{_TEST_DB}",
)

import pytest_asyncio  # noqa: E402

from tvcast.crud import channel as crud_channel  # noqa: E402
from tvcast.db.session import AsyncSessionLocal, init_db  # noqa: E402


async def create_channel(db, *, is_live: bool = False, channel_type: str = "tv"):
    return await crud_channel.create(
        db,
        {
            "id": str(uuid.uuid4()),
            "title": "Canal Teste",
            "channel_type": channel_type,
            "is_live": is_live,
        },
    )


@pytest_asyncio.fixture
async def db():
    await init_db()
    async with AsyncSessionLocal() as session:
        yield session
