# tvcast/db/session.py

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from tvcast.core.config import settings
from tvcast.db.base import Base


# ----------------------------------------------------------------------
# Engine assíncrono usando a URL já tratada em settings.database_url
# ----------------------------------------------------------------------
_engine_kwargs = {"echo": False}
if settings.database_url.startswith("sqlite"):
    # SQLite (dev/testes): sem pool, cada sessão abre sua conexão
    _engine_kwargs["poolclass"] = NullPool

engine = create_async_engine(settings.database_url, **_engine_kwargs)

# ----------------------------------------------------------------------
# Factory de sessão assíncrona
# ----------------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """
    Cria as tabelas no banco com base no Base.metadata.

    Em produção, use as migrations do Alembic; isso aqui é para dev/testes.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
