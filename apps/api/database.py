"""
Database handle and session dependency.
"""

from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _connect_args(url: str, timeout_seconds: int) -> dict:
    if url.startswith("sqlite"):
        return {"timeout": timeout_seconds}
    if "+asyncpg" in url:
        return {"timeout": timeout_seconds}
    return {}


class Database:
    """
    Owns the engine and session factory for one process.

    Created once at startup and stored on ``app.state.database``. ``connect()``
    may be called any number of times; only the first call opens the engine.
    """

    def __init__(self, url: str, connect_timeout_seconds: int = 2):
        self.url = url
        self.connect_timeout_seconds = connect_timeout_seconds
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker] = None

    @property
    def connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected. Call connect() during startup.")
        return self._engine

    @property
    def session_maker(self) -> async_sessionmaker:
        if self._session_maker is None:
            raise RuntimeError("Database is not connected. Call connect() during startup.")
        return self._session_maker

    async def connect(self) -> None:
        if self._engine is not None:
            return

        engine = create_async_engine(
            self.url,
            connect_args=_connect_args(self.url, self.connect_timeout_seconds),
            pool_pre_ping=True,
        )
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            await engine.dispose()
            raise

        self._engine = engine
        self._session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_maker = None


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session from the database handle owned by the running app."""
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        yield session
