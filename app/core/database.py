"""
Database configuration and session management

The engine is owned by a Database handle that the application opens at startup
and disposes at shutdown (see app.main.lifespan). Request handlers get a session
through the get_db dependency.
"""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.config import settings


class Database:
    """Owned async engine plus its session factory"""

    def __init__(self, url: str | None = None, *, echo: bool | None = None) -> None:
        self.url = url or settings.database_url
        self.engine: AsyncEngine = create_async_engine(self.url, **self._engine_options(echo))
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    def _engine_options(self, echo: bool | None) -> dict[str, object]:
        options: dict[str, object] = {
            "echo": settings.DATABASE_ECHO if echo is None else echo,
            "future": True,
        }
        if self.url.startswith("sqlite"):
            return options

        options.update(
            pool_pre_ping=True,  # Ping before using a connection
            pool_size=10,  # Keep 10 connections open
            max_overflow=20,  # Allow 20 extra connections
            pool_timeout=30,  # Wait 30s for connection
            pool_recycle=1800,  # Recycle connections every 30 minutes
        )
        return options

    def session(self) -> AsyncSession:
        return self.session_maker()

    async def init(self) -> None:
        """
        Create all tables.
        Note: In multi-worker deployments, this should be run once before starting workers.
        """
        # Import all models here to ensure they are registered with SQLModel
        from app.models.project import Project
        from app.models.task import Task

        _ = (Project, Task)  # Reference to prevent auto-removal by mypy or pyright

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def check_health(self) -> bool:
        """Health check for database connection"""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession]:
    """
    Dependency for getting async database sessions
    """
    async with get_database(request).session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
