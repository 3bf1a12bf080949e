"""Database Connection and Session Management"""

import re
import ssl
from typing import Any, AsyncGenerator, Dict, Tuple

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from app.config import settings

# Base class for declarative models
Base = declarative_base()


def normalize_database_url(url: str) -> Tuple[str, Dict[str, Any]]:
    """
    Convert a configured URL into an async driver URL plus driver connect args.

    postgresql:// becomes postgresql+asyncpg://. asyncpg uses ssl=SSLContext
    rather than sslmode, so sslmode is stripped from the URL and translated.
    """
    connect_args: Dict[str, Any] = {}
    database_url = url.replace("postgresql://", "postgresql+asyncpg://")

    if re.search(r"[?&]sslmode=(require|required|verify-full)", database_url, re.I):
        ssl_ctx = ssl.create_default_context()
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ssl_ctx
        database_url = re.sub(r"[?&]sslmode=[^&]+", "", database_url, flags=re.I)
        database_url = re.sub(r"\?&", "?", database_url).rstrip("?")
    if "?&" in database_url:
        database_url = database_url.replace("?&", "?")

    if database_url.startswith("postgresql+asyncpg"):
        # Bounded connect budget so an unreachable store fails fast
        connect_args["timeout"] = settings.DB_CONNECT_TIMEOUT

    return database_url, connect_args


class Database:
    """
    Explicit store handle: owns the async engine and the session factory.

    Created once at process start (see the application lifespan) and
    disposed at shutdown. Request handlers obtain sessions through get_db.
    """

    def __init__(self, url: str, **engine_options: Any):
        self.url, connect_args = normalize_database_url(url)

        if not self.url.startswith("sqlite"):
            engine_options.setdefault("pool_pre_ping", True)
            engine_options.setdefault("pool_size", settings.DB_POOL_SIZE)
            engine_options.setdefault("max_overflow", settings.DB_MAX_OVERFLOW)
            engine_options.setdefault("pool_timeout", settings.DB_POOL_TIMEOUT)
            engine_options.setdefault("pool_recycle", settings.DB_POOL_RECYCLE)

        self.engine = create_async_engine(
            self.url,
            connect_args=connect_args,
            echo=settings.DEBUG,
            **engine_options,
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        """Create tables from model metadata (development and tests only)"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close database connections"""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency yielding one session per request from the app's store handle.

    Example:
        ```python
        @router.get("/fees")
        async def list_fees(db: AsyncSession = Depends(get_db)):
            ...
        ```
    """
    database: Database = request.app.state.db
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
