"""
Database connection and session management.

The engine is built from the validated configuration on first use, so a
misconfigured environment surfaces through the startup gate rather than at
import time.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from showcase.core.config import DatabaseConfig, build_database_config, get_configuration
from showcase.core.diagnostics import mask_database_url
from showcase.core.environment import Mode, Provider
from showcase.core.settings import get_settings
from showcase.models import User  # noqa: F401  registers the table for create_all

log = structlog.get_logger()

# Connection-string options the async drivers reject.
_UNSUPPORTED_QUERY_KEYS = {"sslmode", "pgbouncer", "connection_limit", "schema"}


class DatabaseConnectionError(RuntimeError):
    """Raised when the database stays unreachable after every retry."""


def to_async_url(config: DatabaseConfig) -> str:
    """Translate a configured URL into a SQLAlchemy async driver URL."""
    if config.provider is Provider.SQLITE:
        path = config.url[len("file:"):]
        return f"sqlite+aiosqlite:///{path}"

    parts = urlsplit(config.url)
    query = [(k, v) for k, v in parse_qsl(parts.query) if k not in _UNSUPPORTED_QUERY_KEYS]
    return urlunsplit(parts._replace(scheme="postgresql+asyncpg", query=urlencode(query)))


def engine_options(config: DatabaseConfig) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if config.connection_limit:
        options["pool_size"] = config.connection_limit
    if config.ssl:
        options["connect_args"] = {"ssl": "require"}
    return options


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential backoff with jitter for ``attempt`` (1-based), capped."""
    delay = base_delay * (2 ** (attempt - 1)) + random.uniform(0, base_delay)
    return min(delay, max_delay)


class Database:
    """Persistence client: connect, disconnect and hand out sessions."""

    def __init__(self, config: DatabaseConfig, *, echo: bool = False):
        self.config = config
        self.engine: AsyncEngine = create_async_engine(
            to_async_url(config),
            echo=echo,
            future=True,
            **engine_options(config),
        )
        self.session_factory = sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def connect(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def connect_with_retry(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        last_error: Exception | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                await self.connect()
            except Exception as exc:
                last_error = exc
                log.warning(
                    "database.connect_failed",
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=str(exc),
                )
                if attempt < max_attempts:
                    delay = backoff_delay(attempt, base_delay, max_delay)
                    log.info("database.connect_retry", delay=round(delay, 2))
                    await sleep(delay)
                continue

            log.info(
                "database.connected",
                provider=self.config.provider.value,
                url=mask_database_url(self.config.url),
            )
            return

        raise DatabaseConnectionError(
            f"Failed to connect to database after {max_attempts} attempts. Last error: {last_error}"
        )

    async def disconnect(self) -> None:
        await self.engine.dispose()
        log.info("database.disconnected")

    async def init_db(self) -> None:
        """Create all tables (migrations are out of band)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


_database: Database | None = None


def get_database() -> Database:
    """Get or create the process-wide persistence client."""
    global _database
    if _database is None:
        configuration = get_configuration()
        _database = Database(
            build_database_config(configuration),
            echo=configuration.mode is Mode.DEVELOPMENT and get_settings().log_level == "debug",
        )
    return _database


async def close_database() -> None:
    global _database
    if _database is not None:
        await _database.disconnect()
        _database = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with get_database().session() as session:
        yield session
