"""Async SQLAlchemy engine and sessionmaker shared by the SQL drivers."""

from __future__ import annotations

import logging

from opentelemetry.trace import SpanKind
from sqlalchemy import URL, MetaData, make_url, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from omnicontext.context.types import SQLConfig
from omnicontext.exceptions import StorageNotInitializedError
from omnicontext.schemas.sql import ContextBase
from omnicontext.tracing import CustomSpanKinds, trace_operation

logger = logging.getLogger(__name__)

DEFAULT_SQL_DRIVERNAME = "postgresql+asyncpg"
DEFAULT_SQL_PORT = 5432


class SQLDatabase:
    """
    Process-wide holder for the context tables' engine.

    ``init`` must run before any SQLBlobDriver or RelationalDriver built
    without an explicit sessionmaker touches the database.
    """

    _engine: AsyncEngine | None = None
    _sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def _build_url(cls, config: SQLConfig) -> URL:
        if config.dsn:
            return make_url(config.dsn)

        if config.password and not config.user:
            raise ValueError("SQL config has a password but no user.")

        missing = [name for name in ("host", "dbname") if getattr(config, name) in (None, "")]
        if missing:
            raise ValueError(f"SQL DSN is not set and the split config is incomplete: missing {', '.join(missing)}.")

        return URL.create(
            DEFAULT_SQL_DRIVERNAME,
            username=(config.user or "").strip() or None,
            password=config.password or None,
            host=config.host,
            port=config.port if config.port is not None else DEFAULT_SQL_PORT,
            database=config.dbname,
        )

    @classmethod
    def _build_dsn(cls, config: SQLConfig) -> str:
        return cls._build_url(config).render_as_string(hide_password=False)

    @classmethod
    def _build_connect_args(cls, config: SQLConfig, dsn: str) -> dict[str, str]:
        # asyncpg takes ``ssl`` rather than libpq's ``sslmode``
        if not dsn.startswith("postgresql"):
            return {}
        sslmode = (config.sslmode or "").strip().lower()
        if sslmode in ("", "disable"):
            return {}
        return {"ssl": "require"}

    @classmethod
    @trace_operation(
        kind=SpanKind.INTERNAL,
        open_inference_kind=CustomSpanKinds.DATABASE,
        capture_input=False,
        capture_output=False,
    )
    async def init(cls, config: SQLConfig, *, metadata: MetaData | None = None) -> None:
        """Open the engine, ping it, and create the context tables when asked to.

        Input/output are not captured (connection strings carry credentials).
        """
        url = cls._build_url(config)
        dsn = url.render_as_string(hide_password=False)
        cls._engine = create_async_engine(
            url,
            echo=config.echo,
            pool_pre_ping=True,
            connect_args=cls._build_connect_args(config, dsn),
        )
        cls._sessionmaker = async_sessionmaker(cls._engine, expire_on_commit=False, autoflush=False)

        async with cls._engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        logger.debug("SQL engine ready for %s", url.render_as_string(hide_password=True))

        if config.create_schema or config.reset_schema:
            await cls.bootstrap_schema(metadata=metadata, reset_schema=config.reset_schema)

    @classmethod
    async def bootstrap_schema(cls, *, metadata: MetaData | None = None, reset_schema: bool = False) -> None:
        """Create the context tables, dropping them first when ``reset_schema`` is set."""
        metadata = metadata or ContextBase.metadata
        async with cls.get_engine().begin() as connection:
            if reset_schema:
                await connection.run_sync(metadata.drop_all)
            await connection.run_sync(metadata.create_all)

    @classmethod
    async def close(cls) -> None:
        engine, cls._engine, cls._sessionmaker = cls._engine, None, None
        if engine is not None:
            await engine.dispose()

    @classmethod
    def get_engine(cls) -> AsyncEngine:
        if cls._engine is None:
            raise StorageNotInitializedError("SQL database is not initialized. Call SQLDatabase.init(...) first.")
        return cls._engine

    @classmethod
    def get_sessionmaker(cls) -> async_sessionmaker[AsyncSession]:
        if cls._sessionmaker is None:
            raise StorageNotInitializedError("SQL database is not initialized. Call SQLDatabase.init(...) first.")
        return cls._sessionmaker


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return SQLDatabase.get_sessionmaker()


__all__ = ["SQLDatabase", "get_sessionmaker"]
