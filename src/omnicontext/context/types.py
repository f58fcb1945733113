"""Explicit configuration objects passed to storages, drivers and truncation at assembly time."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, MutableMapping
from urllib.parse import quote_plus

from omnicontext import config
from omnicontext.exceptions import DriverConfigurationError

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from omnicontext.context.drivers import StorageDriver
    from omnicontext.context.truncation import TruncationManager, TruncationStrategy
    from omnicontext.schemas.sql import RecordRowMixin


class DriverKind(str, Enum):
    """Driver names accepted in StorageConfig.drivers."""

    MEMORY = "memory"
    FILE = "file"
    CACHE = "cache"
    SESSION = "session"
    SQL = "sql"
    SQL_BLOB = "sql_blob"
    MONGO = "mongo"


@dataclass(slots=True)
class RedisConfig:
    """Cache driver settings."""

    url: str = config.REDIS_URL
    ttl: int | None = config.CACHE_TTL_SECONDS
    prefix: str = config.CACHE_KEY_PREFIX


@dataclass(slots=True)
class SQLConfig:
    """SQL engine initialization config."""

    dsn: str | None = config.SQL_DSN
    user: str | None = config.SQL_USER
    password: str | None = config.SQL_PASSWORD
    host: str | None = config.SQL_HOST
    port: int | None = config.SQL_PORT
    dbname: str | None = config.SQL_DBNAME
    sslmode: str = config.SQL_SSLMODE
    create_schema: bool = False
    reset_schema: bool = False
    echo: bool = False


@dataclass(slots=True)
class MongoConfig:
    """Mongo initialization config."""

    srv_uri: str | None = config.MONGO_SRV_URI
    db_name: str = config.MONGO_DB_NAME
    host: str = "localhost"
    port: int = 27017
    username: str | None = None
    password: str | None = None
    allow_index_dropping: bool = False

    def connection_uri(self) -> str:
        if self.srv_uri:
            return self.srv_uri
        if self.username and self.password:
            return f"mongodb://{quote_plus(self.username)}:{quote_plus(self.password)}@{self.host}:{self.port}"
        return f"mongodb://{self.host}:{self.port}"


@dataclass(slots=True)
class StorageConfig:
    """
    Which drivers a storage uses, in priority order, and how to build them.

    The first driver is the primary (read first); the rest are written to on
    every save.
    """

    drivers: list[str] = field(default_factory=lambda: list(config.DEFAULT_DRIVERS))
    storage_path: str = config.STORAGE_PATH
    store_meta: bool = config.STORE_META
    redis: RedisConfig = field(default_factory=RedisConfig)

    def build_drivers(
        self,
        *,
        relational_model: type[RecordRowMixin] | None = None,
        session: MutableMapping[str, Any] | None = None,
        redis_client: Redis | None = None,
        memory_store: dict[str, Any] | None = None,
    ) -> list[StorageDriver]:
        from omnicontext.context.drivers import (
            CacheDriver,
            FileDriver,
            InMemoryDriver,
            MongoDriver,
            RelationalDriver,
            SessionDriver,
            SQLBlobDriver,
        )

        built: list[StorageDriver] = []
        for name in self.drivers:
            try:
                kind = DriverKind(name)
            except ValueError as exc:
                raise DriverConfigurationError(
                    f"Unknown driver '{name}'",
                    details=f"known={[member.value for member in DriverKind]}",
                ) from exc

            if kind is DriverKind.MEMORY:
                built.append(InMemoryDriver(memory_store))
            elif kind is DriverKind.FILE:
                built.append(FileDriver(self.storage_path))
            elif kind is DriverKind.CACHE:
                built.append(
                    CacheDriver(redis_client, url=self.redis.url, ttl=self.redis.ttl, prefix=self.redis.prefix)
                )
            elif kind is DriverKind.SESSION:
                if session is None:
                    raise DriverConfigurationError("The session driver needs a session mapping")
                built.append(SessionDriver(session))
            elif kind is DriverKind.SQL:
                if relational_model is None:
                    raise DriverConfigurationError("The sql driver needs a relational model for this storage")
                built.append(RelationalDriver(relational_model))
            elif kind is DriverKind.SQL_BLOB:
                built.append(SQLBlobDriver())
            elif kind is DriverKind.MONGO:
                built.append(MongoDriver())

        if not built:
            raise DriverConfigurationError("StorageConfig.drivers is empty")
        return built


@dataclass(slots=True)
class TruncationConfig:
    """
    Truncation strategy and when to apply it.

    History is truncated once the last known token count exceeds
    ``threshold * (1 - buffer)``; the strategy then trims towards
    ``threshold``.
    """

    strategy: str = config.TRUNCATION_STRATEGY
    strategy_config: dict[str, Any] = field(default_factory=lambda: dict(config.TRUNCATION_STRATEGY_CONFIG))
    threshold: int = config.TRUNCATION_THRESHOLD
    buffer: float = config.TRUNCATION_BUFFER

    def build_strategy(self) -> TruncationStrategy:
        from omnicontext.context.truncation import get_strategy_class

        return get_strategy_class(self.strategy)(self.strategy_config)

    def build_manager(self) -> TruncationManager:
        from omnicontext.context.truncation import TruncationManager

        return TruncationManager(
            self.build_strategy(),
            threshold=self.threshold,
            buffer=self.buffer,
        )


__all__ = [
    "DriverKind",
    "RedisConfig",
    "SQLConfig",
    "MongoConfig",
    "StorageConfig",
    "TruncationConfig",
]
