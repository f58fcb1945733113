"""
Session-keyed storage of conversation state.

Identities key the data, drivers persist it, ``Storage`` subclasses load and
save it lazily, truncation keeps chat history within budget and ``Context``
groups the storages of one session.
"""

from omnicontext.context.identity import SessionIdentity, SessionIdentityArray
from omnicontext.context.events import EventDispatcher
from omnicontext.context.types import (
    DriverKind,
    MongoConfig,
    RedisConfig,
    SQLConfig,
    StorageConfig,
    TruncationConfig,
)
from omnicontext.context.drivers import (
    CacheDriver,
    FileDriver,
    InMemoryDriver,
    MongoDriver,
    RelationalDriver,
    SessionDriver,
    SQLBlobDriver,
    StorageDriver,
)
from omnicontext.context.manager import DriverWriteResult, StorageManager, WriteReport
from omnicontext.context.storage import Storage
from omnicontext.context.storages import ChatHistoryStorage, IdentityStorage
from omnicontext.context.truncation import (
    SimpleTruncationStrategy,
    TokenBasedTruncationStrategy,
    TruncationManager,
    TruncationStrategy,
    get_strategy_class,
)
from omnicontext.context.context import Context
from omnicontext.context.query import ContextQuery

__all__ = [
    "SessionIdentity",
    "SessionIdentityArray",
    "EventDispatcher",
    "DriverKind",
    "MongoConfig",
    "RedisConfig",
    "SQLConfig",
    "StorageConfig",
    "TruncationConfig",
    "StorageDriver",
    "CacheDriver",
    "FileDriver",
    "InMemoryDriver",
    "MongoDriver",
    "RelationalDriver",
    "SessionDriver",
    "SQLBlobDriver",
    "DriverWriteResult",
    "StorageManager",
    "WriteReport",
    "Storage",
    "ChatHistoryStorage",
    "IdentityStorage",
    "TruncationStrategy",
    "SimpleTruncationStrategy",
    "TokenBasedTruncationStrategy",
    "TruncationManager",
    "get_strategy_class",
    "Context",
    "ContextQuery",
]
