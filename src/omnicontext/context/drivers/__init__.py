"""Storage drivers: one adapter per physical backend."""

from omnicontext.context.drivers.base import Records, StorageDriver
from omnicontext.context.drivers.memory import InMemoryDriver
from omnicontext.context.drivers.file import FileDriver
from omnicontext.context.drivers.cache import CacheDriver
from omnicontext.context.drivers.session import SessionDriver
from omnicontext.context.drivers.sql import RelationalDriver, SQLBlobDriver
from omnicontext.context.drivers.mongo import MongoDriver

__all__ = [
    "Records",
    "StorageDriver",
    "InMemoryDriver",
    "FileDriver",
    "CacheDriver",
    "SessionDriver",
    "RelationalDriver",
    "SQLBlobDriver",
    "MongoDriver",
]
