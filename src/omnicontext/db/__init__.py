"""
Database lifecycles for the SQL and Mongo drivers.
"""

from omnicontext.db.mongo import MongoDB
from omnicontext.db.sql import SQLDatabase, get_sessionmaker

__all__ = [
    "MongoDB",
    "SQLDatabase",
    "get_sessionmaker",
]
