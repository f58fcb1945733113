"""Typed records, polymorphic collections and schema export."""

from omnicontext.models.record import TypedRecord
from omnicontext.models.collection import TypedCollection
from omnicontext.models.schema import SchemaGenerator

__all__ = [
    "TypedRecord",
    "TypedCollection",
    "SchemaGenerator",
]
