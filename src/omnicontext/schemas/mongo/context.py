from datetime import datetime, timezone
from typing import Any

import pymongo
from beanie import Document, Indexed
from pydantic import Field


class StoredContext(Document):
    """A stored collection: the ordered records of one session key."""

    key: Indexed(str, unique=True)  # type: ignore[valid-type]
    data: list[dict[str, Any]] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "context_storage"
        indexes = [
            [("updated_at", pymongo.DESCENDING)],
        ]

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)


__all__ = ["StoredContext"]
