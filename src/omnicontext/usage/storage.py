"""Usage storage."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from omnicontext.context.events import (
    UsageAdded,
    UsageAdding,
    UsageStorageLoaded,
    UsageStorageLoading,
    UsageStorageSaved,
    UsageStorageSaving,
)
from omnicontext.context.storage import Storage
from omnicontext.messages import Usage
from omnicontext.schemas.sql import ContextUsageRow
from omnicontext.usage.array import UsageArray
from omnicontext.usage.record import UsageRecord


class UsageStorage(Storage):
    """
    Usage records of one session.

    Plain ``Usage`` objects passed to ``add_usage`` are stamped with this
    storage's identity before being stored.
    """

    collection_class = UsageArray
    storage_prefix = "usage"
    relational_model = ContextUsageRow

    loading_event = UsageStorageLoading
    loaded_event = UsageStorageLoaded
    saving_event = UsageStorageSaving
    saved_event = UsageStorageSaved

    async def add_usage(
        self,
        usage: Usage | Mapping[str, Any],
        *,
        model_name: str | None = None,
        provider_name: str | None = None,
    ) -> UsageRecord:
        if isinstance(usage, Mapping):
            usage = UsageRecord.from_dict(usage)
        if not isinstance(usage, UsageRecord):
            usage = UsageRecord.from_usage(usage, self.identity, model_name, provider_name)

        self.dispatcher.dispatch(UsageAdding(storage=self, record=usage))
        await self.add(usage)
        self.dispatcher.dispatch(UsageAdded(storage=self, record=usage))
        return usage

    async def get_usages(self) -> UsageArray:
        return await self.get()

    async def get_last_usage(self) -> UsageRecord | None:
        return await self.get_last()

    async def get_usage_by_agent(self, agent_name: str) -> UsageArray:
        return (await self.get_usages()).filter_by_agent(agent_name)

    async def get_usage_by_user(self, user_id: str) -> UsageArray:
        return (await self.get_usages()).filter_by_user(user_id)

    async def get_usage_by_group(self, group: str) -> UsageArray:
        return (await self.get_usages()).filter_by_group(group)

    async def get_usage_by_model(self, model_name: str) -> UsageArray:
        return (await self.get_usages()).filter_by_model(model_name)

    async def get_usage_by_provider(self, provider_name: str) -> UsageArray:
        return (await self.get_usages()).filter_by_provider(provider_name)

    async def get_usage_by_date_range(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> UsageArray:
        return (await self.get_usages()).filter_by_date_range(start, end)

    async def get_total_usage(self) -> Usage:
        return (await self.get_usages()).to_usage()


__all__ = ["UsageStorage"]
