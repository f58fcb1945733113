"""Registry of the storages that make up one agent session."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence, TypeVar

from opentelemetry.trace import SpanKind

from omnicontext.context.drivers.base import StorageDriver
from omnicontext.context.events import (
    ContextCleared,
    ContextCreated,
    ContextSaved,
    ContextSaving,
    EventDispatcher,
    StorageRegistered,
)
from omnicontext.context.identity import SessionIdentity, SessionIdentityArray
from omnicontext.context.manager import WriteReport
from omnicontext.context.query import ContextQuery
from omnicontext.context.storage import DriverList, Storage
from omnicontext.context.storages import IdentityStorage
from omnicontext.context.types import StorageConfig
from omnicontext.tracing import trace_operation

logger = logging.getLogger(__name__)

StorageT = TypeVar("StorageT", bound=Storage)


class Context:
    """
    Groups the storages of one session and saves them together.

    Storages are built with ``make`` (or built elsewhere and passed to
    ``register``) and share the context's dispatcher. When identity tracking
    is on, every non-temporary storage that gets written is recorded in an
    ``IdentityStorage`` keyed by the agent name alone, so the agent's sessions
    can be listed later.
    """

    identity_key = "context"

    def __init__(
        self,
        identity: SessionIdentity,
        drivers: DriverList | StorageConfig,
        *,
        dispatcher: EventDispatcher | None = None,
        track_identities: bool = True,
    ):
        self.identity = identity
        self.dispatcher = dispatcher if dispatcher is not None else EventDispatcher()
        self.track_identities = track_identities
        if isinstance(drivers, StorageConfig):
            self.storage_config: StorageConfig | None = drivers
            self._drivers: list[StorageDriver | type[StorageDriver]] = []
        else:
            self.storage_config = None
            self._drivers = list(drivers)
        self._storages: dict[str, Storage] = {}
        self.identity_storage: IdentityStorage = self._build(
            IdentityStorage,
            SessionIdentity(agent_name=identity.agent_name),
        )
        self.dispatcher.dispatch(ContextCreated(context=self))

    def _build(
        self,
        storage_cls: type[StorageT],
        identity: SessionIdentity,
        drivers: DriverList | None = None,
        **kwargs: Any,
    ) -> StorageT:
        kwargs.setdefault("dispatcher", self.dispatcher)
        if drivers is not None:
            return storage_cls(identity, drivers, **kwargs)
        if self.storage_config is not None:
            return storage_cls.from_config(identity, self.storage_config, **kwargs)
        return storage_cls(identity, self._drivers, **kwargs)

    # Registry

    def register(self, storage: Storage) -> Storage:
        """Add ``storage`` under its prefix, replacing any storage with the same prefix."""
        name = self._name_of(storage)
        if name in self._storages:
            logger.debug("Replacing storage '%s' in context %s", name, self.identity.get_key())
        self._storages[name] = storage
        self.dispatcher.dispatch(StorageRegistered(context=self, storage=storage))
        return storage

    def make(self, storage_cls: type[StorageT], drivers: DriverList | None = None, **kwargs: Any) -> StorageT:
        """Build a ``storage_cls`` for this context's identity and register it."""
        storage = self._build(storage_cls, self.identity, drivers, **kwargs)
        self.register(storage)
        return storage

    def get_storage(self, storage: str | type[Storage]) -> Storage | None:
        if isinstance(storage, str):
            return self._storages.get(storage)
        for registered in self._storages.values():
            if isinstance(registered, storage):
                return registered
        return None

    def has(self, storage: str | type[Storage]) -> bool:
        return self.get_storage(storage) is not None

    def get_storage_names(self) -> list[str]:
        return list(self._storages)

    @staticmethod
    def _name_of(storage: Storage) -> str:
        return storage.storage_prefix or type(storage).__name__

    # Lifecycle

    @trace_operation(kind=SpanKind.INTERNAL, category="context")
    async def save(self) -> dict[str, WriteReport | None]:
        """
        Save every registered storage, then the identity registry.

        Returns each storage's report by name (None for storages that were
        clean), plus the identity registry's under ``identity_key`` when
        tracking is on.
        """
        self.dispatcher.dispatch(ContextSaving(context=self))

        names = list(self._storages)
        results = await asyncio.gather(*(self._storages[name].save() for name in names))
        reports: dict[str, WriteReport | None] = dict(zip(names, results))

        if self.track_identities:
            for name, report in reports.items():
                storage = self._storages[name]
                if report is not None and report.ok and not storage.temporary:
                    await self.identity_storage.add_identity(storage.get_identity())
            reports[self.identity_key] = await self.identity_storage.save()

        self.dispatcher.dispatch(ContextSaved(context=self, reports=reports))
        return reports

    def clear(self) -> None:
        """Empty every registered storage in memory; the next save persists the empty state."""
        for storage in self._storages.values():
            storage.clear()
        self.dispatcher.dispatch(ContextCleared(context=self))

    async def remove(self) -> dict[str, WriteReport]:
        """Delete every registered storage's data and forget their identities."""
        names = list(self._storages)
        results = await asyncio.gather(*(self._storages[name].remove() for name in names))
        reports: dict[str, WriteReport] = dict(zip(names, results))

        if self.track_identities:
            for name in names:
                await self.identity_storage.remove_by_key(self._storages[name].get_identity().get_key())
            identity_report = await self.identity_storage.save()
            if identity_report is not None:
                reports[self.identity_key] = identity_report
        return reports

    async def read(self) -> None:
        """Reload every registered storage, and the identity registry, from the drivers."""
        await asyncio.gather(*(storage.read() for storage in self._storages.values()))
        if self.track_identities:
            await self.identity_storage.read()

    # Tracked identities

    async def get_tracked_keys(self) -> list[str]:
        return await self.identity_storage.get_keys()

    async def get_tracked_keys_by_prefix(self, prefix: str) -> list[str]:
        return await self.identity_storage.get_keys_by_prefix(prefix)

    async def get_tracked_identities_by_scope(self, scope: str) -> SessionIdentityArray:
        return await self.identity_storage.get_identities_by_scope(scope)

    async def remove_identity_from_tracking(self, identity: SessionIdentity | str) -> bool:
        """Forget one tracked identity; the change is persisted by the next save."""
        key = identity if isinstance(identity, str) else identity.get_key()
        return await self.identity_storage.remove_by_key(key)

    def query(self, **kwargs: Any) -> ContextQuery:
        """Filter and clean up every session tracked for this context's agent."""
        return ContextQuery(self, **kwargs)

    def __contains__(self, storage: str | type[Storage]) -> bool:
        return self.has(storage)

    def __repr__(self) -> str:
        return f"Context(identity={self.identity.get_key()!r}, storages={self.get_storage_names()!r})"


__all__ = ["Context"]
