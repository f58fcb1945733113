"""Lazily loaded, dirty-tracked collection bound to one session identity."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Mapping, Self, Sequence

from opentelemetry.trace import SpanKind

from omnicontext.context.drivers.base import Records, StorageDriver
from omnicontext.context.events import EventDispatcher, StorageLoaded, StorageLoading, StorageSaved, StorageSaving
from omnicontext.context.identity import SessionIdentity
from omnicontext.context.manager import StorageManager, WriteReport
from omnicontext.exceptions import DriverConfigurationError, InvalidDataModelError
from omnicontext.models import TypedCollection, TypedRecord
from omnicontext.tracing import trace_operation

if TYPE_CHECKING:
    from omnicontext.context.types import StorageConfig
    from omnicontext.schemas.sql import RecordRowMixin

logger = logging.getLogger(__name__)

DriverList = Sequence[StorageDriver | type[StorageDriver]]


class Storage:
    """
    Base orchestrator for one identity's collection.

    Nothing is read at construction. The first access (``get``, ``add``,
    ``count``...) loads from the first driver that has data; mutations mark the
    collection dirty and ``save`` writes it to every driver only when dirty.

    Subclasses set ``collection_class`` and ``storage_prefix`` (used as the
    identity scope) and may override the lifecycle event types.
    """

    collection_class: ClassVar[type[TypedCollection] | None] = None
    storage_prefix: ClassVar[str] = ""
    relational_model: ClassVar[type[RecordRowMixin] | None] = None
    skip_invalid_records: ClassVar[bool] = False

    loading_event: ClassVar[type[StorageLoading]] = StorageLoading
    loaded_event: ClassVar[type[StorageLoaded]] = StorageLoaded
    saving_event: ClassVar[type[StorageSaving]] = StorageSaving
    saved_event: ClassVar[type[StorageSaved]] = StorageSaved

    def __init__(
        self,
        identity: SessionIdentity,
        drivers: DriverList | StorageManager,
        *,
        dispatcher: EventDispatcher | None = None,
        temporary: bool = False,
    ):
        if self.collection_class is None:
            raise DriverConfigurationError(f"{type(self).__name__} does not declare a collection_class")
        self.identity = identity.with_scope(self.storage_prefix) if self.storage_prefix else identity
        self.manager = drivers if isinstance(drivers, StorageManager) else StorageManager(drivers)
        self.dispatcher = dispatcher if dispatcher is not None else EventDispatcher()
        self.temporary = temporary
        self._items: TypedCollection = self.collection_class()
        self._loaded = False
        self._dirty = False

    @classmethod
    def from_config(cls, identity: SessionIdentity, storage_config: StorageConfig, **kwargs: Any) -> Self:
        """Build the storage with the drivers named in ``storage_config``."""
        driver_options = {
            key: kwargs.pop(key)
            for key in ("session", "redis_client", "memory_store")
            if key in kwargs
        }
        drivers = storage_config.build_drivers(relational_model=cls.relational_model, **driver_options)
        return cls(identity, drivers, **kwargs)

    # State

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def drivers(self) -> list[StorageDriver]:
        return self.manager.drivers

    def get_identity(self) -> SessionIdentity:
        return self.identity

    def _mark_dirty(self) -> None:
        self._dirty = True

    # Loading

    async def ensure_loaded(self) -> None:
        if not self._loaded:
            await self.load()

    @trace_operation(kind=SpanKind.INTERNAL, category="storage")
    async def load(self) -> TypedCollection:
        self.dispatcher.dispatch(self.loading_event(storage=self))
        raw = await self.manager.read(self.identity)
        self._items = self._deserialize(raw)
        self._loaded = True
        self._dirty = False
        self.dispatcher.dispatch(self.loaded_event(storage=self, records=self._items))
        return self._items

    async def read(self) -> TypedCollection:
        """Discard in-memory state and reload from the drivers."""
        return await self.load()

    def _deserialize(self, raw: Records | None) -> TypedCollection:
        collection = self.collection_class()
        for index, item in enumerate(raw or ()):
            try:
                collection.add(item)
            except InvalidDataModelError as exc:
                if not self.skip_invalid_records:
                    raise
                logger.warning("Skipping invalid record %s of %s: %s", index, self.identity.get_key(), exc)
        return collection

    def _serialize(self) -> Records:
        return self._items.to_list()

    # Access and mutation

    async def get(self) -> TypedCollection:
        await self.ensure_loaded()
        return self._items

    async def add(self, record: TypedRecord | Mapping[str, Any]) -> TypedRecord:
        await self.ensure_loaded()
        self._items.add(record)
        self._mark_dirty()
        return self._items.last()

    async def set(self, items: TypedCollection | Iterable[TypedRecord | Mapping[str, Any]]) -> None:
        """Replace the whole collection."""
        if isinstance(items, self.collection_class):
            self._items = items
        else:
            self._items = self.collection_class(items)
        self._loaded = True
        self._mark_dirty()

    async def remove_item(self, item: TypedRecord | int) -> TypedRecord | None:
        await self.ensure_loaded()
        removed = self._items.remove(item)
        if removed is not None:
            self._mark_dirty()
        return removed

    async def get_last(self) -> TypedRecord | None:
        await self.ensure_loaded()
        return self._items.last()

    async def count(self) -> int:
        await self.ensure_loaded()
        return len(self._items)

    def clear(self) -> None:
        """Empty the collection without touching the drivers; the next save writes the empty list."""
        self._items = self.collection_class()
        self._loaded = True
        self._mark_dirty()

    # Persistence

    @trace_operation(kind=SpanKind.INTERNAL, category="storage")
    async def save(self) -> WriteReport | None:
        """Write to every driver if dirty. Returns the per-driver report, or None when clean."""
        if not self._dirty:
            return None

        self.dispatcher.dispatch(self.saving_event(storage=self, records=self._items))
        report = await self.manager.write(self.identity, self._serialize())
        self._dirty = False

        if report.ok:
            self.dispatcher.dispatch(self.saved_event(storage=self, records=self._items, report=report))
        else:
            logger.warning(
                "Saving %s failed on drivers: %s",
                self.identity.get_key(),
                ", ".join(outcome.driver for outcome in report.failed),
            )
        return report

    async def write_to_memory(self) -> WriteReport:
        """Write the current collection to every driver regardless of the dirty bit."""
        await self.ensure_loaded()
        report = await self.manager.write(self.identity, self._serialize())
        if report.ok:
            self._dirty = False
        return report

    @trace_operation(kind=SpanKind.INTERNAL, category="storage")
    async def remove(self) -> WriteReport:
        """Delete the identity's data from every driver and reset to an empty, clean state."""
        report = await self.manager.remove(self.identity)
        self._items = self.collection_class()
        self._loaded = True
        self._dirty = False
        return report

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self.identity.get_key()!r}, loaded={self._loaded}, dirty={self._dirty})"


__all__ = ["Storage", "DriverList"]
