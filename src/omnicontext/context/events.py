"""Domain notifications and the observer list that delivers them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from omnicontext.context.identity import SessionIdentity
    from omnicontext.context.manager import WriteReport
    from omnicontext.messages import Message, MessageArray
    from omnicontext.models import TypedCollection

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


# Generic storage lifecycle


@dataclass(slots=True)
class StorageLoading:
    storage: Any


@dataclass(slots=True)
class StorageLoaded:
    storage: Any
    records: "TypedCollection"


@dataclass(slots=True)
class StorageSaving:
    storage: Any
    records: "TypedCollection"


@dataclass(slots=True)
class StorageSaved:
    storage: Any
    records: "TypedCollection"
    report: "WriteReport"


# Chat history


@dataclass(slots=True)
class ChatHistoryLoading(StorageLoading):
    pass


@dataclass(slots=True)
class ChatHistoryLoaded(StorageLoaded):
    pass


@dataclass(slots=True)
class ChatHistorySaving(StorageSaving):
    pass


@dataclass(slots=True)
class ChatHistorySaved(StorageSaved):
    pass


@dataclass(slots=True)
class MessageAdding:
    storage: Any
    message: "Message"


@dataclass(slots=True)
class MessageAdded:
    storage: Any
    message: "Message"


@dataclass(slots=True)
class ChatHistoryTruncated:
    storage: Any
    kept: "MessageArray"
    discarded: "MessageArray"
    strategy: str = ""


# Usage


@dataclass(slots=True)
class UsageStorageLoading(StorageLoading):
    pass


@dataclass(slots=True)
class UsageStorageLoaded(StorageLoaded):
    pass


@dataclass(slots=True)
class UsageStorageSaving(StorageSaving):
    pass


@dataclass(slots=True)
class UsageStorageSaved(StorageSaved):
    pass


@dataclass(slots=True)
class UsageAdding:
    storage: Any
    record: Any


@dataclass(slots=True)
class UsageAdded:
    storage: Any
    record: Any


# Identity registry


@dataclass(slots=True)
class IdentityStorageLoading(StorageLoading):
    pass


@dataclass(slots=True)
class IdentityStorageLoaded(StorageLoaded):
    pass


@dataclass(slots=True)
class IdentityStorageSaving(StorageSaving):
    pass


@dataclass(slots=True)
class IdentityStorageSaved(StorageSaved):
    pass


@dataclass(slots=True)
class IdentityAdding:
    storage: Any
    identity: "SessionIdentity"


@dataclass(slots=True)
class IdentityAdded:
    storage: Any
    identity: "SessionIdentity"


# Context


@dataclass(slots=True)
class ContextCreated:
    context: Any


@dataclass(slots=True)
class StorageRegistered:
    context: Any
    storage: Any


@dataclass(slots=True)
class ContextSaving:
    context: Any


@dataclass(slots=True)
class ContextSaved:
    context: Any
    reports: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ContextCleared:
    context: Any


class EventDispatcher:
    """
    Explicit observer list.

    Listeners are plain callables registered at construction or with
    ``subscribe``. A listener that raises is logged and skipped; it never
    changes what the emitting storage does next.
    """

    def __init__(self, listeners: list[Listener] | None = None):
        self._listeners: list[tuple[type | None, Listener]] = [(None, listener) for listener in listeners or []]

    def subscribe(self, listener: Listener, event_type: type | None = None) -> Callable[[], None]:
        """Register ``listener`` for ``event_type`` (all events when None); returns an unsubscribe callable."""
        entry = (event_type, listener)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def dispatch(self, event: Any) -> None:
        for event_type, listener in list(self._listeners):
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed while handling %s", listener, type(event).__name__)

    def __len__(self) -> int:
        return len(self._listeners)

    def __bool__(self) -> bool:
        # truthy even before any listener subscribes
        return True


__all__ = [
    "EventDispatcher",
    "StorageLoading",
    "StorageLoaded",
    "StorageSaving",
    "StorageSaved",
    "ChatHistoryLoading",
    "ChatHistoryLoaded",
    "ChatHistorySaving",
    "ChatHistorySaved",
    "ChatHistoryTruncated",
    "MessageAdding",
    "MessageAdded",
    "UsageStorageLoading",
    "UsageStorageLoaded",
    "UsageStorageSaving",
    "UsageStorageSaved",
    "UsageAdding",
    "UsageAdded",
    "IdentityStorageLoading",
    "IdentityStorageLoaded",
    "IdentityStorageSaving",
    "IdentityStorageSaved",
    "IdentityAdding",
    "IdentityAdded",
    "ContextCreated",
    "StorageRegistered",
    "ContextSaving",
    "ContextSaved",
    "ContextCleared",
]
