"""Chainable filters over the sessions an agent has stored data under."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Self

from omnicontext.context.identity import SessionIdentity, SessionIdentityArray
from omnicontext.context.storage import DriverList, Storage
from omnicontext.context.storages import ChatHistoryStorage
from omnicontext.context.types import StorageConfig
from omnicontext.exceptions import StorageError

if TYPE_CHECKING:
    from omnicontext.context.context import Context

logger = logging.getLogger(__name__)

IdentityFilter = Callable[[SessionIdentity], bool]


class ContextQuery:
    """
    Selects tracked identities of one agent and acts on the storages behind them.

    Every ``for_*`` call returns a new query, so a base query can be reused::

        chats = context.query().for_storage(ChatHistoryStorage)
        await chats.for_user("42").count()
        await chats.for_group("acme").remove()

    Storages are rebuilt from an identity's scope using the context's
    registered storages, ``ChatHistoryStorage`` and any ``storage_classes``
    passed in.
    """

    def __init__(
        self,
        context: Context,
        *,
        storage_classes: Iterable[type[Storage]] = (),
        filters: tuple[IdentityFilter, ...] = (),
    ):
        self.context = context
        self.storage_classes: dict[str, type[Storage]] = {ChatHistoryStorage.storage_prefix: ChatHistoryStorage}
        for storage in context._storages.values():
            self.storage_classes[storage.storage_prefix] = type(storage)
        for storage_cls in storage_classes:
            self.storage_classes[storage_cls.storage_prefix] = storage_cls
        self._filters = filters

    @classmethod
    def named(
        cls,
        agent_name: str,
        drivers: DriverList | StorageConfig,
        **kwargs: Any,
    ) -> Self:
        """Query an agent's sessions by name, without a live session of its own."""
        from omnicontext.context.context import Context

        return cls(Context(SessionIdentity(agent_name=agent_name), drivers), **kwargs)

    def _with(self, condition: IdentityFilter) -> Self:
        return type(self)(
            self.context,
            storage_classes=self.storage_classes.values(),
            filters=(*self._filters, condition),
        )

    # Filters

    def for_storage(self, storage: str | type[Storage]) -> Self:
        scope = storage if isinstance(storage, str) else storage.storage_prefix
        return self._with(lambda identity: identity.scope == scope)

    def for_user(self, user_id: str) -> Self:
        return self._with(lambda identity: identity.user_id == user_id)

    def for_chat(self, chat_name: str) -> Self:
        return self._with(lambda identity: identity.chat_name == chat_name)

    def for_group(self, group: str) -> Self:
        return self._with(lambda identity: identity.group == group)

    def filter(self, condition: IdentityFilter) -> Self:
        return self._with(condition)

    # Queries

    async def identities(self) -> SessionIdentityArray:
        tracked = await self.context.identity_storage.get_identities()
        return tracked.filter(lambda identity: all(condition(identity) for condition in self._filters))

    async def all(self) -> list[SessionIdentity]:
        return (await self.identities()).all()

    async def count(self) -> int:
        return len(await self.identities())

    async def exists(self) -> bool:
        return await self.count() > 0

    async def first(self) -> SessionIdentity | None:
        return (await self.identities()).first()

    async def keys(self) -> list[str]:
        return (await self.identities()).get_keys()

    # Storage access

    def storage_for(self, identity: SessionIdentity) -> Storage:
        """Build the storage ``identity`` was tracked for, wired to the context's drivers."""
        storage_cls = self.storage_classes.get(identity.scope or "")
        if storage_cls is None:
            raise StorageError(
                f"No storage class is known for scope {identity.scope!r}",
                details=f"key={identity.get_key()}, known={sorted(self.storage_classes)}",
            )
        return self.context._build(storage_cls, identity)

    async def each(self, callback: Callable[[SessionIdentity, Storage], Awaitable[Any] | Any]) -> int:
        """Call ``callback(identity, storage)`` for every match, awaiting it when it returns an awaitable."""
        identities = await self.identities()
        for identity in identities:
            result = callback(identity, self.storage_for(identity))
            if inspect.isawaitable(result):
                await result
        return len(identities)

    async def map(self, callback: Callable[[SessionIdentity, Storage], Awaitable[Any] | Any]) -> list[Any]:
        results = []
        for identity in await self.identities():
            result = callback(identity, self.storage_for(identity))
            if inspect.isawaitable(result):
                result = await result
            results.append(result)
        return results

    # Cleanup

    async def clear(self) -> int:
        """Empty every matching storage on its drivers. The identities stay tracked."""
        identities = await self.identities()
        for identity in identities:
            storage = self.storage_for(identity)
            storage.clear()
            await storage.save()
        logger.debug("Cleared %s sessions of %s", len(identities), self.context.identity.agent_name)
        return len(identities)

    async def remove(self) -> int:
        """Delete every matching storage's data and stop tracking it."""
        identities = await self.identities()
        for identity in identities:
            await self.storage_for(identity).remove()
            await self.context.identity_storage.remove_by_key(identity.get_key())
        await self.context.identity_storage.save()
        logger.debug("Removed %s sessions of %s", len(identities), self.context.identity.agent_name)
        return len(identities)

    # Chat shortcuts

    def chats(self) -> Self:
        return self.for_storage(ChatHistoryStorage)

    async def chat_keys(self) -> list[str]:
        return await self.chats().keys()

    async def clear_all_chats(self) -> int:
        return await self.chats().clear()

    async def clear_all_chats_by_user(self, user_id: str) -> int:
        return await self.chats().for_user(user_id).clear()

    async def remove_all_chats(self) -> int:
        return await self.chats().remove()

    async def remove_all_chats_by_user(self, user_id: str) -> int:
        return await self.chats().for_user(user_id).remove()

    async def count_by_user(self, user_id: str) -> int:
        return await self.for_user(user_id).count()

    async def identities_by_user(self, user_id: str) -> SessionIdentityArray:
        return await self.for_user(user_id).identities()

    def __repr__(self) -> str:
        return f"ContextQuery(agent={self.context.identity.agent_name!r}, filters={len(self._filters)})"


__all__ = ["ContextQuery"]
