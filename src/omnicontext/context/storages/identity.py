"""Registry of the identities a context has stored data under."""

from __future__ import annotations

from omnicontext.context.events import (
    IdentityAdded,
    IdentityAdding,
    IdentityStorageLoaded,
    IdentityStorageLoading,
    IdentityStorageSaved,
    IdentityStorageSaving,
)
from omnicontext.context.identity import SessionIdentity, SessionIdentityArray
from omnicontext.context.storage import Storage
from omnicontext.schemas.sql import ContextIdentityRow


class IdentityStorage(Storage):
    collection_class = SessionIdentityArray
    storage_prefix = "context"
    relational_model = ContextIdentityRow

    loading_event = IdentityStorageLoading
    loaded_event = IdentityStorageLoaded
    saving_event = IdentityStorageSaving
    saved_event = IdentityStorageSaved

    async def add_identity(self, identity: SessionIdentity) -> bool:
        """Track ``identity``; returns False if its key is already tracked."""
        identities = await self.get_identities()
        if identities.has_key(identity.get_key()):
            return False
        self.dispatcher.dispatch(IdentityAdding(storage=self, identity=identity))
        await self.add(identity)
        self.dispatcher.dispatch(IdentityAdded(storage=self, identity=identity))
        return True

    async def remove_by_key(self, key: str) -> bool:
        identities = await self.get_identities()
        removed = identities.remove_by_key(key)
        if removed:
            self._mark_dirty()
        return removed

    async def has_key(self, key: str) -> bool:
        return (await self.get_identities()).has_key(key)

    async def get_by_key(self, key: str) -> SessionIdentity | None:
        return (await self.get_identities()).get_by_key(key)

    async def get_keys(self) -> list[str]:
        return (await self.get_identities()).get_keys()

    async def get_keys_by_prefix(self, prefix: str) -> list[str]:
        return (await self.get_identities()).get_keys_by_prefix(prefix)

    async def get_identities_by_scope(self, scope: str) -> SessionIdentityArray:
        return (await self.get_identities()).get_by_scope(scope)

    async def get_identities(self) -> SessionIdentityArray:
        return await self.get()


__all__ = ["IdentityStorage"]
