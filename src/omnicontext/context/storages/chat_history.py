"""Chat history storage."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Self

from omnicontext.context.events import (
    ChatHistoryLoaded,
    ChatHistoryLoading,
    ChatHistorySaved,
    ChatHistorySaving,
    ChatHistoryTruncated,
    EventDispatcher,
    MessageAdded,
    MessageAdding,
)
from omnicontext.context.identity import SessionIdentity
from omnicontext.context.manager import StorageManager
from omnicontext.context.storage import DriverList, Storage
from omnicontext.messages import Message, MessageArray
from omnicontext.schemas.sql import ContextMessageRow

if TYPE_CHECKING:
    from omnicontext.context.truncation import TruncationStrategy
    from omnicontext.context.types import StorageConfig


class ChatHistoryStorage(Storage):
    """
    Messages of one conversation.

    Message metadata is kept in memory but only persisted when ``store_meta``
    is on.
    """

    collection_class = MessageArray
    storage_prefix = "chat_history"
    relational_model = ContextMessageRow

    loading_event = ChatHistoryLoading
    loaded_event = ChatHistoryLoaded
    saving_event = ChatHistorySaving
    saved_event = ChatHistorySaved

    def __init__(
        self,
        identity: SessionIdentity,
        drivers: DriverList | StorageManager,
        *,
        store_meta: bool = False,
        dispatcher: EventDispatcher | None = None,
        temporary: bool = False,
    ):
        super().__init__(identity, drivers, dispatcher=dispatcher, temporary=temporary)
        self.store_meta = store_meta

    @classmethod
    def from_config(cls, identity: SessionIdentity, storage_config: StorageConfig, **kwargs: Any) -> Self:
        kwargs.setdefault("store_meta", storage_config.store_meta)
        return super().from_config(identity, storage_config, **kwargs)

    def set_store_meta(self, store_meta: bool = True) -> None:
        self.store_meta = store_meta

    def should_store_meta(self) -> bool:
        return self.store_meta

    def get_identifier(self) -> str:
        return self.identity.get_key()

    def _serialize(self) -> list[dict[str, Any]]:
        return self._items.to_list(include_metadata=self.store_meta)

    async def add_message(self, message: Message | Mapping[str, Any]) -> Message:
        if not isinstance(message, Message):
            message = MessageArray.resolve(message)
        self.dispatcher.dispatch(MessageAdding(storage=self, message=message))
        await self.add(message)
        self.dispatcher.dispatch(MessageAdded(storage=self, message=message))
        return message

    async def get_messages(self) -> MessageArray:
        return await self.get()

    async def get_last_message(self) -> Message | None:
        return await self.get_last()

    async def to_list(self) -> list[dict[str, Any]]:
        messages = await self.get_messages()
        return messages.to_list(include_metadata=False)

    async def to_list_with_meta(self) -> list[dict[str, Any]]:
        messages = await self.get_messages()
        return messages.to_list_with_meta()

    async def read_from_memory(self) -> MessageArray:
        return await self.read()

    async def truncate(
        self,
        strategy: TruncationStrategy,
        context_window_size: int,
        current_tokens: int,
    ) -> MessageArray:
        """
        Apply ``strategy`` to the history and keep its result.

        When messages are dropped the history is replaced (and marked dirty)
        and ChatHistoryTruncated is dispatched with the kept and discarded
        messages.
        """
        messages = await self.get_messages()
        kept = strategy.truncate(messages, context_window_size, current_tokens)
        kept_ids = {id(message) for message in kept}
        discarded = MessageArray(message for message in messages if id(message) not in kept_ids)
        if discarded.is_empty():
            return messages

        await self.set(kept)
        self.dispatcher.dispatch(
            ChatHistoryTruncated(
                storage=self,
                kept=kept,
                discarded=discarded,
                strategy=type(strategy).__name__,
            )
        )
        return kept


__all__ = ["ChatHistoryStorage"]
