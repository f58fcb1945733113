from omnicontext.context.storages.chat_history import ChatHistoryStorage
from omnicontext.context.storages.identity import IdentityStorage

__all__ = [
    "ChatHistoryStorage",
    "IdentityStorage",
]
