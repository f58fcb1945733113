"""OmniContext: context storage and truncation for LLM agents."""

from omnicontext.context import (
    ChatHistoryStorage,
    Context,
    EventDispatcher,
    IdentityStorage,
    SessionIdentity,
    SimpleTruncationStrategy,
    Storage,
    StorageConfig,
    TokenBasedTruncationStrategy,
    TruncationConfig,
    TruncationManager,
)
from omnicontext.messages import (
    AssistantMessage,
    DeveloperMessage,
    Message,
    MessageArray,
    SystemMessage,
    ToolCallMessage,
    ToolResultMessage,
    Usage,
    UserMessage,
)
from omnicontext.models import TypedCollection, TypedRecord
from omnicontext.usage import UsageArray, UsageRecord, UsageStorage

__version__ = "0.1.0"

__all__ = [
    "ChatHistoryStorage",
    "Context",
    "EventDispatcher",
    "IdentityStorage",
    "SessionIdentity",
    "SimpleTruncationStrategy",
    "Storage",
    "StorageConfig",
    "TokenBasedTruncationStrategy",
    "TruncationConfig",
    "TruncationManager",
    "AssistantMessage",
    "DeveloperMessage",
    "Message",
    "MessageArray",
    "SystemMessage",
    "ToolCallMessage",
    "ToolResultMessage",
    "Usage",
    "UserMessage",
    "TypedCollection",
    "TypedRecord",
    "UsageArray",
    "UsageRecord",
    "UsageStorage",
]
