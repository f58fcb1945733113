"""Message records, content parts, tool calls and usage."""

from omnicontext.messages.usage import Usage
from omnicontext.messages.content import (
    AudioContent,
    ImageContent,
    ImageUrl,
    InputAudio,
    MessageContent,
    TextContent,
)
from omnicontext.messages.tool_calls import ToolCall, ToolCallArray, ToolCallFunction
from omnicontext.messages.message import (
    AssistantMessage,
    DeveloperMessage,
    Message,
    SystemMessage,
    ToolCallMessage,
    ToolResultMessage,
    UserMessage,
)
from omnicontext.messages.array import MessageArray

__all__ = [
    "Usage",
    "AudioContent",
    "ImageContent",
    "ImageUrl",
    "InputAudio",
    "MessageContent",
    "TextContent",
    "ToolCall",
    "ToolCallArray",
    "ToolCallFunction",
    "AssistantMessage",
    "DeveloperMessage",
    "Message",
    "SystemMessage",
    "ToolCallMessage",
    "ToolResultMessage",
    "UserMessage",
    "MessageArray",
]
