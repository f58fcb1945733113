"""Ordered message collection discriminated on ``role``."""

from __future__ import annotations

from omnicontext.messages.message import (
    AssistantMessage,
    DeveloperMessage,
    SystemMessage,
    ToolCallMessage,
    ToolResultMessage,
    UserMessage,
)
from omnicontext.messages.usage import Usage
from omnicontext.models import TypedCollection
from omnicontext.types import Role


class MessageArray(TypedCollection):
    """
    Conversation messages in chronological order.

    Two kinds share the ``assistant`` role: raw data carrying ``tool_calls``
    resolves to ToolCallMessage, everything else to AssistantMessage.
    """

    discriminator = "role"
    allowed_models = {
        Role.USER.value: UserMessage,
        Role.SYSTEM.value: SystemMessage,
        Role.DEVELOPER.value: DeveloperMessage,
        Role.ASSISTANT.value: [ToolCallMessage, AssistantMessage],
        Role.TOOL.value: ToolResultMessage,
    }

    def get_by_role(self, role: Role | str) -> MessageArray:
        return self.filter(lambda message: message.role == role)

    def get_last_usage(self) -> Usage | None:
        """Usage of the most recent message that recorded one."""
        for message in reversed(self.all()):
            usage = getattr(message, "usage", None)
            if usage is not None:
                return usage
        return None

    def to_list(self, include_metadata: bool = True) -> list[dict]:
        return [message.to_dict(include_metadata=include_metadata) for message in self]

    def to_list_with_meta(self) -> list[dict]:
        return [message.to_dict_with_meta() for message in self]


__all__ = ["MessageArray"]
