"""Truncation strategy contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from omnicontext.messages import Message, MessageArray
from omnicontext.types import Role


class TruncationStrategy(ABC):
    """
    Pure policy trimming a message history to a budget.

    ``truncate`` never mutates its input and never does I/O; running it again
    on its own output removes nothing more. Configuration is merged over
    ``default_config()`` and validated at construction.

    With ``preserve_system`` on, the leading run of system/developer messages
    is always kept, ahead of everything else. System or developer messages
    further into the conversation are ordinary messages.
    """

    def __init__(self, config: Mapping[str, Any] | None = None, **overrides: Any):
        self.config: dict[str, Any] = {**self.default_config(), **(config or {}), **overrides}
        self.validate_config()

    @classmethod
    @abstractmethod
    def default_config(cls) -> dict[str, Any]:
        ...

    def validate_config(self) -> None:
        """Raise TruncationConfigError for unusable settings."""

    def get_config(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    @abstractmethod
    def truncate(self, messages: MessageArray, context_window_size: int, current_tokens: int) -> MessageArray:
        ...

    def should_preserve(self, message: Message) -> bool:
        if not self.get_config("preserve_system", False):
            return False
        return message.role in {role.value for role in Role.preserved()}

    def split_preserved(self, messages: MessageArray) -> tuple[list[Message], list[Message]]:
        """Split into (leading preserved run, everything after it)."""
        items = messages.all()
        index = 0
        while index < len(items) and self.should_preserve(items[index]):
            index += 1
        return items[:index], items[index:]


__all__ = ["TruncationStrategy"]
