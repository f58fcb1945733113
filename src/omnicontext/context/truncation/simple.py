"""Message-count truncation."""

from __future__ import annotations

from typing import Any

from opentelemetry.trace import SpanKind

from omnicontext.context.truncation.base import TruncationStrategy
from omnicontext.exceptions import TruncationConfigError
from omnicontext.messages import MessageArray
from omnicontext.tracing import CustomSpanKinds, trace_operation


class SimpleTruncationStrategy(TruncationStrategy):
    """Keeps the last ``keep_messages`` messages, plus the preserved system prefix."""

    @classmethod
    def default_config(cls) -> dict[str, Any]:
        return {
            "keep_messages": 10,
            "preserve_system": True,
        }

    def validate_config(self) -> None:
        keep = self.get_config("keep_messages")
        if not isinstance(keep, int) or isinstance(keep, bool) or keep < 0:
            raise TruncationConfigError(
                "keep_messages must be a non-negative integer",
                details=f"keep_messages={keep!r}",
            )

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.TRUNCATION, category="truncation")
    def truncate(self, messages: MessageArray, context_window_size: int, current_tokens: int) -> MessageArray:
        keep = self.get_config("keep_messages")
        if len(messages) <= keep:
            return messages

        preserved, rest = self.split_preserved(messages)
        kept = rest[len(rest) - keep:] if keep < len(rest) else rest
        return MessageArray([*preserved, *kept])


__all__ = ["SimpleTruncationStrategy"]
