"""Token-budget truncation."""

from __future__ import annotations

from typing import Any, Callable

from opentelemetry.trace import SpanKind

from omnicontext.context.truncation.base import TruncationStrategy
from omnicontext.exceptions import TruncationConfigError
from omnicontext.messages import Message, MessageArray
from omnicontext.tracing import CustomSpanKinds, trace_operation
from omnicontext.types import Role
from omnicontext.utils.general import estimate_tokens_by_chars, get_token_count

TokenEstimator = Callable[[Message], int]


def estimate_by_chars(message: Message) -> int:
    """About one token per four characters of text."""
    return estimate_tokens_by_chars(message.text)


def estimate_with_tiktoken(message: Message) -> int:
    return get_token_count(message.text)


class TokenBasedTruncationStrategy(TruncationStrategy):
    """
    Drops the oldest messages until the rest fit in
    ``context_window_size * target_percentage`` tokens.

    A message's cost is the ``completion_tokens`` of its recorded usage when
    it is an assistant turn that has one (prompt tokens cover the whole
    conversation so far and would overcount), otherwise the estimator's
    figure. Preserved messages count towards the budget. Whole messages only.
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        estimator: TokenEstimator | None = None,
        **overrides: Any,
    ):
        super().__init__(config, **overrides)
        self.estimator: TokenEstimator = estimator or estimate_by_chars

    @classmethod
    def default_config(cls) -> dict[str, Any]:
        return {
            "target_percentage": 0.75,
            "preserve_system": True,
        }

    def validate_config(self) -> None:
        target = self.get_config("target_percentage")
        if isinstance(target, bool) or not isinstance(target, (int, float)) or not 0 < target <= 1:
            raise TruncationConfigError(
                "target_percentage must be a number in (0, 1]",
                details=f"target_percentage={target!r}",
            )

    def target_tokens(self, context_window_size: int) -> int:
        return int(context_window_size * self.get_config("target_percentage"))

    def message_tokens(self, message: Message) -> int:
        usage = getattr(message, "usage", None)
        if message.role == Role.ASSISTANT and usage is not None:
            return usage.completion_tokens
        return self.estimator(message)

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.TRUNCATION, category="truncation")
    def truncate(self, messages: MessageArray, context_window_size: int, current_tokens: int) -> MessageArray:
        target = self.target_tokens(context_window_size)
        if current_tokens <= target:
            return messages

        preserved, rest = self.split_preserved(messages)
        used = sum(self.message_tokens(message) for message in preserved)

        kept: list[Message] = []
        for message in reversed(rest):
            cost = self.message_tokens(message)
            if used + cost > target:
                break
            kept.append(message)
            used += cost
        kept.reverse()

        return MessageArray([*preserved, *kept])


__all__ = [
    "TokenBasedTruncationStrategy",
    "TokenEstimator",
    "estimate_by_chars",
    "estimate_with_tiktoken",
]
