"""Decides when to truncate a chat history and applies the configured strategy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from omnicontext.context.truncation.base import TruncationStrategy
from omnicontext.exceptions import TruncationConfigError
from omnicontext.messages import MessageArray

if TYPE_CHECKING:
    from omnicontext.context.storages import ChatHistoryStorage

logger = logging.getLogger(__name__)


class TruncationManager:
    """
    Threshold and buffer around a TruncationStrategy.

    Truncation kicks in once the conversation's token count passes
    ``threshold * (1 - buffer)``, leaving headroom for the next turn. The
    threshold is handed to the strategy as the context window size.
    """

    def __init__(self, strategy: TruncationStrategy, *, threshold: int, buffer: float = 0.2):
        if threshold <= 0:
            raise TruncationConfigError("threshold must be positive", details=f"threshold={threshold!r}")
        if not 0 <= buffer < 1:
            raise TruncationConfigError("buffer must be in [0, 1)", details=f"buffer={buffer!r}")
        self.strategy = strategy
        self.threshold = threshold
        self.buffer = buffer

    @property
    def effective_threshold(self) -> int:
        return int(self.threshold * (1 - self.buffer))

    def should_truncate(self, current_tokens: int) -> bool:
        return current_tokens > self.effective_threshold

    @staticmethod
    def last_known_total_tokens(messages: MessageArray) -> int:
        """``total_tokens`` of the newest message carrying usage; 0 when none does."""
        usage = messages.get_last_usage()
        if usage is None:
            if not messages.is_empty():
                logger.warning("No usage recorded in %s messages; assuming 0 tokens", len(messages))
            return 0
        return usage.total_tokens or 0

    async def apply(self, history: ChatHistoryStorage, current_tokens: int | None = None) -> MessageArray:
        """Truncate ``history`` in place when it is over the effective threshold."""
        messages = await history.get_messages()
        if current_tokens is None:
            current_tokens = self.last_known_total_tokens(messages)
        if not self.should_truncate(current_tokens):
            return messages

        logger.debug(
            "Truncating %s: %s tokens over threshold %s",
            history.get_identifier(),
            current_tokens,
            self.effective_threshold,
        )
        return await history.truncate(self.strategy, self.threshold, current_tokens)


__all__ = ["TruncationManager"]
