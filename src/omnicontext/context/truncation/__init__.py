"""Truncation strategies and the threshold manager that applies them."""

from omnicontext.context.truncation.base import TruncationStrategy
from omnicontext.context.truncation.simple import SimpleTruncationStrategy
from omnicontext.context.truncation.token_based import (
    TokenBasedTruncationStrategy,
    TokenEstimator,
    estimate_by_chars,
    estimate_with_tiktoken,
)
from omnicontext.context.truncation.manager import TruncationManager
from omnicontext.exceptions import TruncationConfigError

STRATEGIES: dict[str, type[TruncationStrategy]] = {
    "simple": SimpleTruncationStrategy,
    "token": TokenBasedTruncationStrategy,
    "token_based": TokenBasedTruncationStrategy,
}


def get_strategy_class(name: str) -> type[TruncationStrategy]:
    try:
        return STRATEGIES[name]
    except KeyError as exc:
        raise TruncationConfigError(
            f"Unknown truncation strategy '{name}'",
            details=f"known={sorted(STRATEGIES)}",
        ) from exc


__all__ = [
    "TruncationStrategy",
    "SimpleTruncationStrategy",
    "TokenBasedTruncationStrategy",
    "TokenEstimator",
    "estimate_by_chars",
    "estimate_with_tiktoken",
    "TruncationManager",
    "STRATEGIES",
    "get_strategy_class",
]
