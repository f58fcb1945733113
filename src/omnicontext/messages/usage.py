"""Token usage reported by a model call."""

from __future__ import annotations

from typing import Self

from pydantic import Field, model_validator

from omnicontext.models import TypedRecord


class Usage(TypedRecord):
    prompt_tokens: int = Field(default=0, ge=0, description="Tokens consumed by the prompt")
    completion_tokens: int = Field(default=0, ge=0, description="Tokens produced in the completion")
    total_tokens: int | None = Field(
        default=None,
        ge=0,
        description="Total tokens; defaults to prompt_tokens + completion_tokens",
    )

    @model_validator(mode="after")
    def compute_total_tokens(self) -> Self:
        """Fill total_tokens from its parts if not explicitly provided."""
        if self.total_tokens is None:
            self.total_tokens = self.prompt_tokens + self.completion_tokens
        return self


__all__ = ["Usage"]
