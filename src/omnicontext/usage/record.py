"""Usage records with provenance, one per model call."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import Field

from omnicontext.messages import Usage
from omnicontext.utils import generate_id, utc_now_iso

if TYPE_CHECKING:
    from omnicontext.context.identity import SessionIdentity


def _record_id() -> str:
    return f"usage_{generate_id(24)}"


class UsageRecord(Usage):
    """Token usage of one model call plus who made it and when."""

    record_id: str = Field(default_factory=_record_id, description="Unique record id")
    agent_name: str | None = Field(default=None, description="Agent that made the call")
    user_id: str | None = Field(default=None, description="User the call was made for")
    group: str | None = Field(default=None, description="Group or tenant")
    chat_name: str | None = Field(default=None, description="Chat the call belongs to")
    model_name: str | None = Field(default=None, description="Model that produced the usage")
    provider_name: str | None = Field(default=None, description="Provider serving the model")
    recorded_at: str = Field(default_factory=utc_now_iso, description="ISO-8601 time of the call")

    @classmethod
    def from_usage(
        cls,
        usage: Usage,
        identity: SessionIdentity | None = None,
        model_name: str | None = None,
        provider_name: str | None = None,
    ) -> UsageRecord:
        data = {
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
            "model_name": model_name,
            "provider_name": provider_name,
        }
        if identity is not None:
            data.update(
                agent_name=identity.agent_name,
                user_id=identity.user_id,
                group=identity.group,
                chat_name=identity.chat_name,
            )
        return cls(**data)

    @property
    def recorded(self) -> datetime:
        return datetime.fromisoformat(self.recorded_at)


__all__ = ["UsageRecord"]
