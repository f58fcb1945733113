"""Usage record collection with filters and totals."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any

from omnicontext.messages import Usage
from omnicontext.models import TypedCollection
from omnicontext.usage.record import UsageRecord


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class UsageArray(TypedCollection):
    allowed_models = [UsageRecord]

    # Filters

    def filter_by_agent(self, agent_name: str) -> UsageArray:
        return self.filter(lambda record: record.agent_name == agent_name)

    def filter_by_user(self, user_id: str) -> UsageArray:
        return self.filter(lambda record: record.user_id == user_id)

    def filter_by_group(self, group: str) -> UsageArray:
        return self.filter(lambda record: record.group == group)

    def filter_by_chat(self, chat_name: str) -> UsageArray:
        return self.filter(lambda record: record.chat_name == chat_name)

    def filter_by_model(self, model_name: str) -> UsageArray:
        return self.filter(lambda record: record.model_name == model_name)

    def filter_by_provider(self, provider_name: str) -> UsageArray:
        return self.filter(lambda record: record.provider_name == provider_name)

    def filter_by_date_range(self, start: datetime | None = None, end: datetime | None = None) -> UsageArray:
        """Records with ``start <= recorded_at <= end``; naive bounds are taken as UTC."""
        start = _aware(start) if start is not None else None
        end = _aware(end) if end is not None else None

        def in_range(record: UsageRecord) -> bool:
            recorded = _aware(record.recorded)
            if start is not None and recorded < start:
                return False
            if end is not None and recorded > end:
                return False
            return True

        return self.filter(in_range)

    def filter_by_date(self, day: date) -> UsageArray:
        return self.filter(lambda record: _aware(record.recorded).date() == day)

    # Totals

    def get_total_prompt_tokens(self) -> int:
        return sum(record.prompt_tokens for record in self)

    def get_total_completion_tokens(self) -> int:
        return sum(record.completion_tokens for record in self)

    def get_total_tokens(self) -> int:
        return sum(record.total_tokens or 0 for record in self)

    def aggregate(self) -> dict[str, Any]:
        return {
            "count": len(self),
            "prompt_tokens": self.get_total_prompt_tokens(),
            "completion_tokens": self.get_total_completion_tokens(),
            "total_tokens": self.get_total_tokens(),
        }

    def group_by(self, field: str) -> dict[Any, UsageArray]:
        """Split records by the value of ``field``, keeping order within each group."""
        groups: dict[Any, UsageArray] = defaultdict(type(self))
        for record in self:
            groups[getattr(record, field)].add(record)
        return dict(groups)

    def to_usage(self) -> Usage:
        """Sum of all records as a single Usage."""
        return Usage(
            prompt_tokens=self.get_total_prompt_tokens(),
            completion_tokens=self.get_total_completion_tokens(),
            total_tokens=self.get_total_tokens(),
        )


__all__ = ["UsageArray"]
