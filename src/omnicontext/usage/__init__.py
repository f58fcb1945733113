"""Per-call token usage records and their storage."""

from omnicontext.usage.record import UsageRecord
from omnicontext.usage.array import UsageArray
from omnicontext.usage.storage import UsageStorage

__all__ = ["UsageRecord", "UsageArray", "UsageStorage"]
