from omnicontext.schemas.sql.base import ContextBase, JSONType
from omnicontext.schemas.sql.context import (
    ContextBlobRow,
    ContextIdentityRow,
    ContextMessageRow,
    ContextUsageRow,
)
from omnicontext.schemas.sql.mixins import CreatedAtMixin, RecordRowMixin, UpdatedAtMixin, utc_now

__all__ = [
    "ContextBase",
    "JSONType",
    "ContextBlobRow",
    "ContextIdentityRow",
    "ContextMessageRow",
    "ContextUsageRow",
    "CreatedAtMixin",
    "RecordRowMixin",
    "UpdatedAtMixin",
    "utc_now",
]
