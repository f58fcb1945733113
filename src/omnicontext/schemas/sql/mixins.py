"""Shared mixins for context storage tables."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar, Mapping

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column


def utc_now() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )


class UpdatedAtMixin:
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )


class RecordRowMixin(CreatedAtMixin):
    """
    One row per record of a stored collection.

    Every column other than the bookkeeping ones maps to the record field of
    the same (column) name. Record keys without a column land in the
    ``OVERFLOW_COLUMN`` JSON column when the table has one (and are dropped
    otherwise); overflow is spread back to the top level on read.
    """

    INTERNAL_COLUMNS: ClassVar[set[str]] = {"id", "session_key", "position", "created_at"}
    OVERFLOW_COLUMN: ClassVar[str | None] = None

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    @classmethod
    def _record_columns(cls) -> dict[str, str]:
        """Column name -> mapped attribute name for record-carrying columns."""
        columns: dict[str, str] = {}
        for column_attr in cls.__mapper__.column_attrs:
            column_name = column_attr.columns[0].name
            if column_name in cls.INTERNAL_COLUMNS:
                continue
            columns[column_name] = column_attr.key
        return columns

    @classmethod
    def from_record(cls, session_key: str, position: int, record: Mapping[str, Any]) -> RecordRowMixin:
        columns = cls._record_columns()
        values: dict[str, Any] = {"session_key": session_key, "position": position}
        overflow: dict[str, Any] = {}
        for key, value in record.items():
            if key in columns and key != cls.OVERFLOW_COLUMN:
                values[columns[key]] = value
            elif key == cls.OVERFLOW_COLUMN and isinstance(value, Mapping):
                overflow.update(value)
            else:
                overflow[key] = value
        if cls.OVERFLOW_COLUMN and overflow:
            values[columns[cls.OVERFLOW_COLUMN]] = overflow
        return cls(**values)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {}
        overflow: dict[str, Any] = {}
        for column_name, attr_key in self._record_columns().items():
            value = getattr(self, attr_key)
            if value is None:
                continue
            if column_name == self.OVERFLOW_COLUMN:
                overflow = dict(value)
                continue
            if isinstance(value, datetime):
                value = value.isoformat()
            record[column_name] = value
        for key, value in overflow.items():
            record.setdefault(key, value)
        return record
