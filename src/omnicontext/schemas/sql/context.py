"""Tables backing the context storage drivers."""

from __future__ import annotations

from typing import Any, ClassVar

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from omnicontext.schemas.sql.base import ContextBase, JSONType
from omnicontext.schemas.sql.mixins import CreatedAtMixin, RecordRowMixin, UpdatedAtMixin


class ContextMessageRow(RecordRowMixin, ContextBase):
    """Chat history, one row per message."""

    __tablename__ = "context_messages"
    __table_args__ = (
        UniqueConstraint("session_key", "position", name="uq_context_messages_session_key_position"),
    )
    OVERFLOW_COLUMN: ClassVar[str | None] = "extras"

    role: Mapped[str] = mapped_column(String(32), nullable=False)
    content: Mapped[Any | None] = mapped_column(JSONType, nullable=True)
    message_uuid: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    message_created: Mapped[str | None] = mapped_column(String(64), nullable=True)
    tool_calls: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONType, nullable=True)
    tool_call_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tool_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    usage: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONType, nullable=True)
    extras: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)


class ContextUsageRow(RecordRowMixin, ContextBase):
    """Usage records, one row per model call."""

    __tablename__ = "context_usage"
    __table_args__ = (
        UniqueConstraint("session_key", "position", name="uq_context_usage_session_key_position"),
    )

    record_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    prompt_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completion_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    agent_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    group: Mapped[str | None] = mapped_column(String(255), nullable=True)
    chat_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    model_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    provider_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    recorded_at: Mapped[str | None] = mapped_column(String(64), nullable=True)


class ContextIdentityRow(RecordRowMixin, ContextBase):
    """Identity registry entries."""

    __tablename__ = "context_identities"
    __table_args__ = (
        UniqueConstraint("session_key", "position", name="uq_context_identities_session_key_position"),
    )

    key: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    agent_name: Mapped[str] = mapped_column(String(255), nullable=False)
    chat_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    group: Mapped[str | None] = mapped_column(String(255), nullable=True)
    scope: Mapped[str | None] = mapped_column(String(255), nullable=True)


class ContextBlobRow(CreatedAtMixin, UpdatedAtMixin, ContextBase):
    """Whole collections stored as one JSON document per session key."""

    __tablename__ = "context_storage"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)
    data: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)


__all__ = [
    "ContextMessageRow",
    "ContextUsageRow",
    "ContextIdentityRow",
    "ContextBlobRow",
]
