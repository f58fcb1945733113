"""Conversation message records."""

from __future__ import annotations

import json
from typing import Any, Literal, Mapping

from pydantic import Field, field_validator, model_validator

from omnicontext.config import MESSAGE_ID_LENGTH
from omnicontext.messages.content import MessageContent
from omnicontext.messages.tool_calls import ToolCallArray
from omnicontext.messages.usage import Usage
from omnicontext.models import TypedRecord
from omnicontext.types import Role
from omnicontext.utils.general import generate_id, utc_now_iso

_INTERNAL = {"exclude_from_schema": True}


def _new_message_id() -> str:
    return f"msg_{generate_id(MESSAGE_ID_LENGTH)}"


class Message(TypedRecord):
    """
    Base message record.

    Keys a message kind does not declare are collected into ``extras`` on the
    way in and written back at the top level on the way out, so provider
    specific fields survive a storage round trip.
    """

    role: str = Field(description="The role of the message sender")
    content: str | MessageContent | None = Field(default=None, description="The content of the message")
    message_uuid: str = Field(default_factory=_new_message_id, json_schema_extra=_INTERNAL)
    message_created: str = Field(default_factory=utc_now_iso, json_schema_extra=_INTERNAL)
    metadata: dict[str, Any] = Field(default_factory=dict, json_schema_extra=_INTERNAL)
    extras: dict[str, Any] = Field(default_factory=dict, json_schema_extra=_INTERNAL)

    @model_validator(mode="before")
    @classmethod
    def collect_extras(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        known = set(cls.model_fields)
        known.update(field.alias for field in cls.model_fields.values() if field.alias)
        data = dict(data)
        unknown = {key: data.pop(key) for key in list(data) if key not in known}
        if unknown:
            extras = dict(data.get("extras") or {})
            extras.update(unknown)
            data["extras"] = extras
        return data

    def to_dict(self, include_metadata: bool = True) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude_none=True, exclude={"extras", "metadata"})
        for key, value in self.extras.items():
            data.setdefault(key, value)
        if include_metadata and self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    def to_dict_with_meta(self) -> dict[str, Any]:
        data = self.to_dict(include_metadata=False)
        data["metadata"] = dict(self.metadata)
        return data

    def add_meta(self, data: Mapping[str, Any]) -> None:
        self.metadata.update(data)

    def get_role(self) -> Role:
        return Role(self.role)

    @property
    def text(self) -> str:
        if isinstance(self.content, MessageContent):
            return self.content.text()
        return self.content or ""

    def __str__(self) -> str:
        return self.text


class UserMessage(Message):
    role: Literal["user"] = Field(default="user", description="The role of the message sender")
    content: str | MessageContent = Field(description="The content of the message")


class SystemMessage(Message):
    role: Literal["system"] = Field(default="system", description="The role of the message sender")
    content: str | MessageContent = Field(description="The content of the message")


class DeveloperMessage(Message):
    role: Literal["developer"] = Field(default="developer", description="The role of the message sender")
    content: str | MessageContent = Field(description="The content of the message")


class AssistantMessage(Message):
    """Plain assistant reply. Only raw data without tool calls resolves to this kind."""

    role: Literal["assistant"] = Field(default="assistant", description="The role of the message sender")
    content: str | None = Field(default=None, description="The text of the assistant reply")
    usage: Usage | None = Field(default=None, description="Token usage of the call that produced this reply")

    @field_validator("content", mode="before")
    @classmethod
    def normalize_content(cls, value: Any) -> Any:
        """Accept text, a single text part or a list of parts, keeping only the text."""
        if isinstance(value, MessageContent):
            return value.text()
        if isinstance(value, Mapping) and "text" in value:
            return value["text"]
        if isinstance(value, list):
            return MessageContent(value).text()
        return value

    @classmethod
    def matches(cls, data: Mapping[str, Any]) -> bool:
        return not data.get("tool_calls")


class ToolCallMessage(Message):
    """Assistant turn requesting one or more tool calls."""

    role: Literal["assistant"] = Field(default="assistant", description="The role of the message sender")
    content: str | None = Field(default=None, description="Optional text sent alongside the tool calls")
    tool_calls: ToolCallArray = Field(description="Tool calls requested by the assistant")
    usage: Usage | None = Field(default=None, description="Token usage of the call that produced this turn")

    @field_validator("tool_calls")
    @classmethod
    def require_tool_calls(cls, value: ToolCallArray) -> ToolCallArray:
        if value.is_empty():
            raise ValueError("ToolCallMessage needs at least one tool call")
        return value

    @classmethod
    def matches(cls, data: Mapping[str, Any]) -> bool:
        return bool(data.get("tool_calls"))


class ToolResultMessage(Message):
    role: Literal["tool"] = Field(default="tool", description="The role of the message sender")
    content: str = Field(description="Tool output")
    tool_call_id: str = Field(description="Identifier of the tool call this result answers")
    tool_name: str | None = Field(default=None, description="Name of the tool that produced the result")

    @field_validator("content", mode="before")
    @classmethod
    def encode_content(cls, value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value


__all__ = [
    "Message",
    "UserMessage",
    "SystemMessage",
    "DeveloperMessage",
    "AssistantMessage",
    "ToolCallMessage",
    "ToolResultMessage",
]
