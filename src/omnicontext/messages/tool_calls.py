"""Tool call payloads carried by assistant messages."""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import Field, field_validator

from omnicontext.exceptions import MalformedToolCallError
from omnicontext.models import TypedCollection, TypedRecord
from omnicontext.utils.general import generate_id


class ToolCallFunction(TypedRecord):
    name: str = Field(description="Name of the tool to call")
    arguments: str = Field(default="{}", description="Tool arguments as a JSON encoded string")

    @field_validator("arguments", mode="before")
    @classmethod
    def validate_arguments(cls, value: Any) -> str:
        """Arguments must already be a JSON string; nothing is coerced."""
        if not isinstance(value, str):
            raise MalformedToolCallError(
                "Tool call arguments must be a JSON string",
                details=f"got={type(value).__name__}",
            )
        try:
            json.loads(value)
        except json.JSONDecodeError as exc:
            raise MalformedToolCallError(
                "Tool call arguments are not valid JSON",
                details=f"arguments={value!r}, error={exc}",
            ) from exc
        return value

    def get_arguments(self) -> Any:
        return json.loads(self.arguments)


class ToolCall(TypedRecord):
    id: str = Field(description="Identifier of this tool call")
    type: Literal["function"] = Field(default="function", description="Tool call type")
    function: ToolCallFunction = Field(description="Function name and arguments")

    @classmethod
    def create(cls, name: str, arguments: dict[str, Any] | None = None, call_id: str | None = None) -> ToolCall:
        """Build a tool call, encoding ``arguments`` as JSON."""
        return cls(
            id=call_id or f"call_{generate_id(24)}",
            function=ToolCallFunction(name=name, arguments=json.dumps(arguments or {})),
        )

    @property
    def name(self) -> str:
        return self.function.name

    @property
    def arguments(self) -> str:
        return self.function.arguments


class ToolCallArray(TypedCollection):
    allowed_models = [ToolCall]

    def get_by_id(self, call_id: str) -> ToolCall | None:
        return self.get_item("id", call_id)


__all__ = [
    "ToolCallFunction",
    "ToolCall",
    "ToolCallArray",
]
