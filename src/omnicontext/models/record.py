"""Schema-aware record base for everything the storage layer persists."""

from __future__ import annotations

from typing import Any, Mapping, Self

from pydantic import BaseModel, ConfigDict, ValidationError

from omnicontext.exceptions import InvalidDataModelError


class TypedRecord(BaseModel):
    """
    A pydantic model with a generic dict representation and schema export.

    Field descriptions (``Field(description=...)``) feed ``generate_schema``.
    Fields declared with ``json_schema_extra={"exclude_from_schema": True}``
    are persisted but left out of the schema.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict keyed by wire field names."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build an instance from raw data, raising InvalidDataModelError on bad input."""
        if isinstance(data, cls):
            return data
        if not isinstance(data, Mapping):
            raise InvalidDataModelError(
                f"{cls.__name__} expects a mapping",
                details=f"got={type(data).__name__}",
            )
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise InvalidDataModelError(
                f"Invalid data for {cls.__name__}",
                details=str(exc),
            ) from exc

    @classmethod
    def matches(cls, data: Mapping[str, Any]) -> bool:
        """Whether raw data belongs to this kind when several kinds share a discriminator value."""
        return True

    @classmethod
    def generate_schema(cls) -> dict[str, Any]:
        from omnicontext.models.schema import SchemaGenerator

        return SchemaGenerator.for_record(cls)


__all__ = ["TypedRecord"]
