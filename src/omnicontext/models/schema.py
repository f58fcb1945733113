"""JSON Schema synthesis from declared record fields."""

from __future__ import annotations

import types
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Mapping, Union, get_args, get_origin

if TYPE_CHECKING:
    from omnicontext.models.collection import TypedCollection
    from omnicontext.models.record import TypedRecord

_PRIMITIVES: dict[type, str] = {
    bool: "boolean",
    int: "integer",
    float: "number",
    str: "string",
}


class SchemaGenerator:
    """
    Builds JSON Schema objects by walking a record's declared field table.

    Each field contributes its type, its ``Field(description=...)`` text and,
    for nested records and collections, the nested schema. Required fields are
    those without a default.
    """

    @classmethod
    def for_record(cls, record_cls: type[TypedRecord]) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        required: list[str] = []

        for name, field in record_cls.model_fields.items():
            extra = field.json_schema_extra if isinstance(field.json_schema_extra, Mapping) else {}
            if extra.get("exclude_from_schema"):
                continue

            key = field.alias or name
            prop = cls.for_annotation(field.annotation)
            if field.description:
                prop["description"] = field.description
            properties[key] = prop
            if field.is_required():
                required.append(key)

        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return schema

    @classmethod
    def for_collection(cls, collection_cls: type[TypedCollection]) -> dict[str, Any]:
        kinds = collection_cls._allowed_kinds()
        if len(kinds) == 1:
            items = cls.for_record(kinds[0])
        else:
            items = {"oneOf": [cls.for_record(kind) for kind in kinds]}
        return {"type": "array", "items": items}

    @classmethod
    def for_annotation(cls, annotation: Any) -> dict[str, Any]:
        from omnicontext.models.collection import TypedCollection
        from omnicontext.models.record import TypedRecord

        if annotation is None or annotation is type(None):
            return {"type": "null"}

        origin = get_origin(annotation)
        args = get_args(annotation)

        if origin in (Union, types.UnionType):
            options = [arg for arg in args if arg is not type(None)]
            if len(options) == 1:
                return cls.for_annotation(options[0])
            return {"oneOf": [cls.for_annotation(option) for option in options]}

        if origin is Literal:
            values = list(args)
            schema: dict[str, Any] = {"enum": values}
            json_type = _PRIMITIVES.get(type(values[0])) if values else None
            if json_type:
                schema["type"] = json_type
            return schema

        if origin in (list, tuple, set, frozenset) or _is_sequence_origin(origin):
            return {
                "type": "array",
                "items": cls.for_annotation(args[0]) if args else {},
            }

        if origin is dict or _is_mapping_origin(origin) or annotation is dict:
            return {"type": "object"}

        if isinstance(annotation, type):
            if issubclass(annotation, Enum):
                return {"type": "string", "enum": [member.value for member in annotation]}
            if issubclass(annotation, TypedRecord):
                return cls.for_record(annotation)
            if issubclass(annotation, TypedCollection):
                return cls.for_collection(annotation)
            if annotation is list:
                return {"type": "array"}
            for primitive, json_type in _PRIMITIVES.items():
                if annotation is primitive:
                    return {"type": json_type}

        return {}


def _is_sequence_origin(origin: Any) -> bool:
    from collections.abc import Sequence

    return isinstance(origin, type) and issubclass(origin, Sequence) and origin is not str


def _is_mapping_origin(origin: Any) -> bool:
    from collections.abc import Mapping as AbcMapping

    return isinstance(origin, type) and issubclass(origin, AbcMapping)


__all__ = ["SchemaGenerator"]
