"""Ordered, polymorphic containers of typed records."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, ClassVar, Iterable, Iterator, Mapping, Self, Sequence, Union

from pydantic_core import core_schema

from omnicontext.exceptions import InvalidDataModelError, UnknownDiscriminatorError
from omnicontext.models.record import TypedRecord

RecordKinds = Union[type[TypedRecord], Sequence[type[TypedRecord]]]


class TypedCollection:
    """
    Ordered sequence of TypedRecords of one or more allowed kinds.

    Subclasses declare ``allowed_models`` as either:

    * a sequence of record kinds. Raw data is given to the only kind, or to
      the first kind whose ``matches()`` accepts it; or
    * a mapping of discriminator value to a kind or an ordered list of kinds.
      The value is read from the ``discriminator`` field of each raw dict and,
      where several kinds share a value, they are tried in declaration order.

    Insertion order is the record order and is kept across serialization.
    """

    allowed_models: ClassVar[Sequence[type[TypedRecord]] | Mapping[str, RecordKinds]] = ()
    discriminator: ClassVar[str] = "type"

    def __init__(self, items: Iterable[TypedRecord | Mapping[str, Any]] | None = None):
        self._items: list[TypedRecord] = []
        for item in items or ():
            self.add(item)

    # Resolution

    @classmethod
    def _allowed_kinds(cls) -> list[type[TypedRecord]]:
        if isinstance(cls.allowed_models, Mapping):
            kinds: list[type[TypedRecord]] = []
            for entry in cls.allowed_models.values():
                for kind in _as_kind_list(entry):
                    if kind not in kinds:
                        kinds.append(kind)
            return kinds
        return list(cls.allowed_models)

    @classmethod
    def _candidates_for(cls, raw: Mapping[str, Any]) -> list[type[TypedRecord]]:
        if not isinstance(cls.allowed_models, Mapping):
            return list(cls.allowed_models)

        value = raw.get(cls.discriminator)
        if isinstance(value, Enum):
            value = value.value
        if value is None:
            raise UnknownDiscriminatorError(
                f"{cls.__name__} item is missing its '{cls.discriminator}' field",
                discriminator=cls.discriminator,
                details=f"keys={sorted(raw)}",
            )
        entry = cls.allowed_models.get(value)
        if entry is None:
            raise UnknownDiscriminatorError(
                f"{cls.__name__} has no record kind registered for {cls.discriminator}={value!r}",
                discriminator=cls.discriminator,
                value=value,
                details=f"registered={sorted(cls.allowed_models)}",
            )
        return _as_kind_list(entry)

    @classmethod
    def resolve(cls, raw: Mapping[str, Any]) -> TypedRecord:
        """Instantiate the record kind registered for one raw dict."""
        candidates = cls._candidates_for(raw)
        if not candidates:
            raise InvalidDataModelError(f"{cls.__name__} declares no allowed record kinds")
        if len(candidates) == 1:
            return candidates[0].from_dict(raw)
        for candidate in candidates:
            if candidate.matches(raw):
                return candidate.from_dict(raw)
        raise InvalidDataModelError(
            f"No {cls.__name__} record kind matches the given data",
            details=f"candidates={[kind.__name__ for kind in candidates]}",
        )

    def _coerce(self, item: TypedRecord | Mapping[str, Any]) -> TypedRecord:
        if isinstance(item, TypedRecord):
            if not isinstance(item, tuple(self._allowed_kinds())):
                raise InvalidDataModelError(
                    f"{type(item).__name__} is not allowed in {type(self).__name__}",
                    details=f"allowed={[kind.__name__ for kind in self._allowed_kinds()]}",
                )
            return item
        if isinstance(item, Mapping):
            return self.resolve(item)
        raise InvalidDataModelError(
            f"{type(self).__name__} accepts records or dicts",
            details=f"got={type(item).__name__}",
        )

    # Mutation

    def add(self, item: TypedRecord | Mapping[str, Any]) -> Self:
        self._items.append(self._coerce(item))
        return self

    def extend(self, items: Iterable[TypedRecord | Mapping[str, Any]]) -> Self:
        for item in items:
            self.add(item)
        return self

    def insert(self, index: int, item: TypedRecord | Mapping[str, Any]) -> Self:
        self._items.insert(index, self._coerce(item))
        return self

    def remove(self, item: TypedRecord | int) -> TypedRecord | None:
        """Remove by position or by record; returns the removed record, or None if absent."""
        if isinstance(item, int):
            if not -len(self._items) <= item < len(self._items):
                return None
            return self._items.pop(item)
        for index, existing in enumerate(self._items):
            if existing is item:
                return self._items.pop(index)
        for index, existing in enumerate(self._items):
            if existing == item:
                return self._items.pop(index)
        return None

    def remove_item(self, field: str, value: Any) -> int:
        """Remove every record whose ``field`` equals ``value``; returns how many were removed."""
        kept = [item for item in self._items if getattr(item, field, None) != value]
        removed = len(self._items) - len(kept)
        self._items = kept
        return removed

    def clear(self) -> Self:
        self._items = []
        return self

    # Lookup

    def get_item(self, field: str, value: Any) -> TypedRecord | None:
        for item in self._items:
            if getattr(item, field, None) == value:
                return item
        return None

    def has_item(self, field: str, value: Any) -> bool:
        return self.get_item(field, value) is not None

    def first(self) -> TypedRecord | None:
        return self._items[0] if self._items else None

    def last(self) -> TypedRecord | None:
        return self._items[-1] if self._items else None

    def is_empty(self) -> bool:
        return not self._items

    def all(self) -> list[TypedRecord]:
        return list(self._items)

    def filter(self, predicate: Callable[[TypedRecord], bool]) -> Self:
        return type(self)(item for item in self._items if predicate(item))

    def map(self, fn: Callable[[TypedRecord], Any]) -> list[Any]:
        return [fn(item) for item in self._items]

    # Serialization

    def to_list(self) -> list[dict[str, Any]]:
        return [item.to_dict() for item in self._items]

    @classmethod
    def from_list(cls, raw: Iterable[Mapping[str, Any]] | None) -> Self:
        return cls(raw or ())

    @classmethod
    def generate_schema(cls) -> dict[str, Any]:
        from omnicontext.models.schema import SchemaGenerator

        return SchemaGenerator.for_collection(cls)

    # Pydantic integration: usable as a field type on TypedRecords.

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda value: value.to_list(),
            ),
        )

    @classmethod
    def _validate(cls, value: Any) -> Self:
        if isinstance(value, cls):
            return value
        if isinstance(value, TypedCollection):
            return cls(value.all())
        if isinstance(value, (list, tuple)):
            return cls(value)
        raise ValueError(f"{cls.__name__} expects a list of records, got {type(value).__name__}")

    # Container protocol

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[TypedRecord]:
        return iter(self._items)

    def __getitem__(self, index: int | slice):
        if isinstance(index, slice):
            return type(self)(self._items[index])
        return self._items[index]

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypedCollection):
            return NotImplemented
        return type(self) is type(other) and self._items == other._items

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._items!r})"


def _as_kind_list(entry: RecordKinds) -> list[type[TypedRecord]]:
    if isinstance(entry, type):
        return [entry]
    return list(entry)


__all__ = ["TypedCollection"]
