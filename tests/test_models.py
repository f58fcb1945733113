"""
Unit tests for TypedRecord, TypedCollection and schema generation.

Covers:
- dict conversion and validation errors
- discriminator dispatch, including several kinds sharing one value
- collection mutation and lookups
- JSON Schema synthesis from declared fields
"""

from typing import Literal

import pytest
from pydantic import Field

from omnicontext.exceptions import InvalidDataModelError, UnknownDiscriminatorError
from omnicontext.models import SchemaGenerator, TypedCollection, TypedRecord


class Note(TypedRecord):
    kind: Literal["note"] = Field(default="note", description="Record kind")
    text: str = Field(description="Note text")
    internal: str | None = Field(default=None, json_schema_extra={"exclude_from_schema": True})


class Task(TypedRecord):
    kind: Literal["task"] = Field(default="task", description="Record kind")
    title: str = Field(description="Task title")
    done: bool = Field(default=False, description="Whether the task is done")


class Reminder(TypedRecord):
    kind: Literal["task"] = Field(default="task", description="Record kind")
    title: str = Field(description="Reminder title")
    due: str = Field(description="Due date")

    @classmethod
    def matches(cls, data):
        return "due" in data


class Board(TypedCollection):
    discriminator = "kind"
    allowed_models = {
        "note": Note,
        "task": [Reminder, Task],
    }


class Notes(TypedCollection):
    allowed_models = [Note]


@pytest.mark.unit
class TestTypedRecord:
    """Tests for record conversion."""

    def test_to_dict_drops_none(self):
        assert Note(text="hi").to_dict() == {"kind": "note", "text": "hi"}

    def test_from_dict_round_trip(self):
        task = Task(title="ship", done=True)
        assert Task.from_dict(task.to_dict()) == task

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(InvalidDataModelError):
            Task.from_dict(["not", "a", "dict"])

    def test_from_dict_wraps_validation_errors(self):
        with pytest.raises(InvalidDataModelError) as exc_info:
            Task.from_dict({"done": True})
        assert "title" in exc_info.value.details

    def test_from_dict_ignores_unknown_keys(self):
        assert Task.from_dict({"title": "ship", "colour": "red"}) == Task(title="ship")


@pytest.mark.unit
class TestDiscriminatorDispatch:
    """Tests for polymorphic deserialization."""

    def test_dispatch_by_value(self):
        board = Board.from_list([{"kind": "note", "text": "a"}, {"kind": "task", "title": "b"}])
        assert [type(item) for item in board] == [Note, Task]

    def test_shared_value_uses_matches_in_order(self):
        """Reminder is tried first and only claims data carrying a due date."""
        board = Board.from_list(
            [
                {"kind": "task", "title": "pay", "due": "2026-01-01"},
                {"kind": "task", "title": "call"},
            ]
        )
        assert isinstance(board[0], Reminder)
        assert isinstance(board[1], Task)

    def test_unknown_value_raises(self):
        with pytest.raises(UnknownDiscriminatorError) as exc_info:
            Board.from_list([{"kind": "event"}])
        assert exc_info.value.discriminator == "kind"
        assert exc_info.value.value == "event"

    def test_missing_discriminator_raises(self):
        with pytest.raises(UnknownDiscriminatorError):
            Board.from_list([{"text": "a"}])

    def test_sequence_collection_uses_its_kind(self):
        notes = Notes.from_list([{"text": "a"}])
        assert isinstance(notes.first(), Note)

    def test_disallowed_record_kind_rejected(self):
        with pytest.raises(InvalidDataModelError):
            Notes([Task(title="x")])

    def test_non_record_rejected(self):
        with pytest.raises(InvalidDataModelError):
            Notes(["plain string"])

    def test_order_preserved_across_round_trip(self):
        raw = [{"kind": "note", "text": str(index)} for index in range(20)]
        board = Board.from_list(raw)
        assert [item.text for item in Board.from_list(board.to_list())] == [str(index) for index in range(20)]


@pytest.mark.unit
class TestCollectionOperations:
    """Tests for mutation and lookups."""

    @pytest.fixture
    def board(self):
        return Board([Note(text="a"), Task(title="b"), Task(title="c", done=True)])

    def test_len_bool_and_iteration(self, board):
        assert len(board) == 3
        assert board
        assert not Board()
        assert Board().is_empty()

    def test_first_last_and_get_item(self, board):
        assert board.first().text == "a"
        assert board.last().title == "c"
        assert board.get_item("title", "b") is board[1]
        assert board.get_item("title", "zzz") is None
        assert board.has_item("done", True)

    def test_add_accepts_dicts(self, board):
        board.add({"kind": "note", "text": "d"})
        assert isinstance(board.last(), Note)

    def test_insert_and_extend(self, board):
        board.insert(0, Note(text="first")).extend([Note(text="x"), Note(text="y")])
        assert board.first().text == "first"
        assert len(board) == 6

    def test_remove_by_index_and_by_record(self, board):
        removed = board.remove(0)
        assert removed.text == "a"
        task = board.first()
        assert board.remove(task) is task
        assert board.remove(Note(text="missing")) is None
        assert len(board) == 1

    def test_remove_missing_index_returns_none(self, board):
        assert board.remove(3) is None
        assert board.remove(-4) is None
        assert board.remove(-1).kind == "task"
        assert len(board) == 2

    def test_remove_item_by_field(self, board):
        assert board.remove_item("kind", "task") == 2
        assert len(board) == 1

    def test_clear(self, board):
        board.clear()
        assert board.is_empty()

    def test_filter_and_slice_keep_type(self, board):
        assert isinstance(board.filter(lambda item: isinstance(item, Task)), Board)
        assert isinstance(board[1:], Board)
        assert len(board[1:]) == 2

    def test_map_and_all(self, board):
        assert board.map(lambda item: item.kind) == ["note", "task", "task"]
        items = board.all()
        items.clear()
        assert len(board) == 3

    def test_equality(self, board):
        assert board == Board(board.all())
        assert board != Notes([Note(text="a")])


@pytest.mark.unit
class TestSchemaGenerator:
    """Tests for JSON Schema synthesis."""

    def test_record_schema(self):
        schema = Task.generate_schema()
        assert schema["type"] == "object"
        assert schema["properties"]["title"] == {"type": "string", "description": "Task title"}
        assert schema["properties"]["done"] == {"type": "boolean", "description": "Whether the task is done"}
        assert schema["properties"]["kind"]["enum"] == ["task"]
        assert schema["required"] == ["title"]

    def test_excluded_fields_left_out(self):
        assert "internal" not in Note.generate_schema()["properties"]

    def test_single_kind_collection_schema(self):
        schema = Notes.generate_schema()
        assert schema["type"] == "array"
        assert schema["items"] == Note.generate_schema()

    def test_polymorphic_collection_schema(self):
        schema = Board.generate_schema()
        assert schema["type"] == "array"
        assert len(schema["items"]["oneOf"]) == 3

    def test_annotations(self):
        assert SchemaGenerator.for_annotation(int | None) == {"type": "integer"}
        assert SchemaGenerator.for_annotation(list[str]) == {"type": "array", "items": {"type": "string"}}
        assert SchemaGenerator.for_annotation(dict[str, int]) == {"type": "object"}
        assert SchemaGenerator.for_annotation(str | int) == {"oneOf": [{"type": "string"}, {"type": "integer"}]}
