"""Tests for notes.models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from notes.models import Note, NoteCreate, NoteUpdate

# Epoch milliseconds, as sent by the remote data service
_MS = 1733140800000  # 2024-12-02T12:00:00Z


def _remote_doc(**overrides) -> dict:
    doc = {
        "_id": "j57abc",
        "_creationTime": _MS + 0.5,
        "title": "Remote",
        "content": "Body",
        "tags": ["a"],
        "createdAt": _MS,
        "updatedAt": _MS + 1000,
    }
    doc.update(overrides)
    return doc


class TestNote:
    def test_validates_remote_document(self) -> None:
        note = Note.model_validate(_remote_doc())
        assert note.id == "j57abc"
        assert note.created_at == datetime(2024, 12, 2, 12, 0, tzinfo=UTC)
        assert note.updated_at > note.created_at

    def test_missing_tags_default_to_empty(self) -> None:
        doc = _remote_doc()
        del doc["tags"]
        assert Note.model_validate(doc).tags == []

    def test_null_tags_default_to_empty(self) -> None:
        assert Note.model_validate(_remote_doc(tags=None)).tags == []

    def test_dump_uses_aliases(self) -> None:
        data = Note.model_validate(_remote_doc()).model_dump(by_alias=True)
        assert {"_id", "_creationTime", "createdAt", "updatedAt"} <= data.keys()

    def test_display_title(self) -> None:
        assert Note.model_validate(_remote_doc(title="")).display_title == "Untitled"
        assert Note.model_validate(_remote_doc()).display_title == "Remote"

    def test_rejects_non_string_title(self) -> None:
        with pytest.raises(ValidationError):
            Note.model_validate(_remote_doc(title=["not", "a", "string"]))


class TestNoteCreate:
    def test_defaults(self) -> None:
        fields = NoteCreate()
        assert fields.title == ""
        assert fields.content == ""
        assert fields.tags == []

    def test_null_tags(self) -> None:
        assert NoteCreate(title="t", content="c", tags=None).tags == []


class TestNoteUpdate:
    def test_only_set_fields_in_changes(self) -> None:
        assert NoteUpdate(title="x").changes() == {"title": "x"}

    def test_empty_update_has_no_changes(self) -> None:
        assert NoteUpdate().changes() == {}

    def test_explicit_empty_string_is_a_change(self) -> None:
        assert NoteUpdate(content="").changes() == {"content": ""}

    def test_null_is_not_a_change(self) -> None:
        update = NoteUpdate.model_validate({"title": None, "tags": ["t"]})
        assert update.changes() == {"tags": ["t"]}
