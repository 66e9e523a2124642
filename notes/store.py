"""Note store contract, search predicate and the in-memory mock store."""

from __future__ import annotations

import abc
import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from uuid import uuid4

from notes.models import Note, NoteCreate, NoteUpdate, utc_now

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def matches_search(note: Note, term: str) -> bool:
    """Case-insensitive substring match on title or content (not tags)."""
    needle = term.casefold()
    return needle in note.title.casefold() or needle in note.content.casefold()


def filter_notes(notes: Iterable[Note], term: str) -> list[Note]:
    """Return the notes matching *term*, preserving input order.

    An empty term matches every note.
    """
    if not term:
        return list(notes)
    return [n for n in notes if matches_search(n, term)]


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class NoteStore(abc.ABC):
    """CRUD and query authority over the note collection.

    Missing ids are reported as values: ``get`` returns ``None`` and
    ``update``/``delete`` return ``False``.
    """

    @abc.abstractmethod
    async def list(self) -> list[Note]:
        """Return every live note in the backend's base ordering."""

    @abc.abstractmethod
    async def get(self, note_id: str) -> Note | None:
        """Return the note with *note_id*, or None."""

    @abc.abstractmethod
    async def create(self, fields: NoteCreate) -> str:
        """Store a new note and return its id."""

    @abc.abstractmethod
    async def update(self, note_id: str, fields: NoteUpdate) -> bool:
        """Apply the supplied fields and bump ``updated_at``."""

    @abc.abstractmethod
    async def delete(self, note_id: str) -> bool:
        """Remove the note permanently."""

    async def search(self, term: str) -> list[Note]:
        """Notes whose title or content contains *term*, in list order."""
        return filter_notes(await self.list(), term)

    async def count(self) -> int:
        """Number of live notes."""
        return len(await self.list())

    async def close(self) -> None:
        """Release any resources held by the store."""


# ---------------------------------------------------------------------------
# Mock store
# ---------------------------------------------------------------------------

WELCOME_CONTENT = """# Welcome! 👋

This is a demonstration note showing the markdown capabilities of this app.

## Features

- **Markdown Support**: Write in markdown with live preview
- **AI Assistant**: Get help from a local LLM (configure Ollama)
- **Search**: Quickly find your notes

## Try it out!

1. Create a new note
2. Edit this note
3. Try the preview mode
4. Use the AI assistant

```python
# You can even add code blocks!
print("Hello from Note Taking App!")
```

Happy note-taking! ✨"""

MEETING_CONTENT = """# Team Meeting - Dec 2, 2025

## Attendees
- Alice
- Bob
- Charlie

## Agenda
1. Project updates
2. Sprint planning
3. Technical discussions

## Action Items
- [ ] Review pull requests
- [ ] Update documentation
- [ ] Schedule next meeting"""


def seed_notes(now: datetime | None = None) -> list[Note]:
    """The two example notes a fresh mock store starts with."""
    now = now or utc_now()
    one_hour_ago = now - timedelta(hours=1)
    two_hours_ago = now - timedelta(hours=2)
    return [
        Note(
            id="note1",
            creation_time=one_hour_ago,
            title="Welcome to Note Taking App",
            content=WELCOME_CONTENT,
            tags=["welcome", "demo"],
            created_at=one_hour_ago,
            updated_at=one_hour_ago,
        ),
        Note(
            id="note2",
            creation_time=two_hours_ago,
            title="Meeting Notes",
            content=MEETING_CONTENT,
            tags=["meeting", "work"],
            created_at=two_hours_ago,
            updated_at=two_hours_ago,
        ),
    ]


class MockNoteStore(NoteStore):
    """In-memory note store used when no remote backend is configured.

    Ordering is most-recently-created first: new notes are prepended and
    updates never reorder. Coroutines here never suspend, so each mutation
    completes atomically on the event loop.
    """

    def __init__(self, notes: Iterable[Note] | None = None) -> None:
        self._notes: list[Note] = [n.model_copy(deep=True) for n in notes or []]
        self._last_tick: datetime | None = max(
            (n.updated_at for n in self._notes), default=None
        )

    @classmethod
    def seeded(cls) -> MockNoteStore:
        """Return a store holding the example notes."""
        return cls(seed_notes())

    def _tick(self) -> datetime:
        """Strictly increasing timestamp, so every mutation moves updated_at."""
        now = utc_now()
        if self._last_tick is not None and now <= self._last_tick:
            now = self._last_tick + timedelta(microseconds=1)
        self._last_tick = now
        return now

    def _index(self, note_id: str) -> int | None:
        for i, note in enumerate(self._notes):
            if note.id == note_id:
                return i
        return None

    def _new_id(self) -> str:
        while True:
            note_id = str(uuid4())
            if self._index(note_id) is None:
                return note_id

    async def list(self) -> list[Note]:
        return [n.model_copy(deep=True) for n in self._notes]

    async def get(self, note_id: str) -> Note | None:
        idx = self._index(note_id)
        if idx is None:
            return None
        return self._notes[idx].model_copy(deep=True)

    async def create(self, fields: NoteCreate) -> str:
        now = self._tick()
        note = Note(
            id=self._new_id(),
            creation_time=now,
            title=fields.title,
            content=fields.content,
            tags=list(fields.tags),
            created_at=now,
            updated_at=now,
        )
        self._notes.insert(0, note)
        logger.info("Created note %s — '%s'", note.id, note.title)
        return note.id

    async def update(self, note_id: str, fields: NoteUpdate) -> bool:
        idx = self._index(note_id)
        if idx is None:
            logger.info("Update skipped, note %s not found", note_id)
            return False
        changes = fields.changes()
        changes["updated_at"] = self._tick()
        self._notes[idx] = self._notes[idx].model_copy(update=changes, deep=True)
        logger.debug("Updated note %s fields=%s", note_id, sorted(changes))
        return True

    async def delete(self, note_id: str) -> bool:
        idx = self._index(note_id)
        if idx is None:
            logger.info("Delete skipped, note %s not found", note_id)
            return False
        del self._notes[idx]
        logger.info("Deleted note %s", note_id)
        return True

    async def count(self) -> int:
        return len(self._notes)
