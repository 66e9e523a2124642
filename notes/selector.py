"""Startup choice between the remote note store and the mock store."""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from notes.remote import DEFAULT_TIMEOUT, NOTE_FUNCTIONS, ConvexNoteStore
from notes.store import MockNoteStore, NoteStore

logger = logging.getLogger(__name__)

# Default URL of a local development deployment; treated as "not configured".
LOCAL_PLACEHOLDER_URL = "http://localhost:3210"

LIST_OPERATION = "listNotes"


class BackendKind(str, enum.Enum):
    REMOTE = "remote"
    MOCK = "mock"


@dataclass
class StoreSelection:
    """The store every consumer is bound to for the life of the process."""

    kind: BackendKind
    store: NoteStore


def remote_is_usable(
    url: str | None, functions: Mapping[str, str] | None = None
) -> bool:
    """Decide whether the remote store can be used.

    Requires a configured URL that is not the local placeholder, and a
    function table that exposes the list operation. No network call is made.
    """
    if functions is None:
        functions = NOTE_FUNCTIONS
    if not url or not url.strip():
        return False
    if url.strip().rstrip("/") == LOCAL_PLACEHOLDER_URL:
        return False
    path = functions.get(LIST_OPERATION)
    return isinstance(path, str) and bool(path)


def select_store(
    url: str | None,
    functions: Mapping[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> StoreSelection:
    """Bind to the remote store when usable, else to a seeded mock store."""
    if functions is None:
        functions = NOTE_FUNCTIONS
    if remote_is_usable(url, functions):
        logger.info("Using remote note store at %s", url)
        return StoreSelection(
            kind=BackendKind.REMOTE,
            store=ConvexNoteStore(url, functions=dict(functions), timeout=timeout),
        )

    logger.warning(
        "No usable remote note store configured (url=%r) — using in-memory mock store",
        url,
    )
    return StoreSelection(kind=BackendKind.MOCK, store=MockNoteStore.seeded())
