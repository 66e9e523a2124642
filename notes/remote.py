"""Note store backed by a Convex deployment's HTTP API.

Queries go to ``POST {url}/api/query`` and mutations to
``POST {url}/api/mutation`` with a ``{"path", "args", "format"}`` body.
The service answers ``{"status": "success", "value": ...}`` or
``{"status": "error", "errorMessage": ...}``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from notes.errors import RemoteStoreError
from notes.models import Note, NoteCreate, NoteUpdate
from notes.store import NoteStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10  # seconds

# Operation name -> Convex function path
NOTE_FUNCTIONS: dict[str, str] = {
    "listNotes": "notes:getNotes",
    "getNote": "notes:getNote",
    "createNote": "notes:createNote",
    "updateNote": "notes:updateNote",
    "deleteNote": "notes:deleteNote",
}


def _rejects_id(exc: RemoteStoreError) -> bool:
    """True when the service refused the ``id`` argument as not a note id."""
    message = exc.service_message or ""
    return "ArgumentValidationError" in message and ".id" in message


class ConvexNoteStore(NoteStore):
    """Remote note store. Lists come back newest ``updatedAt`` first.

    Search filters the ordered list locally so results keep that ordering.
    """

    def __init__(
        self,
        url: str,
        functions: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._functions = dict(functions or NOTE_FUNCTIONS)
        self._client = client or httpx.AsyncClient(base_url=self._url, timeout=timeout)

    @property
    def url(self) -> str:
        return self._url

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _call(self, kind: str, operation: str, args: dict[str, Any]) -> Any:
        """Run a Convex query or mutation and return its ``value``."""
        path = self._functions[operation]
        try:
            resp = await self._client.post(
                f"/api/{kind}",
                json={"path": path, "args": args, "format": "json"},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.ConnectError as exc:
            logger.error("Cannot connect to note service at %s", self._url)
            raise RemoteStoreError(
                f"Cannot connect to note service at {self._url}", function=path
            ) from exc
        except httpx.TimeoutException as exc:
            logger.error("Note service call %s timed out", path)
            raise RemoteStoreError(f"{path} timed out", function=path) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Note service call %s failed: %s", path, exc)
            raise RemoteStoreError(f"{path} failed: {exc}", function=path) from exc

        if data.get("status") != "success":
            message = data.get("errorMessage", "unknown error")
            logger.error("Note service call %s returned an error: %s", path, message)
            raise RemoteStoreError(
                f"{path} failed: {message}", function=path, service_message=message
            )
        return data.get("value")

    async def _query(self, operation: str, args: dict[str, Any] | None = None) -> Any:
        return await self._call("query", operation, args or {})

    async def _mutation(self, operation: str, args: dict[str, Any]) -> Any:
        return await self._call("mutation", operation, args)

    # ------------------------------------------------------------------
    # NoteStore
    # ------------------------------------------------------------------

    async def list(self) -> list[Note]:
        docs = await self._query("listNotes")
        notes = [Note.model_validate(d) for d in docs or []]
        # The service orders by creation time; callers expect last-edited first
        return sorted(notes, key=lambda n: n.updated_at, reverse=True)

    async def get(self, note_id: str) -> Note | None:
        try:
            doc = await self._query("getNote", {"id": note_id})
        except RemoteStoreError as exc:
            if _rejects_id(exc):
                logger.info("Note service rejected id %r, treating as not found", note_id)
                return None
            raise
        if doc is None:
            return None
        return Note.model_validate(doc)

    async def create(self, fields: NoteCreate) -> str:
        note_id = await self._mutation("createNote", fields.model_dump())
        if not note_id:
            path = self._functions["createNote"]
            logger.error("Note service call %s returned no id", path)
            raise RemoteStoreError(f"{path} returned no id", function=path)
        logger.info("Created remote note %s — '%s'", note_id, fields.title)
        return str(note_id)

    async def update(self, note_id: str, fields: NoteUpdate) -> bool:
        if await self.get(note_id) is None:
            return False
        await self._mutation("updateNote", {"id": note_id, **fields.changes()})
        return True

    async def delete(self, note_id: str) -> bool:
        if await self.get(note_id) is None:
            return False
        await self._mutation("deleteNote", {"id": note_id})
        logger.info("Deleted remote note %s", note_id)
        return True
