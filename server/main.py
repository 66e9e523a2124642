"""FastAPI application for the note service.

Endpoints:
  GET    /notes                       — All notes in the backend's ordering
  GET    /notes/search?term=          — Case-insensitive title/content search
  GET    /notes/{id}                  — A single note
  POST   /notes                       — Create a note, returns its id
  PATCH  /notes/{id}                  — Partial update
  DELETE /notes/{id}                  — Delete a note
  POST   /assistant/chat              — Ask the assistant about a note
  POST   /assistant/actions/{action}  — Improve / summarize / ideas
  DELETE /assistant/sessions/{id}     — Forget a chat session
  GET    /health                      — Service status and active backend
  GET    /metrics                     — Prometheus metrics
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

from notes.errors import RemoteStoreError
from notes.models import Note, NoteCreate, NoteUpdate
from notes.selector import StoreSelection, select_store
from notes.store import NoteStore
from server.assistant import (
    ERROR_RESPONSE,
    AssistantAction,
    AssistantResponse,
    NoteAssistant,
)
from server.config import Settings, get_settings
from server.metrics import HTTP_DURATION, HTTP_REQUESTS, NOTE_COUNT, NOTE_OPERATIONS

logger = logging.getLogger(__name__)

# Endpoints excluded from HTTP metrics
_METRICS_EXCLUDE = {"/metrics", "/openapi.json", "/docs", "/redoc"}


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request count and duration for Prometheus."""

    async def dispatch(self, request: Request, call_next):
        """Wrap each request with timing and counting."""
        if request.url.path in _METRICS_EXCLUDE:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        # Label by route template to keep note ids out of the label set
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        HTTP_REQUESTS.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        HTTP_DURATION.labels(endpoint=endpoint).observe(elapsed)
        return response


# --- Request / Response models ---


class CreateNoteResponse(BaseModel):
    """Create endpoint response body."""

    id: str


class ChatRequest(BaseModel):
    """Assistant chat request body."""

    message: str
    session_id: str
    note_content: str | None = None


class ActionRequest(BaseModel):
    """Assistant quick-action request body."""

    session_id: str
    note_content: str | None = None


class AssistantReply(BaseModel):
    """Assistant response body."""

    response: str
    tools_used: list[str]
    latency_ms: float
    error: bool = False

    @classmethod
    def from_result(cls, result: AssistantResponse) -> AssistantReply:
        return cls(
            response=result.response,
            tools_used=result.tools_used,
            latency_ms=result.latency_ms,
            error=result.error,
        )


# --- Dependencies ---


def get_selection(request: Request) -> StoreSelection:
    return request.app.state.selection


def get_store(selection: StoreSelection = Depends(get_selection)) -> NoteStore:
    return selection.store


def get_assistant(request: Request) -> NoteAssistant:
    return request.app.state.assistant


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _not_found(operation: str, note_id: str) -> HTTPException:
    NOTE_OPERATIONS.labels(operation=operation, outcome="not_found").inc()
    logger.info("%s: note %s not found", operation, note_id)
    return HTTPException(status_code=404, detail="Note not found")


# --- Note endpoints ---

notes_router = APIRouter(prefix="/notes", tags=["notes"])


@notes_router.get("", response_model=list[Note])
async def list_notes(store: NoteStore = Depends(get_store)) -> list[Note]:
    """All notes in the active backend's ordering."""
    notes = await store.list()
    NOTE_OPERATIONS.labels(operation="list", outcome="ok").inc()
    NOTE_COUNT.set(len(notes))
    return notes


@notes_router.get("/search", response_model=list[Note])
async def search_notes(term: str = "", store: NoteStore = Depends(get_store)) -> list[Note]:
    """Notes whose title or content contains *term* (case-insensitive)."""
    results = await store.search(term)
    NOTE_OPERATIONS.labels(operation="search", outcome="ok").inc()
    logger.info("Search term='%s', found=%d", term, len(results))
    return results


@notes_router.get("/{note_id}", response_model=Note)
async def get_note(note_id: str, store: NoteStore = Depends(get_store)) -> Note:
    """A single note by id."""
    note = await store.get(note_id)
    if note is None:
        raise _not_found("get", note_id)
    NOTE_OPERATIONS.labels(operation="get", outcome="ok").inc()
    return note


@notes_router.post("", response_model=CreateNoteResponse, status_code=201)
async def create_note(
    fields: NoteCreate, store: NoteStore = Depends(get_store)
) -> CreateNoteResponse:
    """Create a note; id and timestamps are assigned by the store."""
    note_id = await store.create(fields)
    NOTE_OPERATIONS.labels(operation="create", outcome="ok").inc()
    return CreateNoteResponse(id=note_id)


@notes_router.patch("/{note_id}", status_code=204)
async def update_note(
    note_id: str, fields: NoteUpdate, store: NoteStore = Depends(get_store)
) -> Response:
    """Apply the supplied fields only."""
    if not await store.update(note_id, fields):
        raise _not_found("update", note_id)
    NOTE_OPERATIONS.labels(operation="update", outcome="ok").inc()
    return Response(status_code=204)


@notes_router.delete("/{note_id}", status_code=204)
async def delete_note(note_id: str, store: NoteStore = Depends(get_store)) -> Response:
    """Delete a note permanently."""
    if not await store.delete(note_id):
        raise _not_found("delete", note_id)
    NOTE_OPERATIONS.labels(operation="delete", outcome="ok").inc()
    return Response(status_code=204)


# --- Assistant endpoints ---

assistant_router = APIRouter(prefix="/assistant", tags=["assistant"])


async def _run_assistant(coro: Any, timeout: float) -> AssistantReply:
    try:
        result = await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError:
        logger.error("Assistant timed out after %.0fs", timeout)
        result = AssistantResponse(response=ERROR_RESPONSE, error=True)
    return AssistantReply.from_result(result)


@assistant_router.post("/chat", response_model=AssistantReply)
async def assistant_chat(
    request: ChatRequest,
    assistant: NoteAssistant = Depends(get_assistant),
    settings: Settings = Depends(get_app_settings),
) -> AssistantReply:
    """Send a message about the current note to the assistant."""
    return await _run_assistant(
        assistant.chat(request.message, request.note_content, request.session_id),
        settings.assistant_timeout,
    )


@assistant_router.post("/actions/{action}", response_model=AssistantReply)
async def assistant_action(
    action: AssistantAction,
    request: ActionRequest,
    assistant: NoteAssistant = Depends(get_assistant),
    settings: Settings = Depends(get_app_settings),
) -> AssistantReply:
    """Run a quick action (improve, summarize, ideas) on the note."""
    return await _run_assistant(
        assistant.quick_action(action, request.note_content, request.session_id),
        settings.assistant_timeout,
    )


@assistant_router.delete("/sessions/{session_id}", status_code=204)
async def assistant_reset(
    session_id: str, assistant: NoteAssistant = Depends(get_assistant)
) -> Response:
    """Forget a chat session's history."""
    assistant.reset(session_id)
    return Response(status_code=204)


# --- Service endpoints ---

service_router = APIRouter(tags=["service"])


@service_router.get("/health")
async def health(
    selection: StoreSelection = Depends(get_selection),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Service status, active backend and note count."""
    status = "healthy"
    total_notes: int | None = None
    try:
        total_notes = await selection.store.count()
    except RemoteStoreError as e:
        logger.warning("Health check could not reach note store: %s", e)
        status = "degraded"

    return {
        "status": status,
        "backend": selection.kind.value,
        "model": settings.ollama_model,
        "total_notes": total_notes,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@service_router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


async def _remote_error_handler(request: Request, exc: RemoteStoreError) -> JSONResponse:
    NOTE_OPERATIONS.labels(operation=request.method.lower(), outcome="error").inc()
    logger.error("Note store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=502,
        content={"detail": "The note service is unavailable. Please try again."},
    )


# --- Application factory ---


def create_app(
    settings: Settings | None = None, assistant: NoteAssistant | None = None
) -> FastAPI:
    """Build the application. The note store is chosen once, at startup."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup: select the note store. Shutdown: release it."""
        selection = select_store(settings.convex_url, timeout=settings.convex_timeout)
        app.state.selection = selection
        app.state.assistant = assistant or NoteAssistant(settings)
        logger.info("Note service started with %s backend", selection.kind.value)
        yield
        await selection.store.close()
        logger.info("Note service shut down.")

    app = FastAPI(title="Note Taking App", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RemoteStoreError, _remote_error_handler)

    app.include_router(notes_router)
    app.include_router(assistant_router)
    app.include_router(service_router)
    return app


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    logging.basicConfig(
        level=_settings.log_level,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )
    uvicorn.run(create_app(_settings), host="0.0.0.0", port=8000)
