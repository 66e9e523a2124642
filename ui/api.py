"""Thin HTTP client for the FastAPI note service.

All functions return parsed JSON (dicts/lists) or raise on failure, except
that a 404 from a note endpoint is returned as ``None`` / ``False``.
Uses requests (synchronous) since Streamlit reruns are synchronous.
"""

from __future__ import annotations

import os
from typing import Any

import requests

BASE_URL = os.getenv("NOTES_API_URL", "http://localhost:8000")
_TIMEOUT = 10  # seconds
_ASSISTANT_TIMEOUT = 180  # seconds — local LLMs can be slow on CPU


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


def list_notes() -> list[dict[str, Any]]:
    """GET /notes — every note, in the backend's ordering."""
    resp = requests.get(f"{BASE_URL}/notes", timeout=_TIMEOUT)
    resp.raise_for_status()
    return resp.json()


def search_notes(term: str) -> list[dict[str, Any]]:
    """GET /notes/search — notes whose title or content contain *term*."""
    resp = requests.get(
        f"{BASE_URL}/notes/search", params={"term": term}, timeout=_TIMEOUT
    )
    resp.raise_for_status()
    return resp.json()


def get_note(note_id: str) -> dict[str, Any] | None:
    """GET /notes/{id} — a single note, or None if it no longer exists."""
    resp = requests.get(f"{BASE_URL}/notes/{note_id}", timeout=_TIMEOUT)
    if resp.status_code == 404:
        return None
    resp.raise_for_status()
    return resp.json()


def create_note(title: str, content: str, tags: list[str] | None = None) -> str:
    """POST /notes — create a note and return its id."""
    resp = requests.post(
        f"{BASE_URL}/notes",
        json={"title": title, "content": content, "tags": tags or []},
        timeout=_TIMEOUT,
    )
    resp.raise_for_status()
    return resp.json()["id"]


def update_note(note_id: str, **fields: Any) -> bool:
    """PATCH /notes/{id} — send only the given fields. False if not found."""
    resp = requests.patch(f"{BASE_URL}/notes/{note_id}", json=fields, timeout=_TIMEOUT)
    if resp.status_code == 404:
        return False
    resp.raise_for_status()
    return True


def delete_note(note_id: str) -> bool:
    """DELETE /notes/{id}. False if the note was already gone."""
    resp = requests.delete(f"{BASE_URL}/notes/{note_id}", timeout=_TIMEOUT)
    if resp.status_code == 404:
        return False
    resp.raise_for_status()
    return True


# ---------------------------------------------------------------------------
# Assistant
# ---------------------------------------------------------------------------


def assistant_chat(
    message: str, session_id: str, note_content: str | None
) -> dict[str, Any]:
    """POST /assistant/chat — ask the assistant about a note."""
    resp = requests.post(
        f"{BASE_URL}/assistant/chat",
        json={
            "message": message,
            "session_id": session_id,
            "note_content": note_content,
        },
        timeout=_ASSISTANT_TIMEOUT,
    )
    resp.raise_for_status()
    return resp.json()


def assistant_action(
    action: str, session_id: str, note_content: str | None
) -> dict[str, Any]:
    """POST /assistant/actions/{action} — improve, summarize or ideas."""
    resp = requests.post(
        f"{BASE_URL}/assistant/actions/{action}",
        json={"session_id": session_id, "note_content": note_content},
        timeout=_ASSISTANT_TIMEOUT,
    )
    resp.raise_for_status()
    return resp.json()


def reset_assistant(session_id: str) -> None:
    """DELETE /assistant/sessions/{id} — forget the chat history."""
    resp = requests.delete(
        f"{BASE_URL}/assistant/sessions/{session_id}", timeout=_TIMEOUT
    )
    resp.raise_for_status()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


def get_health() -> dict[str, Any]:
    """GET /health — service status and active backend."""
    resp = requests.get(f"{BASE_URL}/health", timeout=_TIMEOUT)
    resp.raise_for_status()
    return resp.json()
