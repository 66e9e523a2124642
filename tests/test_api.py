"""Tests for server.main — HTTP endpoints over the note stores."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from notes.errors import RemoteStoreError
from notes.remote import ConvexNoteStore
from server.assistant import AssistantAction, AssistantResponse
from server.config import Settings
from server.main import create_app, get_store

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _settings() -> Settings:
    return Settings(_env_file=None, convex_url=None)


@pytest.fixture()
def assistant() -> MagicMock:
    fake = MagicMock()
    fake.chat = AsyncMock(
        return_value=AssistantResponse(response="Sure.", tools_used=[], latency_ms=3.0)
    )
    fake.quick_action = AsyncMock(
        return_value=AssistantResponse(
            response="Summary.", tools_used=["summarize_note"], latency_ms=5.0
        )
    )
    fake.reset = MagicMock(return_value=True)
    return fake


@pytest.fixture()
def client(assistant: MagicMock):
    app = create_app(_settings(), assistant=assistant)
    with TestClient(app) as c:
        yield c


def _ids(resp) -> list[str]:
    return [n["_id"] for n in resp.json()]


def _ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


# ===================================================================
# Notes
# ===================================================================


class TestListAndGet:
    def test_list_seed_notes(self, client: TestClient) -> None:
        resp = client.get("/notes")
        assert resp.status_code == 200
        assert _ids(resp) == ["note1", "note2"]
        first = resp.json()[0]
        assert first["title"] == "Welcome to Note Taking App"
        assert {"_creationTime", "createdAt", "updatedAt", "tags"} <= first.keys()

    def test_get_note(self, client: TestClient) -> None:
        resp = client.get("/notes/note2")
        assert resp.status_code == 200
        assert resp.json()["title"] == "Meeting Notes"

    def test_get_missing(self, client: TestClient) -> None:
        resp = client.get("/notes/nonexistent-id")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Note not found"


class TestCreate:
    def test_create_then_get(self, client: TestClient) -> None:
        resp = client.post("/notes", json={"title": "New", "content": "Body"})
        assert resp.status_code == 201
        note_id = resp.json()["id"]

        note = client.get(f"/notes/{note_id}").json()
        assert note["title"] == "New"
        assert note["content"] == "Body"
        assert note["tags"] == []
        assert note["createdAt"] == note["updatedAt"]

    def test_create_prepends(self, client: TestClient) -> None:
        x = client.post("/notes", json={"title": "x", "content": ""}).json()["id"]
        y = client.post("/notes", json={"title": "y", "content": ""}).json()["id"]
        assert _ids(client.get("/notes")) == [y, x, "note1", "note2"]

    def test_create_rejects_wrong_types(self, client: TestClient) -> None:
        resp = client.post("/notes", json={"title": 1, "content": "", "tags": "nope"})
        assert resp.status_code == 422


class TestUpdate:
    def test_partial_update(self, client: TestClient) -> None:
        before = client.get("/notes/note2").json()
        resp = client.patch("/notes/note2", json={"title": "Retro"})
        assert resp.status_code == 204

        after = client.get("/notes/note2").json()
        assert after["title"] == "Retro"
        assert after["content"] == before["content"]
        assert after["tags"] == before["tags"]
        assert after["createdAt"] == before["createdAt"]
        assert _ts(after["updatedAt"]) > _ts(before["updatedAt"])

    def test_update_missing(self, client: TestClient) -> None:
        resp = client.patch("/notes/nonexistent-id", json={"title": "x"})
        assert resp.status_code == 404
        assert len(client.get("/notes").json()) == 2


class TestDelete:
    def test_delete_twice(self, client: TestClient) -> None:
        assert client.delete("/notes/note1").status_code == 204
        assert client.delete("/notes/note1").status_code == 404
        assert _ids(client.get("/notes")) == ["note2"]


class TestSearch:
    def test_search_meet(self, client: TestClient) -> None:
        assert _ids(client.get("/notes/search", params={"term": "meet"})) == ["note2"]

    def test_search_case_insensitive(self, client: TestClient) -> None:
        assert _ids(client.get("/notes/search", params={"term": "MEET"})) == ["note2"]

    def test_search_empty_term(self, client: TestClient) -> None:
        assert _ids(client.get("/notes/search")) == ["note1", "note2"]


class TestRemoteFailure:
    def test_remote_error_maps_to_502(self, client: TestClient) -> None:
        failing = MagicMock()
        failing.list = AsyncMock(side_effect=RemoteStoreError("down"))
        client.app.dependency_overrides[get_store] = lambda: failing
        try:
            resp = client.get("/notes")
        finally:
            client.app.dependency_overrides.clear()
        assert resp.status_code == 502
        assert "unavailable" in resp.json()["detail"]


class TestRemoteBackend:
    """Endpoints over the Convex store with a service that validates ids."""

    @staticmethod
    def _rejecting_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "status": "error",
                "errorMessage": (
                    "ArgumentValidationError: Value does not match validator.\n"
                    'Path: .id\nValue: "nonexistent-id"\nValidator: v.id("notes")'
                ),
            },
        )

    @pytest.fixture()
    def remote_client(self, client: TestClient):
        transport = httpx.MockTransport(self._rejecting_handler)
        store = ConvexNoteStore(
            "https://happy-otter-123.convex.cloud",
            client=httpx.AsyncClient(
                base_url="https://happy-otter-123.convex.cloud", transport=transport
            ),
        )
        client.app.dependency_overrides[get_store] = lambda: store
        yield client
        client.app.dependency_overrides.clear()

    def test_get_malformed_id_is_404(self, remote_client: TestClient) -> None:
        assert remote_client.get("/notes/nonexistent-id").status_code == 404

    def test_update_malformed_id_is_404(self, remote_client: TestClient) -> None:
        resp = remote_client.patch("/notes/nonexistent-id", json={"title": "x"})
        assert resp.status_code == 404

    def test_delete_malformed_id_is_404(self, remote_client: TestClient) -> None:
        assert remote_client.delete("/notes/nonexistent-id").status_code == 404


# ===================================================================
# Assistant
# ===================================================================


class TestAssistant:
    def test_chat(self, client: TestClient, assistant: MagicMock) -> None:
        resp = client.post(
            "/assistant/chat",
            json={"message": "Help", "session_id": "s1", "note_content": "body"},
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "response": "Sure.",
            "tools_used": [],
            "latency_ms": 3.0,
            "error": False,
        }
        assistant.chat.assert_awaited_once_with("Help", "body", "s1")

    def test_quick_action(self, client: TestClient, assistant: MagicMock) -> None:
        resp = client.post(
            "/assistant/actions/summarize",
            json={"session_id": "s1", "note_content": "body"},
        )
        assert resp.status_code == 200
        assert resp.json()["tools_used"] == ["summarize_note"]
        assistant.quick_action.assert_awaited_once_with(
            AssistantAction.SUMMARIZE, "body", "s1"
        )

    def test_unknown_action(self, client: TestClient) -> None:
        resp = client.post("/assistant/actions/translate", json={"session_id": "s1"})
        assert resp.status_code == 422

    def test_chat_does_not_touch_notes(self, client: TestClient) -> None:
        before = client.get("/notes").json()
        client.post("/assistant/chat", json={"message": "Rewrite", "session_id": "s1"})
        assert client.get("/notes").json() == before

    def test_reset_session(self, client: TestClient, assistant: MagicMock) -> None:
        assert client.delete("/assistant/sessions/s1").status_code == 204
        assistant.reset.assert_called_once_with("s1")


# ===================================================================
# Service
# ===================================================================


class TestService:
    def test_health_reports_mock_backend(self, client: TestClient) -> None:
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["backend"] == "mock"
        assert data["total_notes"] == 2
        assert "timestamp" in data

    def test_metrics_exposed(self, client: TestClient) -> None:
        client.get("/notes")
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "notes_http_requests_total" in resp.text

    def test_note_count_tracks_last_list(self, client: TestClient) -> None:
        client.post("/notes", json={"title": "x", "content": ""})
        client.get("/notes")
        text = client.get("/metrics").text
        assert "# HELP notes_total Number of notes returned by the last list request" in text
        assert "notes_total 3.0" in text
