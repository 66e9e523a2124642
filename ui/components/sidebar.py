"""Sidebar: search box, "New Note" button and the filtered note list."""

from __future__ import annotations

import requests
import streamlit as st

from notes.models import Note
from notes.store import filter_notes
from ui import api

_PREVIEW_CHARS = 80


def _ensure_state() -> None:
    """Initialize sidebar session state on first load."""
    st.session_state.setdefault("selected_note_id", None)
    st.session_state.setdefault("pending_delete", None)


def _preview(note: Note) -> str:
    text = note.content.strip().replace("\n", " ")
    if not text:
        return "Empty note"
    if len(text) > _PREVIEW_CHARS:
        return text[:_PREVIEW_CHARS] + "…"
    return text


def _create_note() -> None:
    """Create an untitled note and select it."""
    try:
        note_id = api.create_note("Untitled Note", "", [])
    except requests.RequestException as e:
        st.session_state.sidebar_error = f"Could not create note: {e}"
        return
    st.session_state.selected_note_id = note_id
    st.session_state.show_assistant = False


def _select(note_id: str) -> None:
    st.session_state.selected_note_id = note_id
    st.session_state.pending_delete = None


def _confirm_delete(note_id: str) -> None:
    try:
        api.delete_note(note_id)
    except requests.RequestException as e:
        st.session_state.sidebar_error = f"Could not delete note: {e}"
        return
    st.session_state.pending_delete = None
    if st.session_state.selected_note_id == note_id:
        st.session_state.selected_note_id = None


def load_notes() -> list[Note] | None:
    """Fetch the full note list, or None if the service is unreachable."""
    try:
        return [Note.model_validate(n) for n in api.list_notes()]
    except requests.ConnectionError:
        st.error(
            "Cannot reach the note service. "
            "Make sure the FastAPI server is running on port 8000."
        )
    except requests.RequestException as e:
        st.error(f"Could not load notes: {e}")
    return None


def render(notes: list[Note]) -> None:
    """Render the note list into the sidebar."""
    _ensure_state()

    with st.sidebar:
        st.title("📝 Notes")

        if error := st.session_state.pop("sidebar_error", None):
            st.error(error)

        term = st.text_input(
            "Search", key="search_term", placeholder="Search notes..."
        )
        st.button(
            "➕ New Note",
            use_container_width=True,
            type="primary",
            on_click=_create_note,
        )
        st.divider()

        visible = filter_notes(notes, term)
        if not visible:
            st.caption("No notes found" if term else "No notes yet")
            return

        for note in visible:
            _render_item(note)


def _render_item(note: Note) -> None:
    """One entry of the list: select button, preview and delete control."""
    selected = st.session_state.selected_note_id == note.id
    col_main, col_delete = st.columns([5, 1])
    with col_main:
        st.button(
            note.display_title,
            key=f"select_{note.id}",
            use_container_width=True,
            type="primary" if selected else "secondary",
            on_click=_select,
            args=(note.id,),
        )
        st.caption(_preview(note))
    with col_delete:
        if st.button("🗑️", key=f"delete_{note.id}", help="Delete note"):
            st.session_state.pending_delete = note.id

    if st.session_state.pending_delete == note.id:
        st.warning("Are you sure you want to delete this note?")
        col_yes, col_no = st.columns(2)
        col_yes.button(
            "Delete",
            key=f"confirm_delete_{note.id}",
            on_click=_confirm_delete,
            args=(note.id,),
        )
        col_no.button(
            "Cancel",
            key=f"cancel_delete_{note.id}",
            on_click=lambda: st.session_state.update(pending_delete=None),
        )
