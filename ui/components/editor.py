"""Note editor: title and content inputs plus a Markdown preview.

Every edit is sent to the service as its own partial update. The widget
buffers are replaced with the stored note whenever the stored copy changes
for a reason other than our own edit.
"""

from __future__ import annotations

import requests
import streamlit as st

from notes.models import Note
from ui import api


def _keys(note_id: str) -> tuple[str, str, str]:
    return f"title_{note_id}", f"content_{note_id}", f"_seen_{note_id}"


def _sync_buffers(note: Note) -> None:
    """Replace local edit buffers when the stored note changed elsewhere."""
    title_key, content_key, seen_key = _keys(note.id)
    stale = st.session_state.get(seen_key) != note.updated_at.isoformat()
    # Widget state is dropped while a widget is not rendered (preview mode)
    missing = title_key not in st.session_state or content_key not in st.session_state
    if stale or missing:
        st.session_state[title_key] = note.title
        st.session_state[content_key] = note.content
        st.session_state[seen_key] = note.updated_at.isoformat()


def _push(note_id: str, field: str) -> None:
    """on_change callback: send one field of the edit buffer to the store."""
    title_key, content_key, seen_key = _keys(note_id)
    value = st.session_state[title_key if field == "title" else content_key]
    try:
        found = api.update_note(note_id, **{field: value})
        stored = api.get_note(note_id) if found else None
    except requests.RequestException as e:
        st.session_state.editor_error = f"Could not save note: {e}"
        return

    if stored is None:
        st.session_state.editor_error = "This note no longer exists."
        st.session_state.selected_note_id = None
        return
    # Our own write: remember it so the buffer is not reset on rerun
    st.session_state[seen_key] = Note.model_validate(stored).updated_at.isoformat()


def render(note: Note) -> None:
    """Render the editor for *note*."""
    _sync_buffers(note)
    title_key, content_key, _ = _keys(note.id)

    if error := st.session_state.pop("editor_error", None):
        st.error(error)

    st.text_input(
        "Title",
        key=title_key,
        placeholder="Untitled Note",
        label_visibility="collapsed",
        on_change=_push,
        args=(note.id, "title"),
    )

    mode = st.radio(
        "Mode",
        ["✏️ Edit", "👁️ Preview"],
        horizontal=True,
        key=f"mode_{note.id}",
        label_visibility="collapsed",
    )

    if mode == "👁️ Preview":
        with st.container(border=True):
            st.markdown(note.content or "*No content yet*")
    else:
        st.text_area(
            "Content",
            key=content_key,
            height=480,
            placeholder="Start writing... (Markdown supported)",
            label_visibility="collapsed",
            on_change=_push,
            args=(note.id, "content"),
        )

    if note.tags:
        st.caption(" ".join(f"`#{t}`" for t in note.tags))
    st.caption(
        f"Created {note.created_at:%Y-%m-%d %H:%M} · "
        f"Updated {note.updated_at:%Y-%m-%d %H:%M}"
    )
