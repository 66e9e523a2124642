"""Note Taking App — Streamlit front end.

Run with:
    streamlit run ui/app.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so `ui.*` and `notes.*` imports
# resolve regardless of the working directory Streamlit uses.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import requests  # noqa: E402
import streamlit as st  # noqa: E402

st.set_page_config(
    page_title="Note Taking App",
    page_icon="📝",
    layout="wide",
    initial_sidebar_state="expanded",
)

from notes.models import Note  # noqa: E402
from ui import api  # noqa: E402
from ui.components import assistant, editor, sidebar  # noqa: E402

# ---------------------------------------------------------------------------
# Backend banner
# ---------------------------------------------------------------------------

try:
    _health = api.get_health()
except requests.RequestException:
    _health = {}

if _health.get("backend") == "mock":
    st.info(
        "Demo mode: no remote note service is configured, so notes live in "
        "memory and are lost when the server restarts. Set `CONVEX_URL` to "
        "connect a deployment."
    )

# ---------------------------------------------------------------------------
# Sidebar + selected note
# ---------------------------------------------------------------------------

notes = sidebar.load_notes()
if notes is None:
    st.stop()

sidebar.render(notes)

selected_id = st.session_state.get("selected_note_id")
selected: Note | None = None
if selected_id:
    try:
        raw = api.get_note(selected_id)
    except requests.RequestException as e:
        st.error(f"Could not load note: {e}")
        st.stop()
    if raw is None:
        # Deleted elsewhere
        st.session_state.selected_note_id = None
    else:
        selected = Note.model_validate(raw)

if selected is None:
    st.title("📝 Note Taking App")
    st.markdown("Select a note from the sidebar or create a new one to get started.")
    st.stop()

if st.session_state.get("assistant_note_id") != selected.id:
    # New note, new conversation
    assistant.reset()
    st.session_state.assistant_note_id = selected.id

show_assistant = st.session_state.get("show_assistant", False)
if show_assistant:
    col_editor, col_assistant = st.columns([3, 2])
else:
    col_editor, col_assistant = st.container(), None

with col_editor:
    if not show_assistant and st.button("✨ AI Assistant"):
        st.session_state.show_assistant = True
        st.rerun()
    editor.render(selected)

if col_assistant is not None:
    with col_assistant:
        assistant.render(selected.content)

# Footer
st.divider()
_model_name = _health.get("model", "Ollama")
st.caption(f"Built with FastAPI + Streamlit | Assistant powered by {_model_name}")
