"""AI assistant panel: quick actions and a chat transcript about the open note.

The panel only reads note content; nothing it returns is written back.
"""

from __future__ import annotations

import uuid

import requests
import streamlit as st

from ui import api

ERROR_MESSAGE = "Sorry, I encountered an error. Please try again."

# (button label, action name on the service)
_QUICK_ACTIONS: list[tuple[str, str]] = [
    ("🪄 Improve", "improve"),
    ("📄 Summarize", "summarize"),
    ("💡 Ideas", "ideas"),
]

_ACTION_LABELS: dict[str, str] = {
    "improve": "Please improve and expand this note",
    "summarize": "Please provide a concise summary of this note",
    "ideas": "Please generate related ideas based on this note",
}


def _ensure_session() -> None:
    """Initialize assistant session state on first load."""
    if "assistant_session_id" not in st.session_state:
        st.session_state.assistant_session_id = str(uuid.uuid4())
    if "assistant_messages" not in st.session_state:
        st.session_state.assistant_messages = []


def reset() -> None:
    """Clear the transcript and start a new assistant session."""
    old = st.session_state.pop("assistant_session_id", None)
    st.session_state.assistant_messages = []
    if old:
        try:
            api.reset_assistant(old)
        except requests.RequestException:
            pass  # the local transcript is cleared regardless


def queue_action(action: str) -> None:
    """Button callback: run *action* on the next script run."""
    st.session_state.pending_action = action


def _ask(prompt: str, note_content: str, action: str | None = None) -> None:
    """Send a prompt (or quick action) and append the exchange to the transcript."""
    messages = st.session_state.assistant_messages
    messages.append({"role": "user", "content": prompt})

    try:
        if action:
            result = api.assistant_action(
                action, st.session_state.assistant_session_id, note_content
            )
        else:
            result = api.assistant_chat(
                prompt, st.session_state.assistant_session_id, note_content
            )
        messages.append(
            {
                "role": "assistant",
                "content": result["response"],
                "tools_used": result.get("tools_used", []),
                "latency_ms": result.get("latency_ms", 0),
            }
        )
    except requests.RequestException as e:
        messages.append({"role": "assistant", "content": ERROR_MESSAGE, "detail": str(e)})


def _render_metadata(msg: dict) -> None:
    """Show tools used and latency below an assistant message."""
    tools = msg.get("tools_used", [])
    latency = msg.get("latency_ms", 0)
    parts: list[str] = []
    if tools:
        parts.append("  ".join(f"`{t}`" for t in dict.fromkeys(tools)))
    if latency:
        parts.append(f"*{latency:.0f} ms*")
    if parts:
        st.caption(" · ".join(parts))


def render(note_content: str) -> None:
    """Render the assistant panel for the note currently open."""
    _ensure_session()

    header, close = st.columns([4, 1])
    header.subheader("✨ AI Assistant")
    if close.button("✖", key="assistant_close", help="Close assistant"):
        st.session_state.show_assistant = False
        st.rerun()

    cols = st.columns(len(_QUICK_ACTIONS))
    for col, (label, action) in zip(cols, _QUICK_ACTIONS):
        col.button(
            label,
            key=f"action_{action}",
            on_click=queue_action,
            args=(action,),
            use_container_width=True,
        )

    transcript = st.container(height=420)
    with transcript:
        if not st.session_state.assistant_messages:
            st.markdown("**Ask me anything about your note!**")
            st.caption("I can help you improve, summarize, or expand your ideas.")
        for msg in st.session_state.assistant_messages:
            with st.chat_message(msg["role"]):
                st.markdown(msg["content"])
                if msg["role"] == "assistant":
                    _render_metadata(msg)

    prompt = st.chat_input("Ask about your note...", key="assistant_input")
    action = st.session_state.pop("pending_action", None)

    if action:
        prompt_text = _ACTION_LABELS[action]
    elif prompt and prompt.strip():
        prompt_text = prompt
    else:
        prompt_text = None

    if prompt_text:
        with transcript, st.spinner("Thinking..."):
            _ask(prompt_text, note_content, action=action)
        st.rerun()

    st.caption("Powered by LangChain + Ollama")
