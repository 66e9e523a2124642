"""Note assistant: LangChain agent that helps with the content of a note.

Uses ChatOllama with tool calling and per-session conversation memory via
LangGraph's ReAct agent. The assistant only reads note content; it has no
access to the note store.
"""

from __future__ import annotations

import enum
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.tools import StructuredTool
from langchain_ollama import ChatOllama
from langgraph.prebuilt import create_react_agent
from pydantic import BaseModel, Field

from server.config import Settings
from server.metrics import ACTIVE_SESSIONS, ASSISTANT_DURATION, ASSISTANT_REQUESTS

logger = logging.getLogger(__name__)

MAX_HISTORY = 10  # message pairs per session (user + assistant = 2 entries)

ERROR_RESPONSE = "Sorry, I encountered an error. Please try again."

# Regex to strip Qwen3 thinking blocks: <think>...</think>
_THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL)

SYSTEM_PROMPT = """You are a helpful AI assistant for a note-taking app inspired by Obsidian and Notion.
You help users:
- Improve and expand their notes
- Generate summaries
- Suggest connections between notes
- Format content in markdown
- Brainstorm ideas

Always provide helpful, concise, and well-formatted responses."""


class AssistantAction(str, enum.Enum):
    """Quick actions offered by the assistant panel."""

    IMPROVE = "improve"
    SUMMARIZE = "summarize"
    IDEAS = "ideas"


QUICK_ACTION_PROMPTS: dict[AssistantAction, str] = {
    AssistantAction.IMPROVE: "Please improve and expand this note",
    AssistantAction.SUMMARIZE: "Please provide a concise summary of this note",
    AssistantAction.IDEAS: "Please generate related ideas based on this note",
}


@dataclass
class AssistantResponse:
    """Result of an assistant invocation."""

    response: str
    tools_used: list[str] = field(default_factory=list)
    latency_ms: float = 0.0
    error: bool = False


def strip_thinking(text: str) -> str:
    """Remove ``<think>...</think>`` blocks that Qwen3 may produce."""
    return _THINK_RE.sub("", text).strip()


def build_user_message(message: str, note_content: str | None) -> str:
    """Attach the current note content to a user message."""
    if not note_content:
        return message
    return f"{message}\n\nNOTE CONTENT:\n{note_content}"


# ---------------------------------------------------------------------------
# Tool argument schemas
# ---------------------------------------------------------------------------


class _ContentArgs(BaseModel):
    content: str = Field(description="The note content")


class _TopicArgs(BaseModel):
    topic: str = Field(description="The topic to generate ideas about")


class NoteAssistant:
    """Orchestrates LLM reasoning over note content."""

    def __init__(self, settings: Settings, model: Any = None) -> None:
        self.settings = settings
        self._model = model
        self._sessions: dict[str, list[BaseMessage]] = {}
        self._tools: list[StructuredTool] | None = None

    @property
    def model(self) -> Any:
        """Chat model, created on first use."""
        if self._model is None:
            self._model = ChatOllama(
                model=self.settings.ollama_model,
                base_url=self.settings.ollama_base_url,
            )
        return self._model

    @property
    def tools(self) -> list[StructuredTool]:
        """Note tools exposed to the agent."""
        if self._tools is None:
            self._tools = self._build_tools()
        return list(self._tools)

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Direct generation (used by the tools)
    # ------------------------------------------------------------------

    async def generate(self, prompt: str) -> str:
        """Single-turn completion with the assistant's instructions."""
        result = await self.model.ainvoke(
            [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=prompt)]
        )
        return strip_thinking(str(result.content))

    async def improve_note(self, content: str) -> str:
        return await self.generate(
            "Please improve this note content while maintaining its core "
            f"message:\n\n{content}"
        )

    async def summarize_note(self, content: str) -> str:
        return await self.generate(
            f"Please provide a concise summary of this note:\n\n{content}"
        )

    async def generate_ideas(self, topic: str) -> str:
        return await self.generate(f"Generate 5 interesting ideas related to: {topic}")

    def _build_tools(self) -> list[StructuredTool]:
        return [
            StructuredTool.from_function(
                func=None,
                coroutine=self.improve_note,
                name="improve_note",
                description="Improve the content and structure of a note",
                args_schema=_ContentArgs,
            ),
            StructuredTool.from_function(
                func=None,
                coroutine=self.summarize_note,
                name="summarize_note",
                description="Create a concise summary of note content",
                args_schema=_ContentArgs,
            ),
            StructuredTool.from_function(
                func=None,
                coroutine=self.generate_ideas,
                name="generate_ideas",
                description="Generate ideas based on a topic or existing note",
                args_schema=_TopicArgs,
            ),
        ]

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def quick_action(
        self, action: AssistantAction, note_content: str | None, session_id: str
    ) -> AssistantResponse:
        """Run one of the fixed quick-action prompts against the note."""
        return await self.chat(
            QUICK_ACTION_PROMPTS[action],
            note_content,
            session_id,
            action=action.value,
        )

    async def chat(
        self,
        message: str,
        note_content: str | None,
        session_id: str,
        *,
        action: str = "chat",
    ) -> AssistantResponse:
        """Process a user message about a note and return the reply."""
        start = time.perf_counter()
        history = self._sessions.get(session_id, [])

        input_messages = (
            [SystemMessage(content=SYSTEM_PROMPT)]
            + list(history)
            + [HumanMessage(content=build_user_message(message, note_content))]
        )

        try:
            agent = create_react_agent(self.model, self.tools)
            result = await agent.ainvoke({"messages": input_messages})
        except Exception as e:
            logger.error("Assistant invocation failed: %s", e)
            latency_ms = (time.perf_counter() - start) * 1000
            ASSISTANT_REQUESTS.labels(action=action, status="error").inc()
            ASSISTANT_DURATION.labels(action=action).observe(latency_ms / 1000)
            return AssistantResponse(
                response=ERROR_RESPONSE,
                latency_ms=round(latency_ms, 1),
                error=True,
            )

        output_messages = result["messages"]
        tools_used: list[str] = []
        response_text = ""

        for msg in output_messages:
            if isinstance(msg, AIMessage) and msg.tool_calls:
                for tc in msg.tool_calls:
                    tools_used.append(tc["name"])

        # Last AI message with content is the final answer
        for msg in reversed(output_messages):
            if isinstance(msg, AIMessage) and msg.content:
                response_text = str(msg.content)
                break

        response_text = strip_thinking(response_text)
        if not response_text:
            response_text = "I couldn't generate a response."

        is_new_session = session_id not in self._sessions
        history.append(HumanMessage(content=message))
        history.append(AIMessage(content=response_text))
        self._sessions[session_id] = history[-(MAX_HISTORY * 2) :]
        if is_new_session:
            ACTIVE_SESSIONS.set(len(self._sessions))

        latency_ms = (time.perf_counter() - start) * 1000
        ASSISTANT_REQUESTS.labels(action=action, status="success").inc()
        ASSISTANT_DURATION.labels(action=action).observe(latency_ms / 1000)
        logger.info(
            "Assistant session=%s action=%s tools=%s latency=%.0fms",
            session_id,
            action,
            tools_used,
            latency_ms,
        )

        return AssistantResponse(
            response=response_text,
            tools_used=tools_used,
            latency_ms=round(latency_ms, 1),
        )

    def reset(self, session_id: str) -> bool:
        """Forget a session's history. Returns False if it had none."""
        if self._sessions.pop(session_id, None) is None:
            return False
        ACTIVE_SESSIONS.set(len(self._sessions))
        return True
