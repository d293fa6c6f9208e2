"""Helpers for reading agent output."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..core.context import JobContext

if TYPE_CHECKING:
    from .agent import Agent

DEFAULT_TITLE = "Fragment"
DEFAULT_RESPONSE = "Here you go"


def _text_of(content: Any) -> str | None:
    if isinstance(content, str):
        return content
    # Content-part lists: [{"type": "text", "text": "..."}]
    if isinstance(content, list):
        parts = [
            part.get("text", "")
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        ]
        return "".join(parts) if parts else None
    return None


def last_assistant_text(messages: list[dict[str, Any]]) -> str | None:
    """Return the text of the most recent assistant message that has text, if any."""
    for message in reversed(messages):
        if message.get("role") != "assistant":
            continue
        text = _text_of(message.get("content"))
        if text:
            return text
    return None


def parse_agent_output(messages: list[dict[str, Any]], fallback: str) -> str:
    """Return the last assistant text, or ``fallback`` when it is missing or blank."""
    text = last_assistant_text(messages)
    if text is None or not text.strip():
        return fallback
    return text


async def run_single_shot(
    ctx: JobContext, agent: Agent, prompt: str, step_key: str, fallback: str
) -> str:
    """Run a tool-less agent once on ``prompt`` and return its text or ``fallback``."""
    turn = await agent.run_turn(ctx, [{"role": "user", "content": prompt}], step_key)
    return parse_agent_output(turn.messages, fallback)
