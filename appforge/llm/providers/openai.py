"""OpenAI provider implementation using the Chat Completions API."""

import logging
import os
from typing import Any

from openai import AsyncOpenAI

from ...types.types import ToolCall, ToolCallFunction, Usage
from .base import LLMProvider, LLMResponse, register_provider

logger = logging.getLogger(__name__)


def _to_chat_messages(
    messages: list[dict[str, Any]], system_prompt: str | None
) -> list[dict[str, Any]]:
    """Convert normalized messages to Chat Completions messages."""
    result: list[dict[str, Any]] = []
    if system_prompt:
        result.append({"role": "system", "content": system_prompt})

    for msg in messages:
        role = msg.get("role")
        if role == "tool":
            result.append(
                {
                    "role": "tool",
                    "tool_call_id": msg.get("tool_call_id", ""),
                    "content": msg.get("content") or "",
                }
            )
        elif role == "assistant":
            converted: dict[str, Any] = {"role": "assistant", "content": msg.get("content")}
            if msg.get("tool_calls"):
                converted["tool_calls"] = msg["tool_calls"]
            result.append(converted)
        else:
            result.append({"role": role, "content": msg.get("content") or ""})
    return result


@register_provider("openai")
class OpenAIProvider(LLMProvider):
    """OpenAI provider for LLM calls using the Chat Completions API."""

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. If not provided, uses OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable "
                "or pass api_key parameter."
            )
        self.base_url = base_url or os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        self.client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)

    async def generate(
        self,
        messages: list[dict[str, Any]],
        model: str,
        system_prompt: str | None = None,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs,
    ) -> LLMResponse:
        request_params: dict[str, Any] = {
            "model": model,
            "messages": _to_chat_messages(messages, system_prompt),
        }
        if temperature is not None:
            request_params["temperature"] = temperature
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens
        if tools:
            request_params["tools"] = tools
        request_params.update(kwargs)

        try:
            response = await self.client.chat.completions.create(**request_params)
        except Exception as e:
            raise RuntimeError(f"OpenAI Chat Completions API call failed: {str(e)}") from e

        if not response or not response.choices:
            raise RuntimeError("OpenAI API returned no choices")

        choice = response.choices[0]
        tool_calls = [
            ToolCall(
                id=tc.id,
                function=ToolCallFunction(name=tc.function.name, arguments=tc.function.arguments),
            )
            for tc in (choice.message.tool_calls or [])
        ]

        usage = Usage()
        if response.usage:
            usage = Usage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return LLMResponse(
            content=choice.message.content,
            usage=usage,
            tool_calls=tool_calls,
            model=response.model or model,
            stop_reason=choice.finish_reason,
        )
