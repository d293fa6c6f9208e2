"""Anthropic provider implementation."""

import json
import logging
import os
from typing import Any

from anthropic import AsyncAnthropic

from ...types.types import ToolCall, ToolCallFunction, Usage
from .base import LLMProvider, LLMResponse, register_provider

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096


def _to_anthropic_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert OpenAI function definitions to Anthropic tool definitions."""
    converted = []
    for tool in tools:
        fn = tool.get("function", tool)
        converted.append(
            {
                "name": fn["name"],
                "description": fn.get("description", ""),
                "input_schema": fn.get("parameters") or {"type": "object", "properties": {}},
            }
        )
    return converted


def _to_anthropic_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert normalized messages to Messages API format.

    Assistant tool calls become ``tool_use`` blocks and consecutive tool results are
    grouped into one user message of ``tool_result`` blocks.
    """
    result: list[dict[str, Any]] = []
    for msg in messages:
        role = msg.get("role")
        if role == "tool":
            block = {
                "type": "tool_result",
                "tool_use_id": msg.get("tool_call_id", ""),
                "content": msg.get("content") or "",
            }
            last = result[-1] if result else None
            if (
                last
                and last["role"] == "user"
                and isinstance(last["content"], list)
                and all(b.get("type") == "tool_result" for b in last["content"])
            ):
                last["content"].append(block)
            else:
                result.append({"role": "user", "content": [block]})
        elif role == "assistant":
            blocks: list[dict[str, Any]] = []
            if msg.get("content"):
                blocks.append({"type": "text", "text": msg["content"]})
            for tc in msg.get("tool_calls") or []:
                fn = tc.get("function", {})
                try:
                    tool_input = json.loads(fn.get("arguments") or "{}")
                except json.JSONDecodeError:
                    tool_input = {}
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": tc.get("id", ""),
                        "name": fn.get("name", ""),
                        "input": tool_input,
                    }
                )
            if blocks:
                result.append({"role": "assistant", "content": blocks})
        elif role == "user":
            result.append({"role": "user", "content": msg.get("content") or ""})
    return result


@register_provider("anthropic")
class AnthropicProvider(LLMProvider):
    """Anthropic provider for LLM calls using the Messages API."""

    def __init__(self, api_key: str | None = None):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key. If not provided, uses ANTHROPIC_API_KEY env var.
        """
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Anthropic API key not provided. Set ANTHROPIC_API_KEY "
                "environment variable or pass api_key parameter."
            )
        self.client = AsyncAnthropic(api_key=self.api_key)

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
            "messages": _to_anthropic_messages(messages),
            # max_tokens is required for Anthropic
            "max_tokens": max_tokens if max_tokens is not None else DEFAULT_MAX_TOKENS,
        }
        if system_prompt:
            request_params["system"] = system_prompt
        if temperature is not None:
            request_params["temperature"] = temperature
        if tools:
            request_params["tools"] = _to_anthropic_tools(tools)
        request_params.update(kwargs)

        try:
            response = await self.client.messages.create(**request_params)
        except Exception as e:
            raise RuntimeError(f"Anthropic Messages API call failed: {str(e)}") from e

        content_parts = []
        tool_calls = []
        for block in response.content:
            if block.type == "text":
                content_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCall(
                        id=block.id,
                        function=ToolCallFunction(
                            name=block.name, arguments=json.dumps(block.input)
                        ),
                    )
                )

        usage = Usage()
        if response.usage:
            usage = Usage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            )

        return LLMResponse(
            content="".join(content_parts) or None,
            usage=usage,
            tool_calls=tool_calls,
            model=getattr(response, "model", None) or model,
            stop_reason=getattr(response, "stop_reason", None),
        )
