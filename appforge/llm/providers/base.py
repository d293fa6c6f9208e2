"""Base class for LLM providers."""

import importlib
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from ...types.types import ToolCall, Usage

_PROVIDER_REGISTRY: dict[str, type["LLMProvider"]] = {}

_BUILTIN_PROVIDERS = {"openai": ".openai", "anthropic": ".anthropic"}


def register_provider(name: str):
    """
    Decorator to register an LLM provider class.

    Usage:
        @register_provider("openai")
        class OpenAIProvider(LLMProvider):
            ...
    """

    def decorator(cls: type["LLMProvider"]) -> type["LLMProvider"]:
        _PROVIDER_REGISTRY[name.lower()] = cls
        return cls

    return decorator


class LLMResponse(BaseModel):
    """Response from an LLM call."""

    content: str | None = None
    usage: Usage = Field(default_factory=Usage)
    tool_calls: list[ToolCall] = Field(default_factory=list)
    model: str | None = None
    stop_reason: str | None = None


class LLMProvider(ABC):
    """Base class for LLM providers.

    Messages use one provider-agnostic shape:

    - ``{"role": "user", "content": str}``
    - ``{"role": "assistant", "content": str | None, "tool_calls": [ToolCall dicts]}``
    - ``{"role": "tool", "tool_call_id": str, "name": str, "content": str}``

    The system prompt is passed separately; providers place it where their API expects it.
    """

    @abstractmethod
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
        """
        Make a chat completion request to the LLM.

        Args:
            messages: Conversation history in the shape described above
            model: Model identifier (e.g., "gpt-4.1", "claude-sonnet-4-5")
            system_prompt: Optional system prompt
            tools: Optional list of tool definitions in OpenAI function format
            temperature: Optional temperature parameter
            max_tokens: Optional max tokens parameter
            **kwargs: Provider-specific additional parameters

        Returns:
            LLMResponse with content, usage, tool_calls, model, and stop_reason
        """
        pass


def get_provider(provider_name: str, **kwargs) -> LLMProvider:
    """
    Instantiate the provider registered as ``provider_name`` (case-insensitive).

    Built-in providers live in their own modules, imported on first use so that only the
    SDK actually configured gets loaded.

    Raises:
        ValueError: If no provider is registered under that name
    """
    name = provider_name.lower()
    if name not in _PROVIDER_REGISTRY and name in _BUILTIN_PROVIDERS:
        # Registers the class through @register_provider
        importlib.import_module(_BUILTIN_PROVIDERS[name], package=__package__)

    provider_class = _PROVIDER_REGISTRY.get(name)
    if provider_class is None:
        supported = ", ".join(sorted(set(_BUILTIN_PROVIDERS) | set(_PROVIDER_REGISTRY)))
        raise ValueError(f"Unknown LLM provider: {provider_name}. Supported providers: {supported}")
    return provider_class(**kwargs)
