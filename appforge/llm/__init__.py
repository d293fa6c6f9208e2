"""LLM generation functions."""

from .generate import _llm_generate
from .providers import LLMProvider, LLMResponse, get_provider

__all__ = [
    "_llm_generate",
    "LLMProvider",
    "LLMResponse",
    "get_provider",
]
