"""Shared type definitions."""

from .types import AgentStep, ToolCall, ToolCallFunction, ToolResult, Usage

__all__ = ["AgentStep", "ToolCall", "ToolCallFunction", "ToolResult", "Usage"]
