"""Records of what happened during an agent turn: model calls, tool calls and token usage."""

import json
from typing import Any, Literal

from pydantic import BaseModel, Field

ToolStatus = Literal["completed", "failed"]


class Usage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class ToolCallFunction(BaseModel):
    name: str
    arguments: str = "{}"  # JSON object as sent by the model


class ToolCall(BaseModel):
    """A tool invocation requested by the model, in OpenAI chat format."""

    id: str
    type: str = "function"
    function: ToolCallFunction

    def parse_arguments(self) -> dict[str, Any]:
        """Decode the model's JSON arguments.

        Raises:
            ValueError: If the arguments are not a JSON object
        """
        try:
            args = json.loads(self.function.arguments or "{}")
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid arguments for tool '{self.function.name}': {e}") from e
        if not isinstance(args, dict):
            raise ValueError(
                f"invalid arguments for tool '{self.function.name}': expected a JSON object"
            )
        return args


class ToolResult(BaseModel):
    tool_name: str
    tool_call_id: str
    status: ToolStatus
    output: str = ""


class AgentStep(BaseModel):
    """One model call of an agent turn and the tool calls it produced."""

    step: int
    content: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    tool_results: list[ToolResult] = Field(default_factory=list)
    usage: Usage | None = None
