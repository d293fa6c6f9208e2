"""Tool class for actions that LLM agents can call."""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from ..core.context import JobContext

logger = logging.getLogger(__name__)


class Tool:
    """
    A schema-validated action an agent can invoke instead of producing final text.

    The handler is called as ``func(ctx, input, step_key)`` where ``input`` is an instance of
    ``input_schema`` and ``step_key`` is a key unique to this tool call within the execution.
    Handlers wrap their side effects in ``ctx.step.run(step_key, ...)`` so a replayed job
    does not repeat them.
    """

    def __init__(
        self,
        id: str,
        func: Callable,
        description: str | None = None,
        input_schema: type[BaseModel] | None = None,
        parameters: dict[str, Any] | None = None,
    ):
        """
        Initialize a tool.

        Args:
            id: Unique tool identifier (the function name the model sees)
            func: Async handler ``(ctx, input, step_key)``
            description: Description for the LLM (what this tool does)
            input_schema: Pydantic model used to validate the model's arguments
            parameters: JSON schema for the arguments (defaults to the input schema's schema)
        """
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Tool '{id}' handler must be an async function")
        self.id = id
        self.func = func
        self.description = description or func.__doc__ or ""
        self.input_schema = input_schema
        if parameters is None:
            parameters = (
                input_schema.model_json_schema()
                if input_schema is not None
                else {"type": "object", "properties": {}}
            )
        self.parameters = parameters

    def validate_input(self, payload: dict[str, Any] | None) -> BaseModel | dict[str, Any] | None:
        """Validate raw arguments against the input schema.

        Raises:
            ValueError: If the arguments do not match the schema
        """
        if self.input_schema is None:
            return payload
        try:
            return self.input_schema.model_validate(payload or {})
        except ValidationError as e:
            raise ValueError(f"invalid arguments for tool '{self.id}': {e}") from e

    async def execute(self, ctx: JobContext, payload: dict[str, Any] | None, step_key: str) -> Any:
        """Validate the arguments and run the handler."""
        input_obj = self.validate_input(payload)
        return await self.func(ctx, input_obj, step_key)

    def to_llm_tool_definition(self) -> dict[str, Any]:
        """
        Convert tool to LLM function calling format.

        Returns format compatible with OpenAI/Anthropic function calling:
        {
            "type": "function",
            "function": {
                "name": "tool_id",
                "description": "...",
                "parameters": {...}
            }
        }
        """
        return {
            "type": "function",
            "function": {
                "name": self.id,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def __repr__(self) -> str:
        return f"Tool(id={self.id!r})"
