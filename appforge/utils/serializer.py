"""JSON serialization helpers for step outputs and tool results."""

import importlib
import json
from typing import Any

from pydantic import BaseModel


def is_json_serializable(obj: Any) -> bool:
    """Check if an object is JSON serializable by attempting json.dumps."""
    try:
        json.dumps(obj)
        return True
    except (TypeError, ValueError):
        return False


def serialize(obj: Any) -> Any:
    """Serialize an object to a JSON-compatible value.

    Pydantic models (and lists of them) are dumped with ``model_dump(mode="json")``.
    Anything else must already be JSON serializable.

    Raises:
        TypeError: If the object is not a Pydantic model and not JSON serializable
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, list) and obj and all(isinstance(item, BaseModel) for item in obj):
        return [item.model_dump(mode="json") for item in obj]

    if not is_json_serializable(obj):
        raise TypeError(
            f"Object of type {type(obj).__name__} is not JSON serializable. "
            f"If it's a Pydantic model, ensure it inherits from BaseModel."
        )
    return obj


def json_serialize(obj: Any) -> str:
    """Serialize an object to a JSON string.

    Strings are returned unchanged so tool outputs that are already text are not double-encoded.
    """
    if isinstance(obj, str):
        return obj
    if isinstance(obj, BaseModel):
        return obj.model_dump_json()
    try:
        return json.dumps(serialize(obj))
    except (TypeError, ValueError) as e:
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable.") from e


def schema_name_for(obj: Any) -> str | None:
    """Return the import path used to rebuild ``obj`` on deserialization, if any.

    Examples: ``"appforge.llm.providers.base.LLMResponse"`` or
    ``"list[appforge.agents.turn.AgentStep]"``.
    """
    if isinstance(obj, BaseModel):
        return f"{obj.__class__.__module__}.{obj.__class__.__name__}"
    if isinstance(obj, list) and obj and isinstance(obj[0], BaseModel):
        return f"list[{obj[0].__class__.__module__}.{obj[0].__class__.__name__}]"
    return None


def _load_model_class(schema: str) -> type[BaseModel]:
    module_path, class_name = schema.rsplit(".", 1)
    module = importlib.import_module(module_path)
    model_class = getattr(module, class_name)
    if not (isinstance(model_class, type) and issubclass(model_class, BaseModel)):
        raise TypeError(f"{schema} is not a Pydantic model")
    return model_class


async def deserialize(obj: Any, output_schema_name: str | None = None) -> Any:
    """Rebuild a stored step output.

    Args:
        obj: Stored JSON-compatible value
        output_schema_name: Schema name recorded by ``schema_name_for`` (may be ``None``)

    Returns:
        The Pydantic model (or list of models) named by ``output_schema_name``, or ``obj`` unchanged
    """
    if not output_schema_name:
        return obj

    try:
        if output_schema_name.startswith("list[") and isinstance(obj, list):
            model_class = _load_model_class(output_schema_name[5:-1])
            return [model_class.model_validate(item) for item in obj]
        if isinstance(obj, dict):
            return _load_model_class(output_schema_name).model_validate(obj)
    except (ImportError, AttributeError, ValueError, TypeError) as e:
        raise ValueError(
            f"Failed to reconstruct Pydantic model from output_schema_name: "
            f"{output_schema_name}. Error: {str(e)}"
        ) from e
    return obj


def safe_serialize(value):
    """Serialize with fallback for non-serializable values."""
    try:
        return serialize(value)
    except (TypeError, ValueError):
        if hasattr(value, "__name__"):
            return f"<{value.__name__}>"
        return f"<{type(value).__name__}>"
