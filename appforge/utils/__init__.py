"""Utility functions for the AppForge runtime."""

from .config import Settings, load_settings
from .retry import retry_with_backoff
from .serializer import (
    deserialize,
    is_json_serializable,
    json_serialize,
    safe_serialize,
    serialize,
)
from .slugs import generate_slug

__all__ = [
    "Settings",
    "load_settings",
    "retry_with_backoff",
    "is_json_serializable",
    "serialize",
    "json_serialize",
    "safe_serialize",
    "deserialize",
    "generate_slug",
]
