"""Output utilities for tool results.

Provides functions for truncating large outputs and stripping ANSI escape codes.
"""

from __future__ import annotations

import re

# Default maximum output characters
DEFAULT_MAX_CHARS = 100_000

# Head portion of truncated output (20% of max)
HEAD_RATIO = 0.2

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")


def truncate_output(output: str, max_chars: int | None = None) -> tuple[str, bool]:
    """Truncate output that exceeds the maximum character limit.

    Keeps the first 20% (head) and the last 80% (tail) of the limit with a
    truncation marker in between.

    Returns:
        A tuple of (text, truncated) where truncated is True if output was truncated.
    """
    max_c = max_chars if max_chars is not None else DEFAULT_MAX_CHARS
    if len(output) <= max_c:
        return output, False

    head_size = int(max_c * HEAD_RATIO)
    tail_size = max_c - head_size
    omitted = len(output) - head_size - tail_size
    marker = f"\n\n--- truncated {omitted} characters ---\n\n"
    text = f"{output[:head_size]}{marker}{output[-tail_size:]}"
    return text, True


def strip_ansi(text: str) -> str:
    """Strip ANSI escape codes from text."""
    return _ANSI_RE.sub("", text)


def clean_output(text: str, max_chars: int | None = None) -> str:
    """Strip ANSI codes and truncate, for text that is sent back to the model."""
    cleaned, _ = truncate_output(strip_ansi(text), max_chars)
    return cleaned
