from __future__ import annotations

from ..normalize import collapse_whitespace


def preview_text(text: str | None, max_len: int = 60) -> str:
    """Single-line element text for log messages, cut at `max_len` with an ellipsis."""
    text = collapse_whitespace(text)
    if len(text) <= max_len:
        return text
    return text[: max_len - 1].rstrip() + "…"
