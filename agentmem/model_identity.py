"""Model name display helpers for transcript summaries."""
from __future__ import annotations

from typing import Iterable

# Substring (lower-cased) -> display label. First match wins.
_DISPLAY_FAMILIES: tuple[tuple[str, str], ...] = (
    ("sonnet", "Sonnet 4.5"),
    ("haiku", "Haiku 4.5"),
    ("opus", "Opus 4.5"),
)


def to_display_model(raw_model: str) -> str:
    """Map a raw model identifier onto its display label.

    Example:
      claude-sonnet-4-5-20250929 -> Sonnet 4.5
    Unrecognized identifiers are returned unchanged.
    """
    normalized = (raw_model or "").lower()
    for token, label in _DISPLAY_FAMILIES:
        if token in normalized:
            return label
    return raw_model


def join_model_names(names: Iterable[str]) -> str | None:
    """Join names de-duplicated in first-seen order, or None when empty."""
    unique = list(dict.fromkeys(name for name in names if name))
    if not unique:
        return None
    return ", ".join(unique)
