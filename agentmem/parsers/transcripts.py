"""Transcript file discovery and shared JSONL helpers."""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger("agentmem.parsers")

TRANSCRIPT_SUFFIX = ".jsonl"
PREVIEW_MAX_LENGTH = 100

_PREVIEW_WHITESPACE_PATTERN = re.compile(r"[\n\r\t]+")
_TEXT_CHUNK_TYPES = {"text", "input_text"}


def find_jsonl_files(root_dir: Path) -> list[Path]:
    """Return every ``.jsonl`` file beneath ``root_dir`` at any depth.

    Uses an explicit stack instead of recursion. Directories or entries that
    cannot be listed or stat'ed are skipped; a missing root yields ``[]``.
    """
    files: list[Path] = []
    if not root_dir.exists():
        return files

    stack = [root_dir]
    visited: set[str] = set()
    while stack:
        current = stack.pop()
        try:
            real = str(current.resolve())
        except (OSError, RuntimeError):
            continue
        if real in visited:
            continue  # symlink cycle
        visited.add(real)
        try:
            items = list(current.iterdir())
        except OSError:
            logger.debug("Skipping unreadable directory: %s", current)
            continue
        for item in items:
            try:
                is_dir = item.is_dir()
            except OSError:
                continue
            if is_dir:
                stack.append(item)
            elif item.name.endswith(TRANSCRIPT_SUFFIX):
                files.append(item)
    return files


def read_transcript_lines(path: Path) -> list[str] | None:
    """Read the non-empty lines of a transcript, or None if unreadable."""
    try:
        raw = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        logger.debug("Skipping unreadable transcript: %s", path)
        return None
    return [line for line in raw.split("\n") if line.strip()]


def load_json_line(line: str) -> dict[str, Any] | None:
    try:
        value = json.loads(line)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def as_dict(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def truncate_preview(raw: str | None, max_length: int = PREVIEW_MAX_LENGTH) -> str | None:
    if not raw:
        return None
    normalized = _PREVIEW_WHITESPACE_PATTERN.sub(" ", raw).strip()
    if not normalized:
        return None
    return normalized[:max_length]


def content_to_preview(content: Any) -> str | None:
    """Build a preview from message content.

    ``content`` may be a plain string or a list of typed chunks; only
    text-bearing chunks contribute.
    """
    if isinstance(content, str):
        return truncate_preview(content)
    if isinstance(content, list):
        chunks: list[str] = []
        for entry in content:
            if not isinstance(entry, dict):
                continue
            text = entry.get("text")
            if entry.get("type") in _TEXT_CHUNK_TYPES and isinstance(text, str) and text:
                chunks.append(text)
        return truncate_preview(" ".join(chunks))
    return None
