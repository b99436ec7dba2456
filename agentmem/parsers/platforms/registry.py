"""Transcript parser registry for platform-specific implementations."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Mapping

from agentmem import config
from agentmem.models import ALL_SOURCES, DiscoveredConversation
from agentmem.parsers.platforms.claude_code import parser as claude_code_parser
from agentmem.parsers.platforms.codex import parser as codex_parser
from agentmem.parsers.transcripts import find_jsonl_files, read_transcript_lines

logger = logging.getLogger("agentmem.parsers")

TranscriptParser = Callable[[list[str], str], DiscoveredConversation]

_PARSERS: dict[str, TranscriptParser] = {
    "claude": claude_code_parser.parse_claude_lines,
    "codex": codex_parser.parse_codex_lines,
}


def default_source_roots() -> dict[str, Path]:
    return {
        "claude": config.CLAUDE_PROJECTS_DIR,
        "codex": config.CODEX_SESSIONS_DIR,
    }


def parse_transcript_lines(source: str, lines: list[str], transcript_path: str) -> DiscoveredConversation:
    """Parse transcript lines with the parser registered for ``source``."""
    parser = _PARSERS.get(source)
    if parser is None:
        raise ValueError(f"Unknown conversation source: {source}")
    return parser(lines, transcript_path)


def parse_transcript_file(source: str, path: Path) -> DiscoveredConversation | None:
    lines = read_transcript_lines(path)
    if not lines:
        return None
    return parse_transcript_lines(source, lines, str(path))


def discover_conversations(
    sources: Iterable[str],
    source_roots: Mapping[str, Path] | None = None,
) -> list[DiscoveredConversation]:
    """Scan each requested source's root and parse every transcript found.

    Sources are visited in registry order; within a source, results follow
    directory-walk order.
    """
    roots = dict(source_roots) if source_roots is not None else default_source_roots()
    requested = set(sources)
    conversations: list[DiscoveredConversation] = []

    for source in ALL_SOURCES:
        if source not in requested:
            continue
        root = roots.get(source)
        if root is None:
            logger.warning("No transcript root configured for source %s", source)
            continue
        files = find_jsonl_files(Path(root).expanduser())
        logger.debug("Found %d %s transcripts under %s", len(files), source, root)
        for path in files:
            conversation = parse_transcript_file(source, path)
            if conversation is not None:
                conversations.append(conversation)

    return conversations
