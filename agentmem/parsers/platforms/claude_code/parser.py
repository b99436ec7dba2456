"""Extract conversation summaries from Claude Code JSONL transcripts.

Transcripts live under ``~/.claude/projects/<project-slug>/<session-id>.jsonl``.
Every line is one event; session metadata (``sessionId``, ``cwd``,
``gitBranch``, ``version``) is repeated on most events, so only the head of the
file is inspected for it.
"""
from __future__ import annotations

from agentmem.date_utils import parse_timestamp_ms
from agentmem.model_identity import join_model_names, to_display_model
from agentmem.models import DiscoveredConversation
from agentmem.parsers.transcripts import as_dict, as_str, content_to_preview, load_json_line

METADATA_LINE_LIMIT = 80
TAIL_LINE_LIMIT = 50


def _last_timestamp(lines: list[str]) -> int | None:
    """Walk the tail backward and return the most recent timestamp."""
    for line in reversed(lines[-TAIL_LINE_LIMIT:]):
        entry = load_json_line(line)
        if entry is None:
            continue
        ts = parse_timestamp_ms(entry.get("timestamp"))
        if ts is not None:
            return ts
    return None


def parse_claude_lines(lines: list[str], transcript_path: str) -> DiscoveredConversation:
    session_id: str | None = None
    cwd: str | None = None
    git_branch: str | None = None
    cli_version: str | None = None
    first_user_message: str | None = None
    first_ts: int | None = None
    models: list[str] = []

    for line in lines[:METADATA_LINE_LIMIT]:
        entry = load_json_line(line)
        if entry is None:
            continue

        session_id = session_id or as_str(entry.get("sessionId"))
        cwd = cwd or as_str(entry.get("cwd"))
        git_branch = git_branch or as_str(entry.get("gitBranch"))
        cli_version = cli_version or as_str(entry.get("version"))

        ts = parse_timestamp_ms(entry.get("timestamp"))
        if ts is not None and (first_ts is None or ts < first_ts):
            first_ts = ts

        message = as_dict(entry.get("message"))
        entry_type = entry.get("type")
        if entry_type == "user" and first_user_message is None and message:
            first_user_message = content_to_preview(message.get("content"))
        elif entry_type == "assistant" and message:
            model = as_str(message.get("model"))
            if model:
                models.append(to_display_model(model))

    last_ts = _last_timestamp(lines)
    if first_ts is not None and last_ts is not None and first_ts > last_ts:
        first_ts, last_ts = last_ts, first_ts

    return DiscoveredConversation(
        source="claude",
        transcriptPath=transcript_path,
        workingDirectory=cwd,
        sessionId=session_id,
        firstMessageAt=first_ts,
        lastMessageAt=last_ts,
        messageCount=len(lines),
        firstUserMessagePreview=first_user_message,
        modelNames=join_model_names(models),
        gitBranch=git_branch,
        toolVersion=cli_version,
    )
