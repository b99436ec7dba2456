"""Extract conversation summaries from Codex CLI rollout transcripts.

Format: ``~/.codex/sessions/YYYY/MM/DD/rollout-*.jsonl``. Records have
``{timestamp, type, payload}``; metadata can appear anywhere, so the whole
file is scanned.
"""
from __future__ import annotations

from typing import Any

from agentmem.date_utils import parse_timestamp_ms
from agentmem.model_identity import join_model_names
from agentmem.models import DiscoveredConversation
from agentmem.parsers.transcripts import (
    as_dict,
    as_str,
    content_to_preview,
    load_json_line,
    truncate_preview,
)


def parse_codex_lines(lines: list[str], transcript_path: str) -> DiscoveredConversation:
    state: dict[str, Any] = {
        "sessionId": None,
        "cwd": None,
        "gitBranch": None,
        "cliVersion": None,
        "firstUserMessage": None,
    }
    first_ts: int | None = None
    last_ts: int | None = None
    models: list[str] = []

    def keep_first(key: str, value: Any) -> None:
        if not state[key] and isinstance(value, str) and value:
            state[key] = value

    for line in lines:
        event = load_json_line(line)
        if event is None:
            continue

        ts = parse_timestamp_ms(event.get("timestamp"))
        if ts is not None:
            if first_ts is None or ts < first_ts:
                first_ts = ts
            if last_ts is None or ts > last_ts:
                last_ts = ts

        payload = as_dict(event.get("payload"))
        if payload is None:
            continue

        event_type = event.get("type")
        if event_type == "session_meta":
            keep_first("sessionId", payload.get("id"))
            keep_first("cwd", payload.get("cwd"))
            keep_first("cliVersion", payload.get("cli_version"))
            git = as_dict(payload.get("git")) or {}
            keep_first("gitBranch", git.get("branch"))
        elif event_type == "turn_context":
            keep_first("cwd", payload.get("cwd"))
            model = as_str(payload.get("model"))
            if model:
                models.append(model)
        elif event_type == "response_item":
            if payload.get("type") != "message" or payload.get("role") != "user":
                continue
            if state["firstUserMessage"] is None:
                state["firstUserMessage"] = content_to_preview(payload.get("content"))
        elif event_type == "event_msg":
            if state["firstUserMessage"] is None and payload.get("type") == "user_message":
                state["firstUserMessage"] = truncate_preview(as_str(payload.get("message")))

    return DiscoveredConversation(
        source="codex",
        transcriptPath=transcript_path,
        workingDirectory=state["cwd"],
        sessionId=state["sessionId"],
        firstMessageAt=first_ts,
        lastMessageAt=last_ts,
        messageCount=len(lines),
        firstUserMessagePreview=state["firstUserMessage"],
        modelNames=join_model_names(models),
        gitBranch=state["gitBranch"],
        toolVersion=state["cliVersion"],
    )
