"""Historical transcript → agent memory backfill engine.

Discovers Claude Code and Codex transcripts on disk, matches them to an
agent's working directories, skips transcripts already stored and records
the rest. Every run produces a fresh ``BackfillReport``; with ``dryRun`` the
report describes what would be written and the store is left untouched.
"""
from __future__ import annotations

import logging
import os
import posixpath
import time
from pathlib import Path
from typing import Any, Mapping

from agentmem.agent_registry import AgentRegistry, agent_registry
from agentmem.db.factory import get_memory_repository
from agentmem.live_sessions import LiveSessionClient
from agentmem.models import (
    ALL_SOURCES,
    MAX_EXAMPLES,
    BackfillReport,
    BackfillRequest,
    DiscoveredConversation,
    SourceStats,
)
from agentmem.observability import record_backfill, start_span
from agentmem.parsers.platforms.registry import default_source_roots, discover_conversations
from agentmem.path_utils import normalize_path_for_match
from agentmem.working_directories import resolve_working_directories

logger = logging.getLogger("agentmem.backfill")

_STAT_FIELDS = ("discovered", "matched", "unmapped", "existing", "inserted")


def _push_example(target: list[str], value: str) -> None:
    if len(target) < MAX_EXAMPLES:
        target.append(value)


def _project_record(conversation: DiscoveredConversation) -> dict[str, Any]:
    project_path = conversation.workingDirectory or ""
    return {
        "project_path": project_path,
        "project_name": posixpath.basename(project_path) or "unknown",
        "transcript_dir": os.path.dirname(conversation.transcriptPath),
    }


def _conversation_record(conversation: DiscoveredConversation) -> dict[str, Any]:
    return {
        "jsonl_file": conversation.transcriptPath,
        "project_path": conversation.workingDirectory,
        "source": conversation.source,
        "session_id": conversation.sessionId or "unknown",
        "message_count": conversation.messageCount,
        "first_message_at": conversation.firstMessageAt,
        "last_message_at": conversation.lastMessageAt,
        "first_user_message": conversation.firstUserMessagePreview,
        "model_names": conversation.modelNames,
        "git_branch": conversation.gitBranch,
        "cli_version": conversation.toolVersion,
    }


async def fetch_existing_transcripts(repository: Any) -> set[str]:
    """Collect every stored transcript path. Store errors propagate."""
    existing: set[str] = set()
    for project in await repository.list_projects():
        project_path = project.get("project_path")
        if not project_path:
            continue
        for row in await repository.list_conversations(project_path):
            if row.get("jsonl_file"):
                existing.add(row["jsonl_file"])
    return existing


class MemoryBackfillEngine:
    """Backfills one agent's memory store from on-disk transcripts."""

    def __init__(
        self,
        db: Any,  # Union[aiosqlite.Connection, asyncpg.Pool]
        *,
        registry: AgentRegistry | None = None,
        live_client: LiveSessionClient | None = None,
        source_roots: Mapping[str, Path] | None = None,
    ):
        self.db = db
        self.registry = registry if registry is not None else agent_registry
        self.live_client = live_client if live_client is not None else LiveSessionClient()
        self.source_roots = dict(source_roots) if source_roots is not None else default_source_roots()

    async def backfill(self, agent_id: str, request: BackfillRequest | None = None) -> BackfillReport:
        request = request or BackfillRequest()
        mode = "dry-run" if request.dryRun else "apply"
        logger.info(
            "Memory backfill starting: agent=%s mode=%s sources=%s max_files=%d",
            agent_id,
            mode,
            ",".join(request.sources),
            request.maxFiles,
        )

        t0 = time.monotonic()
        with start_span("memory.backfill", {"agent.id": agent_id, "backfill.mode": mode}):
            try:
                report = await self._run(agent_id, request, mode)
            except Exception:
                record_backfill(mode, "error", (time.monotonic() - t0) * 1000)
                logger.exception("Memory backfill failed for agent %s", agent_id)
                raise

        record_backfill(
            mode,
            "success",
            (time.monotonic() - t0) * 1000,
            outcomes={
                "unmapped": report.total_unmapped,
                "existing": report.total_existing,
                "inserted": report.total_inserted,
            },
        )
        logger.info(
            "Memory backfill complete: agent=%s mode=%s discovered=%d matched=%d "
            "unmapped=%d existing=%d inserted=%d truncated=%s",
            agent_id,
            mode,
            report.total_discovered,
            report.total_matched,
            report.total_unmapped,
            report.total_existing,
            report.total_inserted,
            report.truncated,
        )
        return report

    async def _run(self, agent_id: str, request: BackfillRequest, mode: str) -> BackfillReport:
        dry_run = request.dryRun
        max_files = request.maxFiles
        repository = get_memory_repository(self.db, agent_id)

        resolution = await resolve_working_directories(
            agent_id,
            registry=self.registry,
            live_client=self.live_client,
            repository=repository,
            apply_writes=not dry_run,
        )
        working_directories = set(resolution.workingDirectories)

        counts = {source: dict.fromkeys(_STAT_FIELDS, 0) for source in ALL_SOURCES}
        unmapped_examples: list[str] = []
        existing_examples: list[str] = []
        inserted_examples: list[str] = []

        discovered_all = discover_conversations(request.sources, self.source_roots)
        for item in discovered_all:
            counts[item.source]["discovered"] += 1

        truncated = len(discovered_all) > max_files
        discovered = discovered_all[:max_files] if truncated else discovered_all

        matched: list[DiscoveredConversation] = []
        for item in discovered:
            normalized_cwd = normalize_path_for_match(item.workingDirectory) if item.workingDirectory else None
            if not normalized_cwd or normalized_cwd not in working_directories:
                counts[item.source]["unmapped"] += 1
                _push_example(unmapped_examples, item.transcriptPath)
                continue
            counts[item.source]["matched"] += 1
            matched.append(item.model_copy(update={"workingDirectory": normalized_cwd}))

        existing_files = await fetch_existing_transcripts(repository)

        for item in matched:
            if item.transcriptPath in existing_files:
                counts[item.source]["existing"] += 1
                _push_example(existing_examples, item.transcriptPath)
                continue

            if not dry_run:
                await repository.record_project(_project_record(item))
                await repository.record_conversation(_conversation_record(item))

            counts[item.source]["inserted"] += 1
            _push_example(inserted_examples, item.transcriptPath)

        return BackfillReport(
            agent_id=agent_id,
            mode=mode,
            sources={source: SourceStats(**c) for source, c in counts.items()},
            total_discovered=len(discovered_all),
            total_matched=sum(c["matched"] for c in counts.values()),
            total_unmapped=sum(c["unmapped"] for c in counts.values()),
            total_existing=sum(c["existing"] for c in counts.values()),
            total_inserted=sum(c["inserted"] for c in counts.values()),
            max_files_applied=max_files,
            truncated=truncated,
            working_directories=tuple(resolution.workingDirectories),
            active_sessions_seen=resolution.activeSessionsSeen,
            unmapped_examples=tuple(unmapped_examples),
            existing_examples=tuple(existing_examples),
            inserted_examples=tuple(inserted_examples),
        )


async def backfill_agent_memory(
    agent_id: str,
    db: Any,
    request: BackfillRequest | None = None,
    **engine_kwargs: Any,
) -> BackfillReport:
    """Run one backfill for ``agent_id`` against ``db``."""
    engine = MemoryBackfillEngine(db, **engine_kwargs)
    return await engine.backfill(agent_id, request)
