"""Resolve the set of working directories owned by an agent."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from agentmem.agent_registry import AgentRegistry
from agentmem.date_utils import epoch_ms
from agentmem.live_sessions import LiveSessionClient
from agentmem.models import Agent, LiveSession, WorkingDirectoryResolution
from agentmem.path_utils import normalize_path_for_match

logger = logging.getLogger("agentmem.backfill")


def registry_working_directories(agent: Agent | None) -> list[str]:
    """Static directories: base working directory plus the preferred default."""
    if agent is None:
        return []
    directories: list[str] = []
    base_wd = agent.workingDirectory
    if not base_wd and agent.sessions:
        base_wd = agent.sessions[0].workingDirectory
    for candidate in (base_wd, agent.preferences.defaultWorkingDirectory):
        if candidate:
            directories.append(normalize_path_for_match(candidate))
    return directories


def _session_record(agent_id: str, session: LiveSession) -> dict[str, Any]:
    return {
        "session_id": session.id,
        "session_name": session.name or "",
        "agent_id": agent_id,
        "working_directory": session.workingDirectory,
        "started_at": epoch_ms(session.createdAt),
        "status": session.status or "",
    }


async def resolve_working_directories(
    agent_id: str,
    *,
    registry: AgentRegistry,
    live_client: LiveSessionClient,
    repository: Any,
    apply_writes: bool,
) -> WorkingDirectoryResolution:
    """Union registry directories with those of the agent's live sessions.

    When ``apply_writes`` is set, each live session of the agent is upserted
    through ``repository.record_session``. An unreachable inventory degrades
    to registry-only directories.
    """
    agent = registry.get_agent(agent_id) or registry.get_agent_by_session(agent_id)
    directories: dict[str, None] = dict.fromkeys(registry_working_directories(agent))

    live = await asyncio.to_thread(live_client.fetch_sessions)
    if live.degraded:
        logger.warning(
            "Backfill for agent %s continuing with registry working directories only: %s",
            agent_id,
            live.error,
        )

    active_sessions_seen = 0
    for session in live.sessions:
        if session.agentId != agent_id:
            continue
        active_sessions_seen += 1
        if session.workingDirectory:
            directories[normalize_path_for_match(session.workingDirectory)] = None
        if apply_writes:
            await repository.record_session(_session_record(agent_id, session))

    return WorkingDirectoryResolution(
        workingDirectories=list(directories),
        activeSessionsSeen=active_sessions_seen,
    )
