"""Agent memory API: stored memory listing, initialization and backfill."""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from agentmem.db import migrations
from agentmem.db.factory import get_memory_repository
from agentmem.models import BackfillReport, BackfillRequest, ConversationSource

logger = logging.getLogger("agentmem.api")

memory_router = APIRouter(prefix="/api/agents", tags=["memory"])


class BackfillRequestBody(BaseModel):
    dryRun: bool = True
    force: bool = False
    sources: Optional[list[ConversationSource]] = None
    maxFiles: Optional[int] = None


class MemoryInitRequest(BaseModel):
    populateFromSessions: bool = False
    force: bool = False
    dryRun: bool = False
    sources: Optional[list[ConversationSource]] = None
    maxFiles: Optional[int] = None


def _get_backfill_engine(request: Request):
    engine = getattr(request.app.state, "backfill_engine", None)
    if not engine:
        raise HTTPException(status_code=503, detail="Backfill engine not initialized")
    return engine


def _to_backfill_request(dry_run: bool, force: bool, sources: Any, max_files: Any) -> BackfillRequest:
    return BackfillRequest(dryRun=dry_run, force=force, sources=sources, maxFiles=max_files)


@memory_router.get("/{agent_id}/memory")
async def get_agent_memory(request: Request, agent_id: str):
    """Return stored sessions and projects (with conversations) for an agent."""
    engine = _get_backfill_engine(request)
    try:
        repo = get_memory_repository(engine.db, agent_id)
        sessions = await repo.list_sessions()
        projects = []
        for project in await repo.list_projects():
            conversations = await repo.list_conversations(project["project_path"])
            projects.append({"project": project, "conversations": conversations})
    except Exception as e:
        logger.exception(f"[Memory API] GET failed for agent {agent_id}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "agent_id": agent_id,
        "sessions": sessions,
        "projects": projects,
    }


@memory_router.post("/{agent_id}/memory")
async def initialize_agent_memory(request: Request, agent_id: str, body: Optional[MemoryInitRequest] = None):
    """Initialize the memory schema and optionally populate it from transcripts.

    Population is skipped when the agent already has projects stored, unless
    ``force`` is set or the run is a dry-run.
    """
    engine = _get_backfill_engine(request)
    body = body or MemoryInitRequest()
    try:
        await migrations.run_migrations(engine.db)

        if not body.populateFromSessions:
            return {"success": True, "agent_id": agent_id, "message": "Memory initialized"}

        if not body.force and not body.dryRun:
            repo = get_memory_repository(engine.db, agent_id)
            project_count = await repo.count_projects()
            if project_count > 0:
                logger.info(
                    f"[Memory API] Agent {agent_id} already has {project_count} projects; "
                    "skipping population (use force=true to re-populate)"
                )
                return {
                    "success": True,
                    "agent_id": agent_id,
                    "message": "Memory schema initialized (already populated)",
                    "skipped_population": True,
                }
        elif body.force:
            logger.info(f"[Memory API] Force flag set - re-populating memory for agent {agent_id}")

        report: BackfillReport = await engine.backfill(
            agent_id,
            _to_backfill_request(body.dryRun, body.force, body.sources, body.maxFiles),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"[Memory API] POST failed for agent {agent_id}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "agent_id": agent_id,
        "message": (
            "Memory backfill dry-run complete"
            if body.dryRun
            else "Memory initialized and populated from historical sessions"
        ),
        "report": report.model_dump(mode="json"),
    }


@memory_router.post("/{agent_id}/memory/backfill")
async def backfill_agent_memory(request: Request, agent_id: str, body: Optional[BackfillRequestBody] = None):
    """Backfill agent memory from historical transcript stores."""
    engine = _get_backfill_engine(request)
    body = body or BackfillRequestBody()
    try:
        await migrations.run_migrations(engine.db)
        report: BackfillReport = await engine.backfill(
            agent_id,
            _to_backfill_request(body.dryRun, body.force, body.sources, body.maxFiles),
        )
    except Exception as e:
        logger.exception(f"[Memory API] Backfill failed for agent {agent_id}")
        raise HTTPException(status_code=500, detail=str(e))
    return report.model_dump(mode="json")
