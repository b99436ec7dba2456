"""SQLite implementation of the per-agent memory repository."""
from __future__ import annotations

from datetime import datetime, timezone

import aiosqlite


class SqliteMemoryRepository:
    """SQLite-backed sessions, projects and conversations scoped to one agent."""

    def __init__(self, db: aiosqlite.Connection, agent_id: str):
        self.db = db
        self.agent_id = agent_id

    async def record_session(self, session_data: dict) -> None:
        now = datetime.now(timezone.utc).isoformat()
        await self.db.execute(
            """INSERT INTO memory_sessions (
                agent_id, session_id, session_name, working_directory,
                started_at, status, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(agent_id, session_id) DO UPDATE SET
                session_name=excluded.session_name,
                working_directory=excluded.working_directory,
                started_at=excluded.started_at,
                status=excluded.status,
                updated_at=excluded.updated_at
            """,
            (
                self.agent_id,
                session_data["session_id"],
                session_data.get("session_name") or "",
                session_data.get("working_directory"),
                session_data.get("started_at"),
                session_data.get("status") or "",
                now, now,
            ),
        )
        await self.db.commit()

    async def record_project(self, project_data: dict) -> None:
        now = datetime.now(timezone.utc).isoformat()
        await self.db.execute(
            """INSERT INTO memory_projects (
                agent_id, project_path, project_name, transcript_dir, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(agent_id, project_path) DO UPDATE SET
                project_name=excluded.project_name,
                transcript_dir=excluded.transcript_dir,
                updated_at=excluded.updated_at
            """,
            (
                self.agent_id,
                project_data["project_path"],
                project_data.get("project_name") or "",
                project_data.get("transcript_dir") or "",
                now, now,
            ),
        )
        await self.db.commit()

    async def record_conversation(self, conversation_data: dict) -> None:
        """Insert a conversation; an existing row for the transcript is kept as-is."""
        now = datetime.now(timezone.utc).isoformat()
        await self.db.execute(
            """INSERT INTO memory_conversations (
                agent_id, jsonl_file, project_path, source, session_id,
                message_count, first_message_at, last_message_at,
                first_user_message, model_names, git_branch, cli_version, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(agent_id, jsonl_file) DO NOTHING
            """,
            (
                self.agent_id,
                conversation_data["jsonl_file"],
                conversation_data["project_path"],
                conversation_data.get("source") or "",
                conversation_data.get("session_id") or "unknown",
                conversation_data.get("message_count", 0),
                conversation_data.get("first_message_at"),
                conversation_data.get("last_message_at"),
                conversation_data.get("first_user_message"),
                conversation_data.get("model_names"),
                conversation_data.get("git_branch"),
                conversation_data.get("cli_version"),
                now,
            ),
        )
        await self.db.commit()

    async def list_sessions(self) -> list[dict]:
        async with self.db.execute(
            "SELECT * FROM memory_sessions WHERE agent_id = ? ORDER BY started_at DESC",
            (self.agent_id,),
        ) as cur:
            return [dict(r) for r in await cur.fetchall()]

    async def list_projects(self) -> list[dict]:
        async with self.db.execute(
            "SELECT * FROM memory_projects WHERE agent_id = ? ORDER BY project_path",
            (self.agent_id,),
        ) as cur:
            return [dict(r) for r in await cur.fetchall()]

    async def list_conversations(self, project_path: str) -> list[dict]:
        async with self.db.execute(
            """SELECT * FROM memory_conversations
               WHERE agent_id = ? AND project_path = ?
               ORDER BY last_message_at DESC""",
            (self.agent_id, project_path),
        ) as cur:
            return [dict(r) for r in await cur.fetchall()]

    async def count_projects(self) -> int:
        async with self.db.execute(
            "SELECT COUNT(*) FROM memory_projects WHERE agent_id = ?", (self.agent_id,)
        ) as cur:
            row = await cur.fetchone()
        return row[0] if row else 0
