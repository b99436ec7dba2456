"""Database schema creation and versioning.

All CREATE TABLE statements for the agent memory store.
Uses IF NOT EXISTS for idempotent runs.
"""
from __future__ import annotations

import logging

import aiosqlite

logger = logging.getLogger("agentmem.db")

SCHEMA_VERSION = 1

_TABLES = """
-- ── Schema version tracking ────────────────────────────────────────
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied   TEXT NOT NULL DEFAULT (datetime('now'))
);

-- ── 1. Sessions (live sessions observed for an agent) ─────────────
CREATE TABLE IF NOT EXISTS memory_sessions (
    agent_id          TEXT NOT NULL,
    session_id        TEXT NOT NULL,
    session_name      TEXT DEFAULT '',
    working_directory TEXT,
    started_at        INTEGER,
    status            TEXT DEFAULT '',
    created_at        TEXT NOT NULL,
    updated_at        TEXT NOT NULL,
    PRIMARY KEY (agent_id, session_id)
);

-- ── 2. Projects (one per working directory) ───────────────────────
CREATE TABLE IF NOT EXISTS memory_projects (
    agent_id       TEXT NOT NULL,
    project_path   TEXT NOT NULL,
    project_name   TEXT DEFAULT '',
    transcript_dir TEXT DEFAULT '',
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL,
    PRIMARY KEY (agent_id, project_path)
);

-- ── 3. Conversations (one per transcript file) ────────────────────
CREATE TABLE IF NOT EXISTS memory_conversations (
    agent_id           TEXT NOT NULL,
    jsonl_file         TEXT NOT NULL,
    project_path       TEXT NOT NULL,
    source             TEXT DEFAULT '',
    session_id         TEXT DEFAULT 'unknown',
    message_count      INTEGER DEFAULT 0,
    first_message_at   INTEGER,
    last_message_at    INTEGER,
    first_user_message TEXT,
    model_names        TEXT,
    git_branch         TEXT,
    cli_version        TEXT,
    created_at         TEXT NOT NULL,
    PRIMARY KEY (agent_id, jsonl_file)
);

CREATE INDEX IF NOT EXISTS idx_memory_conversations_project
    ON memory_conversations(agent_id, project_path);
CREATE INDEX IF NOT EXISTS idx_memory_sessions_wd
    ON memory_sessions(agent_id, working_directory);
"""


async def run_migrations(db: aiosqlite.Connection) -> None:
    """Create all tables. Idempotent."""
    try:
        async with db.execute("SELECT MAX(version) FROM schema_version") as cur:
            row = await cur.fetchone()
            current_version = row[0] if row and row[0] else 0
    except aiosqlite.Error:
        current_version = 0

    if current_version >= SCHEMA_VERSION:
        logger.info(f"Schema is up to date (version {current_version})")
        return

    logger.info(f"Running migrations: {current_version} → {SCHEMA_VERSION}")

    await db.executescript(_TABLES)

    await db.execute(
        "INSERT INTO schema_version (version) VALUES (?)",
        (SCHEMA_VERSION,),
    )
    await db.commit()
    logger.info(f"Migrations complete — schema version {SCHEMA_VERSION}")
