"""PostgreSQL schema creation for the agent memory store."""
from __future__ import annotations

import logging

import asyncpg

logger = logging.getLogger("agentmem.db")

SCHEMA_VERSION = 1

_TABLES = """
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied   TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS memory_sessions (
    agent_id          TEXT NOT NULL,
    session_id        TEXT NOT NULL,
    session_name      TEXT DEFAULT '',
    working_directory TEXT,
    started_at        BIGINT,
    status            TEXT DEFAULT '',
    created_at        TEXT NOT NULL,
    updated_at        TEXT NOT NULL,
    PRIMARY KEY (agent_id, session_id)
);

CREATE TABLE IF NOT EXISTS memory_projects (
    agent_id       TEXT NOT NULL,
    project_path   TEXT NOT NULL,
    project_name   TEXT DEFAULT '',
    transcript_dir TEXT DEFAULT '',
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL,
    PRIMARY KEY (agent_id, project_path)
);

CREATE TABLE IF NOT EXISTS memory_conversations (
    agent_id           TEXT NOT NULL,
    jsonl_file         TEXT NOT NULL,
    project_path       TEXT NOT NULL,
    source             TEXT DEFAULT '',
    session_id         TEXT DEFAULT 'unknown',
    message_count      INTEGER DEFAULT 0,
    first_message_at   BIGINT,
    last_message_at    BIGINT,
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


async def run_migrations(pool: asyncpg.Pool) -> None:
    """Create all tables. Idempotent."""
    async with pool.acquire() as conn:
        await conn.execute(_TABLES)
        current_version = await conn.fetchval("SELECT MAX(version) FROM schema_version") or 0
        if current_version >= SCHEMA_VERSION:
            logger.info(f"Schema is up to date (version {current_version})")
            return
        await conn.execute("INSERT INTO schema_version (version) VALUES ($1)", SCHEMA_VERSION)
    logger.info(f"Migrations complete — schema version {SCHEMA_VERSION}")
