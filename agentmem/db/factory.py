"""Repository factory to abstract DB backend (SQLite vs Postgres)."""
from __future__ import annotations

from typing import Any
import aiosqlite

from agentmem.db.repositories.memory import SqliteMemoryRepository


def get_memory_repository(db: Any, agent_id: str):
    if isinstance(db, aiosqlite.Connection):
        return SqliteMemoryRepository(db, agent_id)
    from agentmem.db.repositories.postgres.memory import PostgresMemoryRepository
    return PostgresMemoryRepository(db, agent_id)
