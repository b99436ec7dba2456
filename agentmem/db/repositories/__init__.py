"""Repository package for database access."""

from .memory import SqliteMemoryRepository

__all__ = [
    "SqliteMemoryRepository",
]
