"""Observability helpers."""

from agentmem.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_backfill,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_backfill",
]
