"""Client for the live session-inventory service.

The inventory is best-effort context for backfill: every failure mode is
reported as a degraded result instead of an exception.
"""
from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError

from agentmem import config
from agentmem.models import LiveSession, LiveSessionResult

logger = logging.getLogger("agentmem.live_sessions")


class LiveSessionClient:
    """Fetches ``GET {base_url}/api/sessions`` from the self host."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or config.SELF_HOST_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.LIVE_SESSIONS_TIMEOUT_SECONDS

    @property
    def sessions_url(self) -> str:
        return f"{self.base_url}/api/sessions"

    def fetch_sessions(self) -> LiveSessionResult:
        try:
            response = requests.get(self.sessions_url, timeout=self.timeout)
        except requests.RequestException as exc:
            return self._degraded(f"request failed: {exc}")

        if not response.ok:
            return self._degraded(f"unexpected status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            return self._degraded(f"invalid JSON body: {exc}")

        raw_sessions = payload.get("sessions") if isinstance(payload, dict) else None
        if raw_sessions is None:
            raw_sessions = []
        if not isinstance(raw_sessions, list):
            return self._degraded("'sessions' is not a list")

        return LiveSessionResult(sessions=_coerce_sessions(raw_sessions))

    def _degraded(self, reason: str) -> LiveSessionResult:
        logger.warning("Live session inventory unavailable (%s): %s", self.sessions_url, reason)
        return LiveSessionResult(degraded=True, error=reason)


def _coerce_sessions(raw_sessions: list[Any]) -> list[LiveSession]:
    sessions: list[LiveSession] = []
    for raw in raw_sessions:
        if not isinstance(raw, dict):
            continue
        try:
            sessions.append(LiveSession(**raw))
        except (TypeError, ValidationError):
            logger.debug("Dropping malformed live session entry: %r", raw)
    return sessions
