"""Shared timestamp parsing helpers."""
from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_FRACTION_RE = re.compile(r"\.(\d+)(?=[+-]\d{2}:\d{2}$|$)")


def _parse_datetime_token(token: str) -> datetime | None:
    cleaned = token.strip()
    if not cleaned:
        return None
    if _DATE_ONLY_RE.match(cleaned):
        try:
            parsed = date.fromisoformat(cleaned)
        except ValueError:
            return None
        return datetime(parsed.year, parsed.month, parsed.day, tzinfo=timezone.utc)
    try:
        value = cleaned.replace("Z", "+00:00")
        # fromisoformat before 3.11 only takes 3 or 6 fraction digits
        value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value)
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def parse_timestamp_ms(raw: Any) -> int | None:
    """Convert an ISO-8601 timestamp string into epoch milliseconds.

    Non-string or unparseable values yield ``None``. Timestamps without an
    offset are read as UTC.
    """
    if not isinstance(raw, str) or not raw:
        return None
    parsed = _parse_datetime_token(raw)
    if parsed is None:
        return None
    dt = parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * 1000))


def epoch_ms(raw: Any) -> int | None:
    """Accept an ISO-8601 string or a number already in epoch milliseconds."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return int(raw) if math.isfinite(raw) else None
    return parse_timestamp_ms(raw)
