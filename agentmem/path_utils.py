"""Path canonicalization for cross-platform working-directory matching."""
from __future__ import annotations

import os
import posixpath
import re
from typing import Any

_DRIVE_PREFIX_PATTERN = re.compile(r"^([A-Za-z]):(?=/|$)")


def normalize_path_for_match(raw: Any) -> str:
    """Return a canonical form of ``raw`` so equal locations compare equal.

    Host-level normalization runs first, then separators are unified to ``/``,
    a trailing separator is dropped (``/`` and drive roots are kept) and a
    leading drive letter is lower-cased. The rest of the path keeps its case.
    Never raises; odd input is normalized best-effort.
    """
    value = os.path.normpath(str(raw if raw is not None else "").strip())
    value = value.replace("\\", "/")

    drive = ""
    match = _DRIVE_PREFIX_PATTERN.match(value)
    if match:
        drive = f"{match.group(1).lower()}:"
        value = value[2:]
        if not value:
            return drive

    if value.strip("/") == "":
        return f"{drive}/"

    value = posixpath.normpath(value)
    if value.startswith("//"):
        value = "/" + value.lstrip("/")
    if len(value) > 1 and value.endswith("/"):
        value = value.rstrip("/")
    return f"{drive}{value}"
