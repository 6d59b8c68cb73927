"""
Version ordering shared by the storage backends.
"""

from __future__ import annotations

from typing import Any

from packaging.version import InvalidVersion, Version


def version_sort_key(version: str) -> tuple[int, Any]:
    """
    Sort key for version strings.

    PEP 440 ordering for parseable versions; anything else sorts below every
    parseable version and lexically among itself.
    """
    try:
        return (1, Version(version))
    except (InvalidVersion, TypeError):
        return (0, str(version))


def latest_version(records: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Record with the highest ``version``, or None for no records."""
    if not records:
        return None
    return max(records, key=lambda r: version_sort_key(r.get("version", "")))
