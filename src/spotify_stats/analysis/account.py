# spotify_stats/analysis/account.py

"""Light reshaping of the account artifacts bundled with an export."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

from spotify_stats.errors import ErrorLog, UnreadableSource

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"(?<!\d)((?:19|20)\d{2})(?!\d)")


def library_document(raw: Any) -> dict[str, Any]:
    """Pass YourLibrary.json through, adding the size of each list section."""
    if not isinstance(raw, dict):
        return {"counts": {}, "library": raw}
    counts = {
        section: len(items)
        for section, items in raw.items()
        if isinstance(items, list)
    }
    return {"counts": counts, "library": raw}


def playlists_document(
    blobs: Iterable[tuple[str, Any]],
    error_log: ErrorLog | None = None,
) -> list[Any]:
    """Concatenate the ``playlists`` lists of every Playlist*.json member."""
    playlists: list[Any] = []
    for name, raw in blobs:
        items = raw.get("playlists") if isinstance(raw, dict) else None
        if not isinstance(items, list):
            error = UnreadableSource(name, "no 'playlists' list")
            logger.warning("Skipping %s", error)
            if error_log is not None:
                error_log.record_unreadable(error)
            continue
        playlists.extend(items)
    return playlists


def wrapped_year(name: str) -> str | None:
    """Year a Wrapped file covers, taken from its name ("Wrapped2023.json")."""
    match = _YEAR_RE.search(name.rsplit("/", 1)[-1])
    return match.group(1) if match else None


def wrapped_document(
    blobs: Iterable[tuple[str, Any]],
    error_log: ErrorLog | None = None,
) -> dict[str, Any]:
    """Merge Wrapped files into one document keyed by year."""
    by_year: dict[str, Any] = {}
    for name, raw in blobs:
        year = wrapped_year(name)
        if year is None:
            error = UnreadableSource(name, "no year in file name")
            logger.warning("Skipping %s", error)
            if error_log is not None:
                error_log.record_unreadable(error)
            continue
        if year in by_year:
            logger.info("Several Wrapped files for %s; keeping %s.", year, name)
        by_year[year] = raw
    return {year: by_year[year] for year in sorted(by_year)}
