# spotify_stats/analysis/search_history.py

"""Reduce the raw search log to the searches the user actually finished typing.

The export logs a query for (nearly) every keystroke, so "spo", "spot",
"spotify" show up as three searches. Collapsing keeps only the last query of
each run of continued typing. This is a best-effort heuristic; it can merge
two genuinely separate searches or keep an abandoned one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from spotify_stats.domain.models import SearchQuery
from spotify_stats.errors import ErrorLog

logger = logging.getLogger(__name__)

ContinuationTest = Callable[[str, str], bool]


def _fold(text: str) -> str:
    return text.strip().casefold()


def is_prefix_extension(previous: str, current: str) -> bool:
    """True if ``current`` strictly extends ``previous`` (case-insensitive)."""
    prev, curr = _fold(previous), _fold(current)
    return len(curr) > len(prev) and curr.startswith(prev)


def is_prefix_related(previous: str, current: str) -> bool:
    """Like is_prefix_extension, but also accepts a shortened query.

    Deleting characters ("spotifz" -> "spotif") is treated as still typing.
    """
    prev, curr = _fold(previous), _fold(current)
    if prev == curr:
        return False
    return curr.startswith(prev) or prev.startswith(curr)


CONTINUATION_TESTS: dict[str, ContinuationTest] = {
    "prefix": is_prefix_extension,
    "related": is_prefix_related,
}


def search_query_from_raw(raw: dict[str, Any]) -> SearchQuery | None:
    """Convert a SearchQueries.json entry. Returns None without a query or time."""
    query = raw.get("searchQuery")
    timestamp = raw.get("searchTime")
    if not isinstance(query, str) or not query.strip() or not timestamp:
        return None
    uris = raw.get("searchInteractionURIs") or []
    return SearchQuery(
        query=query,
        timestamp=str(timestamp),
        platform=raw.get("platform"),
        interaction_uris=[str(uri) for uri in uris] if isinstance(uris, list) else [],
    )


def iter_search_queries(
    items: Iterable[Any],
    error_log: ErrorLog,
) -> Iterator[SearchQuery]:
    """Yield the usable entries of a raw search log, counting the rest."""
    for item in items:
        if not isinstance(item, dict):
            reason = "not an object"
        else:
            query = search_query_from_raw(item)
            if query is not None:
                yield query
                continue
            raw_query = item.get("searchQuery")
            if not isinstance(raw_query, str) or not raw_query.strip():
                reason = "missing query"
            else:
                reason = "missing timestamp"
        logger.warning("Skipping search log entry: %s", reason)
        error_log.record_malformed_search(reason)


def collapse_search_log(
    queries: Iterable[SearchQuery],
    is_continuation: ContinuationTest = is_prefix_extension,
) -> list[SearchQuery]:
    """Keep only the final query of each incremental-typing sequence.

    Queries are ordered by timestamp first (stable for equal timestamps).
    Each query is compared with the current candidate: a continuation
    replaces the candidate, anything else emits the candidate and starts a
    new one.
    """
    ordered = sorted(
        (q for q in queries if q.query.strip()),
        key=lambda q: q.timestamp,
    )

    collapsed: list[SearchQuery] = []
    candidate: SearchQuery | None = None
    for query in ordered:
        if candidate is not None and is_continuation(candidate.query, query.query):
            candidate = query
            continue
        if candidate is not None:
            collapsed.append(candidate)
        candidate = query
    if candidate is not None:
        collapsed.append(candidate)

    logger.info(
        "Collapsed %s search queries into %s.",
        len(ordered),
        len(collapsed),
    )
    return collapsed
