# spotify_stats/pipeline/run.py

"""Run the whole pipeline over one or two opened exports."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from spotify_stats.analysis.account import (
    library_document,
    playlists_document,
    wrapped_document,
)
from spotify_stats.analysis.search_history import (
    CONTINUATION_TESTS,
    collapse_search_log,
    iter_search_queries,
)
from spotify_stats.analysis.views import (
    artist_rollup,
    monthly_top,
    overall_totals,
    partition_by_period,
    yearly_breakdown,
)
from spotify_stats.config import Settings
from spotify_stats.domain.models import Ledger, SearchQuery, SourceKind
from spotify_stats.errors import ErrorLog, UnreadableSource
from spotify_stats.io.exports import ExportSource, MemberKind, resolve_sources
from spotify_stats.io.serialize import (
    artist_rollup_to_raw,
    ledger_to_raw,
    monthly_to_raw,
    search_history_document,
    totals_to_raw,
    yearly_to_raw,
)
from spotify_stats.pipeline.ledger import MergeStats, build_source_ledger, merge_ledgers

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PipelineResult:
    """Every output document of a run, ready for JSON serialization."""

    ledger: Ledger
    music_stats: dict[str, Any]
    library: dict[str, Any]
    playlists: list[Any]
    search_history: dict[str, Any]
    wrapped: dict[str, Any]
    error_log: ErrorLog = field(default_factory=ErrorLog)
    merge_stats: MergeStats = field(default_factory=MergeStats)


def run_pipeline(
    exports: Sequence[ExportSource],
    settings: Settings | None = None,
) -> PipelineResult:
    """Build the merged ledger, all views and the account documents.

    Raises:
        InvalidInputCombination: before any processing, if the exports do
            not form a supported combination.
    """
    settings = settings or Settings()
    sources = resolve_sources(exports)
    error_log = ErrorLog()

    ledgers: dict[SourceKind, Ledger] = {}
    for kind, export in sources.items():
        logger.info("Building %s-history ledger from %s.", kind.value, export.path)
        ledgers[kind] = build_source_ledger(
            export.iter_play_records(kind, error_log),
            kind,
            error_log,
        )

    merge_stats = MergeStats()
    ledger = merge_ledgers(
        ledgers.get(SourceKind.EXTENDED),
        ledgers.get(SourceKind.FULL),
        merge_stats,
    )
    error_log.duplicates_dropped = merge_stats.secondary_dropped

    # both partitions skip the same plays; warn and count once
    months = partition_by_period(ledger, "month", log_unparsed=False)
    years = partition_by_period(ledger, "year")
    error_log.unparsed_timestamps = years.unparsed

    music_stats = {
        "totals": totals_to_raw(overall_totals(ledger)),
        "artists": artist_rollup_to_raw(artist_rollup(ledger)),
        "monthly": monthly_to_raw(monthly_top(ledger, settings.top_n, months)),
        "yearly": yearly_to_raw(yearly_breakdown(ledger, years)),
        "tracks": ledger_to_raw(ledger),
    }

    library: dict[str, Any] = {}
    playlists: list[Any] = []
    wrapped: dict[str, Any] = {}
    queries: list[SearchQuery] = []
    for export in exports:
        for _, raw in export.iter_documents(MemberKind.LIBRARY, error_log):
            library = library_document(raw)
        playlists.extend(
            playlists_document(export.iter_documents(MemberKind.PLAYLISTS, error_log), error_log)
        )
        wrapped.update(
            wrapped_document(export.iter_documents(MemberKind.WRAPPED, error_log), error_log)
        )
        for name, raw in export.iter_documents(MemberKind.SEARCH_QUERIES, error_log):
            if not isinstance(raw, list):
                error = UnreadableSource(name, "expected a list of search queries")
                logger.warning("Skipping %s", error)
                error_log.record_unreadable(error)
                continue
            queries.extend(iter_search_queries(raw, error_log))

    collapsed = collapse_search_log(queries, CONTINUATION_TESTS[settings.search_mode])

    totals = music_stats["totals"]
    logger.info(
        "Merged ledger: %s artists, %s tracks, %s plays.",
        totals["artists"],
        totals["tracks"],
        totals["plays"],
    )

    return PipelineResult(
        ledger=ledger,
        music_stats=music_stats,
        library=library,
        playlists=playlists,
        search_history=search_history_document(collapsed),
        wrapped={year: wrapped[year] for year in sorted(wrapped)},
        error_log=error_log,
        merge_stats=merge_stats,
    )
