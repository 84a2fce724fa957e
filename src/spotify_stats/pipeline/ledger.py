# spotify_stats/pipeline/ledger.py

"""Fold play events into per-track ledgers and merge ledgers across exports."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from spotify_stats.domain.models import (
    Ledger,
    PlayDetail,
    PlayEvent,
    SourceKind,
    TrackEntry,
    TrackKey,
)
from spotify_stats.errors import ErrorLog
from spotify_stats.pipeline.dedup import DedupKey, detail_key
from spotify_stats.pipeline.normalize import iter_play_events

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


def add_event(ledger: Ledger, event: PlayEvent) -> TrackEntry:
    """Fold a single event into the ledger and return its entry."""
    key = TrackKey(event.artist, event.album, event.track)
    entry = ledger.get(key)
    if entry is None:
        entry = TrackEntry(artist=event.artist, album=event.album, track=event.track)
        ledger[key] = entry
    entry.add_play(PlayDetail.from_event(event))
    return entry


def build_ledger(events: Iterable[PlayEvent]) -> Ledger:
    """Fold normalized events into a fresh ledger."""
    ledger: Ledger = {}
    for event in events:
        add_event(ledger, event)
    return ledger


def build_source_ledger(
    records: Iterable[Any],
    kind: SourceKind,
    error_log: ErrorLog,
) -> Ledger:
    """Normalize and fold the raw records of one export.

    Malformed records are counted in error_log and skipped.
    """
    before = error_log.malformed_count(kind)
    ledger = build_ledger(iter_play_events(records, kind, error_log))
    skipped = error_log.malformed_count(kind) - before

    logger.info(
        "Built %s ledger: %s tracks, %s plays (%s malformed records skipped).",
        kind.value,
        len(ledger),
        sum(entry.plays for entry in ledger.values()),
        skipped,
    )
    return ledger


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class MergeStats:
    primary_plays: int = 0
    secondary_kept: int = 0
    secondary_dropped: int = 0


def _copy_entry(entry: TrackEntry) -> TrackEntry:
    return TrackEntry(
        artist=entry.artist,
        album=entry.album,
        track=entry.track,
        ms_played=entry.ms_played,
        plays=entry.plays,
        timestamps=[replace(detail) for detail in entry.timestamps],
    )


def merge_ledgers(
    primary: Ledger | None,
    secondary: Ledger | None,
    stats: MergeStats | None = None,
) -> Ledger:
    """Combine the extended-history ledger with the full-history ledger.

    Every play of ``primary`` is kept. A play of ``secondary`` is dropped when
    ``primary`` already holds a play with the same dedup key, so overlapping
    history is only counted once. All other plays accumulate additively.
    Plays within ``secondary`` are never deduplicated against each other.

    The inputs are left untouched; the result owns copies of every entry.
    """
    stats = stats if stats is not None else MergeStats()
    merged: Ledger = {}
    seen: set[DedupKey] = set()

    for key, entry in (primary or {}).items():
        merged[key] = _copy_entry(entry)
        stats.primary_plays += entry.plays
        for detail in entry.timestamps:
            seen.add(detail_key(entry, detail))

    for key, entry in (secondary or {}).items():
        for detail in entry.timestamps:
            if detail_key(entry, detail) in seen:
                stats.secondary_dropped += 1
                continue
            target = merged.get(key)
            if target is None:
                target = TrackEntry(artist=entry.artist, album=entry.album, track=entry.track)
                merged[key] = target
            target.add_play(replace(detail))
            stats.secondary_kept += 1

    if stats.secondary_dropped:
        logger.info(
            "Dropped %s full-history plays already present in the extended history.",
            stats.secondary_dropped,
        )
    return merged
