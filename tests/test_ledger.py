"""Tests for ledger building and cross-export merging."""

from __future__ import annotations

from spotify_stats.domain.models import PlayEvent, SourceKind, TrackKey
from spotify_stats.errors import ErrorLog
from spotify_stats.pipeline.dedup import DedupKey, dedup_key
from spotify_stats.pipeline.ledger import (
    MergeStats,
    build_ledger,
    build_source_ledger,
    merge_ledgers,
)


def _event(
    track: str,
    ts: str,
    ms: int = 1000,
    *,
    artist: str = "Artist X",
    album: str = "Album 1",
    kind: SourceKind = SourceKind.EXTENDED,
    **flags: object,
) -> PlayEvent:
    return PlayEvent(
        artist=artist,
        album=album,
        track=track,
        ms_played=ms,
        timestamp=ts,
        source_kind=kind,
        **flags,
    )


def test_dedup_key_is_structured() -> None:
    event = _event("Song A", "2023-01-01T10:00:00Z")
    assert dedup_key(event) == DedupKey("Artist X", "Album 1", "Song A", "2023-01-01T10:00:00Z")
    # no separator, so "a|b" + "c" never equals "a" + "b|c"
    assert DedupKey("a|b", "c", "t", "ts") != DedupKey("a", "b|c", "t", "ts")


def test_accumulation_is_exact() -> None:
    events = [
        _event("Song A", "2023-01-01T10:00:00Z", 1000),
        _event("Song A", "2023-01-02T10:00:00Z", 2000),
        _event("Song A", "2023-01-03T10:00:00Z", 3000),
    ]
    ledger = build_ledger(events)

    entry = ledger[TrackKey("Artist X", "Album 1", "Song A")]
    assert entry.ms_played == 6000
    assert entry.plays == 3
    assert len(entry.timestamps) == 3


def test_fold_order_does_not_change_totals() -> None:
    events = [
        _event("Song A", "2023-01-01T10:00:00Z", 1000),
        _event("Song B", "2023-01-02T10:00:00Z", 2000),
        _event("Song A", "2023-01-03T10:00:00Z", 3000),
    ]
    forward = build_ledger(events)
    backward = build_ledger(reversed(events))

    for key, entry in forward.items():
        assert backward[key].ms_played == entry.ms_played
        assert backward[key].plays == entry.plays


def test_detail_only_carries_present_flags() -> None:
    ledger = build_ledger(
        [_event("Song A", "2023-01-01T10:00:00Z", shuffle=True, reason_end="endplay")]
    )
    detail = ledger[TrackKey("Artist X", "Album 1", "Song A")].timestamps[0]
    assert detail.shuffle is True
    assert detail.reason_end == "endplay"
    assert detail.skipped is None
    assert detail.offline is None


def test_build_source_ledger_skips_malformed() -> None:
    records = [
        {"endTime": f"2023-01-0{i} 10:00", "artistName": "A", "trackName": "T", "msPlayed": 100}
        for i in range(1, 5)
    ]
    records.append({"artistName": "A", "trackName": "T", "msPlayed": 100})
    error_log = ErrorLog()

    ledger = build_source_ledger(records, SourceKind.FULL, error_log)

    assert sum(e.plays for e in ledger.values()) == 4
    assert error_log.malformed_count(SourceKind.FULL) == 1


def test_merge_with_empty_ledger_is_identity() -> None:
    ledger = build_ledger(
        [
            _event("Song A", "2023-01-01T10:00:00Z", 1000, skipped=True),
            _event("Song B", "2023-01-02T10:00:00Z", 2000),
            _event("Song A", "2023-01-03T10:00:00Z", 3000),
        ]
    )

    assert merge_ledgers(ledger, {}) == ledger
    assert merge_ledgers({}, ledger) == ledger
    assert merge_ledgers(ledger, None) == ledger
    assert merge_ledgers(None, ledger) == ledger


def test_merge_does_not_mutate_inputs() -> None:
    primary = build_ledger([_event("Song A", "2023-01-01T10:00:00Z", 1000)])
    secondary = build_ledger([_event("Song A", "2023-01-02T10:00:00Z", 500)])

    merged = merge_ledgers(primary, secondary)

    key = TrackKey("Artist X", "Album 1", "Song A")
    assert merged[key].ms_played == 1500
    assert primary[key].ms_played == 1000
    assert secondary[key].ms_played == 500
    assert merged[key] is not primary[key]


def test_overlapping_play_is_counted_once() -> None:
    shared = "2023-01-01T10:00:00Z"
    extended = build_ledger(
        [
            _event("Song A", shared, 1000),
            _event("Song B", "2023-01-02T10:00:00Z", 2000),
        ]
    )
    full = build_ledger(
        [
            _event("Song A", shared, 1000, kind=SourceKind.FULL),
            _event("Song C", "2023-01-03T10:00:00Z", 4000, kind=SourceKind.FULL),
        ]
    )
    stats = MergeStats()

    merged = merge_ledgers(extended, full, stats)

    assert sum(e.plays for e in merged.values()) == 3
    song_a = merged[TrackKey("Artist X", "Album 1", "Song A")]
    assert [d.ts for d in song_a.timestamps] == [shared]
    assert song_a.ms_played == 1000
    assert stats.primary_plays == 2
    assert stats.secondary_kept == 1
    assert stats.secondary_dropped == 1


def test_extended_history_wins_the_overlap() -> None:
    shared = "2023-01-01T10:00:00Z"
    extended = build_ledger([_event("Song A", shared, 1000, reason_end="trackdone")])
    full = build_ledger([_event("Song A", shared, 999, kind=SourceKind.FULL)])

    merged = merge_ledgers(extended, full)
    detail = merged[TrackKey("Artist X", "Album 1", "Song A")].timestamps[0]
    assert detail.ms_played == 1000
    assert detail.reason_end == "trackdone"

    # swapping roles swaps the winner: the merge is deliberately asymmetric
    swapped = merge_ledgers(full, extended)
    assert swapped[TrackKey("Artist X", "Album 1", "Song A")].timestamps[0].ms_played == 999


def test_single_source_keeps_its_own_repeats() -> None:
    shared = "2023-01-01T10:00:00Z"
    full = build_ledger(
        [
            _event("Song A", shared, 1000, kind=SourceKind.FULL),
            _event("Song A", shared, 1000, kind=SourceKind.FULL),
        ]
    )

    merged = merge_ledgers(None, full)
    assert merged[TrackKey("Artist X", "Album 1", "Song A")].plays == 2


def test_merge_accumulates_distinct_plays() -> None:
    extended = build_ledger([_event("Song A", "2023-01-01T10:00:00Z", 1000)])
    full = build_ledger(
        [
            _event("Song A", "2023-02-01T10:00:00Z", 2000, kind=SourceKind.FULL),
            _event("Song A", "2023-03-01T10:00:00Z", 3000, kind=SourceKind.FULL),
        ]
    )

    merged = merge_ledgers(extended, full)
    entry = merged[TrackKey("Artist X", "Album 1", "Song A")]
    assert entry.ms_played == 6000
    assert entry.plays == 3
    assert entry.plays == len(entry.timestamps)
