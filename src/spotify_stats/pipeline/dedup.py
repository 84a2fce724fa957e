# spotify_stats/pipeline/dedup.py

"""Identity used to recognise the same play in both exports."""

from __future__ import annotations

from typing import NamedTuple

from spotify_stats.domain.models import PlayDetail, PlayEvent, TrackEntry


class DedupKey(NamedTuple):
    """(artist, album, track, timestamp) of a single play.

    Fields are compared verbatim. A full-history record and an extended
    record only match when both exports spell all four values identically.
    """

    artist: str
    album: str
    track: str
    timestamp: str


def dedup_key(event: PlayEvent) -> DedupKey:
    return DedupKey(event.artist, event.album, event.track, event.timestamp)


def detail_key(entry: TrackEntry, detail: PlayDetail) -> DedupKey:
    """Key of a play already folded into a ledger entry."""
    return DedupKey(entry.artist, entry.album, entry.track, detail.ts)
