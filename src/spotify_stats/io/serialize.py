# spotify_stats/io/serialize.py

"""Convert ledgers and views to and from plain JSON-ready structures."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from spotify_stats.analysis.views import (
    ArtistAggregate,
    MonthlyTop,
    OverallTotals,
    RankedArtist,
    RankedTrack,
)
from spotify_stats.domain.models import (
    OPTIONAL_PLAY_FIELDS,
    Ledger,
    PlayDetail,
    SearchQuery,
    TrackEntry,
)

SEARCH_NOTE = (
    "Best-effort: queries typed incrementally were collapsed to the last one "
    "in each sequence. Some separate searches may have been merged."
)


def detail_to_raw(detail: PlayDetail) -> dict[str, Any]:
    raw: dict[str, Any] = {"ts": detail.ts, "ms_played": detail.ms_played}
    for name in OPTIONAL_PLAY_FIELDS:
        value = getattr(detail, name)
        if value is not None:
            raw[name] = value
    return raw


def detail_from_raw(raw: dict[str, Any]) -> PlayDetail:
    return PlayDetail(
        ts=raw["ts"],
        ms_played=int(raw["ms_played"]),
        **{name: raw[name] for name in OPTIONAL_PLAY_FIELDS if name in raw},
    )


def _entry_body(entry: TrackEntry) -> dict[str, Any]:
    return {
        "ms_played": entry.ms_played,
        "plays": entry.plays,
        "timestamps": [detail_to_raw(d) for d in entry.timestamps],
    }


def track_entry_to_raw(entry: TrackEntry) -> dict[str, Any]:
    """Convert a TrackEntry into a JSON-serialisable dict."""
    return {
        "artist": entry.artist,
        "album": entry.album,
        "track": entry.track,
        **_entry_body(entry),
    }


def track_entry_from_raw(raw: dict[str, Any]) -> TrackEntry:
    """Convert a raw JSON dict into a TrackEntry instance."""
    return TrackEntry(
        artist=raw["artist"],
        album=raw.get("album", ""),
        track=raw["track"],
        ms_played=int(raw["ms_played"]),
        plays=int(raw["plays"]),
        timestamps=[detail_from_raw(d) for d in raw.get("timestamps", [])],
    )


def ledger_to_raw(ledger: Ledger) -> list[dict[str, Any]]:
    """All entries, most listened first (ties keep ledger order)."""
    entries = sorted(ledger.values(), key=lambda e: -e.ms_played)
    return [track_entry_to_raw(e) for e in entries]


def ledger_from_raw(raw: Iterable[dict[str, Any]]) -> Ledger:
    ledger: Ledger = {}
    for item in raw:
        entry = track_entry_from_raw(item)
        ledger[entry.key] = entry
    return ledger


def totals_to_raw(totals: OverallTotals) -> dict[str, Any]:
    return {
        "artists": totals.artists,
        "tracks": totals.tracks,
        "ms_played": totals.ms_played,
        "plays": totals.plays,
    }


def artist_rollup_to_raw(rollup: Iterable[ArtistAggregate]) -> dict[str, Any]:
    """artist -> {ms_played, plays, albums: album -> track -> entry}."""
    return {
        aggregate.artist: {
            "ms_played": aggregate.ms_played,
            "plays": aggregate.plays,
            "albums": {
                album: {track: _entry_body(entry) for track, entry in tracks.items()}
                for album, tracks in aggregate.albums.items()
            },
        }
        for aggregate in rollup
    }


def _ranked_artist_to_raw(item: RankedArtist) -> dict[str, Any]:
    return {"artist": item.artist, "ms_played": item.ms_played, "plays": item.plays}


def _ranked_track_to_raw(item: RankedTrack) -> dict[str, Any]:
    return {
        "artist": item.artist,
        "album": item.album,
        "track": item.track,
        "ms_played": item.ms_played,
        "plays": item.plays,
    }


def monthly_to_raw(monthly: dict[str, MonthlyTop]) -> dict[str, Any]:
    return {
        month: {
            "artists": [_ranked_artist_to_raw(a) for a in top.artists],
            "tracks": [_ranked_track_to_raw(t) for t in top.tracks],
        }
        for month, top in monthly.items()
    }


def yearly_to_raw(yearly: dict[str, list[ArtistAggregate]]) -> dict[str, Any]:
    return {year: artist_rollup_to_raw(rollup) for year, rollup in yearly.items()}


def search_query_to_raw(query: SearchQuery) -> dict[str, Any]:
    raw: dict[str, Any] = {"query": query.query, "timestamp": query.timestamp}
    if query.platform is not None:
        raw["platform"] = query.platform
    if query.interaction_uris:
        raw["interaction_uris"] = query.interaction_uris
    return raw


def search_history_document(queries: Iterable[SearchQuery]) -> dict[str, Any]:
    items = [search_query_to_raw(q) for q in queries]
    return {"note": SEARCH_NOTE, "count": len(items), "queries": items}
