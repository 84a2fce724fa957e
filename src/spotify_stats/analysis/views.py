# spotify_stats/analysis/views.py

"""Aggregate views over a merged ledger: totals, artists, months and years."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from spotify_stats.domain.models import Ledger, TrackEntry

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 10

# Extended history uses "2023-01-01T10:00:00Z", full history "2023-01-01 10:00".
TIMESTAMP_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
)

Granularity = Literal["month", "year"]

_PERIOD_FORMATS: dict[str, str] = {"month": "%Y-%m", "year": "%Y"}


@dataclass(slots=True)
class OverallTotals:
    artists: int = 0
    tracks: int = 0
    ms_played: int = 0
    plays: int = 0


@dataclass(slots=True)
class ArtistAggregate:
    """All plays of one artist, nested by album and then track."""

    artist: str
    ms_played: int = 0
    plays: int = 0
    albums: dict[str, dict[str, TrackEntry]] = field(default_factory=dict)


@dataclass(slots=True)
class RankedArtist:
    artist: str
    ms_played: int = 0
    plays: int = 0


@dataclass(slots=True)
class RankedTrack:
    artist: str
    album: str
    track: str
    ms_played: int = 0
    plays: int = 0


@dataclass(slots=True)
class MonthlyTop:
    artists: list[RankedArtist] = field(default_factory=list)
    tracks: list[RankedTrack] = field(default_factory=list)


@dataclass(slots=True)
class PeriodPartition:
    """Per-period sub-ledgers plus the number of plays that fit no period."""

    ledgers: dict[str, Ledger] = field(default_factory=dict)
    unparsed: int = 0


def parse_timestamp(value: str) -> datetime | None:
    """Parse an export timestamp, or return None if no known format fits."""
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


# ---------------------------------------------------------------------------
# Overall and per-artist views
# ---------------------------------------------------------------------------


def overall_totals(ledger: Ledger) -> OverallTotals:
    totals = OverallTotals(tracks=len(ledger))
    artists: set[str] = set()
    for entry in ledger.values():
        artists.add(entry.artist)
        totals.ms_played += entry.ms_played
        totals.plays += entry.plays
    totals.artists = len(artists)
    return totals


def artist_rollup(ledger: Ledger) -> list[ArtistAggregate]:
    """Group ledger entries by artist, most listened first.

    Artists with equal ms_played keep the order in which they were first seen.
    """
    by_artist: dict[str, ArtistAggregate] = {}
    for entry in ledger.values():
        aggregate = by_artist.get(entry.artist)
        if aggregate is None:
            aggregate = ArtistAggregate(artist=entry.artist)
            by_artist[entry.artist] = aggregate
        aggregate.ms_played += entry.ms_played
        aggregate.plays += entry.plays
        aggregate.albums.setdefault(entry.album, {})[entry.track] = entry

    return sorted(by_artist.values(), key=lambda a: -a.ms_played)


# ---------------------------------------------------------------------------
# Period views
# ---------------------------------------------------------------------------


def partition_by_period(
    ledger: Ledger,
    granularity: Granularity,
    *,
    log_unparsed: bool = True,
) -> PeriodPartition:
    """Split every play of the ledger into per-month or per-year sub-ledgers.

    Plays whose timestamp cannot be parsed are left out of every period and
    counted in ``PeriodPartition.unparsed``. A single WARNING reports them
    unless ``log_unparsed`` is False. Periods come out in
    chronological order.
    """
    period_format = _PERIOD_FORMATS[granularity]
    ledgers: dict[str, Ledger] = {}
    unparsed = 0

    for key, entry in ledger.items():
        for detail in entry.timestamps:
            moment = parse_timestamp(detail.ts)
            if moment is None:
                unparsed += 1
                logger.debug("Unparsable timestamp %r for %s", detail.ts, key)
                continue
            period = ledgers.setdefault(moment.strftime(period_format), {})
            target = period.get(key)
            if target is None:
                target = TrackEntry(artist=entry.artist, album=entry.album, track=entry.track)
                period[key] = target
            target.add_play(detail)

    if unparsed and log_unparsed:
        logger.warning(
            "%s plays have unparsable timestamps and are excluded from the %sly views.",
            unparsed,
            granularity,
        )
    return PeriodPartition(
        ledgers={period: ledgers[period] for period in sorted(ledgers)},
        unparsed=unparsed,
    )


def top_artists(ledger: Ledger, top_n: int = DEFAULT_TOP_N) -> list[RankedArtist]:
    """Artists by ms_played, highest first.

    Ties keep ledger key order. In a merged ledger every extended-history
    track comes before tracks only the full history knows, so this is not
    the chronological order of first play within a period.
    """
    ranked: dict[str, RankedArtist] = {}
    for entry in ledger.values():
        item = ranked.setdefault(entry.artist, RankedArtist(artist=entry.artist))
        item.ms_played += entry.ms_played
        item.plays += entry.plays
    return sorted(ranked.values(), key=lambda r: -r.ms_played)[:top_n]


def top_tracks(ledger: Ledger, top_n: int = DEFAULT_TOP_N) -> list[RankedTrack]:
    """Tracks by ms_played, highest first. Ties follow ledger key order as in top_artists."""
    ranked = [
        RankedTrack(
            artist=entry.artist,
            album=entry.album,
            track=entry.track,
            ms_played=entry.ms_played,
            plays=entry.plays,
        )
        for entry in ledger.values()
    ]
    return sorted(ranked, key=lambda r: -r.ms_played)[:top_n]


def monthly_top(
    ledger: Ledger,
    top_n: int = DEFAULT_TOP_N,
    partition: PeriodPartition | None = None,
) -> dict[str, MonthlyTop]:
    """Top artists and tracks by ms_played for each "YYYY-MM".

    Pass an existing monthly ``partition`` to avoid splitting the ledger again.
    """
    if top_n < 1:
        msg = "top_n must be >= 1."
        raise ValueError(msg)

    if partition is None:
        partition = partition_by_period(ledger, "month")
    return {
        month: MonthlyTop(
            artists=top_artists(sub_ledger, top_n),
            tracks=top_tracks(sub_ledger, top_n),
        )
        for month, sub_ledger in partition.ledgers.items()
    }


def yearly_breakdown(
    ledger: Ledger,
    partition: PeriodPartition | None = None,
) -> dict[str, list[ArtistAggregate]]:
    """Complete artist rollup for each "YYYY", including every play."""
    if partition is None:
        partition = partition_by_period(ledger, "year")
    return {
        year: artist_rollup(sub_ledger)
        for year, sub_ledger in partition.ledgers.items()
    }
