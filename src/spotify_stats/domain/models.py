# spotify_stats/domain/models.py

"""Core domain models for play events, per-track ledgers and search logs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple


class SourceKind(str, Enum):
    """Which export a play record came from."""

    FULL = "full"
    EXTENDED = "extended"


# Optional per-play fields, in output order.
OPTIONAL_PLAY_FIELDS: tuple[str, ...] = (
    "reason_start",
    "reason_end",
    "shuffle",
    "skipped",
    "incognito_mode",
    "offline",
    "offline_timestamp",
)


@dataclass(slots=True)
class PlayEvent:
    """A single playback occurrence, normalized from either export."""

    artist: str
    album: str
    track: str
    ms_played: int
    timestamp: str
    source_kind: SourceKind

    reason_start: str | None = None
    reason_end: str | None = None
    shuffle: bool | None = None
    skipped: bool | None = None
    incognito_mode: bool | None = None
    offline: bool | None = None
    offline_timestamp: str | int | None = None


@dataclass(slots=True)
class PlayDetail:
    """Per-play detail kept on a TrackEntry.

    Optional fields stay None when the source record did not carry them and
    are left out of the serialized form.
    """

    ts: str
    ms_played: int

    reason_start: str | None = None
    reason_end: str | None = None
    shuffle: bool | None = None
    skipped: bool | None = None
    incognito_mode: bool | None = None
    offline: bool | None = None
    offline_timestamp: str | int | None = None

    @classmethod
    def from_event(cls, event: PlayEvent) -> PlayDetail:
        return cls(
            ts=event.timestamp,
            ms_played=event.ms_played,
            reason_start=event.reason_start,
            reason_end=event.reason_end,
            shuffle=event.shuffle,
            skipped=event.skipped,
            incognito_mode=event.incognito_mode,
            offline=event.offline,
            offline_timestamp=event.offline_timestamp,
        )


class TrackKey(NamedTuple):
    """Identity of a track inside a ledger."""

    artist: str
    album: str
    track: str


@dataclass(slots=True)
class TrackEntry:
    """Aggregate of every play of one (artist, album, track)."""

    artist: str
    album: str
    track: str
    ms_played: int = 0
    plays: int = 0
    timestamps: list[PlayDetail] = field(default_factory=list)

    @property
    def key(self) -> TrackKey:
        return TrackKey(self.artist, self.album, self.track)

    def add_play(self, detail: PlayDetail) -> None:
        """Account for one more play, keeping plays == len(timestamps)."""
        self.ms_played += detail.ms_played
        self.plays += 1
        self.timestamps.append(detail)


# Ledgers are plain dicts; iteration order is first-seen order.
Ledger = dict[TrackKey, TrackEntry]


@dataclass(slots=True)
class SearchQuery:
    """A single entry of the raw search log."""

    query: str
    timestamp: str
    platform: str | None = None
    interaction_uris: list[str] = field(default_factory=list)
