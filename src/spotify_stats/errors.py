# spotify_stats/errors.py

"""Exceptions and the run-wide error log."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from spotify_stats.domain.models import SourceKind


class SpotifyStatsError(Exception):
    """Base class for all errors raised by this package."""


class MalformedRecord(SpotifyStatsError):
    """A play record lacks a required field or has an unusable value."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class UnreadableSource(SpotifyStatsError):
    """An export member cannot be parsed at all."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"{name}: {reason}")
        self.name = name
        self.reason = reason


class InvalidInputCombination(SpotifyStatsError):
    """The given exports cannot be processed together."""


EXPECTED_COMBINATION = (
    "expected one extended-history export, one full-history export, "
    "or one of each"
)


@dataclass(slots=True)
class ErrorLog:
    """Everything that went wrong during a run without aborting it."""

    malformed: Counter[tuple[SourceKind, str]] = field(default_factory=Counter)
    unreadable: list[UnreadableSource] = field(default_factory=list)
    unparsed_timestamps: int = 0
    duplicates_dropped: int = 0
    malformed_search_queries: Counter[str] = field(default_factory=Counter)

    def record_malformed(self, kind: SourceKind, reason: str) -> None:
        self.malformed[(kind, reason)] += 1

    def record_unreadable(self, error: UnreadableSource) -> None:
        self.unreadable.append(error)

    def record_malformed_search(self, reason: str) -> None:
        self.malformed_search_queries[reason] += 1

    def malformed_count(self, kind: SourceKind | None = None) -> int:
        """Total malformed records, optionally for a single source kind."""
        return sum(
            count
            for (source, _), count in self.malformed.items()
            if kind is None or source is kind
        )

    def entries(self) -> list[dict[str, Any]]:
        """Flatten the log into JSON-serialisable entries."""
        result: list[dict[str, Any]] = []
        for (kind, reason), count in self.malformed.items():
            result.append(
                {
                    "type": "malformed_record",
                    "source": kind.value,
                    "reason": reason,
                    "count": count,
                }
            )
        for error in self.unreadable:
            result.append(
                {
                    "type": "unreadable_source",
                    "name": error.name,
                    "reason": error.reason,
                }
            )
        for reason, count in self.malformed_search_queries.items():
            result.append(
                {
                    "type": "malformed_search_query",
                    "reason": reason,
                    "count": count,
                }
            )
        if self.unparsed_timestamps:
            result.append(
                {
                    "type": "unparsed_timestamp",
                    "count": self.unparsed_timestamps,
                }
            )
        if self.duplicates_dropped:
            result.append(
                {
                    "type": "duplicate_play",
                    "count": self.duplicates_dropped,
                }
            )
        return result
