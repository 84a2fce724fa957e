# spotify_stats/pipeline/normalize.py

"""Map raw export records of either history kind onto PlayEvent."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from spotify_stats.domain.models import PlayEvent, SourceKind
from spotify_stats.errors import ErrorLog, MalformedRecord

logger = logging.getLogger(__name__)


# canonical field -> raw key, per source kind
FIELD_NAMES: dict[SourceKind, dict[str, str]] = {
    SourceKind.EXTENDED: {
        "artist": "master_metadata_album_artist_name",
        "album": "master_metadata_album_album_name",
        "track": "master_metadata_track_name",
        "ms_played": "ms_played",
        "timestamp": "ts",
    },
    SourceKind.FULL: {
        "artist": "artistName",
        "track": "trackName",
        "ms_played": "msPlayed",
        "timestamp": "endTime",
    },
}

_OPTIONAL_STRINGS = ("reason_start", "reason_end")
_OPTIONAL_FLAGS = ("shuffle", "skipped", "incognito_mode", "offline")


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _parse_ms(value: Any) -> int:
    """Parse a non-negative integer duration. Raises MalformedRecord."""
    if value is None:
        raise MalformedRecord("missing ms_played")
    # bool is an int subclass; true/false is not a duration
    if isinstance(value, bool):
        raise MalformedRecord("non-numeric ms_played")

    if isinstance(value, int):
        ms = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise MalformedRecord("non-integer ms_played")
        ms = int(value)
    elif isinstance(value, str):
        try:
            ms = int(value.strip())
        except ValueError:
            raise MalformedRecord("non-numeric ms_played") from None
    else:
        raise MalformedRecord("non-numeric ms_played")

    if ms < 0:
        raise MalformedRecord("negative ms_played")
    return ms


def normalize_record(raw: Any, kind: SourceKind) -> PlayEvent:
    """Convert one raw play record into a PlayEvent.

    Raises:
        MalformedRecord: if the record is not an object, lacks a track name
            or timestamp, or carries an unusable ms_played.
    """
    if not isinstance(raw, dict):
        raise MalformedRecord("not an object")

    names = FIELD_NAMES[kind]

    track = _text(raw.get(names["track"]))
    timestamp = _text(raw.get(names["timestamp"]))
    if not track and not timestamp:
        raise MalformedRecord("missing track and timestamp")
    if not track:
        raise MalformedRecord("missing track")
    if not timestamp:
        raise MalformedRecord("missing timestamp")

    ms_played = _parse_ms(raw.get(names["ms_played"]))

    event = PlayEvent(
        artist=_text(raw.get(names["artist"])),
        album=_text(raw.get(names["album"])) if "album" in names else "",
        track=track,
        ms_played=ms_played,
        timestamp=timestamp,
        source_kind=kind,
    )

    for name in _OPTIONAL_STRINGS:
        value = raw.get(name)
        if value is not None:
            setattr(event, name, str(value))
    for name in _OPTIONAL_FLAGS:
        value = raw.get(name)
        if isinstance(value, bool):
            setattr(event, name, value)
    offline_ts = raw.get("offline_timestamp")
    if offline_ts is not None:
        event.offline_timestamp = offline_ts

    return event


def iter_play_events(
    records: Iterable[Any],
    kind: SourceKind,
    error_log: ErrorLog,
) -> Iterator[PlayEvent]:
    """Yield normalized events, counting malformed records in error_log."""
    for raw in records:
        try:
            yield normalize_record(raw, kind)
        except MalformedRecord as exc:
            logger.debug("Skipping malformed %s record: %s", kind.value, exc.reason)
            error_log.record_malformed(kind, exc.reason)
