"""Tests for turning raw export records into PlayEvents."""

from __future__ import annotations

import pytest

from spotify_stats.domain.models import SourceKind
from spotify_stats.errors import ErrorLog, MalformedRecord
from spotify_stats.pipeline.normalize import iter_play_events, normalize_record


def _extended(**overrides: object) -> dict[str, object]:
    record: dict[str, object] = {
        "ts": "2023-01-01T10:00:00Z",
        "master_metadata_track_name": "Song A",
        "master_metadata_album_artist_name": "Artist X",
        "master_metadata_album_album_name": "Album 1",
        "ms_played": 180000,
    }
    record.update(overrides)
    return record


def test_extended_record_fields() -> None:
    event = normalize_record(
        _extended(reason_start="trackdone", reason_end="fwdbtn", shuffle=True, skipped=False),
        SourceKind.EXTENDED,
    )
    assert event.artist == "Artist X"
    assert event.album == "Album 1"
    assert event.track == "Song A"
    assert event.ms_played == 180000
    assert event.timestamp == "2023-01-01T10:00:00Z"
    assert event.source_kind is SourceKind.EXTENDED
    assert event.reason_start == "trackdone"
    assert event.reason_end == "fwdbtn"
    assert event.shuffle is True
    assert event.skipped is False
    assert event.offline is None
    assert event.incognito_mode is None


def test_full_record_fields() -> None:
    raw = {
        "endTime": "2023-01-01 10:00",
        "artistName": " Artist X ",
        "trackName": "Song A",
        "msPlayed": 5000,
    }
    event = normalize_record(raw, SourceKind.FULL)
    assert event.artist == "Artist X"
    assert event.album == ""
    assert event.track == "Song A"
    assert event.ms_played == 5000
    assert event.timestamp == "2023-01-01 10:00"
    assert event.source_kind is SourceKind.FULL


def test_full_record_ignores_extended_names() -> None:
    with pytest.raises(MalformedRecord):
        normalize_record(_extended(), SourceKind.FULL)


@pytest.mark.parametrize(
    ("overrides", "reason"),
    [
        ({"ts": None}, "missing timestamp"),
        ({"master_metadata_track_name": None}, "missing track"),
        ({"ts": "", "master_metadata_track_name": ""}, "missing track and timestamp"),
        ({"ms_played": None}, "missing ms_played"),
        ({"ms_played": "abc"}, "non-numeric ms_played"),
        ({"ms_played": True}, "non-numeric ms_played"),
        ({"ms_played": 12.5}, "non-integer ms_played"),
        ({"ms_played": -1}, "negative ms_played"),
    ],
)
def test_malformed_records(overrides: dict[str, object], reason: str) -> None:
    with pytest.raises(MalformedRecord) as info:
        normalize_record(_extended(**overrides), SourceKind.EXTENDED)
    assert info.value.reason == reason


def test_numeric_strings_and_integral_floats_are_accepted() -> None:
    assert normalize_record(_extended(ms_played="4200"), SourceKind.EXTENDED).ms_played == 4200
    assert normalize_record(_extended(ms_played=4200.0), SourceKind.EXTENDED).ms_played == 4200


def test_non_object_record_is_malformed() -> None:
    with pytest.raises(MalformedRecord):
        normalize_record(["not", "a", "record"], SourceKind.EXTENDED)


def test_iter_play_events_counts_malformed() -> None:
    records = [
        _extended(ts=f"2023-01-0{i}T10:00:00Z") for i in range(1, 5)
    ] + [_extended(ts=None)]
    error_log = ErrorLog()

    events = list(iter_play_events(records, SourceKind.EXTENDED, error_log))

    assert len(events) == 4
    assert error_log.malformed_count() == 1
    assert error_log.malformed_count(SourceKind.EXTENDED) == 1
    assert error_log.malformed_count(SourceKind.FULL) == 0
    assert error_log.malformed[(SourceKind.EXTENDED, "missing timestamp")] == 1
