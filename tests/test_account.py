"""Tests for the library, playlist and Wrapped passthroughs."""

from __future__ import annotations

from spotify_stats.analysis.account import (
    library_document,
    playlists_document,
    wrapped_document,
    wrapped_year,
)
from spotify_stats.errors import ErrorLog


def test_library_document_counts_sections() -> None:
    raw = {
        "tracks": [{"artist": "A", "track": "t"}, {"artist": "B", "track": "u"}],
        "albums": [],
        "bannedTracks": [{"artist": "C", "track": "v"}],
        "other": {"not": "a list"},
    }
    document = library_document(raw)
    assert document["counts"] == {"tracks": 2, "albums": 0, "bannedTracks": 1}
    assert document["library"] is raw


def test_playlists_are_concatenated_in_order() -> None:
    error_log = ErrorLog()
    blobs = [
        ("Playlist1.json", {"playlists": [{"name": "One"}, {"name": "Two"}]}),
        ("Playlist2.json", {"playlists": [{"name": "Three"}]}),
        ("Playlist3.json", {"unexpected": True}),
    ]
    playlists = playlists_document(blobs, error_log)

    assert [p["name"] for p in playlists] == ["One", "Two", "Three"]
    assert [e.name for e in error_log.unreadable] == ["Playlist3.json"]


def test_wrapped_year_from_file_name() -> None:
    assert wrapped_year("Wrapped2023.json") == "2023"
    assert wrapped_year("Spotify Account Data/Wrapped2022.json") == "2022"
    assert wrapped_year("Wrapped.json") is None


def test_wrapped_document_keyed_by_year() -> None:
    error_log = ErrorLog()
    blobs = [
        ("Wrapped2023.json", {"topTracks": [1]}),
        ("Wrapped2021.json", {"topTracks": [2]}),
        ("Wrapped.json", {"topTracks": [3]}),
    ]
    document = wrapped_document(blobs, error_log)

    assert list(document) == ["2021", "2023"]
    assert document["2023"] == {"topTracks": [1]}
    assert len(error_log.unreadable) == 1
