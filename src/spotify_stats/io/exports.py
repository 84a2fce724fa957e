# spotify_stats/io/exports.py

"""Read export directories and zip archives into raw records and documents."""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterator, Sequence
from enum import Enum
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Any

from spotify_stats.domain.models import SourceKind
from spotify_stats.errors import (
    EXPECTED_COMBINATION,
    ErrorLog,
    InvalidInputCombination,
    UnreadableSource,
)
from spotify_stats.io.json_files import parse_json_document

logger = logging.getLogger(__name__)


class MemberKind(str, Enum):
    EXTENDED_HISTORY = "extended_history"
    FULL_HISTORY = "full_history"
    LIBRARY = "library"
    PLAYLISTS = "playlists"
    SEARCH_QUERIES = "search_queries"
    WRAPPED = "wrapped"


# Matched against the base name of every *.json member, first match wins.
MEMBER_PATTERNS: tuple[tuple[str, MemberKind], ...] = (
    ("Streaming_History_Audio_*.json", MemberKind.EXTENDED_HISTORY),
    ("endsong_*.json", MemberKind.EXTENDED_HISTORY),
    ("StreamingHistory*.json", MemberKind.FULL_HISTORY),
    ("YourLibrary.json", MemberKind.LIBRARY),
    ("Playlist*.json", MemberKind.PLAYLISTS),
    ("SearchQueries.json", MemberKind.SEARCH_QUERIES),
    ("Wrapped*.json", MemberKind.WRAPPED),
)

_HISTORY_KINDS: dict[MemberKind, SourceKind] = {
    MemberKind.EXTENDED_HISTORY: SourceKind.EXTENDED,
    MemberKind.FULL_HISTORY: SourceKind.FULL,
}


def classify_member(name: str) -> MemberKind | None:
    base = PurePosixPath(name).name
    for pattern, kind in MEMBER_PATTERNS:
        if fnmatchcase(base, pattern):
            return kind
    return None


class ExportSource:
    """One export, either an extracted directory or a .zip archive."""

    def __init__(self, path: Path, member_names: Sequence[str]) -> None:
        self.path = path
        self.members: dict[MemberKind, list[str]] = {}
        for name in sorted(member_names):
            kind = classify_member(name)
            if kind is not None:
                self.members.setdefault(kind, []).append(name)

    @property
    def is_zip(self) -> bool:
        return self.path.is_file()

    def history_kinds(self) -> set[SourceKind]:
        return {
            source
            for member, source in _HISTORY_KINDS.items()
            if self.members.get(member)
        }

    def read_member(self, name: str) -> Any:
        """Load one member as a JSON value.

        Raises:
            UnreadableSource: if the member cannot be read or decoded.
        """
        label = f"{self.path.name}/{name}"
        try:
            if self.is_zip:
                with zipfile.ZipFile(self.path) as archive:
                    data = archive.read(name)
            else:
                data = (self.path / name).read_bytes()
        except (OSError, KeyError, zipfile.BadZipFile) as exc:
            raise UnreadableSource(label, str(exc)) from exc
        return parse_json_document(data, label)

    def iter_documents(
        self,
        kind: MemberKind,
        error_log: ErrorLog,
    ) -> Iterator[tuple[str, Any]]:
        """Yield (name, value) for every readable member of the given kind."""
        for name in self.members.get(kind, []):
            try:
                yield name, self.read_member(name)
            except UnreadableSource as exc:
                logger.warning("Skipping unreadable member %s", exc)
                error_log.record_unreadable(exc)

    def iter_play_records(
        self,
        source: SourceKind,
        error_log: ErrorLog,
    ) -> Iterator[Any]:
        """Lazily yield raw play records, one member file at a time."""
        member_kind = next(m for m, s in _HISTORY_KINDS.items() if s is source)
        for name, value in self.iter_documents(member_kind, error_log):
            if not isinstance(value, list):
                error = UnreadableSource(
                    f"{self.path.name}/{name}", "expected a list of play records"
                )
                logger.warning("Skipping unreadable member %s", error)
                error_log.record_unreadable(error)
                continue
            logger.info("Reading %s play records from %s.", len(value), name)
            yield from value


def open_export(path: Path | str) -> ExportSource:
    """Open an extracted export directory or a .zip archive.

    Raises:
        InvalidInputCombination: if the path is neither.
    """
    path = Path(path)
    if path.is_dir():
        names = [p.relative_to(path).as_posix() for p in path.rglob("*.json") if p.is_file()]
    elif path.is_file() and zipfile.is_zipfile(path):
        with zipfile.ZipFile(path) as archive:
            names = [n for n in archive.namelist() if n.endswith(".json")]
    else:
        msg = f"{path} is neither a directory nor a zip archive."
        raise InvalidInputCombination(msg)

    export = ExportSource(path, names)
    logger.info(
        "Opened %s: %s",
        path,
        ", ".join(f"{len(v)} {k.value}" for k, v in export.members.items()) or "no known files",
    )
    return export


def resolve_sources(exports: Sequence[ExportSource]) -> dict[SourceKind, ExportSource]:
    """Assign each play-history kind to the export that provides it.

    Raises:
        InvalidInputCombination: for zero or more than two exports, an export
            without play history, or a history kind provided twice.
    """
    if not 1 <= len(exports) <= 2:
        msg = f"Got {len(exports)} exports; {EXPECTED_COMBINATION}."
        raise InvalidInputCombination(msg)

    resolved: dict[SourceKind, ExportSource] = {}
    for export in exports:
        kinds = export.history_kinds()
        if not kinds:
            msg = (
                f"{export.path} contains no recognised streaming history; "
                f"{EXPECTED_COMBINATION}."
            )
            raise InvalidInputCombination(msg)
        for kind in sorted(kinds, key=lambda k: k.value):
            if kind in resolved:
                msg = (
                    f"{resolved[kind].path} and {export.path} are both "
                    f"{kind.value}-history exports; {EXPECTED_COMBINATION}."
                )
                raise InvalidInputCombination(msg)
            resolved[kind] = export
    return resolved
