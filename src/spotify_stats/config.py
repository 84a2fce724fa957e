# spotify_stats/config.py

"""Shared configuration and environment setup."""

from __future__ import annotations

from dataclasses import dataclass
from os import getenv
from pathlib import Path

from dotenv import load_dotenv

from spotify_stats.analysis.search_history import CONTINUATION_TESTS
from spotify_stats.analysis.views import DEFAULT_TOP_N

load_dotenv(override=True)

DEFAULT_OUTPUT_DIR = "output"
DEFAULT_SEARCH_MODE = "prefix"


def get_project_root() -> Path:
    """Return the project root directory.

    Prefers SPOTIFY_STATS_PROJECT_ROOT env var. Falls back to current working
    directory.
    """
    if root := getenv("SPOTIFY_STATS_PROJECT_ROOT"):
        return Path(root).resolve()
    return Path.cwd()


@dataclass(frozen=True, slots=True)
class Settings:
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    top_n: int = DEFAULT_TOP_N
    search_mode: str = DEFAULT_SEARCH_MODE

    def __post_init__(self) -> None:
        if self.top_n < 1:
            msg = f"top_n must be >= 1, got {self.top_n}."
            raise ValueError(msg)
        if self.search_mode not in CONTINUATION_TESTS:
            msg = (
                f"search_mode must be one of {sorted(CONTINUATION_TESTS)}, "
                f"got {self.search_mode!r}."
            )
            raise ValueError(msg)

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings from SPOTIFY_STATS_* environment variables."""
        output_dir = Path(getenv("SPOTIFY_STATS_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR)
        if not output_dir.is_absolute():
            output_dir = get_project_root() / output_dir

        raw_top_n = getenv("SPOTIFY_STATS_TOP_N")
        try:
            top_n = int(raw_top_n) if raw_top_n else DEFAULT_TOP_N
        except ValueError:
            msg = f"SPOTIFY_STATS_TOP_N must be an integer, got {raw_top_n!r}."
            raise ValueError(msg) from None

        return cls(
            output_dir=output_dir,
            top_n=top_n,
            search_mode=getenv("SPOTIFY_STATS_SEARCH_MODE") or DEFAULT_SEARCH_MODE,
        )
