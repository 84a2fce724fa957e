# src/spotify_stats/cli.py

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from spotify_stats.analysis.search_history import CONTINUATION_TESTS
from spotify_stats.config import Settings
from spotify_stats.errors import InvalidInputCombination
from spotify_stats.io.exports import open_export
from spotify_stats.io.json_files import write_json, write_jsonl
from spotify_stats.pipeline.run import PipelineResult, run_pipeline

logger = logging.getLogger(__name__)

OUTPUT_FILES = {
    "music_stats": "music_stats.json",
    "library": "library.json",
    "playlists": "playlists.json",
    "search_history": "search_history.json",
    "wrapped": "wrapped.json",
    "errors": "errors.jsonl",
}


def main(argv: list[str] | None = None) -> None:
    """Entry point for the spotify-stats CLI."""
    args = _build_arg_parser().parse_args(argv)

    _configure_logging(verbose=args.verbose)

    overrides: dict[str, object] = {}
    if args.output is not None:
        overrides["output_dir"] = Path(args.output)
    if args.top_n is not None:
        overrides["top_n"] = args.top_n
    if args.search_mode is not None:
        overrides["search_mode"] = args.search_mode
    try:
        settings = dataclasses.replace(Settings.from_env(), **overrides)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)

    try:
        exports = [open_export(path) for path in args.inputs]
        result = run_pipeline(exports, settings)
    except InvalidInputCombination as exc:
        logger.error("%s", exc)
        sys.exit(2)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user. Exiting.")
        sys.exit(1)

    _write_outputs(result, settings.output_dir)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spotify-stats",
        description=(
            "Merge Spotify account and extended streaming-history exports "
            "into listening statistics."
        ),
    )

    parser.add_argument(
        "inputs",
        nargs="+",
        help=(
            "One or two exports (directory or .zip): an extended streaming "
            "history, an account data export, or one of each."
        ),
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Directory for the output files (default: SPOTIFY_STATS_OUTPUT_DIR or 'output').",
    )
    parser.add_argument(
        "--top-n",
        type=int,
        default=None,
        help="Length of the monthly top lists (default: SPOTIFY_STATS_TOP_N or 10).",
    )
    parser.add_argument(
        "--search-mode",
        choices=sorted(CONTINUATION_TESTS),
        default=None,
        help=(
            "How to detect incremental typing in the search log: 'prefix' "
            "only collapses extensions, 'related' also collapses deletions."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser


def _configure_logging(*, verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _write_outputs(result: PipelineResult, output_dir: Path) -> None:
    write_json(output_dir / OUTPUT_FILES["music_stats"], result.music_stats)
    write_json(output_dir / OUTPUT_FILES["library"], result.library)
    write_json(output_dir / OUTPUT_FILES["playlists"], result.playlists)
    write_json(output_dir / OUTPUT_FILES["search_history"], result.search_history)
    write_json(output_dir / OUTPUT_FILES["wrapped"], result.wrapped)

    entries = result.error_log.entries()
    write_jsonl(output_dir / OUTPUT_FILES["errors"], entries)

    logger.info(
        "Wrote %s files to %s (%s error log entries).",
        len(OUTPUT_FILES),
        output_dir,
        len(entries),
    )


if __name__ == "__main__":
    # python -m spotify_stats.cli -v my_spotify_data.zip my_spotify_extended.zip --output output
    main()
