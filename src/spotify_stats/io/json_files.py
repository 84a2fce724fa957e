# spotify_stats/io/json_files.py

"""Low-level JSON and JSONL helpers."""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from spotify_stats.errors import UnreadableSource


def parse_json_document(data: bytes | str, name: str) -> Any:
    """Decode a whole JSON document (an export member).

    Raises:
        UnreadableSource: if the bytes are not UTF-8 or not valid JSON.
    """
    try:
        if isinstance(data, bytes):
            # exports are sometimes written with a BOM
            data = data.decode("utf-8-sig")
        return json.loads(data)
    except UnicodeDecodeError as exc:
        raise UnreadableSource(name, f"not UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise UnreadableSource(name, f"invalid JSON: {exc}") from exc


def write_json(path: Path, obj: Any) -> None:
    """Write a single JSON document, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)
        f.write("\n")


def write_jsonl(path: Path, objects: Iterable[dict[str, Any]]) -> None:
    """Write objects to a JSONL file, one per line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for obj in objects:
            f.write(json.dumps(obj, ensure_ascii=False) + "\n")
