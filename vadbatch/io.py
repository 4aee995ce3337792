"""
vadbatch.io - Atomic JSON report writing and path rendering.

File names on POSIX are bytes and need not be valid UTF-8. Anything that
leaves the process as text (job payloads, reports, console tables) goes
through display_text, which swaps undecodable bytes for U+FFFD.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def display_text(value: Path | str) -> str:
    """Render a path (or a message built from one) as valid UTF-8 text.

    Args:
        value: Path or string that may carry surrogate-escaped bytes

    Returns:
        Text with undecodable bytes replaced by U+FFFD
    """
    return os.fsencode(value).decode("utf-8", errors="replace")


def write_json(path: Path, data: dict[str, Any], indent: int = 2) -> None:
    """Write a run report atomically with pretty formatting.

    Writes to a temp file in the destination directory, then renames it into
    place so an interrupted run never leaves a truncated report. String
    values are expected to be valid UTF-8 already (see display_text).

    Args:
        path: Destination path for JSON file
        data: Report data to write
        indent: Indentation level for pretty printing (default: 2)

    Raises:
        OSError: If the destination cannot be created or written
        ValueError: If data is not JSON-serializable text
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            json.dump(data, tmp, indent=indent, ensure_ascii=False)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
    tmp_path.replace(path)
