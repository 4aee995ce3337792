"""
vadbatch.discovery - Recursive candidate file enumeration.

The walk is best-effort: an unreadable directory or entry is reported as an
error result and skipped, never aborting the rest of the tree. Symlinks are
not followed, so link cycles cannot occur.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from vadbatch.logging import logger


@dataclass(frozen=True)
class WalkResult:
    """One step of a directory walk: either a regular file or an error."""

    path: Path | None = None
    error: OSError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def walk(root: Path) -> Iterator[WalkResult]:
    """Lazily yield every regular file under root, depth first.

    Args:
        root: Directory to walk

    Yields:
        WalkResult per regular file, or per entry/subtree that failed
    """
    stack = [root]
    while stack:
        directory = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            yield WalkResult(error=e)
            continue

        subdirs = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(Path(entry.path))
                elif entry.is_file(follow_symlinks=False):
                    yield WalkResult(path=Path(entry.path))
            except OSError as e:
                yield WalkResult(error=e)

        stack.extend(reversed(sorted(subdirs)))


def discover_files(root: Path, extension: str = "wav") -> list[Path]:
    """List files under root whose suffix matches extension (case-sensitive).

    Args:
        root: Input root directory
        extension: File extension without the leading dot

    Returns:
        Sorted list of candidate file paths
    """
    suffix = f".{extension.lstrip('.')}"
    files = []
    for result in walk(root):
        if not result.ok:
            logger.debug("Skipping unreadable entry: %s", result.error)
            continue
        if result.path.suffix == suffix:
            files.append(result.path)

    files.sort()
    logger.debug("Discovered %d candidate file(s) under %s", len(files), root)
    return files
