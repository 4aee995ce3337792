"""
vadbatch.dispatch - Concurrent per-file dispatch to VAD endpoints.

Each candidate file runs through: header validation, output path mirroring,
completed-marker check, output directory creation, endpoint selection and a
single remote call. Any failure is confined to that file: it is logged,
counted as skipped, and the rest of the run carries on.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from vadbatch.client import JobDescriptor, VadClient
from vadbatch.config import DispatchConfig
from vadbatch.counters import RunCounters
from vadbatch.discovery import discover_files
from vadbatch.endpoints import EndpointSelector
from vadbatch.exceptions import EndpointError, OpenError, OutputDirError
from vadbatch.io import display_text
from vadbatch.logging import logger
from vadbatch.validation import prepare_output_dir, resolve_input_dir, validate_wav


class FileOutcome(str, Enum):
    """Terminal state of one candidate file."""

    PROCESSED = "processed"
    INVALID = "invalid"
    UNREADABLE = "unreadable"
    ALREADY_DONE = "already_done"
    FAILED = "failed"
    WOULD_DISPATCH = "would_dispatch"

    @property
    def is_error(self) -> bool:
        return self in (FileOutcome.UNREADABLE, FileOutcome.FAILED)


@dataclass(frozen=True)
class FileResult:
    path: Path
    outcome: FileOutcome
    detail: str | None = None
    endpoint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": display_text(self.path),
            "outcome": self.outcome.value,
            "detail": display_text(self.detail) if self.detail else None,
            "endpoint": self.endpoint,
        }


@dataclass
class DispatchReport:
    """Totals and per-file outcomes of a finished run."""

    counters: RunCounters
    input_dir: Path
    output_dir: Path
    dry_run: bool = False
    results: list[FileResult] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.counters.processed

    @property
    def skipped(self) -> int:
        return self.counters.skipped

    def summary(self) -> str:
        return self.counters.summary()

    def errors(self) -> list[FileResult]:
        return [r for r in self.results if r.outcome.is_error]

    def count(self, outcome: FileOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    def to_dict(self) -> dict[str, Any]:
        return {
            "input_dir": display_text(self.input_dir),
            "output_dir": display_text(self.output_dir),
            "dry_run": self.dry_run,
            "processed": self.processed,
            "skipped": self.skipped,
            "outcomes": {o.value: self.count(o) for o in FileOutcome},
            "files": [r.to_dict() for r in sorted(self.results, key=lambda r: r.path)],
        }


def output_paths(input_path: Path, input_root: Path, output_root: Path) -> tuple[Path, Path]:
    """Mirror an input file under the output root.

    The output directory is the file's root-relative path (file name included)
    joined onto the output root; the marker is the file stem inside it, e.g.
    ``in/c/d.wav`` -> ``out/c/d.wav/`` and ``out/c/d.wav/d``.

    Raises:
        ValueError: If input_path is not under input_root
    """
    relative = input_path.relative_to(input_root)
    output_dir = output_root / relative
    return output_dir, output_dir / input_path.stem


class Dispatcher:
    """Runs the per-file pipeline across a fixed-size worker pool."""

    def __init__(
        self,
        config: DispatchConfig,
        selector: EndpointSelector,
        client: VadClient,
        counters: RunCounters | None = None,
        dry_run: bool = False,
    ) -> None:
        self.config = config
        self.selector = selector
        self.client = client
        self.counters = counters or RunCounters()
        self.dry_run = dry_run

    def _process(self, path: Path) -> FileResult:
        if not validate_wav(path, self.config.required_format):
            logger.warning("Skipping invalid WAV file: %s", path)
            return FileResult(path, FileOutcome.INVALID, "format mismatch")

        output_dir, marker = output_paths(path, self.config.input_dir, self.config.output_dir)
        if marker.exists():
            logger.debug("Already processed, skipping: %s", path)
            return FileResult(path, FileOutcome.ALREADY_DONE, str(marker))

        if self.dry_run:
            return FileResult(path, FileOutcome.WOULD_DISPATCH, str(output_dir))

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirError(
                f"Failed to create output directory for: {output_dir}: {e}"
            ) from e

        job = JobDescriptor(
            input_file=display_text(path),
            output_dir=display_text(output_dir),
            model=self.config.model,
        )
        endpoint = self.selector.next()
        logger.debug("Dispatching %s to %s", path, endpoint)
        self.client.submit(endpoint, job)
        return FileResult(path, FileOutcome.PROCESSED, endpoint=endpoint)

    def process_file(self, path: Path) -> FileResult:
        """Run one file through the pipeline and record its outcome.

        Never raises for per-file problems; they become a skipped result.
        """
        try:
            result = self._process(path)
        except EndpointError as e:
            logger.warning("VAD failed for %s: %s", path, e)
            result = FileResult(path, FileOutcome.FAILED, str(e), endpoint=e.endpoint)
        except OpenError as e:
            logger.warning("Error processing %s: %s", path, e)
            result = FileResult(path, FileOutcome.UNREADABLE, str(e))
        except Exception as e:
            logger.warning("Error processing %s: %s", path, e)
            result = FileResult(path, FileOutcome.FAILED, str(e))

        if result.outcome == FileOutcome.PROCESSED:
            self.counters.record_processed()
        else:
            self.counters.record_skipped()
        return result

    def run(
        self,
        files: list[Path],
        on_result: Callable[[FileResult], None] | None = None,
    ) -> DispatchReport:
        """Process all files with bounded parallelism.

        Args:
            files: Candidate files, all under config.input_dir
            on_result: Optional callback invoked as each file finishes; an
                exception it raises is logged and does not stop the run

        Returns:
            DispatchReport with totals and per-file results
        """
        report = DispatchReport(
            counters=self.counters,
            input_dir=self.config.input_dir,
            output_dir=self.config.output_dir,
            dry_run=self.dry_run,
        )
        if not files:
            return report

        max_workers = self.config.pool_size
        logger.debug("Dispatching %d file(s) with %d worker(s)", len(files), max_workers)

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="vad") as executor:
            futures = [executor.submit(self.process_file, path) for path in files]
            for future in as_completed(futures):
                result = future.result()
                report.results.append(result)
                if on_result:
                    try:
                        on_result(result)
                    except Exception as e:
                        logger.warning("Result callback failed for %s: %s", result.path, e)

        return report


def dispatch(
    config: DispatchConfig,
    dry_run: bool = False,
    on_result: Callable[[FileResult], None] | None = None,
    client: VadClient | None = None,
) -> DispatchReport:
    """Run a full dispatch: pre-flight checks, enumeration, worker pool.

    The endpoint list is checked before the filesystem is touched. In dry-run
    mode the output root is not created and no requests are sent.

    Args:
        config: Validated dispatch configuration
        dry_run: Report what would be sent without sending it
        on_result: Optional per-file callback
        client: Optional client; one is created (and closed) if omitted

    Returns:
        DispatchReport for the run

    Raises:
        ConfigError: If no endpoints are configured
        PathError: If the input root or output root cannot be used
    """
    selector = EndpointSelector(config.endpoints)

    input_root = resolve_input_dir(config.input_dir)
    if dry_run:
        output_root = config.output_dir.expanduser().resolve()
    else:
        output_root = prepare_output_dir(config.output_dir)
    config = config.model_copy(update={"input_dir": input_root, "output_dir": output_root})

    files = discover_files(input_root, config.extension)

    owns_client = client is None
    client = client or VadClient(timeout=config.timeout)
    try:
        dispatcher = Dispatcher(config, selector, client, dry_run=dry_run)
        return dispatcher.run(files, on_result=on_result)
    finally:
        if owns_client:
            client.close()
