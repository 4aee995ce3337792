"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import os
import sys
import threading
import wave
from pathlib import Path
from typing import Callable

import pytest

from vadbatch.client import JobDescriptor
from vadbatch.config import DispatchConfig
from vadbatch.exceptions import EndpointError

# "caf\xe9.wav" as Latin-1 bytes; the OS hands it back surrogate-escaped
NON_UTF8_NAME = os.fsdecode(b"caf\xe9.wav")

needs_byte_names = pytest.mark.skipif(
    sys.platform in ("darwin", "win32"),
    reason="filesystem only accepts valid Unicode names",
)


def write_wav(
    path: Path,
    channels: int = 1,
    sample_width: int = 2,
    sample_rate: int = 16000,
    frames: int = 160,
) -> Path:
    """Write a silent PCM WAV file with the given header parameters."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(sample_width)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(b"\x00" * frames * channels * sample_width)
    return path


class RecordingClient:
    """Stand-in for VadClient that records jobs instead of sending them."""

    def __init__(self, fail_status: dict[str, int] | None = None) -> None:
        self.fail_status = fail_status or {}
        self.calls: list[tuple[str, JobDescriptor]] = []
        self.closed = False
        self._lock = threading.Lock()

    def submit(self, endpoint: str, job: JobDescriptor) -> int:
        with self._lock:
            self.calls.append((endpoint, job))
        status = self.fail_status.get(Path(job.input_file).name)
        if status:
            raise EndpointError(endpoint, f"API returned status {status}", status=status)
        return 200

    def close(self) -> None:
        self.closed = True

    def endpoint_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for endpoint, _ in self.calls:
            counts[endpoint] = counts.get(endpoint, 0) + 1
        return counts


@pytest.fixture
def make_wav() -> Callable[..., Path]:
    """Return the WAV writer helper."""
    return write_wav


@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def dirs(tmp_path: Path) -> tuple[Path, Path]:
    """Create empty input and output roots."""
    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    input_dir.mkdir()
    output_dir.mkdir()
    return input_dir, output_dir


@pytest.fixture
def scenario_tree(dirs: tuple[Path, Path]) -> tuple[Path, Path]:
    """Input tree with one fresh valid file, one stereo file, one completed file.

    input/a.wav    mono 16-bit 16kHz, not yet processed
    input/b.wav    stereo, rejected
    input/c/d.wav  mono 16-bit 16kHz, marker output/c/d.wav/d already present
    """
    input_dir, output_dir = dirs
    write_wav(input_dir / "a.wav")
    write_wav(input_dir / "b.wav", channels=2)
    write_wav(input_dir / "c" / "d.wav")

    marker = output_dir / "c" / "d.wav" / "d"
    marker.parent.mkdir(parents=True)
    marker.write_text("done")
    return input_dir, output_dir


@pytest.fixture
def make_config(dirs: tuple[Path, Path]) -> Callable[..., DispatchConfig]:
    """Build a DispatchConfig rooted at the resolved temp dirs."""
    input_dir, output_dir = dirs

    def _make(**overrides) -> DispatchConfig:
        values = {
            "input_dir": input_dir.resolve(),
            "output_dir": output_dir.resolve(),
            "endpoints": ["http://vad-a:8000/vad"],
        }
        values.update(overrides)
        return DispatchConfig(**values)

    return _make
