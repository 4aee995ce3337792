"""
vadbatch.validation - Header validation and pre-flight path checks.

Candidate files are judged from their WAV header alone; the sample payload is
never read. Root directories are checked once before any dispatch starts.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import soundfile as sf

from vadbatch.config import AudioRequirements
from vadbatch.exceptions import OpenError, PathError

WAV_CONTAINERS = {"WAV", "WAVEX"}

SUBTYPE_BITS = {
    "PCM_S8": 8,
    "PCM_U8": 8,
    "PCM_16": 16,
    "PCM_24": 24,
    "PCM_32": 32,
    "FLOAT": 32,
    "DOUBLE": 64,
}


@dataclass(frozen=True)
class AudioFormat:
    """Header attributes of a candidate file."""

    channels: int
    bits_per_sample: int
    sample_rate: int
    subtype: str

    def matches(self, requirements: AudioRequirements) -> bool:
        return (
            self.channels == requirements.channels
            and self.bits_per_sample == requirements.bits_per_sample
            and self.sample_rate == requirements.sample_rate
        )

    def describe(self) -> str:
        return f"{self.channels}ch / {self.bits_per_sample}-bit / {self.sample_rate} Hz"


def read_audio_format(path: Path) -> AudioFormat:
    """Read channel count, bit depth and sample rate from a WAV header.

    Args:
        path: Path to the candidate file

    Returns:
        AudioFormat parsed from the header

    Raises:
        OpenError: If the file is missing, unreadable, or not a WAV container
    """
    # A file object keeps non-UTF-8 names away from libsndfile's str path handling
    try:
        with open(path, "rb") as f:
            info = sf.info(f)
    except (RuntimeError, OSError) as e:
        raise OpenError(f"Failed to open WAV file: {path}: {e}") from e

    if info.format not in WAV_CONTAINERS:
        raise OpenError(f"Failed to open WAV file: {path}: container is {info.format}")

    return AudioFormat(
        channels=info.channels,
        bits_per_sample=SUBTYPE_BITS.get(info.subtype, 0),
        sample_rate=info.samplerate,
        subtype=info.subtype,
    )


def validate_wav(path: Path, requirements: AudioRequirements | None = None) -> bool:
    """Check a WAV file against the required format (16kHz mono 16-bit by default).

    A mismatch returns False; a header that cannot be parsed raises OpenError.
    """
    requirements = requirements or AudioRequirements()
    return read_audio_format(path).matches(requirements)


def resolve_input_dir(path: Path) -> Path:
    """Resolve the input root to an absolute path.

    Raises:
        PathError: If the path doesn't exist or isn't a directory
    """
    try:
        resolved = path.expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise PathError(
            f"Failed to find canonical path for input directory: {path}: {e}"
        ) from e

    if not resolved.is_dir():
        raise PathError(f"Input path is not a directory: {resolved}")
    return resolved


def prepare_output_dir(path: Path) -> Path:
    """Create the output root if needed and resolve it to an absolute path.

    Raises:
        PathError: If the directory cannot be created or resolved
    """
    path = path.expanduser()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PathError(f"Failed to create output directory: {path}: {e}") from e

    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise PathError(
            f"Failed to find canonical path for output directory: {path}: {e}"
        ) from e
