"""
vadbatch.exceptions - Custom exception classes.

All vadbatch exceptions inherit from VadBatchError. ConfigError and PathError
abort a run before dispatch; the rest are scoped to a single file.
"""

from __future__ import annotations


class VadBatchError(Exception):
    """Base exception for all vadbatch errors."""

    pass


class ConfigError(VadBatchError):
    """Configuration loading or validation error."""

    pass


class PathError(VadBatchError):
    """Input or output root cannot be used."""

    pass


class OpenError(VadBatchError):
    """File could not be parsed as a WAV container."""

    pass


class OutputDirError(VadBatchError):
    """Mirrored output directory could not be created."""

    pass


class EndpointError(VadBatchError):
    """Remote endpoint call failed or returned a non-200 status."""

    def __init__(self, endpoint: str, message: str, status: int | None = None):
        self.endpoint = endpoint
        self.message = message
        self.status = status
        super().__init__(f"{endpoint}: {message}")
