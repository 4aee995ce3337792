"""
vadbatch.config - YAML config loading, CLI merging, validation.

A run is configured from command-line options, optionally layered on top of a
YAML file. Everything is validated into a DispatchConfig before any work
starts; problems surface as ConfigError.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from vadbatch.exceptions import ConfigError

DEFAULT_TIMEOUT_SECONDS = 600.0


class AudioRequirements(BaseModel):
    """Header parameters a candidate file must match to be dispatched."""

    channels: int = Field(default=1, gt=0)
    bits_per_sample: int = Field(default=16, gt=0)
    sample_rate: int = Field(default=16000, gt=0)


class DispatchConfig(BaseModel):
    """Resolved configuration for a dispatch run."""

    input_dir: Path
    output_dir: Path
    endpoints: list[str] = Field(default_factory=list, validate_default=True)
    model: str | None = None

    extension: str = "wav"
    required_format: AudioRequirements = Field(default_factory=AudioRequirements)

    workers: int | None = Field(default=None, gt=0)
    timeout: float | None = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0.0)

    @field_validator("endpoints", mode="before")
    @classmethod
    def validate_endpoints(cls, v: Any) -> list[str]:
        endpoints = parse_endpoints(v)
        if not endpoints:
            raise ValueError("At least one API address must be provided via --addr-api")
        return endpoints

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        v = v.strip().lstrip(".")
        if not v:
            raise ValueError("extension must not be empty")
        return v

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def pool_size(self) -> int:
        return self.workers or len(self.endpoints)


def parse_endpoints(value: Any) -> list[str]:
    """Flatten comma-separated and repeated endpoint values into a clean list."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    endpoints = []
    for item in value:
        for part in str(item).split(","):
            part = part.strip()
            if part:
                endpoints.append(part)
    return endpoints


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a YAML config file into a dict."""
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return raw


def merge_config(file_config: dict[str, Any], cli_options: dict[str, Any]) -> dict[str, Any]:
    """Merge CLI options over file config. CLI values take precedence unless None."""
    merged = file_config.copy()
    for key, value in cli_options.items():
        if key == "required_format" and isinstance(value, dict):
            merged.setdefault("required_format", {})
            merged["required_format"] = {**merged["required_format"], **value}
        elif key == "endpoints" and not value:
            continue
        elif value is not None:
            merged[key] = value
    return merged


def build_config(config_file: Path | None = None, **cli_options: Any) -> DispatchConfig:
    """Build and validate a DispatchConfig from an optional file plus CLI options.

    Raises:
        ConfigError: If the file cannot be read or any value is invalid
    """
    file_config = load_config_file(config_file) if config_file else {}
    merged = merge_config(file_config, cli_options)

    try:
        return DispatchConfig(**merged)
    except ValidationError as e:
        raise ConfigError(_format_validation_error(e)) from e


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        field = ".".join(str(p) for p in item.get("loc", ()))
        msg = item.get("msg", "invalid value")
        msg = msg.removeprefix("Value error, ")
        messages.append(f"{field}: {msg}" if field else msg)
    return "; ".join(messages)
