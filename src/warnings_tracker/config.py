"""Configuration loading and validation for Warnings Tracker."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from warnings_tracker.analysis.fingerprint import DEFAULT_CONTEXT_LINES, FingerprintConfig
from warnings_tracker.analysis.health import HealthDescriptor
from warnings_tracker.analysis.reference import ReferencePolicy
from warnings_tracker.models.issues import Severity
from warnings_tracker.models.thresholds import ThresholdSet, parse_threshold


@dataclass
class ToolSettings:
    """Static analysis tool whose results are tracked."""

    id: str = "default"
    name: str = ""


@dataclass
class StorageSettings:
    """Where build history is kept."""

    directory: str = ".warnings-tracker"


@dataclass
class FingerprintSettings:
    """Fingerprinting configuration."""

    enabled: bool = True
    workspace: str = "."
    context_lines: int = DEFAULT_CONTEXT_LINES
    encoding: str = "utf-8"
    max_parallel: int = 8

    def to_fingerprint_config(self) -> FingerprintConfig:
        return FingerprintConfig(
            context_lines=self.context_lines,
            encoding=self.encoding,
            max_parallel=self.max_parallel,
        )


@dataclass
class Config:
    """Complete application configuration."""

    tool: ToolSettings = field(default_factory=ToolSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    fingerprint: FingerprintSettings = field(default_factory=FingerprintSettings)
    thresholds: ThresholdSet = field(default_factory=ThresholdSet)
    reference: ReferencePolicy = field(default_factory=ReferencePolicy)
    health: HealthDescriptor = field(default_factory=HealthDescriptor)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Path to config file (default: config.yaml)

    Returns:
        Loaded configuration

    Raises:
        ValueError: If a value cannot be interpreted (e.g. an unknown severity)
    """
    # Find config file
    if config_path is None:
        config_path = Path("config.yaml")
        if not config_path.exists():
            config_path = Path("config.example.yaml")

    # Load from file if exists
    raw_config: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw_config = yaml.safe_load(f) or {}

    # Expand environment variables
    raw_config = _expand_env_vars(raw_config)

    return _parse_config(raw_config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in config."""
    if isinstance(obj, str):
        if obj.startswith("${") and obj.endswith("}"):
            env_var = obj[2:-1]
            return os.environ.get(env_var, "")
        return obj
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


_TRUE_STRINGS = ("true", "yes", "on", "1")
_FALSE_STRINGS = ("false", "no", "off", "0")


def _parse_bool(value: Any, default: bool) -> bool:
    """Interpret a flag that may come from a ${VAR} expansion as a string.

    Raises:
        ValueError: If a string is neither true nor false
    """
    if value is None or value == "":
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"Expected true or false, got {value!r}")
    return bool(value)


def _parse_config(raw: dict[str, Any]) -> Config:
    """Parse raw config dict into Config object."""
    tool_raw = raw.get("tool") or {}
    tool = ToolSettings(
        id=str(tool_raw.get("id") or os.environ.get("WARNINGS_TRACKER_TOOL", "default")),
        name=tool_raw.get("name", ""),
    )

    storage_raw = raw.get("storage") or {}
    storage = StorageSettings(
        directory=str(
            storage_raw.get("directory")
            or os.environ.get("WARNINGS_TRACKER_HOME", ".warnings-tracker")
        ),
    )

    fp_raw = raw.get("fingerprint") or {}
    fingerprint = FingerprintSettings(
        enabled=_parse_bool(fp_raw.get("enabled"), True),
        workspace=str(fp_raw.get("workspace", ".")),
        context_lines=int(fp_raw.get("context_lines", DEFAULT_CONTEXT_LINES)),
        encoding=fp_raw.get("encoding", "utf-8"),
        max_parallel=int(fp_raw.get("max_parallel", 8)),
    )

    # Invalid threshold values are dropped (and logged) rather than rejected
    thresholds = ThresholdSet.from_mapping(raw.get("thresholds") or {})

    ref_raw = raw.get("reference") or {}
    reference = ReferencePolicy(
        ignore_quality_gate=_parse_bool(ref_raw.get("ignore_quality_gate"), False),
        ignore_failed_builds=_parse_bool(ref_raw.get("ignore_failed_builds"), False),
    )

    health_raw = raw.get("health") or {}
    health = HealthDescriptor(
        healthy=parse_threshold(health_raw.get("healthy")),
        unhealthy=parse_threshold(health_raw.get("unhealthy")),
        minimum_severity=Severity.parse(health_raw.get("minimum_severity", "low")),
    )

    return Config(
        tool=tool,
        storage=storage,
        fingerprint=fingerprint,
        thresholds=thresholds,
        reference=reference,
        health=health,
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not config.tool.id:
        errors.append("Missing tool id (set tool.id or WARNINGS_TRACKER_TOOL)")
    elif any(sep in config.tool.id for sep in ("/", "\\")) or config.tool.id in (".", ".."):
        errors.append(f"Tool id must not be a path: {config.tool.id!r}")

    if not config.storage.directory:
        errors.append("Missing storage directory (set storage.directory)")

    if config.fingerprint.context_lines < 0:
        errors.append(
            f"fingerprint.context_lines must be >= 0, got {config.fingerprint.context_lines}"
        )

    if config.fingerprint.max_parallel < 1:
        errors.append(
            f"fingerprint.max_parallel must be >= 1, got {config.fingerprint.max_parallel}"
        )

    health = config.health
    if (health.healthy is None) != (health.unhealthy is None):
        errors.append("health.healthy and health.unhealthy must be set together")
    elif health.healthy is not None and not health.is_enabled:
        errors.append(
            f"health.unhealthy ({health.unhealthy}) must be greater than "
            f"health.healthy ({health.healthy})"
        )

    return errors
