"""Load and merge configuration from .intellidiff.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from intellidiff.config.schema import (
    LOG_LEVELS,
    OUTPUT_FORMATS,
    GitConfig,
    IntellidiffConfig,
    LogConfig,
    OutputConfig,
)

CONFIG_FILENAME = ".intellidiff.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _positive_int(value: str) -> Optional[int]:
    try:
        number = int(value)
    except ValueError:
        return None
    return number if number > 0 else None


def _merge_env_overrides(cfg: IntellidiffConfig) -> None:
    """Apply INTELLIDIFF_* environment variable overrides."""
    if val := os.environ.get("INTELLIDIFF_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("INTELLIDIFF_LOG_LEVEL"):
        if val.lower() in LOG_LEVELS:
            cfg.log.level = val.lower()  # type: ignore[assignment]
    if val := os.environ.get("INTELLIDIFF_GIT_TIMEOUT"):
        if (timeout := _positive_int(val)) is not None:
            cfg.git.timeout = timeout
    if val := os.environ.get("INTELLIDIFF_CONTEXT_LINES"):
        if (lines := _positive_int(val)) is not None:
            cfg.git.context_lines = lines


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    return cls(**{k: v for k, v in raw.items() if k in valid_fields})


def _validate(cfg: IntellidiffConfig) -> None:
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"Invalid output format: {cfg.output.format!r}")
    if cfg.log.level not in LOG_LEVELS:
        raise ConfigError(f"Invalid log level: {cfg.log.level!r}")
    if cfg.git.timeout <= 0 or cfg.git.context_lines < 0:
        raise ConfigError("git.timeout must be positive and git.context_lines non-negative")


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> IntellidiffConfig:
    """Load, validate, and return an IntellidiffConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = IntellidiffConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = IntellidiffConfig(
            version=raw.get("version", "1.0"),
            git=_build_section(raw, GitConfig, "git"),
            output=_build_section(raw, OutputConfig, "output"),
            log=_build_section(raw, LogConfig, "log"),
        )
        _validate(cfg)

    _merge_env_overrides(cfg)
    return cfg
