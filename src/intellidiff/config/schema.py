"""Configuration schema: dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

LogLevel = Literal["debug", "info", "warning", "error"]
OutputFormat = Literal["terminal", "json"]

LOG_LEVELS: tuple[str, ...] = ("debug", "info", "warning", "error")
OUTPUT_FORMATS: tuple[str, ...] = ("terminal", "json")


@dataclass
class GitConfig:
    timeout: int = 30  # seconds per git invocation
    context_lines: int = 10000  # -U value for full-file diffs
    find_renames: bool = True


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_summary: bool = True


@dataclass
class LogConfig:
    level: LogLevel = "warning"


@dataclass
class IntellidiffConfig:
    version: str = "1.0"
    git: GitConfig = field(default_factory=GitConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log: LogConfig = field(default_factory=LogConfig)
