"""Recovery configuration.

Defaults reproduce the original tool's behaviour (group by original line,
name reconstructed files after the original source). Settings can be loaded
from a JSON file and overridden from the command line.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson

from unminify.formatter import (
    DEFAULT_COMMAND,
    DEFAULT_DIALECT,
    DEFAULT_TIMEOUT_SEC,
    Formatter,
    FormatterOptions,
)
from unminify.reconstruct import DEFAULT_RECOVERED_SUFFIX
from unminify.types import (
    GROUP_BY_CHOICES,
    NAME_BY_CHOICES,
    SEMICOLONS_CHOICES,
    GroupBy,
    NameBy,
    Semicolons,
)
from unminify.verbatim import DEFAULT_STRIP_EXTENSION


@dataclass(frozen=True, slots=True)
class RecoveryConfig:
    group_by: GroupBy = "original_line"
    name_by: NameBy = "original_id"
    format_output: bool = True
    semicolons: Semicolons = "omit"
    dialect: str = DEFAULT_DIALECT
    formatter_command: tuple[str, ...] = DEFAULT_COMMAND
    formatter_timeout_sec: float = DEFAULT_TIMEOUT_SEC
    workers: int = 4
    follow_source_mapping_url: bool = True
    extensions: tuple[str, ...] = (".js",)
    strip_extension: str = DEFAULT_STRIP_EXTENSION
    recovered_suffix: str = DEFAULT_RECOVERED_SUFFIX

    def __post_init__(self) -> None:
        if self.group_by not in GROUP_BY_CHOICES:
            raise ValueError(f"group_by must be one of {GROUP_BY_CHOICES}, got {self.group_by!r}")
        if self.name_by not in NAME_BY_CHOICES:
            raise ValueError(f"name_by must be one of {NAME_BY_CHOICES}, got {self.name_by!r}")
        if self.semicolons not in SEMICOLONS_CHOICES:
            raise ValueError(
                f"semicolons must be one of {SEMICOLONS_CHOICES}, got {self.semicolons!r}",
            )
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.formatter_timeout_sec <= 0:
            raise ValueError(
                f"formatter_timeout_sec must be > 0, got {self.formatter_timeout_sec}",
            )
        if not self.formatter_command:
            raise ValueError("formatter_command must not be empty")
        if not self.extensions:
            raise ValueError("extensions must not be empty")
        if not self.recovered_suffix:
            raise ValueError("recovered_suffix must not be empty")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RecoveryConfig:
        """Build a config from a plain dict; unknown keys are rejected."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        values = dict(data)
        for key in ("formatter_command", "extensions"):
            if key in values:
                values[key] = _as_str_tuple(key, values[key])
        return cls(**values)

    @classmethod
    def from_json(cls, path: Path) -> RecoveryConfig:
        """Load from a JSON config file."""
        data = orjson.loads(path.read_bytes())
        if not isinstance(data, dict):
            raise ValueError(f"{path}: config must be a JSON object")
        return cls.from_dict(data)

    def with_overrides(self, **overrides: Any) -> RecoveryConfig:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        for key in ("formatter_command", "extensions"):
            if key in changes:
                changes[key] = _as_str_tuple(key, changes[key])
        return dataclasses.replace(self, **changes)

    def formatter_options(self) -> FormatterOptions:
        return FormatterOptions(semicolons=self.semicolons, dialect=self.dialect)

    def build_formatter(self) -> Formatter | None:
        if not self.format_output:
            return None
        return Formatter(
            self.formatter_options(),
            command=self.formatter_command,
            timeout_sec=self.formatter_timeout_sec,
        )

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def _as_str_tuple(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(value.split())
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ValueError(f"{key} must be a string or a list of strings")
