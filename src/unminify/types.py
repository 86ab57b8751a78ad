"""Core types shared by the recovery pipeline.

Position conventions follow the source map format:
  GeneratedPosition  — 1-based line, 0-based column in the minified text
  OriginalPosition   — result of a lookup; ``source is None`` means unmapped
  OutputUnit         — one pending write (path + content)
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, TypeAlias


Mode: TypeAlias = Literal["verbatim", "reconstructed"]
GroupBy: TypeAlias = Literal["original_line", "generated_line"]
NameBy: TypeAlias = Literal["original_id", "minified_file"]
Semicolons: TypeAlias = Literal["insert", "omit"]
FileStatus: TypeAlias = Literal["recovered", "skipped", "failed"]

GROUP_BY_CHOICES: tuple[str, ...] = ("original_line", "generated_line")
NAME_BY_CHOICES: tuple[str, ...] = ("original_id", "minified_file")
SEMICOLONS_CHOICES: tuple[str, ...] = ("insert", "omit")


@dataclass(frozen=True, slots=True)
class GeneratedPosition:
    """A character slot in the minified text."""

    line: int
    column: int

    def __post_init__(self) -> None:
        if self.line < 1:
            raise ValueError(f"line must be >= 1, got {self.line}")
        if self.column < 0:
            raise ValueError(f"column must be >= 0, got {self.column}")


@dataclass(frozen=True, slots=True)
class OriginalPosition:
    """Where a generated position came from.

    ``generated_column`` is the column at which the matched mapping segment
    starts on the generated line; lookups resolve to the closest segment at or
    before the queried column, so it can be smaller than the queried column.
    """

    source: str | None = None
    line: int | None = None
    column: int | None = None
    name: str | None = None
    generated_column: int | None = None

    @property
    def is_mapped(self) -> bool:
        return self.source is not None


UNMAPPED = OriginalPosition()

Lookup: TypeAlias = Callable[[GeneratedPosition], OriginalPosition]


@dataclass(frozen=True, slots=True)
class OutputUnit:
    """A recovered text waiting to be written."""

    path: Path
    content: str
    source_id: str | None = None
