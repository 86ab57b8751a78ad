"""Positional reconstruction of original sources from a mapping-only map.

When a map embeds no source text, each original file is approximated by
walking every character of the minified text, asking the mapping service
where it came from, and appending it to a per-source buffer:

  - unmapped columns are dropped;
  - the column where a named segment starts contributes the segment's name
    (restoring identifiers the minifier shortened) and the rest of that
    minified identifier is skipped;
  - every other mapped column contributes its literal minified character.

The result is best-effort: character order follows the minified text, not
the original columns.

Buffers are grouped by original line (``original_line``) or by generated
line (``generated_line``); outputs are named after the original source
(``original_id``) or after the minified file (``minified_file``).
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from pathlib import Path

from unminify.types import GeneratedPosition, GroupBy, Lookup, NameBy, OutputUnit
from unminify.verbatim import DEFAULT_STRIP_EXTENSION, output_name_for_source

DEFAULT_RECOVERED_SUFFIX = "-recovered.js"

_IDENTIFIER_CHAR_RE: re.Pattern[str] = re.compile(r"[\w$]")


class ReconstructionBuffer:
    """Per-source accumulation of reconstructed lines.

    Lines are sparse and keyed by line number; each line grows by appending
    contributions at its tail in walk order.
    """

    __slots__ = ("source", "group_by", "_lines")

    def __init__(self, source: str, group_by: GroupBy = "original_line") -> None:
        self.source = source
        self.group_by: GroupBy = group_by
        self._lines: dict[int, list[str]] = {}

    def append(self, line: int, text: str) -> None:
        self._lines.setdefault(line, []).append(text)

    def line(self, number: int) -> str:
        """Text accumulated for one line (empty if untouched)."""
        return "".join(self._lines.get(number, ()))

    @property
    def line_numbers(self) -> list[int]:
        return sorted(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def render(self) -> str:
        """Join lines with ``\\n``.

        Original-line buffers fill gaps with empty lines so line N of the
        output is original line N; generated-line buffers emit only the
        lines that received contributions.
        """
        if not self._lines:
            return ""
        if self.group_by == "original_line":
            last = max(self._lines)
            return "\n".join(self.line(n) for n in range(1, last + 1))
        return "\n".join(self.line(n) for n in self.line_numbers)

    def __repr__(self) -> str:
        return f"ReconstructionBuffer({self.source!r}, lines={len(self._lines)})"


def split_lines(text: str) -> list[str]:
    """Split minified text on ``\\n`` only; ``\\r`` stays part of the line."""
    return text.split("\n")


def reconstruct(
    lines: Sequence[str],
    lookup: Lookup,
    *,
    group_by: GroupBy = "original_line",
) -> dict[str, ReconstructionBuffer]:
    """Walk every character of ``lines`` and rebuild per-source buffers.

    Columns passed to ``lookup`` are UTF-16 offsets, so a character outside
    the Basic Multilingual Plane advances the column by two.

    Returns the buffers keyed by source identifier, in first-encounter order.
    """
    buffers: dict[str, ReconstructionBuffer] = {}

    for line_no, text in enumerate(lines, start=1):
        # Start column of the named segment whose identifier is being skipped.
        named_run: int | None = None

        # UTF-16 offset of the next character.
        column = 0
        for char in text:
            start = column
            column += 2 if ord(char) > 0xFFFF else 1
            pos = lookup(GeneratedPosition(line_no, start))
            if pos.source is None:
                named_run = None
                continue

            buffer = buffers.get(pos.source)
            if buffer is None:
                buffer = ReconstructionBuffer(pos.source, group_by)
                buffers[pos.source] = buffer

            is_ident = _IDENTIFIER_CHAR_RE.match(char) is not None
            if (
                named_run is not None
                and pos.name is not None
                and pos.generated_column == named_run
                and is_ident
            ):
                continue
            named_run = None

            if pos.name is not None and pos.generated_column in (None, start):
                contribution = pos.name
                if pos.generated_column is not None:
                    named_run = start
            else:
                contribution = char

            if group_by == "original_line" and pos.line is not None:
                key = pos.line
            else:
                key = line_no
            buffer.append(key, contribution)

    return buffers


def recovered_name(base: str, suffix: str = DEFAULT_RECOVERED_SUFFIX) -> str:
    return base + suffix


def render_outputs(
    buffers: dict[str, ReconstructionBuffer],
    minified_path: Path,
    *,
    name_by: NameBy = "original_id",
    strip_extension: str = DEFAULT_STRIP_EXTENSION,
    suffix: str = DEFAULT_RECOVERED_SUFFIX,
) -> list[OutputUnit]:
    """Turn buffers into output units beside the minified file."""
    out_dir = minified_path.parent
    if not buffers:
        return []

    if name_by == "minified_file":
        base = output_name_for_source(minified_path.name, strip_extension)
        path = out_dir / recovered_name(base, suffix)
        if len(buffers) == 1:
            (source, buffer), = buffers.items()
            return [OutputUnit(path=path, content=buffer.render(), source_id=source)]
        return [OutputUnit(path=path, content=_concatenate(buffers.values()))]

    units: list[OutputUnit] = []
    taken: set[Path] = set()
    for source, buffer in buffers.items():
        base = output_name_for_source(source, strip_extension)
        path = out_dir / recovered_name(base, suffix)
        n = 1
        while path in taken:
            n += 1
            path = out_dir / recovered_name(f"{base}-{n}", suffix)
        taken.add(path)
        units.append(OutputUnit(path=path, content=buffer.render(), source_id=source))
    return units


def _concatenate(buffers: Iterable[ReconstructionBuffer]) -> str:
    parts = [f"// {buffer.source}\n{buffer.render()}" for buffer in buffers]
    return "\n\n".join(parts)
