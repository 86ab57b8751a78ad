"""Source inventory: which original files a map declares, and with what text.

A map whose ``sourcesContent`` carries text for any source is recovered
verbatim; only maps without any embedded text fall back to positional
reconstruction.
"""
from __future__ import annotations

from dataclasses import dataclass

from unminify.source_map import SourceMapDocument
from unminify.types import Mode


@dataclass(frozen=True, slots=True)
class SourceEntry:
    source_id: str
    content: str | None
    index: int

    @property
    def has_content(self) -> bool:
        return self.content is not None


def classify(doc: SourceMapDocument) -> Mode:
    """Return ``"verbatim"`` if any source carries embedded text."""
    if any(content is not None for content in doc.sources_content):
        return "verbatim"
    return "reconstructed"


def inventory(doc: SourceMapDocument) -> list[SourceEntry]:
    """De-duplicated source entries in declaration order.

    Repeated identifiers are one logical file; the first non-null content
    declared for an identifier is kept.
    """
    entries: dict[str, SourceEntry] = {}
    for index, (source_id, content) in enumerate(
        zip(doc.sources, doc.sources_content, strict=True)
    ):
        existing = entries.get(source_id)
        if existing is None:
            entries[source_id] = SourceEntry(source_id, content, index)
        elif existing.content is None and content is not None:
            entries[source_id] = SourceEntry(source_id, content, index)
    return list(entries.values())
