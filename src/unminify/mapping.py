"""Mapping query service: generated position -> original position.

Thin adapter over the ``sourcemap`` decoder. The decoder works with 0-based
lines; this module speaks 1-based generated and original lines and 0-based
columns. A lookup never raises for a miss, it returns ``UNMAPPED``.

Usage::

    with open_mapping_service(doc) as service:
        pos = service.original_position_for(1, 9)
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import sourcemap
from sourcemap.exceptions import SourceMapDecodeError

from unminify.errors import MalformedSourceMapError
from unminify.inventory import inventory
from unminify.source_map import SourceMapDocument
from unminify.types import UNMAPPED, GeneratedPosition, OriginalPosition

log = logging.getLogger(__name__)


class MappingQueryService:
    """Point lookups against one decoded source map."""

    def __init__(self, doc: SourceMapDocument) -> None:
        self._location = doc.location
        # Negative VLQ values trip an assert in the decoder, and its handler
        # then fails with AttributeError.
        try:
            self._index: Any = sourcemap.loads(doc.to_decoder_json())
        except (
            SourceMapDecodeError, ValueError, KeyError, IndexError,
            AttributeError, AssertionError,
        ) as exc:
            raise MalformedSourceMapError(doc.location, f"undecodable mappings ({exc})") from exc
        self._contents: dict[str, str | None] = {
            entry.source_id: entry.content for entry in inventory(doc)
        }
        log.debug("Decoded %d mapping segments from %s", len(self._index.tokens), doc.location)

    @property
    def closed(self) -> bool:
        return self._index is None

    def close(self) -> None:
        self._index = None

    def _require_open(self) -> Any:
        if self._index is None:
            raise RuntimeError(f"mapping service for {self._location} is closed")
        return self._index

    def original_position_for(self, line: int, column: int) -> OriginalPosition:
        """Resolve a 1-based generated line and 0-based column."""
        index = self._require_open()
        if line < 1 or column < 0:
            return UNMAPPED
        try:
            token = index.lookup(line - 1, column)
        except (IndexError, KeyError):
            return UNMAPPED
        if token is None or token.src is None:
            return UNMAPPED
        return OriginalPosition(
            source=token.src,
            line=token.src_line + 1,
            column=token.src_col,
            name=token.name or None,
            generated_column=token.dst_col,
        )

    def lookup(self, position: GeneratedPosition) -> OriginalPosition:
        return self.original_position_for(position.line, position.column)

    def source_content_for(
        self, source_id: str, return_none_on_missing: bool = False,
    ) -> str | None:
        """Embedded text for a declared source.

        Unknown identifiers raise KeyError unless ``return_none_on_missing``.
        """
        self._require_open()
        if source_id not in self._contents:
            if return_none_on_missing:
                return None
            raise KeyError(f'"{source_id}" is not in the source map')
        return self._contents[source_id]


@contextmanager
def open_mapping_service(doc: SourceMapDocument) -> Iterator[MappingQueryService]:
    """Decode ``doc`` and release the decoded index when the block exits."""
    service = MappingQueryService(doc)
    try:
        yield service
    finally:
        service.close()
