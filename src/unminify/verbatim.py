"""Verbatim extraction of the sources embedded in ``sourcesContent``."""
from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from unminify.inventory import inventory
from unminify.source_map import SourceMapDocument
from unminify.types import OutputUnit

log = logging.getLogger(__name__)

DEFAULT_STRIP_EXTENSION = ".js"
FALLBACK_NAME = "source"


def output_name_for_source(source_id: str, strip_extension: str = DEFAULT_STRIP_EXTENSION) -> str:
    """Basename of a source identifier minus the minifier's extension.

    Only the exact ``strip_extension`` suffix is removed, so ``lib/util.js``
    becomes ``util`` while ``util.ts`` is left as is.
    """
    name = PurePosixPath(source_id.replace("\\", "/")).name
    if strip_extension and name.endswith(strip_extension) and name != strip_extension:
        name = name[: -len(strip_extension)]
    if name in ("", ".", ".."):
        return FALLBACK_NAME
    return name


def extract(
    doc: SourceMapDocument,
    minified_path: Path,
    *,
    strip_extension: str = DEFAULT_STRIP_EXTENSION,
) -> list[OutputUnit]:
    """Pair each source that has embedded text with its output path."""
    out_dir = minified_path.parent
    units: list[OutputUnit] = []
    claimed: dict[Path, str] = {}
    for entry in inventory(doc):
        if entry.content is None:
            continue
        path = out_dir / output_name_for_source(entry.source_id, strip_extension)
        if path in claimed:
            log.warning(
                "Skipping %s: output %s already taken by %s",
                entry.source_id, path, claimed[path],
            )
            continue
        claimed[path] = entry.source_id
        units.append(OutputUnit(path=path, content=entry.content, source_id=entry.source_id))
    return units
