"""Locating and parsing the source map that belongs to a minified file.

The primary location is ``<name>.map`` beside the minified file. When that
file is absent, the minified text's trailing ``sourceMappingURL`` comment is
followed: inline ``data:`` maps are decoded and relative paths are resolved
against the minified file's directory. Remote URLs are never fetched.
"""
from __future__ import annotations

import base64
import binascii
import logging
import posixpath
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

import orjson

from unminify.errors import MalformedSourceMapError, MissingSourceMapError
from unminify.io_utils import loads_json

log = logging.getLogger(__name__)

MAP_SUFFIX = ".map"
# ``//# sourceMappingURL=`` and the legacy ``//@`` form, optionally in /* */.
SOURCE_MAPPING_URL_RE: re.Pattern[str] = re.compile(
    r"(?://|/\*)[#@]\s*sourceMappingURL=(\S+?)\s*(?:\*/)?\s*$",
    re.MULTILINE,
)
_XSSI_PREFIX = b")]}"


@dataclass(frozen=True, slots=True)
class SourceMapDocument:
    """An immutable, parsed source map.

    ``sources_content`` is always the same length as ``sources``; entries
    missing from the map are ``None``.
    """

    sources: tuple[str, ...]
    sources_content: tuple[str | None, ...]
    mappings: str
    names: tuple[str, ...] = ()
    version: int = 3
    location: str = "<memory>"

    def __post_init__(self) -> None:
        if len(self.sources_content) != len(self.sources):
            raise ValueError(
                "sources_content length must equal sources length, got "
                f"{len(self.sources_content)} != {len(self.sources)}",
            )

    @classmethod
    def from_dict(cls, data: Any, *, location: str = "<memory>") -> SourceMapDocument:
        """Build a document from decoded JSON, validating the fields we rely on."""
        if not isinstance(data, dict):
            raise MalformedSourceMapError(location, "top-level JSON value is not an object")
        if "sections" in data:
            raise MalformedSourceMapError(location, "indexed source maps are not supported")

        raw_sources = data.get("sources")
        if not isinstance(raw_sources, list) or not all(
            isinstance(s, str) for s in raw_sources
        ):
            raise MalformedSourceMapError(location, "'sources' must be a list of strings")

        mappings = data.get("mappings")
        if not isinstance(mappings, str):
            raise MalformedSourceMapError(location, "'mappings' must be a string")

        raw_names = data.get("names") or []
        if not isinstance(raw_names, list):
            raise MalformedSourceMapError(location, "'names' must be a list")

        raw_content = data.get("sourcesContent") or []
        if not isinstance(raw_content, list):
            raise MalformedSourceMapError(location, "'sourcesContent' must be a list")
        for entry in raw_content:
            if entry is not None and not isinstance(entry, str):
                raise MalformedSourceMapError(
                    location, "'sourcesContent' entries must be strings or null",
                )
        if len(raw_content) != len(raw_sources):
            log.debug(
                "%s: sourcesContent has %d entries for %d sources",
                location, len(raw_content), len(raw_sources),
            )
        content = list(raw_content[: len(raw_sources)])
        content.extend([None] * (len(raw_sources) - len(content)))

        source_root = data.get("sourceRoot")
        sources = [_apply_source_root(source_root, s) for s in raw_sources]

        version = data.get("version", 3)
        return cls(
            sources=tuple(sources),
            sources_content=tuple(content),
            mappings=mappings,
            names=tuple(str(n) for n in raw_names),
            version=version if isinstance(version, int) else 3,
            location=location,
        )

    @classmethod
    def from_bytes(cls, raw: bytes, *, location: str = "<memory>") -> SourceMapDocument:
        """Parse raw map bytes, skipping a leading ``)]}'`` guard line."""
        if raw.startswith(b"\xef\xbb\xbf"):
            raw = raw[3:]
        if raw.startswith(_XSSI_PREFIX):
            _, _, raw = raw.partition(b"\n")
        try:
            data = loads_json(raw)
        except orjson.JSONDecodeError as exc:
            raise MalformedSourceMapError(location, f"invalid JSON ({exc})") from exc
        return cls.from_dict(data, location=location)

    @classmethod
    def from_path(cls, path: Path) -> SourceMapDocument:
        return cls.from_bytes(path.read_bytes(), location=str(path))

    def to_decoder_json(self) -> str:
        """Serialize the fields the mapping decoder needs.

        ``sourceRoot`` is already folded into ``sources`` so the decoder and
        the inventory agree on identifiers.
        """
        payload = {
            "version": self.version,
            "sources": list(self.sources),
            "names": list(self.names),
            "mappings": self.mappings,
        }
        return orjson.dumps(payload).decode("utf-8")


def _apply_source_root(source_root: Any, source: str) -> str:
    if not isinstance(source_root, str) or not source_root:
        return source
    if urlparse(source).scheme or source.startswith("/"):
        return source
    if source_root.endswith("/"):
        return source_root + source
    return posixpath.join(source_root, source)


# ---------------------------------------------------------------------------
# Locating maps
# ---------------------------------------------------------------------------


def map_path_for(minified_path: Path) -> Path:
    """Return the conventional ``<name>.map`` sidecar path."""
    return minified_path.with_name(minified_path.name + MAP_SUFFIX)


def find_source_mapping_url(minified_text: str) -> str | None:
    """Return the last ``sourceMappingURL`` referenced by the text, if any."""
    matches = SOURCE_MAPPING_URL_RE.findall(minified_text)
    return matches[-1] if matches else None


def decode_data_url(url: str) -> bytes:
    """Decode a ``data:`` URL payload (base64 or percent-encoded)."""
    header, sep, payload = url.partition(",")
    if not sep:
        raise ValueError("data URL has no payload")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"invalid base64 payload: {exc}") from exc
    return unquote(payload).encode("utf-8")


def load_source_map(
    minified_path: Path,
    minified_text: str,
    *,
    follow_source_mapping_url: bool = True,
) -> SourceMapDocument:
    """Load the source map for a minified file.

    Raises MissingSourceMapError when no map can be found and
    MalformedSourceMapError when the map found is not usable.
    """
    sidecar = map_path_for(minified_path)
    if sidecar.is_file():
        return SourceMapDocument.from_path(sidecar)

    if not follow_source_mapping_url:
        raise MissingSourceMapError(minified_path, sidecar)

    url = find_source_mapping_url(minified_text)
    if url is None:
        raise MissingSourceMapError(minified_path, sidecar)

    if url.startswith("data:"):
        location = f"inline map in {minified_path}"
        try:
            raw = decode_data_url(url)
        except ValueError as exc:
            raise MalformedSourceMapError(location, str(exc)) from exc
        return SourceMapDocument.from_bytes(raw, location=location)

    parsed = urlparse(url)
    if parsed.scheme and parsed.scheme != "file":
        log.debug("Not fetching remote source map %s for %s", url, minified_path)
        raise MissingSourceMapError(minified_path, sidecar)

    referenced = (minified_path.parent / unquote(parsed.path)).resolve()
    if not referenced.is_file():
        raise MissingSourceMapError(minified_path, referenced)
    return SourceMapDocument.from_path(referenced)
