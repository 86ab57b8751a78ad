"""Exceptions raised while recovering sources from a minified file."""
from __future__ import annotations

from pathlib import Path


class RecoveryError(RuntimeError):
    """Base class for per-file recovery failures."""


class MissingSourceMapError(RecoveryError):
    """Raised when no source map can be located for a minified file."""

    def __init__(self, minified_path: Path, looked_at: Path) -> None:
        super().__init__(f"No source map found at {looked_at}")
        self.minified_path = minified_path
        self.looked_at = looked_at


class MalformedSourceMapError(RecoveryError):
    """Raised when a source map exists but cannot be read as a source map."""

    def __init__(self, location: str, reason: str) -> None:
        super().__init__(f"Malformed source map {location}: {reason}")
        self.location = location
        self.reason = reason


class FormatterError(RecoveryError):
    """Raised when the external formatter cannot format a text."""
