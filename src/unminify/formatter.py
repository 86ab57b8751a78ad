"""Optional readability pass over reconstructed sources.

Runs the external ``prettier`` executable over stdin. Reconstructed text is
often not valid JavaScript, so a formatting failure is expected and never
fatal: :meth:`Formatter.format_or_passthrough` logs it and hands back the
unformatted text.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from unminify.errors import FormatterError
from unminify.types import Semicolons

log = logging.getLogger(__name__)

DEFAULT_DIALECT = "module-with-experimental-syntax"
DEFAULT_COMMAND: tuple[str, ...] = ("prettier",)
DEFAULT_TIMEOUT_SEC = 30.0

# Grammar selector -> prettier ``--parser`` value.
DIALECT_PARSERS: dict[str, str] = {
    "module-with-experimental-syntax": "babel",
    "module": "babel",
    "flow": "flow",
    "typescript": "typescript",
}


@dataclass(frozen=True, slots=True)
class FormatterOptions:
    semicolons: Semicolons = "omit"
    dialect: str = DEFAULT_DIALECT

    def parser_name(self) -> str:
        try:
            return DIALECT_PARSERS[self.dialect]
        except KeyError:
            raise FormatterError(f"unknown formatter dialect {self.dialect!r}") from None


class Formatter:
    """Formats text with prettier, probing for the executable once."""

    def __init__(
        self,
        options: FormatterOptions | None = None,
        *,
        command: Sequence[str] = DEFAULT_COMMAND,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        if not command:
            raise ValueError("formatter command must not be empty")
        self.options = options or FormatterOptions()
        self.command: tuple[str, ...] = tuple(command)
        self.timeout_sec = timeout_sec
        self._available: bool | None = None

    @property
    def available(self) -> bool:
        if self._available is None:
            self._available = shutil.which(self.command[0]) is not None
            if not self._available:
                log.warning(
                    "Formatter %r not found on PATH; writing reconstructed sources unformatted",
                    self.command[0],
                )
        return self._available

    def build_argv(self) -> list[str]:
        argv = [
            *self.command,
            "--stdin-filepath", "recovered.js",
            "--parser", self.options.parser_name(),
        ]
        if self.options.semicolons == "omit":
            argv.append("--no-semi")
        return argv

    def format(self, text: str) -> str:
        """Return formatted text, raising FormatterError on any failure."""
        if not self.available:
            raise FormatterError(f"formatter {self.command[0]!r} is not installed")
        argv = self.build_argv()
        try:
            proc = subprocess.run(
                argv,
                input=text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout_sec,
                check=False,
            )
        except FileNotFoundError as exc:
            self._available = False
            raise FormatterError(f"formatter {self.command[0]!r} is not installed") from exc
        except subprocess.TimeoutExpired as exc:
            raise FormatterError(f"formatter timed out after {self.timeout_sec:.0f}s") from exc
        if proc.returncode != 0:
            detail = (proc.stderr or "").strip().splitlines()
            first = detail[0] if detail else f"exit status {proc.returncode}"
            raise FormatterError(f"formatter failed: {first}")
        return proc.stdout

    def format_or_passthrough(self, text: str, *, label: str = "") -> str:
        """Format ``text``; on failure log and return it unchanged."""
        if not self.available:
            return text
        try:
            return self.format(text)
        except FormatterError as exc:
            log.info("Formatting skipped%s: %s", f" for {label}" if label else "", exc)
            return text
