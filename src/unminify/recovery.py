"""Per-file recovery pipeline and the directory batch walker.

For each minified file:

  1. read the minified text and load its source map;
  2. classify the map: embedded sources are extracted verbatim, otherwise
     the sources are reconstructed positionally and optionally formatted;
  3. write every output independently, so one failed write does not stop
     the others.

Failures are contained per file: a missing or malformed map skips the file,
anything else marks it failed. A directory batch always processes every
file and joins all of them before reporting.
"""
from __future__ import annotations

import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from unminify.config import RecoveryConfig
from unminify.errors import MalformedSourceMapError, MissingSourceMapError
from unminify.formatter import Formatter
from unminify.inventory import classify
from unminify.io_utils import read_text, write_text
from unminify.mapping import open_mapping_service
from unminify.reconstruct import reconstruct, render_outputs, split_lines
from unminify.source_map import load_source_map
from unminify.types import FileStatus, Mode, OutputUnit
from unminify.verbatim import extract

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class FileOutcome:
    """What happened to one minified file."""

    path: Path
    status: FileStatus
    mode: Mode | None = None
    written: list[Path] = field(default_factory=list)
    failed_writes: list[tuple[Path, str]] = field(default_factory=list)
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.path),
            "status": self.status,
            "mode": self.mode,
            "written": [str(p) for p in self.written],
            "failed_writes": [
                {"path": str(p), "error": err} for p, err in self.failed_writes
            ],
            "reason": self.reason,
        }


@dataclass(slots=True)
class BatchReport:
    """Outcomes of one recovery run, in input order."""

    outcomes: list[FileOutcome] = field(default_factory=list)
    elapsed_sec: float = 0.0

    def counts(self) -> dict[str, int]:
        counter = Counter(o.status for o in self.outcomes)
        return {status: counter.get(status, 0) for status in ("recovered", "skipped", "failed")}

    @property
    def has_failures(self) -> bool:
        return any(o.status == "failed" for o in self.outcomes)

    @property
    def files_written(self) -> int:
        return sum(len(o.written) for o in self.outcomes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": {
                "files": len(self.outcomes),
                **self.counts(),
                "outputs_written": self.files_written,
                "elapsed_seconds": round(self.elapsed_sec, 3),
            },
            "files": [o.to_dict() for o in self.outcomes],
        }


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def write_outputs(units: list[OutputUnit]) -> tuple[list[Path], list[tuple[Path, str]]]:
    """Write each unit on its own; returns (written, failed)."""
    written: list[Path] = []
    failed: list[tuple[Path, str]] = []
    for unit in units:
        try:
            write_text(unit.path, unit.content)
        except OSError as exc:
            log.error("Failed to write %s: %s", unit.path, exc)
            failed.append((unit.path, str(exc)))
            continue
        log.info("Source code recovered to %s", unit.path)
        written.append(unit.path)
    return written, failed


# ---------------------------------------------------------------------------
# Single-file processing
# ---------------------------------------------------------------------------


def build_output_units(
    minified_path: Path,
    minified_text: str,
    config: RecoveryConfig,
    formatter: Formatter | None = None,
) -> tuple[Mode, list[OutputUnit]]:
    """Load the map for a minified file and produce its output units.

    Raises MissingSourceMapError / MalformedSourceMapError from map loading.
    """
    doc = load_source_map(
        minified_path,
        minified_text,
        follow_source_mapping_url=config.follow_source_mapping_url,
    )
    mode = classify(doc)
    if mode == "verbatim":
        return mode, extract(doc, minified_path, strip_extension=config.strip_extension)

    with open_mapping_service(doc) as service:
        buffers = reconstruct(
            split_lines(minified_text),
            service.lookup,
            group_by=config.group_by,
        )
    log.debug("%s: reconstructed %d source(s)", minified_path, len(buffers))

    units = render_outputs(
        buffers,
        minified_path,
        name_by=config.name_by,
        strip_extension=config.strip_extension,
        suffix=config.recovered_suffix,
    )
    if formatter is not None:
        units = [
            OutputUnit(
                path=u.path,
                content=formatter.format_or_passthrough(u.content, label=str(u.path)),
                source_id=u.source_id,
            )
            for u in units
        ]
    return mode, units


def recover_file(
    minified_path: Path,
    config: RecoveryConfig | None = None,
    formatter: Formatter | None = None,
) -> FileOutcome:
    """Recover the sources behind one minified file.

    Never raises for expected per-file problems; the outcome says what
    happened.
    """
    config = config or RecoveryConfig()
    try:
        minified_text = read_text(minified_path)
    except (OSError, UnicodeDecodeError) as exc:
        log.error("Cannot read %s: %s", minified_path, exc)
        return FileOutcome(minified_path, "failed", reason=f"unreadable: {exc}")

    try:
        mode, units = build_output_units(minified_path, minified_text, config, formatter)
    except MissingSourceMapError as exc:
        log.warning("%s", exc)
        return FileOutcome(minified_path, "skipped", reason=str(exc))
    except MalformedSourceMapError as exc:
        log.warning("Skipping %s: %s", minified_path, exc)
        return FileOutcome(minified_path, "skipped", reason=str(exc))

    if not units:
        log.info("%s: source map yielded no recoverable sources", minified_path)
        return FileOutcome(minified_path, "recovered", mode=mode, reason="no sources")

    written, failed = write_outputs(units)
    status: FileStatus = "recovered" if written else "failed"
    reason = f"{len(failed)} output(s) could not be written" if failed else ""
    return FileOutcome(
        minified_path, status, mode=mode, written=written,
        failed_writes=failed, reason=reason,
    )


# ---------------------------------------------------------------------------
# Discovery and batches
# ---------------------------------------------------------------------------


def discover_minified_files(
    root: Path,
    *,
    extensions: tuple[str, ...] = (".js",),
    recovered_suffix: str = "-recovered.js",
) -> list[Path]:
    """Find minified files under ``root`` recursively, sorted for determinism.

    Files this tool wrote itself (``*-recovered.js``) are skipped.
    """
    files: list[Path] = []
    for f in sorted(root.rglob("*")):
        if not f.is_file() or f.suffix not in extensions:
            continue
        if f.name.endswith(recovered_suffix):
            continue
        files.append(f)
    return files


def recover_files(files: list[Path], config: RecoveryConfig) -> BatchReport:
    """Recover a list of files on a thread pool, joining every task."""
    start = time.monotonic()
    formatter = config.build_formatter()
    outcomes: dict[Path, FileOutcome] = {}

    with ThreadPoolExecutor(max_workers=config.workers) as pool:
        futures = {pool.submit(recover_file, f, config, formatter): f for f in files}
        for future in as_completed(futures):
            path = futures[future]
            try:
                outcomes[path] = future.result()
            except Exception as exc:
                log.warning("%s failed: %s", path, exc)
                outcomes[path] = FileOutcome(path, "failed", reason=f"{type(exc).__name__}: {exc}")

    return BatchReport(
        outcomes=[outcomes[f] for f in files],
        elapsed_sec=time.monotonic() - start,
    )


def recover_path(input_path: Path, config: RecoveryConfig | None = None) -> BatchReport:
    """Recover a single minified file or every minified file under a directory."""
    config = config or RecoveryConfig()
    if input_path.is_dir():
        files = discover_minified_files(
            input_path,
            extensions=config.extensions,
            recovered_suffix=config.recovered_suffix,
        )
        log.info("Found %d minified file(s) under %s", len(files), input_path)
    else:
        files = [input_path]
    report = recover_files(files, config)

    counts = report.counts()
    log.info(
        "Done in %.1fs: %d recovered, %d skipped, %d failed (%d output files)",
        report.elapsed_sec, counts["recovered"], counts["skipped"], counts["failed"],
        report.files_written,
    )
    return report
