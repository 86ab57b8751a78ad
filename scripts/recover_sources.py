#!/usr/bin/env python3
"""Recover original sources from minified JavaScript and its source maps.

For every minified file, the sibling ``<name>.map`` (or the map referenced by
its ``sourceMappingURL`` comment) is read. Sources embedded in the map are
written out verbatim; otherwise each original file is approximated from the
positional mappings and written as ``<name>-recovered.js``.

Usage:
    python3 scripts/recover_sources.py --input dist/app.min.js

    # Whole build directory, grouping by generated line, one file per bundle:
    python3 scripts/recover_sources.py -i dist/ \
        --group-by generated_line --name-by minified_file

    # Machine-readable summary on stdout:
    python3 scripts/recover_sources.py -i dist/ --json --no-format

Progress and diagnostics go to stderr. Exit status is 1 when any file
failed, 2 when the input path does not exist or the configuration is invalid.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from unminify.config import RecoveryConfig
from unminify.io_utils import dump_json_stdout
from unminify.recovery import recover_path
from unminify.types import GROUP_BY_CHOICES, NAME_BY_CHOICES

log = logging.getLogger("recover_sources")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Recover original source files from minified JavaScript using source maps.",
    )
    parser.add_argument(
        "--input", "-i", required=True, type=Path,
        help="The minified JavaScript file, or a directory containing minified files",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="JSON file with RecoveryConfig settings (flags below override it)",
    )
    parser.add_argument(
        "--group-by", choices=GROUP_BY_CHOICES, default=None,
        help="Reconstruction line grouping (default: original_line)",
    )
    parser.add_argument(
        "--name-by", choices=NAME_BY_CHOICES, default=None,
        help="Reconstructed file naming (default: original_id)",
    )
    parser.add_argument(
        "--no-format", action="store_true",
        help="Do not run the formatter over reconstructed sources",
    )
    parser.add_argument(
        "--formatter-cmd", default=None,
        help='Formatter command line (default: "prettier"), e.g. "npx prettier"',
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Number of files processed in parallel (default: 4)",
    )
    parser.add_argument(
        "--no-follow-url", action="store_true",
        help="Only use <name>.map; ignore sourceMappingURL comments",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Print a JSON summary of the run to stdout",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def load_config(args: argparse.Namespace) -> RecoveryConfig:
    config = RecoveryConfig.from_json(args.config) if args.config else RecoveryConfig()
    return config.with_overrides(
        group_by=args.group_by,
        name_by=args.name_by,
        format_output=False if args.no_format else None,
        formatter_command=args.formatter_cmd,
        workers=args.workers,
        follow_source_mapping_url=False if args.no_follow_url else None,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    input_path: Path = args.input
    if not input_path.exists():
        log.error("Input path does not exist: %s", input_path)
        return 2

    try:
        config = load_config(args)
    except (OSError, TypeError, ValueError) as exc:
        log.error("Invalid configuration: %s", exc)
        return 2

    report = recover_path(input_path, config)

    for outcome in report.outcomes:
        if outcome.status == "skipped":
            log.info("  SKIP %s: %s", outcome.path, outcome.reason)
        elif outcome.status == "failed":
            log.info("  FAIL %s: %s", outcome.path, outcome.reason)

    if args.json:
        dump_json_stdout(report.to_dict())

    return 1 if report.has_failures else 0


if __name__ == "__main__":
    sys.exit(main())
