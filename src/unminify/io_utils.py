"""I/O utilities for JSON and text file operations.

JSON goes through orjson. Text is always UTF-8 and written without newline
translation so recovered sources stay byte-identical to what the map embeds.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import orjson

TEXT_ENCODING = "utf-8"


def load_json(path: Path) -> Any:
    """Load JSON from a file using orjson."""
    return orjson.loads(path.read_bytes())


def loads_json(raw: bytes | str) -> Any:
    """Parse JSON from bytes or text."""
    return orjson.loads(raw)


def dumps_json(obj: Any, *, pretty: bool = False) -> bytes:
    """Serialize an object to JSON bytes (paths and other objects via ``str``)."""
    opts = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(obj, option=opts, default=str)


def dump_json_stdout(obj: Any) -> None:
    """Write an indented JSON document to stdout."""
    sys.stdout.buffer.write(dumps_json(obj, pretty=True))
    sys.stdout.buffer.write(b"\n")
    sys.stdout.flush()


def read_text(path: Path) -> str:
    """Read a UTF-8 text file. Decoding errors propagate to the caller."""
    return path.read_text(encoding=TEXT_ENCODING)


def write_text(path: Path, content: str) -> None:
    """Write UTF-8 text, creating intermediate directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding=TEXT_ENCODING, newline="")
