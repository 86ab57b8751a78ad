"""Tests for unminify.verbatim — extracting embedded sources."""
from __future__ import annotations

from pathlib import Path

import pytest

from unminify.source_map import SourceMapDocument
from unminify.verbatim import extract, output_name_for_source


class TestOutputNameForSource:
    @pytest.mark.parametrize(
        ("source_id", "expected"),
        [
            ("util.ts", "util.ts"),
            ("util.js", "util"),
            ("lib/deep/util.js", "util"),
            ("webpack:///./src/app.js", "app"),
            ("C:\\work\\src\\win.js", "win"),
            ("app.jsx", "app.jsx"),
            (".js", ".js"),
            ("", "source"),
            ("dir/..", "source"),
        ],
    )
    def test_names(self, source_id: str, expected: str) -> None:
        assert output_name_for_source(source_id) == expected

    def test_custom_extension(self) -> None:
        assert output_name_for_source("src/util.ts", ".ts") == "util"

    def test_no_stripping(self) -> None:
        assert output_name_for_source("src/util.js", "") == "util.js"


class TestExtract:
    def test_scenario_single_source(self, tmp_path: Path) -> None:
        doc = SourceMapDocument.from_dict({
            "version": 3,
            "sources": ["util.ts"],
            "sourcesContent": ["export const x = 1;\n"],
            "mappings": "AAAA",
        })
        units = extract(doc, tmp_path / "bundle.js")
        assert len(units) == 1
        assert units[0].path == tmp_path / "util.ts"
        assert units[0].content == "export const x = 1;\n"
        assert units[0].source_id == "util.ts"

    def test_null_entries_skipped(self, tmp_path: Path) -> None:
        doc = SourceMapDocument.from_dict({
            "sources": ["src/a.js", "src/b.js", "src/c.js"],
            "sourcesContent": ["A", None, "C"],
            "mappings": "",
        })
        units = extract(doc, tmp_path / "out" / "bundle.js")
        assert [u.path for u in units] == [tmp_path / "out" / "a", tmp_path / "out" / "c"]
        assert [u.content for u in units] == ["A", "C"]

    def test_content_is_exact(self, tmp_path: Path) -> None:
        text = "line1\r\nline2\n\n\ttrailing  \n\u00e9\u4e2d"
        doc = SourceMapDocument.from_dict(
            {"sources": ["x.js"], "sourcesContent": [text], "mappings": ""},
        )
        assert extract(doc, tmp_path / "m.js")[0].content == text

    def test_basename_collision_keeps_first(self, tmp_path: Path) -> None:
        doc = SourceMapDocument.from_dict({
            "sources": ["a/index.js", "b/index.js"],
            "sourcesContent": ["first", "second"],
            "mappings": "",
        })
        units = extract(doc, tmp_path / "m.js")
        assert len(units) == 1
        assert units[0].content == "first"

    def test_no_content_no_units(self, tmp_path: Path) -> None:
        doc = SourceMapDocument.from_dict({"sources": ["a.js"], "mappings": ""})
        assert extract(doc, tmp_path / "m.js") == []
