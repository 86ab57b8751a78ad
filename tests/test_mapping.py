"""Tests for unminify.mapping — the adapter over the ``sourcemap`` decoder.

Mapping strings are hand-encoded base64 VLQ: ``S`` = 9, ``Q`` = 8, ``K`` = 5,
``C`` = 1, ``A`` = 0.
"""
from __future__ import annotations

import pytest

from unminify.mapping import open_mapping_service
from unminify.reconstruct import reconstruct
from unminify.source_map import SourceMapDocument
from unminify.types import UNMAPPED, GeneratedPosition


def _named_doc() -> SourceMapDocument:
    # Single segment: generated col 9 -> math.ts 0:0, name "add".
    return SourceMapDocument.from_dict({
        "version": 3,
        "sources": ["math.ts"],
        "names": ["add"],
        "mappings": "SAAAA",
    })


def _two_source_doc() -> SourceMapDocument:
    # Line 1: col 0 -> a.js 0:0, col 8 -> b.js 0:0. Line 2: col 0 -> b.js 1:0.
    return SourceMapDocument.from_dict({
        "version": 3,
        "sources": ["a.js", "b.js"],
        "sourcesContent": [None, "var b=2;\nfoo()"],
        "names": [],
        "mappings": "AAAA,QCAA;AACA",
    })


class TestOriginalPositionFor:
    def test_exact_named_segment(self) -> None:
        with open_mapping_service(_named_doc()) as service:
            pos = service.original_position_for(1, 9)
        assert pos.source == "math.ts"
        assert pos.line == 1
        assert pos.column == 0
        assert pos.name == "add"
        assert pos.generated_column == 9

    def test_before_first_segment_is_unmapped(self) -> None:
        with open_mapping_service(_named_doc()) as service:
            for column in range(9):
                assert service.original_position_for(1, column) == UNMAPPED

    def test_greatest_lower_bound(self) -> None:
        with open_mapping_service(_named_doc()) as service:
            pos = service.original_position_for(1, 15)
        assert pos.source == "math.ts"
        assert pos.generated_column == 9

    def test_line_beyond_mappings_is_unmapped(self) -> None:
        with open_mapping_service(_named_doc()) as service:
            assert service.original_position_for(5, 0) == UNMAPPED

    def test_invalid_positions_are_unmapped(self) -> None:
        with open_mapping_service(_named_doc()) as service:
            assert service.original_position_for(0, 9) == UNMAPPED
            assert service.original_position_for(1, -1) == UNMAPPED

    def test_multiple_sources_and_lines(self) -> None:
        with open_mapping_service(_two_source_doc()) as service:
            first = service.original_position_for(1, 3)
            second = service.original_position_for(1, 10)
            third = service.lookup(GeneratedPosition(2, 4))
        assert first.source == "a.js"
        assert first.name is None
        assert (second.source, second.line, second.generated_column) == ("b.js", 1, 8)
        assert (third.source, third.line) == ("b.js", 2)

    def test_reconstruct_after_astral_character(self) -> None:
        # Generated col 5 (UTF-16) -> a.js 0:0, name "total". The emoji is two units wide.
        doc = SourceMapDocument.from_dict({
            "version": 3,
            "sources": ["a.js"],
            "names": ["total"],
            "mappings": "KAAAA",
        })
        with open_mapping_service(doc) as service:
            buffers = reconstruct(["'\U0001F600';x"], service.lookup)
        assert buffers["a.js"].line(1) == "total"


class TestSourceContentFor:
    def test_known_source(self) -> None:
        with open_mapping_service(_two_source_doc()) as service:
            assert service.source_content_for("b.js") == "var b=2;\nfoo()"
            assert service.source_content_for("a.js") is None

    def test_unknown_source(self) -> None:
        with open_mapping_service(_two_source_doc()) as service:
            assert service.source_content_for("nope.js", return_none_on_missing=True) is None
            with pytest.raises(KeyError):
                service.source_content_for("nope.js")


class TestLifecycle:
    def test_closed_after_block(self) -> None:
        with open_mapping_service(_named_doc()) as service:
            assert not service.closed
        assert service.closed
        with pytest.raises(RuntimeError, match="closed"):
            service.original_position_for(1, 9)

    def test_closed_when_block_raises(self) -> None:
        with pytest.raises(ValueError):
            with open_mapping_service(_named_doc()) as service:
                raise ValueError("boom")
        assert service.closed
