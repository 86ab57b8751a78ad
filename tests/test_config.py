"""Tests for unminify.config — RecoveryConfig loading and validation."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from unminify.config import RecoveryConfig
from unminify.formatter import Formatter


class TestDefaults:
    def test_defaults(self) -> None:
        config = RecoveryConfig()
        assert config.group_by == "original_line"
        assert config.name_by == "original_id"
        assert config.format_output is True
        assert config.semicolons == "omit"
        assert config.dialect == "module-with-experimental-syntax"
        assert config.extensions == (".js",)
        assert config.recovered_suffix == "-recovered.js"

    def test_formatter_built_when_enabled(self) -> None:
        formatter = RecoveryConfig(formatter_command=("npx", "prettier")).build_formatter()
        assert isinstance(formatter, Formatter)
        assert formatter.command == ("npx", "prettier")
        assert formatter.options.semicolons == "omit"

    def test_no_formatter_when_disabled(self) -> None:
        assert RecoveryConfig(format_output=False).build_formatter() is None


class TestValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"group_by": "column"},
            {"name_by": "hash"},
            {"semicolons": "maybe"},
            {"workers": 0},
            {"formatter_timeout_sec": 0},
            {"formatter_command": ()},
            {"extensions": ()},
            {"recovered_suffix": ""},
        ],
    )
    def test_rejects(self, kwargs: dict[str, object]) -> None:
        with pytest.raises(ValueError):
            RecoveryConfig(**kwargs)  # type: ignore[arg-type]


class TestFromDict:
    def test_round_trip_values(self) -> None:
        config = RecoveryConfig.from_dict({
            "group_by": "generated_line",
            "name_by": "minified_file",
            "formatter_command": ["npx", "prettier"],
            "extensions": [".js", ".mjs"],
            "workers": 2,
        })
        assert config.group_by == "generated_line"
        assert config.name_by == "minified_file"
        assert config.formatter_command == ("npx", "prettier")
        assert config.extensions == (".js", ".mjs")
        assert config.workers == 2

    def test_command_string_is_split(self) -> None:
        config = RecoveryConfig.from_dict({"formatter_command": "npx prettier"})
        assert config.formatter_command == ("npx", "prettier")

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ValueError, match="groupBy"):
            RecoveryConfig.from_dict({"groupBy": "original_line"})

    def test_bad_list_rejected(self) -> None:
        with pytest.raises(ValueError):
            RecoveryConfig.from_dict({"extensions": [1, 2]})

    def test_from_json(self, tmp_path: Path) -> None:
        path = tmp_path / "unminify.json"
        path.write_text(json.dumps({"workers": 8, "format_output": False}), encoding="utf-8")
        config = RecoveryConfig.from_json(path)
        assert config.workers == 8
        assert config.format_output is False

    def test_from_json_requires_object(self, tmp_path: Path) -> None:
        path = tmp_path / "unminify.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError):
            RecoveryConfig.from_json(path)


class TestOverrides:
    def test_none_values_ignored(self) -> None:
        base = RecoveryConfig(workers=3)
        config = base.with_overrides(workers=None, group_by="generated_line")
        assert config.workers == 3
        assert config.group_by == "generated_line"

    def test_false_is_applied(self) -> None:
        assert RecoveryConfig().with_overrides(format_output=False).format_output is False

    def test_overrides_validated(self) -> None:
        with pytest.raises(ValueError):
            RecoveryConfig().with_overrides(workers=-1)

    def test_to_dict(self) -> None:
        data = RecoveryConfig().to_dict()
        assert data["group_by"] == "original_line"
        assert RecoveryConfig.from_dict(data) == RecoveryConfig()
