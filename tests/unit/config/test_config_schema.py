"""
interrupt: unit tests for config schema validation

File: tests/unit/config/test_config_schema.py

Purpose
- Validate strict config schema behavior and structured errors.

What this test file should cover
- Validates the repository's live interrupt.toml successfully.
- Rejects unknown keys and invalid types with actionable paths.
- Deterministic deep merge.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from interrupt.config.schema import (
    ConfigSchemaVersion,
    ConfigValidationError,
    DEFAULT_CONFIG,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)

REPO_ROOT = Path(__file__).resolve().parents[3]


def _load_toml(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        data = tomllib.load(handle)
    assert isinstance(data, dict)
    return data


def _issue_paths(config: object) -> list[str]:
    result = validate_config(config)
    return [issue.path for issue in result.issues]


def test_interrupt_toml_validates_successfully() -> None:
    config = _load_toml(REPO_ROOT / "interrupt.toml")

    result = validate_config(config)

    assert result.is_valid
    assert result.config == default_config()


def test_defaults_validate_and_are_copied() -> None:
    first = default_config()
    first["serializer"]["max_depth"] = 1

    assert DEFAULT_CONFIG["serializer"]["max_depth"] == 32
    assert assert_valid_config(default_config()) == default_config()


def test_missing_sections_are_filled_from_defaults() -> None:
    result = validate_config({"serializer": {"max_depth": 8}})

    assert result.config is not None
    assert result.config["serializer"]["max_depth"] == 8
    assert result.config["encoder"] == DEFAULT_CONFIG["encoder"]


def test_unknown_keys_are_rejected_with_paths() -> None:
    assert _issue_paths({"extra": 1, "encoder": {"colour": True}}) == [
        "extra",
        "encoder.colour",
    ]


def test_invalid_types_and_ranges_are_reported() -> None:
    paths = _issue_paths(
        {
            "serializer": {"max_depth": 0, "circular_placeholder": "a\nb"},
            "encoder": {"capture_stack": "yes"},
            "observability": {"log_level": "LOUD"},
        }
    )

    assert paths == [
        "serializer.max_depth",
        "serializer.circular_placeholder",
        "encoder.capture_stack",
        "observability.log_level",
    ]


def test_bool_is_not_accepted_as_integer() -> None:
    assert _issue_paths({"serializer": {"max_depth": True}}) == ["serializer.max_depth"]


def test_zero_stack_limit_means_unlimited() -> None:
    config = assert_valid_config({"encoder": {"stack_limit": 0}})

    assert config["encoder"]["stack_limit"] is None
    assert assert_valid_config({"encoder": {"stack_limit": 5}})["encoder"]["stack_limit"] == 5


def test_log_level_is_normalized() -> None:
    config = assert_valid_config({"observability": {"log_level": " debug "}})

    assert config["observability"]["log_level"] == "DEBUG"


def test_schema_version_mismatch_has_guidance() -> None:
    result = validate_config({"meta": {"schema_version": ConfigSchemaVersion + 1}})

    assert not result.is_valid
    assert result.issues[0].message == migration_guidance(ConfigSchemaVersion + 1)
    assert "newer" in result.issues[0].message


def test_non_mapping_root_is_rejected() -> None:
    with pytest.raises(ConfigValidationError, match="<root>"):
        assert_valid_config(["not", "a", "mapping"])


def test_merge_config_is_deep_and_non_destructive() -> None:
    base = {"encoder": {"capture_stack": True, "aggregate_causes": True}}

    merged = merge_config(base, {"encoder": {"capture_stack": False}})

    assert merged == {"encoder": {"aggregate_causes": True, "capture_stack": False}}
    assert base["encoder"]["capture_stack"] is True
