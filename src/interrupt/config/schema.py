"""
interrupt: configuration schema and validation.

File: src/interrupt/config/schema.py

Purpose
- Define authoritative configuration defaults and strict validation rules.

What should be included in this file
- Schema versioning and migration guidance.
- Validation rules for required fields, types, and numeric constraints.
- Deterministic deep-merge helpers.

Functional requirements
- Validate config payloads and return structured errors (field path + message).

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, TypedDict

from interrupt.constants import (
    CIRCULAR_PLACEHOLDER,
    CONFIG_SCHEMA_VERSION,
    DEFAULT_MAX_DEPTH,
    DEPTH_PLACEHOLDER,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION
MAX_SERIALIZER_DEPTH: Final[int] = 512


class MetaConfig(TypedDict):
    schema_version: int


class SerializerConfig(TypedDict):
    max_depth: int
    circular_placeholder: str
    depth_placeholder: str


class EncoderConfig(TypedDict):
    capture_stack: bool
    stack_limit: int | None
    aggregate_causes: bool


class ObservabilityConfig(TypedDict):
    log_level: str
    json_logs: bool


class InterruptConfig(TypedDict):
    meta: MetaConfig
    serializer: SerializerConfig
    encoder: EncoderConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[InterruptConfig] = {
    "meta": {"schema_version": ConfigSchemaVersion},
    "serializer": {
        "max_depth": DEFAULT_MAX_DEPTH,
        "circular_placeholder": CIRCULAR_PLACEHOLDER,
        "depth_placeholder": DEPTH_PLACEHOLDER,
    },
    "encoder": {
        "capture_stack": True,
        "stack_limit": None,
        "aggregate_causes": True,
    },
    "observability": {
        "log_level": "WARNING",
        "json_logs": True,
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> InterruptConfig:
    """Return a deep copy of deterministic built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    """Return deterministic migration guidance for schema version mismatch."""

    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade interrupt.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade the interrupt package"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    _reject_unknown_keys(root, "", set(DEFAULT_CONFIG), issues)
    normalized: dict[str, Any] = {}
    normalized["meta"] = _validate_meta(root.get("meta"), issues)
    normalized["serializer"] = _validate_serializer(root.get("serializer"), issues)
    normalized["encoder"] = _validate_encoder(root.get("encoder"), issues)
    normalized["observability"] = _validate_observability(root.get("observability"), issues)

    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _section(
    value: object, name: str, issues: _IssueCollector
) -> tuple[dict[str, object], dict[str, Any]]:
    section_defaults = DEFAULT_CONFIG[name]  # type: ignore[literal-required]
    defaults: dict[str, Any] = copy.deepcopy(dict(section_defaults))
    if value is None:
        return {}, defaults
    section = _as_object(value, name, issues)
    if section is None:
        return {}, defaults
    _reject_unknown_keys(section, name, set(defaults), issues)
    return section, defaults


def _validate_meta(value: object, issues: _IssueCollector) -> dict[str, Any]:
    section, out = _section(value, "meta", issues)
    if "schema_version" in section:
        version = _as_int(section["schema_version"], "meta.schema_version", issues, minimum=1)
        if version is not None:
            if version != ConfigSchemaVersion:
                issues.add("meta.schema_version", migration_guidance(version))
            out["schema_version"] = version
    return out


def _validate_serializer(value: object, issues: _IssueCollector) -> dict[str, Any]:
    section, out = _section(value, "serializer", issues)
    if "max_depth" in section:
        depth = _as_int(
            section["max_depth"],
            "serializer.max_depth",
            issues,
            minimum=1,
            maximum=MAX_SERIALIZER_DEPTH,
        )
        if depth is not None:
            out["max_depth"] = depth
    for key in ("circular_placeholder", "depth_placeholder"):
        if key in section:
            text = _as_str(section[key], f"serializer.{key}", issues)
            if text is not None:
                if "\n" in text:
                    issues.add(f"serializer.{key}", "must be a single line")
                else:
                    out[key] = text
    return out


def _validate_encoder(value: object, issues: _IssueCollector) -> dict[str, Any]:
    section, out = _section(value, "encoder", issues)
    for key in ("capture_stack", "aggregate_causes"):
        if key in section:
            flag = _as_bool(section[key], f"encoder.{key}", issues)
            if flag is not None:
                out[key] = flag
    if "stack_limit" in section:
        raw = section["stack_limit"]
        if raw is None:
            out["stack_limit"] = None
        else:
            limit = _as_int(raw, "encoder.stack_limit", issues, minimum=0)
            if limit is not None:
                out["stack_limit"] = limit or None
    return out


def _validate_observability(value: object, issues: _IssueCollector) -> dict[str, Any]:
    section, out = _section(value, "observability", issues)
    if "log_level" in section:
        level = _as_str(section["log_level"], "observability.log_level", issues)
        if level is not None:
            normalized = level.strip().upper()
            if not isinstance(logging.getLevelName(normalized), int):
                issues.add("observability.log_level", f"unsupported logging level {level!r}")
            else:
                out["log_level"] = normalized
    if "json_logs" in section:
        flag = _as_bool(section["json_logs"], "observability.json_logs", issues)
        if flag is not None:
            out["json_logs"] = flag
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"keys must be strings, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    if not value.strip():
        issues.add(path, "must not be empty")
        return None
    return value


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if not isinstance(value, bool):
        issues.add(path, f"expected boolean, got {type(value).__name__}")
        return None
    return value


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    if maximum is not None and value > maximum:
        issues.add(path, f"must be <= {maximum}")
        return None
    return value


def _reject_unknown_keys(
    payload: Mapping[str, object],
    path: str,
    allowed: set[str],
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown key")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in sorted(value):
        item = value[key]
        out[key] = _deep_copy_mapping(item) if isinstance(item, Mapping) else copy.deepcopy(item)
    return out


__all__ = [
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "EncoderConfig",
    "InterruptConfig",
    "MAX_SERIALIZER_DEPTH",
    "ObservabilityConfig",
    "SerializerConfig",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
