"""
interrupt: context serializer.

File: src/interrupt/codec/serializer.py

Purpose
- Render a context mapping as an indented, insertion-ordered JSON block.
- Parse such a block back with the same grammar.

Functional requirements
- Exceptions found in context are expanded into their message, attributes, and frames.
- Cycles and runaway nesting degrade to placeholders; serialization never raises.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

from interrupt.codec.frames import format_frame, frames_from_traceback
from interrupt.codec.record import Diagnosable, safe_str
from interrupt.constants import (
    CIRCULAR_PLACEHOLDER,
    DEFAULT_MAX_DEPTH,
    DEPTH_PLACEHOLDER,
    UNREPRESENTABLE_PLACEHOLDER,
)

logger = logging.getLogger(__name__)

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_JSON_INDENT: Final[int] = 4


class ContextParseError(ValueError):
    """Raised when a context block in an encoded blob is not valid JSON."""

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        self.reason = reason
        super().__init__(f"malformed context block: {reason}")


@dataclass(frozen=True, slots=True)
class SerializerOptions:
    """Limits and placeholders used when rendering context values."""

    max_depth: int = DEFAULT_MAX_DEPTH
    circular_placeholder: str = CIRCULAR_PLACEHOLDER
    depth_placeholder: str = DEPTH_PLACEHOLDER


DEFAULT_SERIALIZER_OPTIONS: Final[SerializerOptions] = SerializerOptions()


def serialize(value: object, options: SerializerOptions | None = None) -> str:
    """Render ``value`` as indented JSON; never raises."""

    resolved = options or DEFAULT_SERIALIZER_OPTIONS
    normalized = normalize(value, resolved)
    try:
        return json.dumps(normalized, indent=_JSON_INDENT, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError, RecursionError):
        logger.warning("context could not be rendered as JSON", exc_info=True)
        return json.dumps(UNREPRESENTABLE_PLACEHOLDER)


def normalize(value: object, options: SerializerOptions | None = None) -> JSONValue:
    """Convert ``value`` to plain JSON data, bounded by depth and cycle checks."""

    return _Normalizer(options or DEFAULT_SERIALIZER_OPTIONS).visit(value, depth=0)


def parse_context(text: str) -> JSONValue:
    """Parse a context block written by ``serialize``."""

    try:
        parsed: JSONValue = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ContextParseError(text, str(exc)) from exc
    return parsed


class _Normalizer:
    __slots__ = ("_active", "_options")

    def __init__(self, options: SerializerOptions) -> None:
        self._options = options
        self._active: set[int] = set()

    def visit(self, value: object, *, depth: int) -> JSONValue:
        if value is None or isinstance(value, (bool, int, str)):
            return value
        if isinstance(value, float):
            if math.isfinite(value):
                return value
            return repr(value)
        if isinstance(value, datetime):
            if value.tzinfo is None or value.utcoffset() is None:
                normalized = value.replace(tzinfo=UTC)
            else:
                normalized = value.astimezone(UTC)
            return normalized.isoformat(timespec="microseconds").replace("+00:00", "Z")
        if isinstance(value, Path):
            return str(value)
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8", errors="replace")

        if depth >= self._options.max_depth:
            logger.debug(
                "context nesting exceeded max depth",
                extra={"max_depth": self._options.max_depth},
            )
            return self._options.depth_placeholder

        identity = id(value)
        if identity in self._active:
            return self._options.circular_placeholder
        self._active.add(identity)
        try:
            return self._visit_container(value, depth=depth + 1)
        finally:
            self._active.discard(identity)

    def _visit_container(self, value: object, *, depth: int) -> JSONValue:
        if isinstance(value, BaseException):
            return self._visit_exception(value, depth=depth)
        if isinstance(value, Mapping):
            output: dict[str, JSONValue] = {}
            for key, item in value.items():
                output[key if isinstance(key, str) else safe_str(key)] = self.visit(
                    item, depth=depth
                )
            return output
        if isinstance(value, (list, tuple)):
            return [self.visit(item, depth=depth) for item in value]
        if isinstance(value, (set, frozenset)):
            items = [self.visit(item, depth=depth) for item in value]
            return sorted(items, key=_canonical)
        try:
            return repr(value)
        except Exception:
            logger.warning(
                "context value repr failed", extra={"value_type": type(value).__qualname__}
            )
            return UNREPRESENTABLE_PLACEHOLDER

    def _visit_exception(self, error: BaseException, *, depth: int) -> JSONValue:
        output: dict[str, JSONValue] = {}
        diagnostic = error.diagnostic() if isinstance(error, Diagnosable) else None
        if diagnostic is not None:
            output["message"] = diagnostic.message
            frames = diagnostic.frames
        else:
            output["message"] = safe_str(error)
            frames = frames_from_traceback(error.__traceback__)
        for key, item in getattr(error, "__dict__", {}).items():
            if not key.startswith("_"):
                output[key] = self.visit(item, depth=depth)
        output["type"] = type(error).__qualname__
        if diagnostic is not None:
            output["qualified"] = diagnostic.record.qualified
            output["context"] = self.visit(diagnostic.record.context, depth=depth)
        if frames:
            output["stack"] = [format_frame(frame).strip() for frame in frames]
        return output


def _canonical(item: JSONValue) -> str:
    return json.dumps(item, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


__all__ = [
    "ContextParseError",
    "DEFAULT_SERIALIZER_OPTIONS",
    "SerializerOptions",
    "normalize",
    "parse_context",
    "serialize",
]
