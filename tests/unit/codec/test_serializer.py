"""
interrupt: unit tests for the context serializer

File: tests/unit/codec/test_serializer.py

Purpose
- Validate the indented JSON context dump and its parser.

What this test file should cover
- Insertion order and four-space indentation.
- Cycle and depth placeholders; serialization never raises.
- Exception expansion for foreign and diagnostic errors.
- ``ContextParseError`` for malformed blocks.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

import pytest

from interrupt.codec.frames import Frame
from interrupt.codec.record import Diagnosable, Diagnostic, DiagnosticRecord
from interrupt.codec.serializer import (
    ContextParseError,
    SerializerOptions,
    normalize,
    parse_context,
    serialize,
)


class _ExplodingRepr:
    def __repr__(self) -> str:
        raise RuntimeError("no repr")


class _RecordedError(Diagnosable, Exception):
    def diagnostic(self) -> Diagnostic:
        return Diagnostic(
            record=DiagnosticRecord("app.db", "timeout", {"ms": 50}),
            frames=(Frame("db.py", 4, 1, "query"),),
            message="query timed out",
        )


def test_serialize_preserves_insertion_order_and_indent() -> None:
    text = serialize({"b": 1, "a": [True, None]})

    assert text == '{\n    "b": 1,\n    "a": [\n        true,\n        null\n    ]\n}'
    assert list(json.loads(text)) == ["b", "a"]


def test_serialize_keeps_non_ascii_text() -> None:
    assert serialize({"city": "Zürich"}) == '{\n    "city": "Zürich"\n}'


def test_cycles_become_placeholders() -> None:
    cyclic: dict[str, object] = {"name": "root"}
    cyclic["self"] = cyclic

    assert normalize(cyclic) == {"name": "root", "self": "[Circular]"}


def test_shared_non_cyclic_values_are_rendered_each_time() -> None:
    shared = {"k": 1}

    assert normalize({"a": shared, "b": shared}) == {"a": {"k": 1}, "b": {"k": 1}}


def test_depth_limit_becomes_placeholder() -> None:
    nested: dict[str, object] = {"leaf": 1}
    for _ in range(5):
        nested = {"child": nested}

    options = SerializerOptions(max_depth=2)

    assert normalize(nested, options) == {"child": {"child": "[Depth]"}}


def test_custom_placeholders_are_used() -> None:
    cyclic: list[object] = []
    cyclic.append(cyclic)

    options = SerializerOptions(circular_placeholder="<cycle>")

    assert normalize(cyclic, options) == ["<cycle>"]


def test_scalars_and_special_values() -> None:
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)

    assert normalize(
        {
            "when": moment,
            "path": Path("/tmp/x"),
            "raw": b"bytes",
            "nan": float("nan"),
            "tags": {"b", "a"},
            "pair": (1, 2),
        }
    ) == {
        "when": "2024-01-02T03:04:05.000000Z",
        "path": "/tmp/x",
        "raw": "bytes",
        "nan": "nan",
        "tags": ["a", "b"],
        "pair": [1, 2],
    }


def test_unrepresentable_values_never_raise(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="interrupt"):
        text = serialize({"bad": _ExplodingRepr()})

    assert json.loads(text) == {"bad": "[Unrepresentable]"}
    assert any("repr failed" in record.getMessage() for record in caplog.records)


def test_non_string_keys_are_stringified() -> None:
    assert normalize({1: "one", None: "none"}) == {"1": "one", "None": "none"}


def test_foreign_exception_is_expanded() -> None:
    error = KeyError("missing")
    error.retryable = False  # type: ignore[attr-defined]

    expanded = normalize({"error": error})

    assert expanded == {
        "error": {"message": "'missing'", "retryable": False, "type": "KeyError"}
    }


def test_diagnostic_exception_is_expanded() -> None:
    expanded = normalize(_RecordedError())

    assert expanded == {
        "message": "query timed out",
        "type": "_RecordedError",
        "qualified": "app.db#timeout",
        "context": {"ms": 50},
        "stack": ["at query (db.py:4:1)"],
    }


def test_parse_context_round_trip() -> None:
    payload = {"statusCode": 404, "nested": {"list": [1, "two", None]}}

    assert parse_context(serialize(payload)) == payload


def test_parse_context_rejects_malformed_block() -> None:
    with pytest.raises(ContextParseError) as excinfo:
        parse_context("{ not json")

    assert excinfo.value.text == "{ not json"
    assert "malformed context block" in str(excinfo.value)
