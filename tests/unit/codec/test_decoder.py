"""
interrupt: unit tests for the diagnostic decoder

File: tests/unit/codec/test_decoder.py

Purpose
- Validate reconstruction of diagnostic trees from encoded and printed blobs.

What this test file should cover
- Root detection, prefixed headers, and the ``None`` result for non-blobs.
- Foreign fallback and raw leaves below the root.
- Nested causes with per-level indentation stripping.
- Sub-context detection for empty and brace-led causes.
- Chained tracebacks, frame-run bounds, malformed root context, and decode purity.
"""

from __future__ import annotations

import pytest

from interrupt.codec.decoder import decode, is_composite
from interrupt.codec.encoder import encode
from interrupt.codec.frames import Frame
from interrupt.codec.nodes import ForeignNode, InterruptNode, node_to_dict
from interrupt.codec.record import DiagnosticRecord
from interrupt.codec.serializer import ContextParseError

NESTED_BLOB = """outer.module#outer

{
    "a": 1
}

cause:

    inner.module#inner

    {
        "b": 2
    }

    cause:

        leaf text

    stack:
        at innerFn (inner.js:2:3)

stack:
    at outerFn (outer.js:1:1)"""


def test_empty_and_unrelated_text_decode_to_none() -> None:
    assert decode("") is None
    assert decode("unlikely string") is None
    assert not is_composite("a#b without stack marker")


def test_foreign_fallback_below_root() -> None:
    node = decode("TypeName: message\n    at fn (file:1:1)\n", is_root=False)

    assert node == ForeignNode("TypeName", "message", (Frame("file", 1, 1, "fn"),))


def test_foreign_multiline_message_is_dedented() -> None:
    node = decode("ValueError: first\n    second\n    at fn (f.py:2:1)", is_root=False)

    assert isinstance(node, ForeignNode)
    assert node.message == "first\nsecond"


def test_raw_leaf_below_root() -> None:
    assert decode("unlikely string", is_root=False) == "unlikely string"
    assert decode("  padded\n", is_root=False) == "padded"


def test_nested_depth_two() -> None:
    node = decode(NESTED_BLOB)

    assert isinstance(node, InterruptNode)
    assert node.qualifier == "outer.module"
    assert node.name == "outer"
    assert node.context == {"a": 1}
    assert node.contexts == (None,)
    assert node.stack == (Frame("outer.js", 1, 1, "outerFn"),)

    inner = node.causes[0]
    assert isinstance(inner, InterruptNode)
    assert inner.qualified == "inner.module#inner"
    assert inner.context == {"b": 2}
    assert inner.causes == ("leaf text",)
    assert inner.stack == (Frame("inner.js", 2, 3, "innerFn"),)


def test_header_prefix_from_printed_traceback_is_ignored() -> None:
    text = (
        "Traceback (most recent call last):\n"
        '  File "app.py", line 3, in <module>\n'
        "app.errors.Example: bigeasy.example#bar\n\nstack:\n    at main (app.py:3:1)\n"
    )

    node = decode(text)

    assert isinstance(node, InterruptNode)
    assert node.qualified == "bigeasy.example#bar"
    assert node.context is None
    assert node.stack == (Frame("app.py", 3, 1, "main"),)


def test_end_to_end_example() -> None:
    try:
        raise ConnectionError("refused")
    except ConnectionError as exc:
        record = DiagnosticRecord(
            "bigeasy.example",
            "bar",
            {"statusCode": 404},
            causes=((exc, {"url": "https://example.com/"}),),
        )

    blob = encode(record, frames=(Frame("example.py", 10, 5, "fetch"),))
    node = decode(blob)

    assert isinstance(node, InterruptNode)
    assert node.qualified == "bigeasy.example#bar"
    assert node.context == {"statusCode": 404}
    assert node.contexts == ({"url": "https://example.com/"},)
    cause = node.causes[0]
    assert isinstance(cause, ForeignNode)
    assert cause.type == "ConnectionError"
    assert cause.message == "refused"
    assert cause.stack[0].function_name == "test_end_to_end_example"
    assert node.stack == (Frame("example.py", 10, 5, "fetch"),)


def test_malformed_context_raises() -> None:
    with pytest.raises(ContextParseError):
        decode("a.b#c\n\n{not json\n\nstack:\n")


def test_brace_text_that_is_not_json_stays_in_the_cause() -> None:
    text = "a.b#c\n\ncause:\n\n    {broken\n\n    leaf\n\nstack:\n"

    node = decode(text)

    assert isinstance(node, InterruptNode)
    assert node.causes == ("{broken\n\nleaf",)
    assert node.contexts == (None,)


def test_multi_paragraph_brace_cause_decodes_from_encoder_output() -> None:
    record = DiagnosticRecord("a.b", "c", causes=("{draft}\n\nsecond paragraph",))

    node = decode(encode(record, frames=()))

    assert isinstance(node, InterruptNode)
    assert node.causes == ("{draft}\n\nsecond paragraph",)
    assert node.contexts == (None,)


def test_sub_context_of_an_empty_cause_is_kept() -> None:
    record = DiagnosticRecord("a.b", "c", causes=(("", {"k": 1}),))

    node = decode(encode(record, frames=()))

    assert isinstance(node, InterruptNode)
    assert node.causes == ("",)
    assert node.contexts == ({"k": 1},)


def test_stack_stops_at_the_end_of_the_frame_run() -> None:
    text = (
        "a.b#c\n\nstack:\n    at f (x.py:1:2)\n\n"
        "During handling of the above exception, another exception occurred:\n\n"
        '  File "later.py", line 9, in handler\n'
    )

    node = decode(text)

    assert isinstance(node, InterruptNode)
    assert node.stack == (Frame("x.py", 1, 2, "f"),)


def test_last_header_wins_when_several_blobs_are_printed() -> None:
    text = (
        "inner.module#inner\n\nstack:\n    at g (i.py:2:1)\n\n"
        "The above exception was the direct cause of the following exception:\n\n"
        "outer.module#outer\n\ncause:\n\n    inner.module#inner\n    \n    stack:\n"
        "        at g (i.py:2:1)\n\nstack:\n    at f (o.py:1:1)\n"
    )

    node = decode(text)

    assert isinstance(node, InterruptNode)
    assert node.qualified == "outer.module#outer"
    assert len(node.causes) == 1
    inner = node.causes[0]
    assert isinstance(inner, InterruptNode)
    assert inner.qualified == "inner.module#inner"
    assert inner.causes == ()
    assert node.stack == (Frame("o.py", 1, 1, "f"),)


def test_decode_is_pure() -> None:
    first = decode(NESTED_BLOB)
    second = decode(NESTED_BLOB)

    assert first == second
    assert node_to_dict(first) == node_to_dict(second)


def test_node_to_dict_shape() -> None:
    node = decode("a.b#c\n\ncause:\n\n    leaf\n\nstack:\n    at f (x.py:1:2)")

    assert node_to_dict(node) == {
        "type": "Interrupt",
        "qualifier": "a.b",
        "name": "c",
        "context": None,
        "causes": ["leaf"],
        "contexts": [None],
        "stack": [{"file": "x.py", "line": 1, "column": 2, "function_name": "f"}],
    }
