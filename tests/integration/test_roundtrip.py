"""
interrupt: encode/decode round-trip properties

File: tests/integration/test_roundtrip.py

Purpose
- Property-check that decoding an encoded record restores its structure.

What this test file should cover
- Qualifier and label survive the round trip.
- JSON-safe contexts are restored exactly.
- Cause order and the pairing of sub-contexts with causes.
- Raised ``Interrupt`` exceptions decode from their printed traceback, chained ones included.
"""

from __future__ import annotations

import traceback

from hypothesis import given, settings
from hypothesis import strategies as st

from interrupt import Interrupt, InterruptNode, create, decode, encode
from interrupt.codec.frames import Frame
from interrupt.codec.record import DiagnosticRecord
from interrupt.codec.serializer import JSONValue

_IDENTIFIER = st.from_regex(
    r"[A-Za-z_][A-Za-z0-9_]{0,8}(\.[A-Za-z_][A-Za-z0-9_]{0,8}){0,2}", fullmatch=True
)

_SAFE_KEY = st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=8)

_SCALAR: st.SearchStrategy[JSONValue] = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(10**12), max_value=10**12),
    st.floats(allow_nan=False, allow_infinity=False),
    st.text(max_size=20),
)

_JSON_VALUE: st.SearchStrategy[JSONValue] = st.recursive(
    _SCALAR,
    lambda child: st.one_of(
        st.lists(child, max_size=4),
        st.dictionaries(_SAFE_KEY, child, max_size=4),
    ),
    max_leaves=20,
)

_CONTEXT = st.dictionaries(_SAFE_KEY, _JSON_VALUE, min_size=1, max_size=5)

_CAUSE_TEXT = st.one_of(
    st.just(""),
    st.from_regex(r"[a-z][a-z0-9 ,.]{0,30}[a-z0-9]", fullmatch=True),
)

_FRAMES = (Frame("app.py", 1, 1, "main"),)


@given(qualifier=_IDENTIFIER, label=_IDENTIFIER)
@settings(max_examples=50, derandomize=True, deadline=None)
def test_property_qualifier_and_label_round_trip(qualifier: str, label: str) -> None:
    node = decode(encode(DiagnosticRecord(qualifier, label), frames=_FRAMES))

    assert isinstance(node, InterruptNode)
    assert node.qualifier == qualifier
    assert node.name == label
    assert node.stack == _FRAMES


@given(context=_CONTEXT)
@settings(max_examples=50, derandomize=True, deadline=None)
def test_property_context_fidelity(context: dict[str, JSONValue]) -> None:
    node = decode(encode(DiagnosticRecord("a.b", "c", context), frames=()))

    assert isinstance(node, InterruptNode)
    assert node.context == context


@given(
    causes=st.lists(
        st.tuples(_CAUSE_TEXT, st.one_of(st.none(), _CONTEXT)),
        min_size=1,
        max_size=4,
    )
)
@settings(max_examples=50, derandomize=True, deadline=None)
def test_property_cause_order_and_context_pairing(
    causes: list[tuple[str, dict[str, JSONValue] | None]],
) -> None:
    node = decode(encode(DiagnosticRecord("a.b", "c", causes=tuple(causes)), frames=()))

    assert isinstance(node, InterruptNode)
    assert node.causes == tuple(text for text, _ in causes)
    assert node.contexts == tuple(context for _, context in causes)


@given(context=_CONTEXT)
@settings(max_examples=25, derandomize=True, deadline=None)
def test_property_nested_cause_context_fidelity(context: dict[str, JSONValue]) -> None:
    inner = create("inner.Error")("failed", context)
    outer = create("outer.Error")("wrapped", (inner, context))

    node = Interrupt.parse(str(outer))

    assert isinstance(node, InterruptNode)
    assert node.contexts == (context,)
    nested = node.causes[0]
    assert isinstance(nested, InterruptNode)
    assert nested.qualified == "inner.Error#failed"
    assert nested.context == context


def test_printed_traceback_decodes() -> None:
    Example = create("bigeasy.example")

    try:
        raise Example("bar", {"statusCode": 404}, ValueError("upstream"))
    except Example as exc:
        printed = "".join(traceback.format_exception(exc))

    node = decode(printed)

    assert isinstance(node, InterruptNode)
    assert node.qualified == "bigeasy.example#bar"
    assert node.context == {"statusCode": 404}
    assert node.causes == ("ValueError: upstream",)


def test_printed_chained_traceback_decodes_the_outer_error() -> None:
    Inner = create("app.Inner")
    Outer = create("app.Outer")

    try:
        try:
            raise Inner("inner_failed", {"attempt": 1})
        except Inner as inner:
            raise Outer("outer_failed", inner)
    except Outer as exc:
        printed = "".join(traceback.format_exception(exc))

    node = decode(printed)

    assert isinstance(node, InterruptNode)
    assert node.qualified == "app.Outer#outer_failed"
    assert node.contexts == (None,)
    [cause] = node.causes
    assert isinstance(cause, InterruptNode)
    assert cause.qualified == "app.Inner#inner_failed"
    assert cause.context == {"attempt": 1}
    assert cause.causes == ()
    outer_frame = node.stack[0]
    assert outer_frame.function_name == "test_printed_chained_traceback_decodes_the_outer_error"
