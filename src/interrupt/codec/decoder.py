"""
interrupt: diagnostic decoder.

File: src/interrupt/codec/decoder.py

Purpose
- Rebuild a diagnostic tree from a composite blob produced by the encoder.

States
- Detect: the last ``qualifier#label`` header line followed later by a ``stack:`` line.
  A printed chained traceback lists causes first, so the outermost blob is last.
- Composite: split the text up to the blob's own ``stack:`` line on ``cause:`` lines,
  dedent and recurse into causes; the stack is the frame run after ``stack:``.
- Foreign: ``Type: message`` followed by ``    at ...`` frame lines.
- Leaf: anything else below the root is returned as trimmed text.

Malformed root context blocks raise ``ContextParseError``. A cause section whose
leading paragraph is not a JSON object is decoded whole as the cause.
"""

from __future__ import annotations

import json
import logging
import re
from itertools import takewhile

from interrupt.codec.frames import parse_frames
from interrupt.codec.nodes import DecodedNode, ForeignNode, InterruptNode
from interrupt.codec.serializer import JSONValue, parse_context
from interrupt.constants import (
    CAUSE_LINE_PATTERN,
    FOREIGN_HEADER_PATTERN,
    FRAME_PREFIX,
    FRAME_RUN_PATTERN,
    HEADER_LINE_PATTERN,
    INDENT,
    INDENT_PATTERN,
    STACK_LINE_PATTERN,
)

logger = logging.getLogger(__name__)

_CONTINUATION_INDENT = re.compile(r"\n" + re.escape(INDENT))
_JSON_DECODER = json.JSONDecoder()


def decode(text: str, is_root: bool = True) -> DecodedNode | None:
    """Decode ``text``.

    Returns an ``InterruptNode`` for a composite blob. At the root anything
    else yields ``None``; below the root it yields a ``ForeignNode`` or the
    trimmed text.
    """

    found = _find_header(text)
    if found is not None:
        return _decode_composite(text, *found)
    if is_root:
        return None
    return _decode_foreign(text)


def is_composite(text: str) -> bool:
    """Return whether ``text`` contains a composite blob."""

    return _find_header(text) is not None


def _find_header(text: str) -> tuple[re.Match[str], re.Match[str]] | None:
    found: tuple[re.Match[str], re.Match[str]] | None = None
    for header in HEADER_LINE_PATTERN.finditer(text):
        stack = STACK_LINE_PATTERN.search(text, header.end())
        if stack is None:
            break
        found = (header, stack)
    return found


def _decode_composite(
    text: str, header: re.Match[str], stack: re.Match[str]
) -> InterruptNode:
    chunks = CAUSE_LINE_PATTERN.split(text[header.end() : stack.start()])
    context_chunk = chunks[0]

    context: JSONValue = None
    if context_chunk.strip():
        context = parse_context(context_chunk)

    causes: list[DecodedNode] = []
    contexts: list[JSONValue] = []
    for chunk in chunks[1:]:
        cause_context, cause = _decode_cause(chunk)
        causes.append(cause)
        contexts.append(cause_context)

    return InterruptNode(
        qualifier=header.group("qualifier"),
        name=header.group("label"),
        context=context,
        causes=tuple(causes),
        contexts=tuple(contexts),
        stack=parse_frames(_frame_run(text[stack.end() :])),
    )


def _frame_run(text: str) -> str:
    lines = text.lstrip("\n").split("\n")
    return "\n".join(takewhile(lambda line: line.startswith(FRAME_PREFIX), lines))


def _decode_cause(chunk: str) -> tuple[JSONValue, DecodedNode]:
    dedented = INDENT_PATTERN.sub("", chunk).strip("\n")
    context, body = _split_sub_context(dedented)
    return context, _decode_nested(body)


def _split_sub_context(text: str) -> tuple[JSONValue, str]:
    # A sub-context is a JSON object ending at a blank line or at the end of the section.
    if not text.startswith("{"):
        return None, text
    try:
        context, end = _JSON_DECODER.raw_decode(text)
    except json.JSONDecodeError:
        return None, text
    rest = text[end:]
    if rest and not rest.startswith("\n\n"):
        return None, text
    return context, rest.strip("\n")


def _decode_nested(text: str) -> DecodedNode:
    found = _find_header(text)
    if found is not None:
        return _decode_composite(text, *found)
    return _decode_foreign(text)


def _decode_foreign(text: str) -> DecodedNode:
    trimmed = text.strip()
    frames = FRAME_RUN_PATTERN.search(trimmed)
    if frames is None:
        return trimmed
    head = trimmed[: frames.start()]
    match = FOREIGN_HEADER_PATTERN.match(head)
    if match is None:
        logger.debug("cause with frames but no type header", extra={"cause_text": head})
        return trimmed
    message = _CONTINUATION_INDENT.sub("\n", match.group(2)).strip()
    return ForeignNode(
        type=match.group(1).strip(),
        message=message,
        stack=parse_frames(frames.group(0)),
    )


__all__ = ["decode", "is_composite"]
