"""
interrupt: structured exceptions with a text round-trip.

File: src/interrupt/__init__.py

Purpose
- Package root. Exports the encoder, decoder, serializer, and ``Interrupt`` API.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
- Must not import the CLI or ``rich``.
"""

from interrupt.codec import (
    Cause,
    ContextParseError,
    DecodedNode,
    Diagnosable,
    Diagnostic,
    DiagnosticRecord,
    EncoderOptions,
    ForeignError,
    ForeignNode,
    Frame,
    InterruptNode,
    PlainValue,
    SerializerOptions,
    capture_frames,
    decode,
    encode,
    format_frames,
    frames_from_traceback,
    location,
    parse_context,
    parse_frames,
    serialize,
)
from interrupt.errors import (
    FORMAT_ERROR,
    FormatFailure,
    Interrupt,
    InterruptDefinitionError,
    create,
    dedup,
    message,
)

__version__ = "0.1.0"

__all__ = [
    "Cause",
    "ContextParseError",
    "DecodedNode",
    "Diagnosable",
    "Diagnostic",
    "DiagnosticRecord",
    "EncoderOptions",
    "FORMAT_ERROR",
    "ForeignError",
    "ForeignNode",
    "FormatFailure",
    "Frame",
    "Interrupt",
    "InterruptDefinitionError",
    "InterruptNode",
    "PlainValue",
    "SerializerOptions",
    "__version__",
    "capture_frames",
    "create",
    "decode",
    "dedup",
    "encode",
    "format_frames",
    "frames_from_traceback",
    "location",
    "message",
    "parse_context",
    "parse_frames",
    "serialize",
]
