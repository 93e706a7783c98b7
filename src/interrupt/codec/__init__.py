"""Encoder, decoder, and context serializer for diagnostic blobs."""

from interrupt.codec.decoder import decode, is_composite
from interrupt.codec.encoder import (
    DEFAULT_ENCODER_OPTIONS,
    EncoderOptions,
    encode,
    indent,
    render_body,
    render_cause_value,
)
from interrupt.codec.frames import (
    Frame,
    capture_frames,
    format_frame,
    format_frames,
    frames_from_traceback,
    location,
    parse_frame,
    parse_frames,
)
from interrupt.codec.nodes import DecodedNode, ForeignNode, InterruptNode, node_to_dict
from interrupt.codec.record import (
    Cause,
    CauseValue,
    Diagnosable,
    Diagnostic,
    DiagnosticRecord,
    ForeignError,
    PlainValue,
    as_cause,
    as_cause_value,
    as_causes,
)
from interrupt.codec.serializer import (
    DEFAULT_SERIALIZER_OPTIONS,
    ContextParseError,
    JSONValue,
    SerializerOptions,
    normalize,
    parse_context,
    serialize,
)

__all__ = [
    "Cause",
    "CauseValue",
    "ContextParseError",
    "DEFAULT_ENCODER_OPTIONS",
    "DEFAULT_SERIALIZER_OPTIONS",
    "DecodedNode",
    "Diagnosable",
    "Diagnostic",
    "DiagnosticRecord",
    "EncoderOptions",
    "ForeignError",
    "ForeignNode",
    "Frame",
    "InterruptNode",
    "JSONValue",
    "PlainValue",
    "SerializerOptions",
    "as_cause",
    "as_cause_value",
    "as_causes",
    "capture_frames",
    "decode",
    "encode",
    "format_frame",
    "format_frames",
    "frames_from_traceback",
    "indent",
    "is_composite",
    "location",
    "node_to_dict",
    "normalize",
    "parse_context",
    "parse_frame",
    "parse_frames",
    "render_body",
    "render_cause_value",
    "serialize",
]
