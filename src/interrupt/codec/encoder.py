"""
interrupt: diagnostic encoder.

File: src/interrupt/codec/encoder.py

Purpose
- Render a ``DiagnosticRecord`` into the composite text blob carried by an exception.

Layout
- Header line ``qualifier#label``.
- Optional blank line and context dump.
- One ``cause:`` section per cause, its body indented by four spaces.
- A ``stack:`` section with the frame listing, always last.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from interrupt.codec.frames import Frame, capture_frames, format_frames
from interrupt.codec.record import (
    Cause,
    CauseValue,
    Diagnostic,
    DiagnosticRecord,
    ForeignError,
    safe_str,
)
from interrupt.codec.serializer import DEFAULT_SERIALIZER_OPTIONS, SerializerOptions, serialize
from interrupt.constants import CAUSE_MARKER, INDENT, STACK_MARKER

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True, slots=True)
class EncoderOptions:
    """Encoder behaviour resolved once from configuration."""

    serializer: SerializerOptions = field(default_factory=lambda: DEFAULT_SERIALIZER_OPTIONS)
    capture_stack: bool = True
    stack_limit: int | None = None
    aggregate_causes: bool = True


DEFAULT_ENCODER_OPTIONS: Final[EncoderOptions] = EncoderOptions()


def encode(
    record: DiagnosticRecord,
    *,
    frames: Sequence[Frame] | None = None,
    options: EncoderOptions | None = None,
) -> str:
    """Render ``record`` as a composite blob.

    When ``frames`` is ``None`` the caller's stack is captured (unless disabled
    by ``options.capture_stack``).
    """

    resolved = options or DEFAULT_ENCODER_OPTIONS
    if frames is None:
        if resolved.capture_stack:
            frames = capture_frames(skip=1, limit=resolved.stack_limit)
        else:
            frames = ()
    return _encode(record, tuple(frames), resolved)


def render_body(record: DiagnosticRecord, options: EncoderOptions | None = None) -> str:
    """Render the header, context and cause sections without the ``stack:`` section."""

    resolved = options or DEFAULT_ENCODER_OPTIONS
    parts = [record.qualified]
    if len(record.context) != 0:
        parts.append("\n\n")
        parts.append(serialize(record.context, resolved.serializer))
    for cause in record.causes:
        parts.append(_render_cause(cause, resolved))
    return "".join(parts)


def render_cause_value(value: CauseValue, options: EncoderOptions) -> str:
    """Render a cause value before indentation."""

    if isinstance(value, Diagnostic):
        return _encode(value.record, value.frames, options)
    if isinstance(value, ForeignError):
        return _render_foreign(value)
    return safe_str(value.value)


def indent(text: str) -> str:
    """Prefix every line of ``text``, blank lines included, with one indent level."""

    return "\n".join(INDENT + line for line in text.split("\n"))


def _encode(record: DiagnosticRecord, frames: tuple[Frame, ...], options: EncoderOptions) -> str:
    listing = format_frames(frames)
    stack = f"\n\n{STACK_MARKER}\n{listing}" if listing else f"\n\n{STACK_MARKER}\n"
    return render_body(record, options) + stack


def _render_cause(cause: Cause, options: EncoderOptions) -> str:
    parts = [f"\n\n{CAUSE_MARKER}\n\n"]
    if cause.context is not None:
        parts.append(indent(serialize(cause.context, options.serializer)))
        parts.append("\n\n")
    parts.append(indent(render_cause_value(cause.value, options)))
    return "".join(parts)


def _render_foreign(error: ForeignError) -> str:
    lines = error.message.split("\n")
    message = "\n".join([lines[0], *(INDENT + line for line in lines[1:])])
    header = f"{error.type_name}: {message}" if error.message else error.type_name
    listing = format_frames(error.frames)
    if not listing:
        return header
    return f"{header}\n{listing}"


__all__ = [
    "DEFAULT_ENCODER_OPTIONS",
    "EncoderOptions",
    "encode",
    "indent",
    "render_body",
    "render_cause_value",
]
