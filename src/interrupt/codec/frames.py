"""Call-frame capture, rendering, and location parsing.

File: src/interrupt/codec/frames.py

Purpose
- Capture the current call stack (or an exception traceback) as ``Frame`` records.
- Render frames as ``    at fn (file:line:col)`` lines for the ``stack:`` section.
- Parse frame listings back into ``Frame`` records, including Python traceback lines.
"""

from __future__ import annotations

import re
import sys
import traceback
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from interrupt.constants import FRAME_PREFIX

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from types import TracebackType

# ``at fn (file:line:col)`` or ``at fn (file:line)``
_CALL_FRAME_RE: Final[re.Pattern[str]] = re.compile(
    r"^\s*at (?:(?:new |async )?(?P<function>.+?) )"
    r"\((?P<file>.+?)(?::(?P<line>\d+))?(?::(?P<column>\d+))?\)\s*$"
)
# ``at file:line:col`` without a function name
_BARE_FRAME_RE: Final[re.Pattern[str]] = re.compile(
    r"^\s*at (?P<file>[^\s()]+?)(?::(?P<line>\d+))?(?::(?P<column>\d+))?\s*$"
)
# ``File "path", line 12, in fn``
_PYTHON_FRAME_RE: Final[re.Pattern[str]] = re.compile(
    r'^\s*File "(?P<file>[^"]+)", line (?P<line>\d+)(?:, in (?P<function>.+?))?\s*$'
)


@dataclass(frozen=True, slots=True)
class Frame:
    """One entry of a call-frame listing."""

    file: str | None
    line: int | None
    column: int | None
    function_name: str | None

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "function_name": self.function_name,
        }


def capture_frames(skip: int = 0, limit: int | None = None) -> tuple[Frame, ...]:
    """Return the current call stack, innermost first.

    The ``skip`` innermost caller frames are dropped so callers can hide their
    own construction machinery.
    """

    if skip < 0:
        raise ValueError("skip must be >= 0")
    summaries = traceback.extract_stack(sys._getframe(1))
    summaries.reverse()
    frames = [_from_summary(item) for item in summaries]
    frames = frames[skip:]
    if limit is not None:
        frames = frames[: max(limit, 0)]
    return tuple(frames)


def frames_from_traceback(tb: TracebackType | None) -> tuple[Frame, ...]:
    """Return the frames of an exception traceback, innermost first."""

    if tb is None:
        return ()
    summaries = traceback.extract_tb(tb)
    summaries.reverse()
    return tuple(_from_summary(item) for item in summaries)


def format_frame(frame: Frame) -> str:
    position = frame.file or "<unknown>"
    if frame.line is not None:
        position = f"{position}:{frame.line}"
        if frame.column is not None:
            position = f"{position}:{frame.column}"
    if frame.function_name:
        return f"{FRAME_PREFIX}{frame.function_name} ({position})"
    return f"{FRAME_PREFIX}{position}"


def format_frames(frames: Iterable[Frame]) -> str:
    """Render frames one per line, each indented as a ``stack:`` entry."""

    return "\n".join(format_frame(frame) for frame in frames)


def parse_frame(line: str) -> Frame | None:
    """Parse one frame line, returning ``None`` when it is not a frame."""

    match = _CALL_FRAME_RE.match(line)
    if match is not None:
        return Frame(
            file=match.group("file"),
            line=_as_int(match.group("line")),
            column=_as_int(match.group("column")),
            function_name=match.group("function"),
        )
    match = _BARE_FRAME_RE.match(line)
    if match is not None:
        return Frame(
            file=match.group("file"),
            line=_as_int(match.group("line")),
            column=_as_int(match.group("column")),
            function_name=None,
        )
    match = _PYTHON_FRAME_RE.match(line)
    if match is not None:
        return Frame(
            file=match.group("file"),
            line=_as_int(match.group("line")),
            column=None,
            function_name=match.group("function"),
        )
    return None


def parse_frames(text: str) -> tuple[Frame, ...]:
    """Parse every recognizable frame line in ``text``; other lines are ignored."""

    frames: list[Frame] = []
    for line in text.splitlines():
        frame = parse_frame(line)
        if frame is not None:
            frames.append(frame)
    return tuple(frames)


def location(text: str | Sequence[Frame]) -> tuple[str | None, int | None]:
    """Return ``(file, line)`` of the first frame, or ``(None, None)``."""

    frames = parse_frames(text) if isinstance(text, str) else tuple(text)
    if not frames:
        return (None, None)
    return (frames[0].file, frames[0].line)


def _from_summary(summary: traceback.FrameSummary) -> Frame:
    column = getattr(summary, "colno", None)
    return Frame(
        file=summary.filename,
        line=summary.lineno,
        column=column + 1 if isinstance(column, int) else None,
        function_name=summary.name,
    )


def _as_int(value: str | None) -> int | None:
    if value is None:
        return None
    return int(value)


__all__ = [
    "Frame",
    "capture_frames",
    "format_frame",
    "format_frames",
    "frames_from_traceback",
    "location",
    "parse_frame",
    "parse_frames",
]
