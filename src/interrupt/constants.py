"""Wire-format constants shared by the encoder and the decoder."""

from __future__ import annotations

import re
from typing import Final

# Section markers. Each occupies a whole line at column zero of its blob.
CAUSE_MARKER: Final[str] = "cause:"
STACK_MARKER: Final[str] = "stack:"

# Indentation applied to every line of a nested cause body, once per level.
INDENT: Final[str] = "    "

# Prefix of every line in a ``stack:`` listing.
FRAME_PREFIX: Final[str] = INDENT + "at "

# Separator between qualifier and label in the header line.
QUALIFIED_SEPARATOR: Final[str] = "#"

IDENTIFIER_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[\w.]+$")

# A header line, optionally preceded by a ``Type: `` tag prepended by a
# traceback printer. Multi-line so it can find the header anywhere.
HEADER_LINE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:[\w.<>]+: )?(?P<qualifier>[\w.]+)"
    + re.escape(QUALIFIED_SEPARATOR)
    + r"(?P<label>[\w.]+)[ \t]*$",
    re.MULTILINE,
)
STACK_LINE_PATTERN: Final[re.Pattern[str]] = re.compile(
    "^" + re.escape(STACK_MARKER) + "$", re.MULTILINE
)
CAUSE_LINE_PATTERN: Final[re.Pattern[str]] = re.compile(
    "^" + re.escape(CAUSE_MARKER) + "$", re.MULTILINE
)
INDENT_PATTERN: Final[re.Pattern[str]] = re.compile("^" + re.escape(INDENT), re.MULTILINE)

# Trailing run of frame lines on a foreign error rendering.
FRAME_RUN_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:\n" + re.escape(FRAME_PREFIX) + r"[^\n]+)+$"
)
FOREIGN_HEADER_PATTERN: Final[re.Pattern[str]] = re.compile(r"^([^:\n]+):?(.*)", re.DOTALL)

# Placeholders written by the serializer when it refuses to recurse.
CIRCULAR_PLACEHOLDER: Final[str] = "[Circular]"
DEPTH_PLACEHOLDER: Final[str] = "[Depth]"
UNREPRESENTABLE_PLACEHOLDER: Final[str] = "[Unrepresentable]"
DEFAULT_MAX_DEPTH: Final[int] = 32

CONFIG_SCHEMA_VERSION: Final[int] = 1

__all__ = [
    "CAUSE_LINE_PATTERN",
    "CAUSE_MARKER",
    "CIRCULAR_PLACEHOLDER",
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_MAX_DEPTH",
    "DEPTH_PLACEHOLDER",
    "FOREIGN_HEADER_PATTERN",
    "FRAME_PREFIX",
    "FRAME_RUN_PATTERN",
    "HEADER_LINE_PATTERN",
    "IDENTIFIER_PATTERN",
    "INDENT",
    "INDENT_PATTERN",
    "QUALIFIED_SEPARATOR",
    "STACK_LINE_PATTERN",
    "STACK_MARKER",
    "UNREPRESENTABLE_PLACEHOLDER",
]
