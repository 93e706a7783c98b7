"""Output rendering for the interrupt CLI.

File: src/interrupt/ui/render.py

Purpose
- Render decoded diagnostic trees with ``rich``.
- Respect NO_COLOR environment variable and --no-color CLI flag.

Functional requirements
- Plain-text output must be stable when color is disabled.
"""

from __future__ import annotations

import json
import os
import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.style import Style
from rich.text import Text
from rich.tree import Tree

from interrupt.codec.frames import format_frame
from interrupt.codec.nodes import ForeignNode, InterruptNode

if TYPE_CHECKING:
    from collections.abc import Sequence

    from interrupt.codec.frames import Frame
    from interrupt.codec.nodes import DecodedNode
    from interrupt.codec.serializer import JSONValue

_S_QUALIFIED = Style(color="bright_cyan", bold=True)
_S_FOREIGN = Style(color="red", bold=True)
_S_SECTION = Style(color="bright_black")
_S_KEY = Style(color="cyan")
_S_FRAME = Style(color="bright_black", italic=True)


def _color_allowed(no_color_flag: bool) -> bool:
    """Check whether color output should be attempted."""

    if no_color_flag:
        return False
    if os.environ.get("NO_COLOR", ""):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


class CLIRenderer:
    """Thin CLI output renderer backed by a ``rich`` console."""

    def __init__(self, *, no_color: bool = False) -> None:
        self._color = _color_allowed(no_color)
        self._console = Console(
            no_color=not self._color,
            color_system="auto" if self._color else None,
            highlight=False,
            soft_wrap=True,
        )

    def text(self, line: str) -> None:
        """Print a plain text line."""

        self._console.print(Text(line))

    def kv(self, key: str, value: object) -> None:
        """Print a key: value pair."""

        self._console.print(Text(f"{key}: {value}"))

    def tree(self, node: DecodedNode) -> None:
        """Print a decoded node as an indented tree."""

        self._console.print(build_tree(node))


def build_tree(node: DecodedNode) -> Tree:
    """Build a ``rich`` tree for a decoded node."""

    tree = Tree(_label(node))
    _fill(tree, node)
    return tree


def _label(node: DecodedNode) -> Text:
    if isinstance(node, InterruptNode):
        return Text(node.qualified, style=_S_QUALIFIED)
    if isinstance(node, ForeignNode):
        label = Text(node.type, style=_S_FOREIGN)
        if node.message:
            label.append(f": {node.message}")
        return label
    return Text(node)


def _fill(tree: Tree, node: DecodedNode) -> None:
    if isinstance(node, InterruptNode):
        if isinstance(node.context, dict) and node.context:
            _add_context(tree.add(Text("context", style=_S_SECTION)), node.context)
        for index, (cause, context) in enumerate(zip(node.causes, node.contexts, strict=True)):
            branch = tree.add(Text(f"cause {index + 1}", style=_S_SECTION))
            if isinstance(context, dict):
                _add_context(branch.add(Text("context", style=_S_SECTION)), context)
            child = branch.add(_label(cause))
            _fill(child, cause)
        _add_frames(tree, node.stack)
    elif isinstance(node, ForeignNode):
        _add_frames(tree, node.stack)


def _add_context(tree: Tree, context: dict[str, JSONValue]) -> None:
    for key, value in context.items():
        line = Text(f"{key}: ", style=_S_KEY)
        line.append(json.dumps(value, ensure_ascii=False))
        tree.add(line)


def _add_frames(tree: Tree, frames: Sequence[Frame]) -> None:
    if not frames:
        return
    branch = tree.add(Text("stack", style=_S_SECTION))
    for frame in frames:
        branch.add(Text(format_frame(frame).strip(), style=_S_FRAME))


def create_renderer(*, no_color: bool = False) -> CLIRenderer:
    """Create a CLI renderer with the given settings."""

    return CLIRenderer(no_color=no_color)


__all__ = ["CLIRenderer", "build_tree", "create_renderer"]
