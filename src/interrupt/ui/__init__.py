"""UI package exports for the CLI and tree rendering."""

from interrupt.ui.cli import CLIError, build_parser, main, run_cli
from interrupt.ui.render import CLIRenderer, build_tree, create_renderer

__all__ = [
    "CLIError",
    "CLIRenderer",
    "build_parser",
    "build_tree",
    "create_renderer",
    "main",
    "run_cli",
]
