"""Command-line interface router for interrupt."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import yaml

from interrupt.codec.decoder import decode
from interrupt.codec.nodes import node_to_dict
from interrupt.codec.serializer import ContextParseError
from interrupt.config import (
    ConfigLoadError,
    ConfigValidationError,
    dump_effective_config,
    load_config,
)
from interrupt.observability import setup_logging
from interrupt.ui.render import CLIRenderer, create_renderer

OUTPUT_FORMATS: Final[tuple[str, ...]] = ("tree", "json", "yaml")
STDIN_PATH: Final[str] = "-"


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="interrupt",
        description=(
            "interrupt: decode structured exception blobs.\n\n"
            "Common workflows:\n"
            "  interrupt decode trace.txt         Print the diagnostic tree\n"
            "  interrupt decode --format json     Decode stdin as JSON\n"
            "  interrupt config                   Show the effective config\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./interrupt.toml if present).",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # decode --------------------------------------------------------------
    decode_parser = subparsers.add_parser(
        "decode",
        parents=[common],
        help="Decode a diagnostic blob into a tree",
        description=(
            "Read a printed exception (or bare blob) and print its diagnostic tree.\n\n"
            "Examples:\n"
            "  interrupt decode trace.txt\n"
            "  interrupt decode trace.txt --format yaml\n"
            "  some-command 2>&1 | interrupt decode -\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    decode_parser.add_argument(
        "path",
        nargs="?",
        default=STDIN_PATH,
        help="File containing the blob, or '-' for stdin (default: stdin)",
    )
    decode_parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="tree",
        help="Output format (default: tree)",
    )
    decode_parser.set_defaults(handler=_cmd_decode)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration",
    )
    config_parser.add_argument("--json", action="store_true", help="Emit compact JSON output")
    config_parser.set_defaults(handler=_cmd_config)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    """Compatibility wrapper for main-module wiring."""

    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_decode(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    setup_logging(config["observability"])
    text = _read_input(str(args.path))

    try:
        node = decode(text)
    except ContextParseError as exc:
        raise CLIError(str(exc), exit_code=2) from exc
    if node is None:
        raise CLIError("input does not contain a diagnostic blob", exit_code=1)

    output_format = str(args.output_format)
    if output_format == "json":
        print(json.dumps(node_to_dict(node), indent=2, ensure_ascii=False))
    elif output_format == "yaml":
        print(
            yaml.safe_dump(node_to_dict(node), sort_keys=False, allow_unicode=True).rstrip("\n")
        )
    else:
        _get_renderer(args).tree(node)
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)

    if _flag(args, "json"):
        _emit_json({"command": "config", "config": config})
        return 0

    renderer = _get_renderer(args)
    renderer.kv("Config file", getattr(args, "config_path", None) or "(default)")
    renderer.text(dump_effective_config(config))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    """Create a CLI renderer from the parsed namespace."""

    return create_renderer(no_color=_flag(args, "no_color"))


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    config_path = getattr(args, "config_path", None)
    try:
        return load_config(config_path)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _read_input(path: str) -> str:
    if path == STDIN_PATH:
        return sys.stdin.read()
    try:
        return Path(path).expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"unable to read {path}: {exc}", exit_code=2) from exc


def _flag(args: argparse.Namespace, name: str) -> bool:
    value = getattr(args, name, False)
    return bool(value)


__all__ = ["CLIError", "build_parser", "main", "run_cli"]
