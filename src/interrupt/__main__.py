"""Module entrypoint for ``python -m interrupt``."""

from __future__ import annotations

from interrupt.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
