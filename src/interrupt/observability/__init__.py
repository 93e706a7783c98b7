"""Public observability primitives: structured logging setup."""

from interrupt.observability.logging import (
    JsonLineFormatter,
    LoggingConfig,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)

__all__ = [
    "JsonLineFormatter",
    "LoggingConfig",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
