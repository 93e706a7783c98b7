"""Structured logging setup with JSON-lines output."""

from __future__ import annotations

import json
import logging
import math
import sys
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, Final

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_DEFAULT_LOGGER_NAME: Final[str] = "interrupt"
_NON_FINITE_VALUE: Final[str] = "<non-finite>"

_STANDARD_LOG_RECORD_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)

_ACTIVE_HANDLER_LOCK = threading.Lock()
_ACTIVE_HANDLER: logging.Handler | None = None


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Configuration for the package logger."""

    logger_name: str = _DEFAULT_LOGGER_NAME
    level: int | str = "WARNING"
    json_lines: bool = True
    stream: IO[str] | None = None


class JsonLineFormatter(logging.Formatter):
    """Formatter that emits canonical JSON objects per log line."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = extras

        if record.exc_info is not None:
            event["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            event["stack"] = str(record.stack_info)

        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def setup_logging(
    observability_config: Mapping[str, object] | None = None,
    *,
    stream: IO[str] | None = None,
    logger_name: str = _DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """Configure the package logger from an ``[observability]`` config mapping.

    Parameters
    ----------
    observability_config:
        Mapping compatible with the ``[observability]`` section of ``interrupt.toml``.
    stream:
        Output stream, ``sys.stderr`` when omitted.
    logger_name:
        Logger name to configure.
    """

    cfg = dict(observability_config or {})
    raw_level = cfg.get("log_level", "WARNING")
    level: int | str = raw_level if isinstance(raw_level, (int, str)) else "WARNING"
    json_lines = bool(cfg.get("json_logs", True))
    return setup_structured_logging(
        LoggingConfig(logger_name=logger_name, level=level, json_lines=json_lines, stream=stream)
    )


def setup_structured_logging(config: LoggingConfig) -> logging.Logger:
    """Attach a single stream handler to the configured logger."""

    logger_name = _validate_logger_name(config.logger_name)
    level = _parse_log_level(config.level)

    handler = logging.StreamHandler(config.stream if config.stream is not None else sys.stderr)
    handler.setLevel(level)
    if config.json_lines:
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.propagate = False

    with _ACTIVE_HANDLER_LOCK:
        global _ACTIVE_HANDLER
        if _ACTIVE_HANDLER is not None:
            for existing_logger in _configured_loggers(_ACTIVE_HANDLER):
                existing_logger.removeHandler(_ACTIVE_HANDLER)
            _ACTIVE_HANDLER.close()
        logger.addHandler(handler)
        _ACTIVE_HANDLER = handler

    return logger


def shutdown_logging() -> None:
    """Detach and close the handler installed by ``setup_structured_logging``."""

    with _ACTIVE_HANDLER_LOCK:
        global _ACTIVE_HANDLER
        if _ACTIVE_HANDLER is None:
            return
        for logger in _configured_loggers(_ACTIVE_HANDLER):
            logger.removeHandler(_ACTIVE_HANDLER)
            logger.propagate = True
        _ACTIVE_HANDLER.flush()
        _ACTIVE_HANDLER.close()
        _ACTIVE_HANDLER = None


def _configured_loggers(handler: logging.Handler) -> list[logging.Logger]:
    loggers: list[logging.Logger] = []
    for candidate in logging.Logger.manager.loggerDict.values():
        if isinstance(candidate, logging.Logger) and handler in candidate.handlers:
            loggers.append(candidate)
    return loggers


def _validate_logger_name(logger_name: str) -> str:
    if not isinstance(logger_name, str):
        raise ValueError(f"logger_name must be a string, got {type(logger_name).__name__}")
    normalized = logger_name.strip()
    if not normalized:
        raise ValueError("logger_name must not be empty")
    return normalized


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    if not isinstance(value, str):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    fields: dict[str, JSONValue] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOG_RECORD_FIELDS:
            continue
        if key.startswith("_"):
            continue
        fields[key] = _normalize_json_value(value)
    return fields


def _normalize_json_value(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        if math.isfinite(value):
            return value
        return _NON_FINITE_VALUE
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): _normalize_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_json_value(item) for item in value]
    return repr(value)


__all__ = [
    "JSONScalar",
    "JSONValue",
    "JsonLineFormatter",
    "LoggingConfig",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
