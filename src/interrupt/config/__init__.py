"""
interrupt config package public API.

File: src/interrupt/config/__init__.py

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``interrupt.toml`` + ``INTERRUPT_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from interrupt.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    encoder_options_from_config,
    load_config,
    load_encoder_options,
)
from interrupt.config.schema import (
    DEFAULT_CONFIG,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    InterruptConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "InterruptConfig",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "encoder_options_from_config",
    "load_config",
    "load_encoder_options",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
