"""apm-loadgen: configuration for a synthetic APM event load generator.

Public API:
    - resolve_config(): Resolve flags, environment and defaults
    - init_config() / get_config(): Process-wide startup gate
    - FrozenConfig: Immutable configuration payload
    - RateSpec / parse_rate(): Event rate notation (burst/interval)
"""

from __future__ import annotations

import logging

from apmloadgen.errors import (
    ConfigurationError,
    InvalidBoolError,
    InvalidBurstError,
    InvalidFormatError,
    InvalidHeaderFormatError,
    InvalidIntervalError,
    InvalidURLError,
    LoadgenError,
    NonPositiveIntervalError,
    UsageError,
)
from apmloadgen.config import (
    FrozenConfig,
    RateSpec,
    format_rate,
    get_config,
    init_config,
    parse_rate,
    resolve_config,
    wait_for_config,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("apm-loadgen")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("apmloadgen").addHandler(logging.NullHandler())

__all__ = [
    "ConfigurationError",
    "FrozenConfig",
    "InvalidBoolError",
    "InvalidBurstError",
    "InvalidFormatError",
    "InvalidHeaderFormatError",
    "InvalidIntervalError",
    "InvalidURLError",
    "LoadgenError",
    "NonPositiveIntervalError",
    "RateSpec",
    "UsageError",
    "format_rate",
    "get_config",
    "init_config",
    "parse_rate",
    "resolve_config",
    "wait_for_config",
]
