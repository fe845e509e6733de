# src/apmloadgen/config/__init__.py

"""Configuration management for the APM load generator.

The core principle is resolve-once, freeze-then-flow: command-line flags,
environment variables and defaults are resolved at startup into an immutable
FrozenConfig that is handed to every event generator and sender.

Key exports:
- resolve_config: Main API for configuration resolution
- FrozenConfig: Immutable configuration payload
- RateSpec / parse_rate / format_rate: Event rate notation (burst/interval)
- init_config / get_config / wait_for_config: Process-wide startup gate
- Settings: Pydantic schema for validation and defaults
"""

# ruff: noqa: I001

# --- Core Configuration API ---

from .core import (
    FrozenConfig,
    Origin,
    FieldOrigin,
    Settings,
    SourceMap,
    was_field_overridden,
    to_redacted_dict,
    audit_layers_summary,
    audit_lines,
    audit_text,
    summarize_origins,
    doctor,
    check_environment,
    parse_server_url,
    resolve_config,
)

from .flags import (
    DEFAULT_SERVER_URL,
    ENV_FALLBACKS,
    REWRITE_TOGGLES,
    EnvFallback,
    RewriteToggle,
    build_parser,
    rewrite_flag_name,
    table_defaults,
)
from .headers import HeaderAction, parse_header
from .loaders import load_env
from .rate import (
    DEFAULT_EVENT_RATE,
    HOUR,
    MICROSECOND,
    MILLISECOND,
    MINUTE,
    NANOSECOND,
    SECOND,
    Duration,
    RateSpec,
    format_duration,
    format_rate,
    parse_duration,
    parse_rate,
)
from .runtime import get_config, init_config, reset_config, wait_for_config
from .utils import parse_bool

__all__ = [  # noqa: RUF022
    # Main public API
    "resolve_config",
    "FrozenConfig",
    "Settings",
    # Rate notation
    "RateSpec",
    "parse_rate",
    "format_rate",
    "parse_duration",
    "format_duration",
    "DEFAULT_EVENT_RATE",
    "Duration",
    "NANOSECOND",
    "MICROSECOND",
    "MILLISECOND",
    "SECOND",
    "MINUTE",
    "HOUR",
    # Flags and environment
    "build_parser",
    "EnvFallback",
    "ENV_FALLBACKS",
    "RewriteToggle",
    "REWRITE_TOGGLES",
    "rewrite_flag_name",
    "table_defaults",
    "DEFAULT_SERVER_URL",
    "HeaderAction",
    "parse_header",
    "parse_bool",
    "parse_server_url",
    "load_env",
    # Startup gate
    "init_config",
    "get_config",
    "wait_for_config",
    "reset_config",
    # Provenance and audit
    "Origin",
    "FieldOrigin",
    "SourceMap",
    "was_field_overridden",
    "to_redacted_dict",
    "audit_layers_summary",
    "audit_lines",
    "audit_text",
    "summarize_origins",
    "doctor",
    "check_environment",
]
