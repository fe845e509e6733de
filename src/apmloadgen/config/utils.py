# src/apmloadgen/config/utils.py

"""Configuration utilities and shared functionality.

Pure helpers that can be imported from anywhere in the config package without
creating circular dependencies.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from apmloadgen.errors import InvalidBoolError

if TYPE_CHECKING:
    from collections.abc import Mapping

# --- Constants ---

ENV_PREFIX = "ELASTIC_APM_"

DEBUG_CONFIG_VAR = "APM_LOADGEN_DEBUG_CONFIG"

# --- Boolean values ---

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(text: str) -> bool:
    """Parse a boolean the way the APM agents' tooling does.

    Accepts ``1 t T TRUE true True`` and ``0 f F FALSE false False``.
    """
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise InvalidBoolError(f"invalid boolean {text!r}, expected true or false")


# --- Environment Utilities ---


def should_emit_debug(environ: Mapping[str, str] | None = None) -> bool:
    """Return True when the debug audit is enabled via environment.

    Stateless; rely on the warnings machinery to avoid repeated emissions.
    """
    env = os.environ if environ is None else environ
    return env.get(DEBUG_CONFIG_VAR, "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }


# --- Sensitive Key Utilities ---

SENSITIVE_KEYS = {
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
    "authorization",
}


def is_sensitive_field_key(name: str) -> bool:
    """Return True if a field or header name is considered sensitive for logging."""
    lower = name.lower().replace("-", "_")
    return any(token in lower for token in SENSITIVE_KEYS)


def field_spec_hint(env_var: str, flag: str) -> str:
    """Return a compact hint for setting a value via env or command line."""
    return f"Set {env_var} or pass --{flag}."
