# src/apmloadgen/config/loaders.py

"""Configuration loaders for environment variables.

Pure data loading: values are returned as raw strings keyed by config field
and are validated later by the core resolver.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .flags import ENV_FALLBACKS

if TYPE_CHECKING:
    from collections.abc import Mapping


def load_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Load the pre-parse flag defaults supplied by environment variables.

    Only the variables listed in ``ENV_FALLBACKS`` are read. A variable that
    is unset or empty contributes nothing, leaving the built-in default in
    place.

    Returns:
        Mapping of config field name to the variable's raw value.
    """
    env = os.environ if environ is None else environ
    config: dict[str, str] = {}
    for fallback in ENV_FALLBACKS.values():
        value = env.get(fallback.env_var)
        if value:
            config[fallback.field] = value
    return config


def env_key_for_field(field: str) -> str | None:
    """Return the environment variable that can supply ``field``, if any."""
    for fallback in ENV_FALLBACKS.values():
        if fallback.field == field:
            return fallback.env_var
    return None
