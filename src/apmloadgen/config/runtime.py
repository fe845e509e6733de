# src/apmloadgen/config/runtime.py

"""Process-wide configuration gate.

The load generator resolves its configuration once at startup, before any
worker runs. ``init_config`` performs that resolution under a lock and
publishes the result through an event, so a worker that calls
``wait_for_config`` or ``get_config`` observes a fully built value.

Components should still receive the FrozenConfig explicitly; this holder only
exists for the startup gate.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from apmloadgen.errors import ConfigurationError

from .core import FrozenConfig, resolve_config

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

log = logging.getLogger(__name__)

_lock = threading.Lock()
_ready = threading.Event()
_config: FrozenConfig | None = None

_NOT_INITIALIZED_HINT = "Call apmloadgen.config.init_config() during startup."


def init_config(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> FrozenConfig:
    """Resolve and publish the process configuration exactly once.

    Later calls return the already published value and ignore their
    arguments. A failed resolution publishes nothing and raises.
    """
    global _config
    with _lock:
        if _config is None:
            _config = resolve_config(argv, environ=environ)
            _ready.set()
            log.debug("Configuration initialized")
        else:
            log.debug("Configuration already initialized; returning existing value")
        return _config


def get_config() -> FrozenConfig:
    """Return the published configuration without blocking."""
    if not _ready.is_set() or _config is None:
        raise ConfigurationError(
            "configuration has not been initialized", hint=_NOT_INITIALIZED_HINT
        )
    return _config


def wait_for_config(timeout: float | None = None) -> FrozenConfig:
    """Block until ``init_config`` has published the configuration."""
    if not _ready.wait(timeout):
        raise ConfigurationError(
            f"configuration was not initialized within {timeout}s",
            hint=_NOT_INITIALIZED_HINT,
        )
    return get_config()


def reset_config() -> None:
    """Drop the published configuration (tests and embedding applications)."""
    global _config
    with _lock:
        _ready.clear()
        _config = None
