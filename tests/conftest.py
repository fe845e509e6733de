"""Pytest configuration and fixtures.

Provides environment isolation and startup-gate cleanup. All fixtures here
are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os

import pytest

from apmloadgen.config import reset_config

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_apm_env(request, monkeypatch):
    """Ensure a clean ELASTIC_APM_* environment for each test.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("ELASTIC_APM_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("APM_LOADGEN_DEBUG_CONFIG", raising=False)


@pytest.fixture(autouse=True)
def fresh_startup_gate():
    """Each test starts and ends without a published process configuration."""
    reset_config()
    yield
    reset_config()


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def apm_env() -> dict[str, str]:
    """A representative environment for a deployed load generator."""
    return {
        "ELASTIC_APM_SERVER_URL": "https://apm.example.com:8200",
        "ELASTIC_APM_SECRET_TOKEN": "s3cr3t",
        "ELASTIC_APM_VERIFY_SERVER_CERT": "true",
    }
