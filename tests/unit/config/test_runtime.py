"""Process-wide startup gate: init once, read everywhere."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import threading

import pytest

from apmloadgen.config import get_config, init_config, reset_config, wait_for_config
from apmloadgen.errors import ConfigurationError, InvalidFormatError

pytestmark = pytest.mark.unit


def test_get_config_before_init_fails_clearly():
    with pytest.raises(ConfigurationError, match="not been initialized") as exc:
        get_config()
    assert exc.value.hint is not None
    assert "init_config" in exc.value.hint


def test_init_publishes_config():
    cfg = init_config(["--event-rate", "5/s"], environ={})
    assert get_config() is cfg
    assert cfg.event_rate.burst == 5


def test_second_init_returns_first_value():
    first = init_config(["--event-rate", "5/s"], environ={})
    second = init_config(["--event-rate", "7/s"], environ={})
    assert second is first
    assert get_config().event_rate.burst == 5


def test_failed_init_publishes_nothing():
    with pytest.raises(InvalidFormatError):
        init_config(["--event-rate", "100"], environ={})
    with pytest.raises(ConfigurationError):
        get_config()
    # A later, valid initialization still succeeds.
    assert init_config([], environ={}).event_rate.burst == 0


def test_reset_clears_published_value():
    init_config([], environ={})
    reset_config()
    with pytest.raises(ConfigurationError):
        get_config()


def test_wait_times_out_without_init():
    with pytest.raises(ConfigurationError, match="not initialized within"):
        wait_for_config(timeout=0.01)


def test_workers_waiting_observe_initialized_config():
    started = threading.Barrier(5)

    def worker():
        started.wait()
        return wait_for_config(timeout=5)

    with ThreadPoolExecutor(max_workers=4) as pool:
        futures = [pool.submit(worker) for _ in range(4)]
        started.wait()
        cfg = init_config(["--ignore-errors"], environ={})
        results = [f.result(timeout=5) for f in futures]

    assert all(r is cfg for r in results)
    assert all(r.ignore_errors for r in results)
