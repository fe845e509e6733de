from __future__ import annotations

import pytest

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

pytestmark = pytest.mark.unit


def test_configuration_error_without_flag_renders_message() -> None:
    err = ConfigurationError("boom", hint="do this")

    assert str(err) == "boom"
    assert err.message == "boom"
    assert err.hint == "do this"
    assert err.flag is None
    assert err.value is None


def test_configuration_error_with_flag_names_flag_and_value() -> None:
    err = InvalidBurstError("invalid burst 'x' in event rate", flag="event-rate", value="x/s")

    assert str(err) == (
        "invalid value 'x/s' for flag --event-rate: invalid burst 'x' in event rate"
    )
    assert err.message == "invalid burst 'x' in event rate"


@pytest.mark.parametrize(
    "cls",
    [
        InvalidFormatError,
        InvalidBurstError,
        InvalidIntervalError,
        NonPositiveIntervalError,
        InvalidHeaderFormatError,
        InvalidURLError,
        InvalidBoolError,
        UsageError,
    ],
)
def test_subclass_hierarchy(cls: type[ConfigurationError]) -> None:
    """Every parse failure is catchable as ConfigurationError and LoadgenError."""
    err = cls("fail")
    assert isinstance(err, ConfigurationError)
    assert isinstance(err, LoadgenError)
    assert not isinstance(err, ValueError)
