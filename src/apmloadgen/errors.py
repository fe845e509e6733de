"""Exception hierarchy for apm-loadgen."""

from __future__ import annotations


class LoadgenError(Exception):
    """Base exception for all apm-loadgen errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


class ConfigurationError(LoadgenError):
    """Configuration validation or resolution failed.

    ``flag`` and ``value`` are attached once the failing input is known, so
    the rendered message names the offending flag the way the command line
    spelled it.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        flag: str | None = None,
        value: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.flag = flag
        self.value = value

    def __str__(self) -> str:
        if self.flag is None:
            return self.message
        return f"invalid value {self.value!r} for flag --{self.flag}: {self.message}"


class InvalidFormatError(ConfigurationError):
    """A compound flag value is missing its separator or one of its sides."""


class InvalidBurstError(ConfigurationError):
    """The burst part of an event rate is not an integer."""


class InvalidIntervalError(ConfigurationError):
    """The interval part of an event rate is not a valid duration."""


class NonPositiveIntervalError(ConfigurationError):
    """The interval of an event rate is zero or negative."""


class InvalidHeaderFormatError(ConfigurationError):
    """A header flag is not of the form key=value."""


class InvalidURLError(ConfigurationError):
    """The server URL is not an absolute http(s) URL."""


class InvalidBoolError(ConfigurationError):
    """A boolean flag or variable holds an unrecognized value."""


class UsageError(ConfigurationError):
    """The command line itself is malformed (unknown flag, missing value)."""
