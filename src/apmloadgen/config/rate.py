# src/apmloadgen/config/rate.py

"""Event rate specification: ``burst/interval`` parsing and formatting.

The rate is written as ``{burst}/{interval}``, e.g. ``200/5s``. The interval
may omit its leading quantity, so ``10/s`` reads as ten events per second and
``1/ms`` as one event per millisecond.

Durations use the Go-style notation shared with the rest of the APM tooling
(``300ms``, ``1.5s``, ``1h30m``). Parsing and formatting are pure functions so
any argument parser can be adapted to call them.
"""

from __future__ import annotations

import dataclasses
from datetime import timedelta
import re

from apmloadgen.errors import (
    InvalidBurstError,
    InvalidFormatError,
    InvalidIntervalError,
    NonPositiveIntervalError,
)

# --- Durations ---

_NANOS_PER_MICRO = 1_000
_NANOS_PER_SECOND = 1_000_000_000

_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": _NANOS_PER_SECOND,
    "m": 60 * _NANOS_PER_SECOND,
    "h": 60 * 60 * _NANOS_PER_SECOND,
}

# Durations are bounded by a signed 64-bit nanosecond count.
_MAX_NANOS = 1 << 63

_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")
_BURST = re.compile(r"[+-]?[0-9]+")


class Duration(int):
    """Signed nanosecond count, rendered in Go duration notation.

    ``timedelta`` stops at microseconds, so intervals such as ``500ns`` are
    kept as whole nanoseconds and converted only on request.
    """

    __slots__ = ()

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> Duration:
        return cls((delta // timedelta(microseconds=1)) * _NANOS_PER_MICRO)

    def to_timedelta(self) -> timedelta:
        """Convert to ``timedelta``, truncating below one microsecond."""
        micros = abs(int(self)) // _NANOS_PER_MICRO
        return timedelta(microseconds=-micros if self < 0 else micros)

    def total_seconds(self) -> float:
        return int(self) / _NANOS_PER_SECOND

    def __str__(self) -> str:
        return format_duration(self)

    def __repr__(self) -> str:
        return f"Duration({format_duration(self)!r})"


NANOSECOND = Duration(1)
MICROSECOND = Duration(1_000)
MILLISECOND = Duration(1_000_000)
SECOND = Duration(_NANOS_PER_SECOND)
MINUTE = Duration(60 * _NANOS_PER_SECOND)
HOUR = Duration(60 * 60 * _NANOS_PER_SECOND)


def parse_duration(text: str) -> Duration:
    """Parse a duration such as ``300ms``, ``-1.5h`` or ``2h45m``.

    Raises:
        InvalidIntervalError: On empty input, a missing or unknown unit, or a
            value out of range.
    """
    rest = text
    negative = False
    if rest[:1] in ("-", "+"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return Duration(0)
    if not rest:
        raise InvalidIntervalError(f"invalid duration {text!r}")

    nanos = 0
    while rest:
        match = _COMPONENT.match(rest)
        whole, frac, unit = match.group(1), match.group(2), match.group(3)
        if not whole and not frac:
            raise InvalidIntervalError(f"invalid duration {text!r}")
        if not unit:
            raise InvalidIntervalError(f"missing unit in duration {text!r}")
        scale = _UNIT_NANOS.get(unit)
        if scale is None:
            raise InvalidIntervalError(f"unknown unit {unit!r} in duration {text!r}")
        nanos += int(whole or "0") * scale
        if frac:
            nanos += int(frac) * scale // 10 ** len(frac)
        if nanos > _MAX_NANOS:
            raise InvalidIntervalError(f"invalid duration {text!r}: out of range")
        rest = rest[match.end() :]

    if not negative and nanos >= _MAX_NANOS:
        raise InvalidIntervalError(f"invalid duration {text!r}: out of range")
    return Duration(-nanos if negative else nanos)


def _fmt_frac(value: int, precision: int) -> tuple[int, str]:
    whole, frac = divmod(value, 10**precision)
    digits = f"{frac:0{precision}d}".rstrip("0")
    return whole, f".{digits}" if digits else ""


def format_duration(duration: int | timedelta) -> str:
    """Render a duration the way Go's ``Duration.String`` does.

    Integers are nanoseconds. ``90 * SECOND`` renders as ``1m30s``, ``HOUR``
    as ``1h0m0s``, ``1500`` as ``1.5µs`` and ``timedelta(milliseconds=1.5)``
    as ``1.5ms``.
    """
    if isinstance(duration, timedelta):
        duration = Duration.from_timedelta(duration)
    nanos = int(duration)
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)

    if nanos < _NANOS_PER_SECOND:
        if nanos < _NANOS_PER_MICRO:
            return f"{sign}{nanos}ns"
        if nanos < 1_000_000:
            whole, frac = _fmt_frac(nanos, 3)
            return f"{sign}{whole}{frac}µs"
        whole, frac = _fmt_frac(nanos, 6)
        return f"{sign}{whole}{frac}ms"

    seconds, frac = _fmt_frac(nanos, 9)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    out = f"{seconds}{frac}s"
    if hours or minutes:
        out = f"{minutes}m{out}"
    if hours:
        out = f"{hours}h{out}"
    return sign + out


# --- Rate ---


@dataclasses.dataclass(frozen=True)
class RateSpec:
    """Immutable event emission rate.

    Attributes:
        burst (int): Events emitted per interval. Zero or negative values are
            accepted; the event generator treats them as unbounded.
        interval (Duration): Length of one interval in nanoseconds (> 0). A
            ``timedelta`` or plain ``int`` given at construction is converted.
    """

    burst: int
    interval: Duration

    def __post_init__(self) -> None:
        """Normalize the interval and reject values that are not positive."""
        interval = self.interval
        if isinstance(interval, timedelta):
            interval = Duration.from_timedelta(interval)
        elif not isinstance(interval, Duration):
            interval = Duration(interval)
        object.__setattr__(self, "interval", interval)
        if interval <= 0:
            raise NonPositiveIntervalError(
                f"invalid interval {format_duration(interval)!r}, must be positive"
            )

    @property
    def unbounded(self) -> bool:
        """True when the rate places no limit on emission (burst <= 0)."""
        return self.burst <= 0

    def __str__(self) -> str:
        return format_rate(self)


DEFAULT_EVENT_RATE = "0/s"


def parse_rate(text: str) -> RateSpec:
    """Parse ``{burst}/{interval}`` into a :class:`RateSpec`.

    A new value is returned on success; on failure nothing is built.

    Raises:
        InvalidFormatError: No ``/`` separator, or an empty side.
        InvalidBurstError: The burst is not a base-10 integer.
        InvalidIntervalError: The interval is not a valid duration.
        NonPositiveIntervalError: The interval is zero or negative.
    """
    before, sep, after = text.partition("/")
    if not sep or not before or not after:
        raise InvalidFormatError(
            f"invalid rate {text!r}, expected format burst/interval",
            hint="For example 200/5s, 10/s or 0/s for no limit.",
        )

    if not _BURST.fullmatch(before):
        raise InvalidBurstError(f"invalid burst {before!r} in event rate")
    burst = int(before)
    if not -_MAX_NANOS <= burst < _MAX_NANOS:
        raise InvalidBurstError(f"invalid burst {before!r} in event rate: out of range")

    # "/s" is shorthand for "/1s". An explicit sign keeps the interval as
    # written so "-1s" reports as non-positive rather than malformed.
    if not after[0].isascii() or not (after[0].isdigit() or after[0] in "+-"):
        after = "1" + after
    try:
        interval = parse_duration(after)
    except InvalidIntervalError as e:
        raise InvalidIntervalError(
            f"invalid interval {after!r} in event rate: {e.message}"
        ) from e
    if interval <= 0:
        raise NonPositiveIntervalError(
            f"invalid interval {after!r}, must be positive"
        )
    return RateSpec(burst=burst, interval=interval)


def format_rate(rate: RateSpec) -> str:
    """Render a rate as ``{burst}/{interval}``.

    The shorthand is not preserved: ``parse_rate("10/s")`` formats as
    ``10/1s``.
    """
    return f"{rate.burst}/{format_duration(rate.interval)}"
