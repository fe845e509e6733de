# src/apmloadgen/config/core.py

"""Core configuration schema and resolution for the load generator.

This module provides:
- Single source of truth for configuration fields and defaults (Settings)
- Immutable runtime payload (FrozenConfig)
- Layered resolution with audit tracking (SourceMap)

Precedence, lowest to highest: built-in defaults < environment variables <
command-line flags < programmatic overrides. Environment variables only ever
supply a flag's pre-parse default; a flag given on the command line always
wins.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass
from enum import Enum
import logging
import os
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Literal, TypeVar, overload
import warnings

import httpx
from pydantic import (
    BaseModel,
    Field,
    InstanceOf,
    SecretStr,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from apmloadgen.errors import ConfigurationError, InvalidURLError

from .flags import (
    ENV_FALLBACKS,
    REWRITE_TOGGLES,
    flag_for_field,
    parse_flags,
    table_defaults,
)
from .rate import DEFAULT_EVENT_RATE, RateSpec, format_rate, parse_rate
from .utils import (
    ENV_PREFIX,
    field_spec_hint,
    is_sensitive_field_key,
    parse_bool,
    should_emit_debug,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

log = logging.getLogger(__name__)

T = TypeVar("T")

_BOOL_FIELDS = (
    "secure",
    "ignore_errors",
    "rewrite_ids",
    "rewrite_timestamps",
    *(toggle.dest for toggle in REWRITE_TOGGLES),
)


def parse_server_url(text: str) -> httpx.URL:
    """Parse the APM Server URL; it must be absolute http(s) with a host."""
    try:
        url = httpx.URL(text)
    except httpx.InvalidURL as e:
        raise InvalidURLError(f"invalid server URL {text!r}: {e}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidURLError(
            f"invalid server URL {text!r}, expected http(s)://host[:port]"
        )
    return url


def _flag_value(field: str, value: str, convert: Callable[[str], T]) -> T:
    """Convert a raw string, attributing failures to the field's flag."""
    try:
        return convert(value)
    except ConfigurationError as e:
        e.flag = flag_for_field(field)
        e.value = value
        raise


# --- Schema (Pydantic wall) ---


def _secret_or_none(text: str) -> SecretStr | None:
    text = text.strip()
    return SecretStr(text) if text else None


def _table_default(field: str, convert: Callable[[Any], Any] = bool) -> Any:
    """Field default read from the flag tables each time defaults are built."""
    return Field(default_factory=lambda: convert(table_defaults()[field]))


class Settings(BaseModel):
    """Pydantic settings schema for configuration validation and defaults.

    Raw strings from flags and environment variables are converted here by
    the same parsers the command line uses; already typed values (from
    programmatic overrides) pass through.
    """

    # Server connection
    server_url: httpx.URL = _table_default("server_url", parse_server_url)
    secret_token: SecretStr | None = _table_default("secret_token", _secret_or_none)
    api_key: SecretStr | None = _table_default("api_key", _secret_or_none)
    secure: bool = _table_default("secure", parse_bool)

    # Sending behavior
    event_rate: InstanceOf[RateSpec] = Field(default_factory=lambda: parse_rate(DEFAULT_EVENT_RATE))
    ignore_errors: bool = Field(default=False)
    headers: dict[str, str] | None = Field(default=None)

    # Event rewriting
    rewrite_ids: bool = Field(default=False)
    rewrite_timestamps: bool = Field(default=False)
    rewrite_service_names: bool = _table_default("rewrite_service_names")
    rewrite_service_node_names: bool = _table_default("rewrite_service_node_names")
    rewrite_service_target_names: bool = _table_default("rewrite_service_target_names")
    rewrite_span_names: bool = _table_default("rewrite_span_names")
    rewrite_transaction_names: bool = _table_default("rewrite_transaction_names")
    rewrite_transaction_types: bool = _table_default("rewrite_transaction_types")

    model_config = {"extra": "forbid", "arbitrary_types_allowed": True}

    @field_validator("server_url", mode="before")
    @classmethod
    def normalize_server_url(cls, v: Any) -> Any:
        """Parse string URLs into ``httpx.URL``."""
        if isinstance(v, str):
            return _flag_value("server_url", v, parse_server_url)
        return v

    @field_validator("secret_token", "api_key", mode="before")
    @classmethod
    def normalize_credentials(cls, v: Any) -> Any:
        """Trim whitespace, map empty to None, wrap in SecretStr."""
        if v is None:
            return None
        if isinstance(v, SecretStr):
            s = v.get_secret_value().strip()
            return SecretStr(s) if s else None
        if isinstance(v, str):
            s = v.strip()
            return SecretStr(s) if s else None
        return v

    @field_validator("event_rate", mode="before")
    @classmethod
    def normalize_event_rate(cls, v: Any) -> Any:
        """Accept ``burst/interval`` strings."""
        if isinstance(v, str):
            return _flag_value("event_rate", v, parse_rate)
        return v

    @field_validator(*_BOOL_FIELDS, mode="before")
    @classmethod
    def normalize_bool(cls, v: Any, info: ValidationInfo) -> Any:
        """Parse string booleans strictly; let Pydantic judge anything else."""
        if isinstance(v, str):
            return _flag_value(info.field_name, v, parse_bool)
        return v


def _default_settings() -> dict[str, Any]:
    return {
        name: info.get_default(call_default_factory=True)
        for name, info in Settings.model_fields.items()
    }


# --- Immutable runtime payload ---


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration payload handed to event generators and senders.

    Built once at startup and passed explicitly; it is never mutated, so any
    number of workers may read it without locking.
    """

    server_url: httpx.URL
    secret_token: str | None
    api_key: str | None
    secure: bool
    event_rate: RateSpec
    ignore_errors: bool
    headers: Mapping[str, str] | None
    rewrite_ids: bool
    rewrite_timestamps: bool
    rewrite_service_names: bool
    rewrite_service_node_names: bool
    rewrite_service_target_names: bool
    rewrite_span_names: bool
    rewrite_transaction_names: bool
    rewrite_transaction_types: bool

    @property
    def rewrites(self) -> Mapping[str, bool]:
        """Rewrite toggles keyed by semantic field name (``span.name``, ...)."""
        return MappingProxyType(
            {toggle.field: getattr(self, toggle.dest) for toggle in REWRITE_TOGGLES}
        )

    def __str__(self) -> str:
        """String representation with redacted credentials for safe logging."""
        fields = []
        for field in self.__dataclass_fields__:
            value = getattr(self, field)
            if field in ("secret_token", "api_key") and value:
                fields.append(f"{field}='[REDACTED]'")
            elif field == "headers" and value is not None:
                fields.append(f"{field}={_redact_headers(value)!r}")
            elif field == "event_rate":
                fields.append(f"{field}='{format_rate(value)}'")
            else:
                fields.append(f"{field}={value!r}")

        return f"FrozenConfig({', '.join(fields)})"

    __repr__ = __str__


# --- Audit types ---


class Origin(str, Enum):
    """Source origin for configuration field values."""

    DEFAULT = "default"
    ENV = "env"
    FLAG = "flag"
    OVERRIDES = "overrides"


@dataclass(frozen=True)
class FieldOrigin:
    """Tracks the origin and context of a configuration field value."""

    origin: Origin
    env_key: str | None = None  # e.g., "ELASTIC_APM_SERVER_URL"
    flag: str | None = None  # e.g., "server"


SourceMap = dict[str, FieldOrigin]

# --- Optional .env support ---

_DOTENV_LOADED: bool = False


def _try_load_dotenv() -> None:
    """Load a .env file into the process environment, once."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    from dotenv import load_dotenv

    load_dotenv()
    _DOTENV_LOADED = True


# --- Public resolution API ---


@overload
def resolve_config(
    argv: Sequence[str] | None = ...,
    *,
    environ: Mapping[str, str] | None = ...,
    overrides: Mapping[str, Any] | None = ...,
    explain: Literal[True],
) -> tuple[FrozenConfig, SourceMap]: ...


@overload
def resolve_config(
    argv: Sequence[str] | None = ...,
    *,
    environ: Mapping[str, str] | None = ...,
    overrides: Mapping[str, Any] | None = ...,
    explain: Literal[False] = ...,
) -> FrozenConfig: ...


def resolve_config(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
    explain: bool = False,
) -> FrozenConfig | tuple[FrozenConfig, SourceMap]:
    """Resolve command line, environment and defaults into a FrozenConfig.

    Args:
        argv: Command-line arguments, ``sys.argv[1:]`` when None.
        environ: Environment mapping. When None, a ``.env`` file is loaded
            (if present) and ``os.environ`` is read.
        overrides: Programmatic values applied above every other layer.
        explain: If True, return tuple of (config, source_map) for audit.

    Returns:
        FrozenConfig instance, or tuple of (FrozenConfig, SourceMap) if explain=True.

    Raises:
        ConfigurationError: If any flag, variable or override is invalid. The
            error names the offending flag and value.
    """
    if environ is None:
        _try_load_dotenv()
        environ = os.environ

    from .loaders import load_env

    flags = parse_flags(argv)
    if flags.get("server_url") == "":
        log.debug("Ignoring empty --server flag")
        del flags["server_url"]

    merged, sources = _resolve_layers(
        env=load_env(environ),
        flags=flags,
        overrides=overrides or {},
    )

    try:
        settings = Settings.model_validate(merged)
    except ConfigurationError as e:
        _attach_env_hint(e, sources)
        raise
    except ValidationError as e:
        # Extract first error for clarity
        err = e.errors()[0]
        msg = err.get("msg") or "invalid value"
        if msg.startswith("Value error, "):
            msg = msg[13:]
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else None
        raise ConfigurationError(
            f"Configuration validation failed: {field}: {msg}"
            if field
            else f"Configuration validation failed: {msg}"
        ) from e

    frozen = _freeze(settings)
    log.debug("Resolved configuration: %s", frozen)
    if not explain and should_emit_debug(environ):
        with suppress(Exception):
            warnings.warn(
                "Config audit (redacted)\n" + "\n".join(audit_lines(frozen, sources)),
                stacklevel=2,
            )

    return (frozen, sources) if explain else frozen


# --- Internal helpers (pure & tiny) ---


def _attach_env_hint(error: ConfigurationError, sources: SourceMap) -> None:
    """Point at the environment variable when a bad value came from there."""
    fallback = ENV_FALLBACKS.get(error.flag or "")
    if fallback is None:
        return
    where = sources.get(fallback.field)
    if where is not None and where.origin is Origin.ENV:
        error.hint = f"The value came from {fallback.env_var}. " + field_spec_hint(
            fallback.env_var, error.flag or ""
        )


def _freeze(settings: Settings) -> FrozenConfig:
    """Convert validated Settings to immutable FrozenConfig."""
    values = {name: getattr(settings, name) for name in Settings.model_fields}
    for name in ("secret_token", "api_key"):
        secret = values[name]
        values[name] = secret.get_secret_value() if secret is not None else None
    if values["headers"] is not None:
        values["headers"] = MappingProxyType(dict(values["headers"]))
    return FrozenConfig(**values)


def _resolve_layers(
    *,
    env: Mapping[str, Any],
    flags: Mapping[str, Any],
    overrides: Mapping[str, Any],
) -> tuple[dict[str, Any], SourceMap]:
    """Resolve configuration layers into merged dict and source tracking.

    Pure data merging with last-wins precedence while building an audit
    trail of where each field value originated.
    """
    from .loaders import env_key_for_field

    layers = [
        (Origin.ENV, env),
        (Origin.FLAG, flags),
        (Origin.OVERRIDES, overrides),
    ]

    out: dict[str, Any] = dict(_default_settings())
    src: SourceMap = {k: FieldOrigin(origin=Origin.DEFAULT) for k in out}

    for origin, payload in layers:
        for k, v in payload.items():
            out[k] = v
            if origin is Origin.ENV:
                src[k] = FieldOrigin(origin=origin, env_key=env_key_for_field(k))
            elif origin is Origin.FLAG:
                src[k] = FieldOrigin(origin=origin, flag=flag_for_field(k))
            else:
                src[k] = FieldOrigin(origin=origin)

    return out, src


# --- Minimal audit helpers ---


def _origin_label(where: FieldOrigin) -> str:
    match where.origin:
        case Origin.ENV:
            return f"env:{where.env_key}"
        case Origin.FLAG:
            return f"flag:--{where.flag}"
        case _:
            return str(where.origin.value)


def _redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        k: "***redacted***" if is_sensitive_field_key(k) else v
        for k, v in headers.items()
    }


def audit_lines(cfg: FrozenConfig, sources: SourceMap) -> list[str]:
    """Produce redacted, human-readable audit lines per field.

    Only origins are shown; secrets are never printed.
    """
    lines: list[str] = []
    for field in cfg.__dataclass_fields__:
        fo = sources.get(field)
        if fo is None:
            continue
        redaction = " [REDACTED]" if is_sensitive_field_key(field) else ""
        lines.append(f"{field}: {_origin_label(fo)}{redaction}")
    return lines


def audit_text(cfg: FrozenConfig, sources: SourceMap) -> str:
    """Format audit as a single string suitable for printing/logging."""
    return "\n".join(audit_lines(cfg, sources))


def summarize_origins(sources: SourceMap) -> dict[str, int]:
    """Count how many fields originated from each layer."""
    counts: dict[str, int] = {}
    for fo in sources.values():
        key = fo.origin.value
        counts[key] = counts.get(key, 0) + 1
    return counts


def audit_layers_summary(src: SourceMap) -> list[str]:
    """Human-friendly summary of layer counts in fixed order."""
    counts = summarize_origins(src)
    order = [origin.value for origin in Origin]
    return [f"{name:9s}: {counts.get(name, 0)} fields" for name in order]


def was_field_overridden(sources: SourceMap, field: str) -> bool:
    """Return True if a field's value did not come from defaults."""
    fo = sources.get(field)
    return bool(fo and fo.origin is not Origin.DEFAULT)


# --- Redacted serialization and diagnostics ---


def to_redacted_dict(cfg: FrozenConfig) -> dict[str, Any]:
    """Redacted dict for structured logging (never prints secrets)."""

    def _redact(v: str | None) -> str | None:
        return "***redacted***" if v else None

    return {
        "server_url": str(cfg.server_url),
        "secret_token": _redact(cfg.secret_token),
        "api_key": _redact(cfg.api_key),
        "secure": cfg.secure,
        "event_rate": format_rate(cfg.event_rate),
        "ignore_errors": cfg.ignore_errors,
        "headers": _redact_headers(cfg.headers) if cfg.headers is not None else None,
        "rewrite_ids": cfg.rewrite_ids,
        "rewrite_timestamps": cfg.rewrite_timestamps,
        "rewrites": dict(cfg.rewrites),
    }


def check_environment(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return current ELASTIC_APM_* variables (redacted).

    Values of variables whose name looks like a secret are redacted. Without
    ``environ`` the process environment is read after loading ``.env``, the
    same view ``resolve_config`` resolves from.
    """
    if environ is None:
        _try_load_dotenv()
        environ = os.environ
    out: dict[str, str] = {}
    for k, v in environ.items():
        if not k.startswith(ENV_PREFIX):
            continue
        is_secret = any(s in k.upper() for s in ("KEY", "TOKEN", "SECRET"))
        out[k] = "***redacted***" if is_secret else v
    return out


def doctor(cfg: FrozenConfig) -> list[str]:
    """Quick configuration check with actionable messages."""
    msgs: list[str] = []
    if cfg.secret_token and cfg.api_key:
        msgs.append(
            "Both secret_token and api_key are set; APM Server accepts only one "
            "of them per request."
        )
    if cfg.server_url.scheme == "https" and not cfg.secure:
        msgs.append(
            "Server uses https but secure=False; TLS certificates will not be "
            "verified. Pass --secure to verify them."
        )
    if cfg.event_rate.unbounded:
        msgs.append(
            f"Advisory: event rate {format_rate(cfg.event_rate)} is unbounded; "
            "events are sent as fast as possible."
        )
    if not msgs:
        msgs.append("No issues detected.")
    return msgs
