# src/apmloadgen/config/flags.py

"""Command-line flag registration.

Flags are registered from static tables: the environment fallbacks and the
semantic rewrite toggles. Adding a rewrite toggle is a new table entry (plus
its field on the schema), not new registration code.

The parser is built with ``argparse.SUPPRESS`` as the default for every flag,
so the parsed namespace holds exactly the flags given on the command line.
Defaults and environment values are layered in by the resolver.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
import sys
from typing import TYPE_CHECKING, Any, NoReturn

from apmloadgen.errors import UsageError

from .headers import HeaderAction
from .rate import DEFAULT_EVENT_RATE
from .utils import parse_bool

if TYPE_CHECKING:
    from collections.abc import Sequence

# --- Environment fallbacks ---

DEFAULT_SERVER_URL = "http://127.0.0.1:8200"


@dataclass(frozen=True)
class EnvFallback:
    """Environment variable that supplies a flag's pre-parse default."""

    env_var: str
    default: str
    field: str


ENV_FALLBACKS: dict[str, EnvFallback] = {
    "server": EnvFallback("ELASTIC_APM_SERVER_URL", DEFAULT_SERVER_URL, "server_url"),
    "secret-token": EnvFallback("ELASTIC_APM_SECRET_TOKEN", "", "secret_token"),
    "api-key": EnvFallback("ELASTIC_APM_API_KEY", "", "api_key"),
    "secure": EnvFallback("ELASTIC_APM_VERIFY_SERVER_CERT", "false", "secure"),
}

# --- Rewrite toggles ---


def rewrite_flag_name(field: str) -> str:
    """Derive the flag name for a semantic field: ``span.name`` -> ``rewrite-span-names``."""
    return f"rewrite-{field.replace('.', '-')}s"


@dataclass(frozen=True)
class RewriteToggle:
    """Boolean option that replaces one semantic field in every event."""

    field: str
    default: bool = False

    @property
    def flag(self) -> str:
        return rewrite_flag_name(self.field)

    @property
    def dest(self) -> str:
        return self.flag.replace("-", "_")


REWRITE_TOGGLES: tuple[RewriteToggle, ...] = (
    RewriteToggle("service.name"),
    RewriteToggle("service.node.name"),
    RewriteToggle("service.target.name"),
    RewriteToggle("span.name"),
    RewriteToggle("transaction.name"),
    RewriteToggle("transaction.type"),
)

# Flags whose destination is not the flag name with hyphens replaced.
_FIELD_FLAGS = {"server_url": "server", "headers": "header"}


def flag_for_field(field: str) -> str:
    """Return the command-line flag name that sets a config field."""
    return _FIELD_FLAGS.get(field, field.replace("_", "-"))


def table_defaults() -> dict[str, object]:
    """Built-in defaults declared by the flag tables, keyed by config field.

    Fallback defaults are raw strings, exactly as a flag or variable would
    supply them; toggle defaults are booleans.
    """
    out: dict[str, object] = {fb.field: fb.default for fb in ENV_FALLBACKS.values()}
    out.update({toggle.dest: toggle.default for toggle in REWRITE_TOGGLES})
    return out


# --- Parser ---


class FlagParser(argparse.ArgumentParser):
    """Argument parser that raises instead of exiting on bad input.

    A flag that takes a value always consumes the next token, even one that
    starts with ``-``, so ``--event-rate -5/s`` and ``--secret-token -abc``
    parse as values rather than as unknown flags.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        # add_argument runs during super().__init__ for --help.
        self.value_flags: set[str] = set()
        super().__init__(*args, **kwargs)

    def add_argument(self, *args: Any, **kwargs: Any) -> argparse.Action:
        action = super().add_argument(*args, **kwargs)
        if action.option_strings and action.nargs is None:
            self.value_flags.update(action.option_strings)
        return action

    def parse_known_args(  # type: ignore[override]
        self,
        args: Sequence[str] | None = None,
        namespace: argparse.Namespace | None = None,
    ) -> tuple[argparse.Namespace, list[str]]:
        if args is None:
            args = sys.argv[1:]
        return super().parse_known_args(self._bind_values(args), namespace)

    def _bind_values(self, args: Sequence[str]) -> list[str]:
        """Rewrite ``--flag value`` as ``--flag=value`` for value-taking flags."""
        out: list[str] = []
        it = iter(args)
        for arg in it:
            if arg == "--":
                out.append(arg)
                out.extend(it)
                break
            if arg in self.value_flags:
                value = next(it, None)
                # A trailing flag is left alone so argparse reports it.
                out.append(arg if value is None else f"{arg}={value}")
            else:
                out.append(arg)
        return out

    def error(self, message: str) -> NoReturn:
        raise UsageError(message, hint=f"Run '{self.prog} --help' for usage.")


def _add_bool(
    parser: argparse.ArgumentParser, flag: str, help_text: str, default: bool = False
) -> None:
    parser.add_argument(
        f"--{flag}",
        nargs="?",
        const="true",
        metavar="BOOL",
        help=f"{help_text} (default {str(default).lower()})",
    )


def build_parser(prog: str | None = None) -> FlagParser:
    """Register every load generator flag on a fresh parser."""
    parser = FlagParser(
        prog=prog,
        description="Send synthetic APM events to an APM Server.",
        argument_default=argparse.SUPPRESS,
        allow_abbrev=False,
    )

    # Server config
    server = ENV_FALLBACKS["server"]
    parser.add_argument(
        "--server",
        dest="server_url",
        metavar="URL",
        help=f"server URL (env {server.env_var}, default {server.default})",
    )
    parser.add_argument(
        "--secret-token",
        metavar="TOKEN",
        help="secret token for APM Server "
        f"(env {ENV_FALLBACKS['secret-token'].env_var})",
    )
    parser.add_argument(
        "--api-key",
        metavar="KEY",
        help=f"API key for APM Server (env {ENV_FALLBACKS['api-key'].env_var})",
    )
    secure = ENV_FALLBACKS["secure"]
    _add_bool(
        parser,
        "secure",
        f"validate the remote server TLS certificates (env {secure.env_var})",
        default=parse_bool(secure.default),
    )

    _add_bool(
        parser,
        "rewrite-timestamps",
        "rewrite event timestamps every iteration, maintaining relative offsets",
    )
    _add_bool(
        parser,
        "rewrite-ids",
        "rewrite event IDs every iteration, maintaining event relationships",
    )
    parser.add_argument(
        "--header",
        dest="headers",
        action=HeaderAction,
        metavar="KEY=VALUE",
        help="extra headers to use when sending data to the server (repeatable)",
    )
    parser.add_argument(
        "--event-rate",
        metavar="BURST/INTERVAL",
        help="event rate in format of {burst}/{interval}. For example, 200/5s, "
        f"<= 0 values evaluate to Inf (default {DEFAULT_EVENT_RATE})",
    )
    _add_bool(parser, "ignore-errors", "ignore HTTP errors while sending events")

    for toggle in REWRITE_TOGGLES:
        _add_bool(
            parser, toggle.flag, f"replace `{toggle.field}` in events", toggle.default
        )

    return parser


def parse_flags(
    argv: Sequence[str] | None = None, parser: FlagParser | None = None
) -> dict[str, object]:
    """Parse ``argv`` and return only the flags that were given.

    ``argv=None`` reads ``sys.argv[1:]``, matching argparse.
    """
    parser = parser or build_parser()
    return vars(parser.parse_args(argv))
