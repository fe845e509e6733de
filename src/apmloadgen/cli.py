"""Command line entry point: inspect the resolved load generator configuration.

Usage::

    apm-loadgen-config show --server https://apm.example:8200 --event-rate 200/5s
    apm-loadgen-config audit
    apm-loadgen-config doctor --secure
    apm-loadgen-config env

Everything after the command is parsed as load generator flags. Invalid
flags or environment values exit with status 2 and a message naming the
offending flag and value.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import TYPE_CHECKING

from apmloadgen.config import (
    audit_layers_summary,
    audit_text,
    check_environment,
    doctor,
    resolve_config,
    to_redacted_dict,
)
from apmloadgen.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence

PROG = "apm-loadgen-config"

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2


def _build_cli() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        PROG,
        description="Resolve and inspect the load generator configuration.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="log resolution details to stderr",
    )
    parser.add_argument("command", choices=("show", "audit", "doctor", "env"))
    parser.add_argument(
        "flags",
        nargs=argparse.REMAINDER,
        help="load generator flags, e.g. --server URL --event-rate 10/s",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_cli().parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )

    if args.command == "env":
        for k, v in sorted(check_environment().items()):
            sys.stdout.write(f"{k}={v}\n")
        return EXIT_OK

    try:
        cfg, src = resolve_config(args.flags, explain=True)
    except ConfigurationError as e:
        sys.stderr.write(f"{PROG}: error: {e}\n")
        if e.hint:
            sys.stderr.write(f"{PROG}: hint: {e.hint}\n")
        return EXIT_CONFIG_ERROR

    if args.command == "show":
        sys.stdout.write(json.dumps(to_redacted_dict(cfg), indent=2) + "\n")
    elif args.command == "audit":
        sys.stdout.write(audit_text(cfg, src) + "\n")
        for line in audit_layers_summary(src):
            sys.stdout.write(line + "\n")
    elif args.command == "doctor":
        for m in doctor(cfg):
            sys.stdout.write(m + "\n")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
