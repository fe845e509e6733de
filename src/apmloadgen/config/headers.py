# src/apmloadgen/config/headers.py

"""Repeatable ``--header key=value`` flag."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING, Any

from apmloadgen.errors import InvalidHeaderFormatError

if TYPE_CHECKING:
    from collections.abc import Sequence


def parse_header(text: str) -> tuple[str, str]:
    """Split ``key=value`` on the first ``=``.

    The value may itself contain ``=`` and may be empty.
    """
    key, sep, value = text.partition("=")
    if not sep:
        raise InvalidHeaderFormatError(
            f"invalid header {text!r}: format must be key=value"
        )
    return key, value


class HeaderAction(argparse.Action):
    """Insert or overwrite one header per flag occurrence.

    The mapping only exists on the namespace after the first occurrence, so
    "no headers given" stays distinguishable from an empty mapping.
    """

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: str | Sequence[Any] | None,
        option_string: str | None = None,
    ) -> None:
        text = str(values)
        try:
            key, value = parse_header(text)
        except InvalidHeaderFormatError as e:
            e.flag, e.value = "header", text
            raise
        headers = getattr(namespace, self.dest, None)
        if headers is None:
            headers = {}
            setattr(namespace, self.dest, headers)
        headers[key] = value
