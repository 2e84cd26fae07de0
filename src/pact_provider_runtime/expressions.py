"""``${NAME}`` / ``${NAME:default}`` environment expressions in configuration values."""

from __future__ import annotations

import os
import re
from typing import Mapping

_EXPRESSION = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def parse_expression(value: str, environ: Mapping[str, str] | None = None) -> str:
    """Replace every ``${NAME}`` (or ``${NAME:default}``) with its environment value.

    Unknown names without a default are left untouched.
    """
    env = os.environ if environ is None else environ

    def substitute(match: re.Match[str]) -> str:
        name, default = match.group(1).strip(), match.group(2)
        if name in env:
            return env[name]
        if default is not None:
            return default
        return match.group(0)

    return _EXPRESSION.sub(substitute, value)


def parse_list_expression(value: str, environ: Mapping[str, str] | None = None) -> list[str]:
    """Resolve expressions and split the result on commas, dropping blanks."""
    resolved = parse_expression(value, environ)
    return [item.strip() for item in resolved.split(",") if item.strip()]
