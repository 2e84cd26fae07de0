"""Provider-state name matching against literal or regex handler patterns."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field


class PatternMatch(BaseModel):
    """The declared pattern that matched a state name, with its captures."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    arguments: list[str | None] = Field(default_factory=list)


@lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error:
        # Not a regular expression; the pattern can still match literally.
        return None


def _fullmatch(pattern: str, state_name: str) -> re.Match[str] | None:
    compiled = _compile(pattern)
    if compiled is None:
        return None
    return compiled.fullmatch(state_name)


def matches(patterns: Sequence[str], state_name: str) -> bool:
    """Return True if any pattern equals the state name or fully matches it as a regex."""
    for pattern in patterns:
        if pattern == state_name or _fullmatch(pattern, state_name) is not None:
            return True
    return False


def first_match(patterns: Sequence[str], state_name: str) -> PatternMatch | None:
    """Return the first pattern (declaration order) whose regex fully matches the state name.

    Capture groups 1..k are returned in order; the whole match is excluded.
    """
    for pattern in patterns:
        match = _fullmatch(pattern, state_name)
        if match is not None:
            return PatternMatch(pattern=pattern, arguments=list(match.groups()))
    return None
