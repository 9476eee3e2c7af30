"""Action pattern matching and grammar validation.

Actions are hierarchical resource paths ending in a verb, e.g.
``/inventory/42/read``. Roles declare patterns over those actions where
``*`` stands for any run of characters (including ``/``):

    '*'                 matches every action
    '/inventory/*'      matches '/inventory/read', '/inventory/5/write', ...
    '/user/*/role/*'    matches '/user/7/role/read', ...
    '/product/read'     matches exactly '/product/read' (case-insensitive)
"""
import logging
import re
from functools import lru_cache
from typing import Iterable, List, Optional, Pattern

logger = logging.getLogger(__name__)

WILDCARD = "*"
ACTION_VERBS = ("read", "write", "delete")

_ALLOWED_CHARS = re.compile(r"[A-Za-z0-9/*]*")
_VERB_SUFFIX = re.compile(r"/(%s)\Z" % "|".join(ACTION_VERBS), re.IGNORECASE)


class ActionPatternError(ValueError):
    """Raised when a role declares a pattern outside the action grammar."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid action pattern {pattern!r}: {reason}")


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> Pattern[str]:
    # Literal segments are escaped so a malformed pattern can never raise
    # re.error; it simply fails to match.
    regex = ".*".join(re.escape(part) for part in pattern.split(WILDCARD))
    return re.compile(regex, re.IGNORECASE | re.DOTALL)


def matches(action: str, pattern: str) -> bool:
    """Return True if ``action`` is covered by ``pattern``.

    The whole action must match (no substring search). ``*`` alone
    matches unconditionally, an empty pattern only matches an empty action.
    """
    if pattern == WILDCARD:
        return True
    if action is None or pattern is None:
        return False
    return _compile(pattern).fullmatch(action) is not None


def matches_any(action: str, patterns: Iterable[str]) -> bool:
    for pattern in patterns:
        if matches(action, pattern):
            return True
    return False


def pattern_violation(pattern: str) -> Optional[str]:
    """Return a description of the first grammar rule ``pattern`` breaks, or None."""
    if pattern == WILDCARD:
        return None
    if not isinstance(pattern, str) or not pattern:
        return "pattern must be a non-empty string"
    if not pattern.startswith("/"):
        return "must start with '/'"
    if "//" in pattern:
        return "must not contain consecutive '/'"
    if not _ALLOWED_CHARS.fullmatch(pattern):
        return "only alphanumeric characters, '/' and '*' are allowed"
    if not (pattern.endswith(WILDCARD) or _VERB_SUFFIX.search(pattern)):
        return "must end with /read, /write, /delete or *"
    return None


def is_valid_action_pattern(pattern: str) -> bool:
    return pattern_violation(pattern) is None


def validate_action_pattern(pattern: str) -> str:
    """Validate a single pattern, returning it unchanged or raising ActionPatternError."""
    reason = pattern_violation(pattern)
    if reason is not None:
        raise ActionPatternError(pattern, reason)
    return pattern


def validate_action_patterns(patterns: Optional[Iterable[str]]) -> List[str]:
    """Validate a role's pattern list. ``None`` is normalised to an empty list."""
    if patterns is None:
        return []
    return [validate_action_pattern(p) for p in patterns]
