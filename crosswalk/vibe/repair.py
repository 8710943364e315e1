# crosswalk/vibe/repair.py
"""
"Promised but didn't deliver" detection.

Completion models sometimes narrate an edit ("I'll now update MapView...")
and stop without calling write_file. promised_changes() spots that phrasing
so the agent loop can push for one more round. It is a fuzzy heuristic:
false negatives just mean no repair round happens.
"""

import re
from typing import Optional, Pattern, Union

# Matches, case-insensitively:
#   "now I'll" / "now I will"
#   "let me [now] update|add|modify|change|create"
#   "I'll [now] ..." / "I will [now] update|add|modify|change|create"
PROMISE_PATTERN = (
    r"\b(now i('ll| will)"
    r"|let me (now )?(update|add|modify|change|create)"
    r"|i('ll| will) (now )?(update|add|modify|change|create))\b"
)

_DEFAULT = re.compile(PROMISE_PATTERN, re.IGNORECASE)


def compile_pattern(pattern: Optional[Union[str, Pattern]] = None) -> Pattern:
    if pattern is None:
        return _DEFAULT
    if isinstance(pattern, str):
        return re.compile(pattern, re.IGNORECASE)
    return pattern


def _normalize(text: str) -> str:
    # Models often use a typographic apostrophe
    return text.replace("’", "'")


def promised_changes(text: str, pattern: Optional[Union[str, Pattern]] = None) -> bool:
    if not text:
        return False
    return bool(compile_pattern(pattern).search(_normalize(text)))


def needs_repair(text: str, wrote: bool, exhausted: bool, pattern: Optional[Union[str, Pattern]] = None) -> bool:
    """A repair round is due when the reply promises edits, none landed, and budget remains."""
    return not wrote and not exhausted and promised_changes(text, pattern)
