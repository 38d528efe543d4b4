"""Glob pattern helpers used for blocked-label filters.

Supported syntax:

- ``*`` matches any characters except ``/``
- ``**`` matches any characters including ``/``
- ``\\*`` matches a literal asterisk
- ``\\\\`` matches a literal backslash

Every other character matches itself. Patterns are anchored at both ends.
"""

import re


def glob_pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Convert a glob pattern into a compiled, fully anchored regex."""
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        pair = pattern[i : i + 2]
        if pair == "\\*":
            parts.append(re.escape("*"))
            i += 2
        elif pair == "\\\\":
            parts.append(re.escape("\\"))
            i += 2
        elif pair == "**":
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("^" + "".join(parts) + r"\Z", re.DOTALL)


def matches_any(value: str, patterns: list[re.Pattern[str]]) -> bool:
    return any(regex.match(value) for regex in patterns)
