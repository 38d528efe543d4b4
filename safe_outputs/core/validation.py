"""Pure validators for untrusted safe-output fields.

Every validator returns a :class:`ValidationResult` instead of raising, so
handlers can thread the outcome straight into a failed
:class:`~safe_outputs.core.models.ProcessingResult`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from safe_outputs.core.glob_patterns import glob_pattern_to_regex, matches_any

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Maximum length GitHub accepts for a label name.
MAX_LABEL_LENGTH = 64

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_UNSAFE_LABEL_CHARS = re.compile(r"[<>&'\"]")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Outcome of a validation step: either ``value`` or ``error`` is set."""

    valid: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T) -> ValidationResult[T]:
        return cls(valid=True, value=value)

    @classmethod
    def failure(cls, error: str) -> ValidationResult[T]:
        return cls(valid=False, error=error)


def parse_leading_int(value: Any) -> int | None:
    """Parse the leading integer of ``value`` the way GitHub tooling does.

    ``"42"`` and ``"42abc"`` both yield ``42``; ``"abc"`` yields ``None``.
    Booleans are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def validate_title(title: Any, field_name: str = "title") -> ValidationResult[str]:
    if title is None:
        return ValidationResult.failure(f"{field_name} is required")
    if not isinstance(title, str):
        return ValidationResult.failure(f"{field_name} must be a string")
    trimmed = title.strip()
    if not trimmed:
        return ValidationResult.failure(f"{field_name} cannot be empty")
    return ValidationResult.success(trimmed)


def validate_body(body: Any, field_name: str = "body", required: bool = False) -> ValidationResult[str]:
    if body is None:
        if required:
            return ValidationResult.failure(f"{field_name} is required")
        return ValidationResult.success("")
    if not isinstance(body, str):
        return ValidationResult.failure(f"{field_name} must be a string")
    if required and not body.strip():
        return ValidationResult.failure(f"{field_name} cannot be empty")
    return ValidationResult.success(body)


def sanitize_label_content(content: str) -> str:
    """Strip terminal escapes, control characters and HTML-unsafe characters."""
    cleaned = _ANSI_ESCAPE.sub("", content)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    cleaned = _UNSAFE_LABEL_CHARS.sub("", cleaned)
    return cleaned.strip()


def validate_labels(
    labels: Any,
    allowed_labels: list[str] | None = None,
    blocked_patterns: list[str] | None = None,
    max_count: int = 3,
) -> ValidationResult[list[str]]:
    """Validate, sanitize and deduplicate a label list.

    Order of operations:

    1. reject removal syntax (any label starting with ``-``)
    2. keep only allow-listed labels, when an allow-list is configured
    3. sanitize each label and cap it at 64 characters
    4. deduplicate, preserving first-seen order (case-sensitive)
    5. drop labels matching a blocked glob pattern
    6. truncate to ``max_count``
    """
    if not isinstance(labels, list):
        return ValidationResult.failure("labels must be an array")

    for label in labels:
        if isinstance(label, str) and label.startswith("-"):
            return ValidationResult.failure(
                f"Label removal is not permitted. Found line starting with '-': {label}"
            )

    candidates = labels
    if allowed_labels:
        candidates = [label for label in labels if label in allowed_labels]

    unique: list[str] = []
    for label in candidates:
        if label in (None, False, 0):
            continue
        text = str(label).strip()
        if not text:
            continue
        text = sanitize_label_content(text)
        if not text:
            continue
        text = text[:MAX_LABEL_LENGTH]
        if text not in unique:
            unique.append(text)

    filtered = unique
    if blocked_patterns:
        blocked = [glob_pattern_to_regex(pattern) for pattern in blocked_patterns]
        filtered = []
        for label in unique:
            if matches_any(label, blocked):
                logger.info('Label "%s" matched blocked pattern, filtering out', label)
                continue
            filtered.append(label)

    if len(filtered) > max_count:
        logger.info("Too many labels (%d), limiting to %d", len(filtered), max_count)
        return ValidationResult.success(filtered[:max_count])

    if not filtered:
        return ValidationResult.failure("No valid labels found after sanitization")

    return ValidationResult.success(filtered)


def validate_max_count(
    env_value: str | None,
    config_default: int | None,
    fallback_default: int = 1,
) -> ValidationResult[int]:
    """Resolve a max count with precedence env value > config > fallback."""
    default_value = config_default if config_default is not None else fallback_default
    if not env_value:
        return ValidationResult.success(default_value)

    parsed = parse_leading_int(env_value)
    if parsed is None or parsed < 1:
        return ValidationResult.failure(
            f"Invalid max value: {env_value}. Must be a positive integer"
        )
    return ValidationResult.success(parsed)


def filter_allowed_items(items: Any, allowed: list[str] | None, max_count: int) -> list[str]:
    """Filter, sanitize, dedupe and cap a list of free-form names (e.g. assignees)."""
    if not isinstance(items, list):
        return []
    candidates = [item for item in items if not allowed or item in allowed]
    unique: list[str] = []
    for item in candidates:
        if item in (None, False, 0):
            continue
        text = sanitize_label_content(str(item))
        if text and text not in unique:
            unique.append(text)
    return unique[:max_count]
