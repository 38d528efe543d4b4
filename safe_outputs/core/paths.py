"""Path traversal guards for file paths derived from untrusted input."""

import logging
import os

from safe_outputs.core.errors import SecurityError

logger = logging.getLogger(__name__)


def validate_and_normalize_path(file_path: str, description: str = "path") -> str:
    """Reject empty or null-byte paths and return the absolute, normalized form."""
    if not isinstance(file_path, str) or not file_path.strip():
        raise SecurityError(f"Security: {description} cannot be empty")
    if "\x00" in file_path:
        raise SecurityError(f"Security: {description} contains null bytes")
    return os.path.normpath(os.path.abspath(file_path))


def _is_within(path: str, base: str) -> bool:
    relative = os.path.relpath(path, base)
    if relative == os.curdir:
        return True
    if os.path.isabs(relative):
        return False
    return relative != os.pardir and not relative.startswith(os.pardir + os.sep)


def validate_path_within_base(file_path: str, base_dir: str, description: str = "path") -> str:
    """Return the normalized path, raising :class:`SecurityError` if it leaves ``base_dir``.

    Containment is decided on normalized absolute paths, so ``/base/../x``
    is rejected even though it textually starts with ``/base``.
    """
    normalized_path = validate_and_normalize_path(file_path, description)
    normalized_base = validate_and_normalize_path(base_dir, "base directory")

    if not _is_within(normalized_path, normalized_base):
        relative = os.path.relpath(normalized_path, normalized_base)
        logger.error("Path traversal blocked for %s: %s", description, normalized_path)
        raise SecurityError(
            f"Security: {description} must be within {normalized_base} "
            f"(attempted to access: {relative})"
        )
    return normalized_path


def validate_directory(dir_path: str, description: str = "directory", create_if_missing: bool = False) -> str:
    """Validate that ``dir_path`` is a directory, optionally creating it."""
    normalized = validate_and_normalize_path(dir_path, description)
    if os.path.exists(normalized):
        if not os.path.isdir(normalized):
            raise SecurityError(f"Security: {description} is not a directory: {normalized}")
        return normalized
    if not create_if_missing:
        raise SecurityError(f"Security: {description} does not exist: {normalized}")
    os.makedirs(normalized, exist_ok=True)
    logger.debug("Created %s: %s", description, normalized)
    return normalized


def safe_join(base_dir: str, *segments: str) -> str:
    """Join ``segments`` onto ``base_dir`` and verify the result stays inside it."""
    for segment in segments:
        if not isinstance(segment, str) or "\x00" in segment:
            raise SecurityError("Security: path segment contains null bytes")
    joined = os.path.join(base_dir, *segments)
    return validate_path_within_base(joined, base_dir, "joined path")
