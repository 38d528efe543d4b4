"""Target repository resolution for cross-repository safe outputs."""

import logging
from typing import Any

from safe_outputs.core.errors import SecurityError, ValidationError
from safe_outputs.core.models import RepoRef

logger = logging.getLogger(__name__)


def parse_allowed_repos(value: Any) -> set[str]:
    """Accept a list or a comma-separated string of ``owner/repo`` slugs."""
    if not value:
        return set()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = list(value)
    else:
        return set()
    return {str(item).strip() for item in items if str(item).strip()}


def default_target_repo(config: dict[str, Any], ambient: RepoRef) -> RepoRef:
    """The ``target-repo`` config override, else the workflow's own repository."""
    target = config.get("target-repo")
    if not target:
        return ambient
    try:
        return RepoRef.parse(str(target))
    except ValueError as exc:
        raise ValidationError(f"Invalid target-repo configuration: {target}") from exc


def resolve_target_repo(
    message_repo: Any,
    config: dict[str, Any],
    ambient: RepoRef,
) -> RepoRef:
    """Return the repository a message operates on.

    A bare ``repo`` on the message is qualified with the default repo's
    owner. Explicit repositories other than the default must appear in the
    ``allowed_repos`` config.

    Raises:
        SecurityError: The repository is not allow-listed.
        ValidationError: The repository slug is malformed.
    """
    default = default_target_repo(config, ambient)
    if message_repo is None or (isinstance(message_repo, str) and not message_repo.strip()):
        return default
    if not isinstance(message_repo, str):
        raise ValidationError(f"Invalid repository: {message_repo!r}")

    slug = message_repo.strip()
    if "/" not in slug:
        slug = f"{default.owner}/{slug}"
    try:
        requested = RepoRef.parse(slug)
    except ValueError as exc:
        raise ValidationError(f"Invalid repository: {message_repo}") from exc

    if requested.full_name == default.full_name:
        return requested
    if requested.full_name in parse_allowed_repos(config.get("allowed_repos")):
        return requested

    logger.warning("Rejected cross-repository target %s", requested.full_name)
    raise SecurityError(f"Repository '{requested.full_name}' is not in the allowed-repos list")
