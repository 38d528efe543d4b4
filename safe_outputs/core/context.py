"""Ambient GitHub Actions context read from the runner environment."""

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from safe_outputs.core.errors import ConfigurationError
from safe_outputs.core.mentions import is_payload_user_bot
from safe_outputs.core.models import RepoRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionContext:
    """Snapshot of the ``GITHUB_*`` variables and the triggering event payload."""

    repository: RepoRef
    event_name: str = ""
    actor: str = ""
    ref: str = ""
    head_ref: str = ""
    run_id: str = ""
    server_url: str = "https://github.com"
    api_url: str = "https://api.github.com"
    workflow: str = ""
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ActionContext":
        env = os.environ if env is None else env
        slug = env.get("GITHUB_REPOSITORY", "")
        if not slug:
            raise ConfigurationError("GITHUB_REPOSITORY is not set")
        try:
            repository = RepoRef.parse(slug)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        return cls(
            repository=repository,
            event_name=env.get("GITHUB_EVENT_NAME", ""),
            actor=env.get("GITHUB_ACTOR", ""),
            ref=env.get("GITHUB_REF", ""),
            head_ref=env.get("GITHUB_HEAD_REF", ""),
            run_id=env.get("GITHUB_RUN_ID", ""),
            server_url=env.get("GITHUB_SERVER_URL") or "https://github.com",
            api_url=env.get("GITHUB_API_URL") or "https://api.github.com",
            workflow=env.get("GITHUB_WORKFLOW", ""),
            payload=_load_event_payload(env.get("GITHUB_EVENT_PATH", "")),
        )

    @property
    def owner(self) -> str:
        return self.repository.owner

    @property
    def repo(self) -> str:
        return self.repository.name

    @property
    def run_url(self) -> str:
        return f"{self.server_url}/{self.repository.full_name}/actions/runs/{self.run_id}"

    @property
    def issue_number(self) -> int | None:
        """Number of the triggering issue or pull request, if any."""
        for key in ("issue", "pull_request"):
            item = self.payload.get(key)
            if isinstance(item, dict) and item.get("number"):
                return int(item["number"])
        return None

    @property
    def default_branch(self) -> str | None:
        repository = self.payload.get("repository")
        if isinstance(repository, dict):
            return repository.get("default_branch")
        return None

    def known_authors(self) -> list[str]:
        """Non-bot authors of the triggering issue, pull request or comment."""
        authors: list[str] = []
        for key in ("issue", "pull_request", "comment", "discussion"):
            item = self.payload.get(key)
            if not isinstance(item, dict):
                continue
            user = item.get("user")
            if isinstance(user, dict) and user.get("login") and not is_payload_user_bot(user):
                authors.append(user["login"])
        return authors


def _load_event_payload(path: str) -> dict[str, Any]:
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        logger.warning("Failed to read event payload %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}
