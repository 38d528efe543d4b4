"""Base interface for the GitHub API gateway used by safe-output handlers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Issue:
    """Issue (or pull request) as returned by the issues API."""

    number: int
    title: str
    body: str
    state: str  # "open", "closed"
    labels: list[str] = field(default_factory=list)
    locked: bool = False
    url: str = ""
    author: str | None = None
    is_pull_request: bool = False
    assignees: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Issue":
        labels = []
        for label in data.get("labels") or []:
            name = label.get("name") if isinstance(label, dict) else label
            if name:
                labels.append(str(name))
        user = data.get("user") or {}
        return cls(
            number=int(data.get("number", 0)),
            title=data.get("title") or "",
            body=data.get("body") or "",
            state=data.get("state") or "open",
            labels=labels,
            locked=bool(data.get("locked", False)),
            url=data.get("html_url") or "",
            author=user.get("login"),
            is_pull_request="pull_request" in data,
            assignees=[user["login"] for user in data.get("assignees") or [] if user.get("login")],
        )


@dataclass
class Comment:
    """Issue comment."""

    id: int
    body: str
    url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Comment":
        return cls(id=int(data.get("id", 0)), body=data.get("body") or "", url=data.get("html_url") or "")


@dataclass
class Discussion:
    """Discussion as returned by the GraphQL search API (``id`` is the node id)."""

    id: str
    number: int
    title: str = ""
    url: str = ""
    closed: bool = False
    category_id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Discussion":
        category = data.get("category") or {}
        return cls(
            id=str(data.get("id") or ""),
            number=int(data.get("number", 0)),
            title=data.get("title") or "",
            url=data.get("url") or "",
            closed=bool(data.get("closed", False)),
            category_id=category.get("id"),
        )


@dataclass
class GitHubUser:
    """User account (``type`` is ``User``, ``Bot`` or ``Organization``)."""

    login: str
    type: str = "User"

    @property
    def is_bot(self) -> bool:
        return self.type == "Bot"


@dataclass
class Repository:
    """Repository metadata needed by handlers."""

    full_name: str
    default_branch: str = "main"


class GitHubGateway(ABC):
    """Abstract interface for the GitHub operations handlers perform.

    Implementations raise :class:`~safe_outputs.core.errors.GatewayError`
    for any failed call.
    """

    @abstractmethod
    async def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        """Fetch an issue or pull request by number."""
        pass

    @abstractmethod
    async def update_issue(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        state: str | None = None,
        state_reason: str | None = None,
        title: str | None = None,
        body: str | None = None,
    ) -> Issue:
        """Update issue properties."""
        pass

    @abstractmethod
    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> Comment:
        """Post a comment on an issue or pull request."""
        pass

    @abstractmethod
    async def add_labels(self, owner: str, repo: str, number: int, labels: list[str]) -> list[str]:
        """Add labels; returns the issue's full label list afterwards."""
        pass

    @abstractmethod
    async def remove_label(self, owner: str, repo: str, number: int, label: str) -> None:
        """Remove a single label."""
        pass

    @abstractmethod
    async def add_assignees(self, owner: str, repo: str, number: int, assignees: list[str]) -> list[str]:
        """Add assignees; returns the issue's assignees afterwards."""
        pass

    @abstractmethod
    async def lock_issue(self, owner: str, repo: str, number: int, lock_reason: str | None = None) -> None:
        pass

    @abstractmethod
    async def unlock_issue(self, owner: str, repo: str, number: int) -> None:
        pass

    @abstractmethod
    async def get_repository(self, owner: str, repo: str) -> Repository:
        pass

    @abstractmethod
    async def create_workflow_dispatch(
        self,
        owner: str,
        repo: str,
        workflow_id: str,
        ref: str,
        inputs: dict[str, str],
    ) -> None:
        """Trigger a ``workflow_dispatch`` event."""
        pass

    @abstractmethod
    async def list_collaborators(
        self,
        owner: str,
        repo: str,
        affiliation: str = "direct",
        per_page: int = 30,
    ) -> list[GitHubUser]:
        """List the first page of repository collaborators."""
        pass

    @abstractmethod
    async def get_user(self, username: str) -> GitHubUser:
        pass

    @abstractmethod
    async def get_collaborator_permission(self, owner: str, repo: str, username: str) -> str:
        """Return ``admin``, ``maintain``, ``write``, ``triage``, ``read`` or ``none``."""
        pass

    @abstractmethod
    async def search_issues(self, query: str, per_page: int = 50) -> list[Issue]:
        """Run an issue search query and return the first page of results."""
        pass

    @abstractmethod
    async def search_discussions(self, query: str, per_page: int = 50) -> list[Discussion]:
        """Run a discussion search query and return the first page of results."""
        pass

    @abstractmethod
    async def add_discussion_comment(self, discussion_id: str, body: str) -> str:
        """Comment on a discussion by node id; returns the comment URL."""
        pass

    @abstractmethod
    async def close_discussion(self, discussion_id: str, reason: str = "OUTDATED") -> None:
        """Close a discussion with ``RESOLVED``, ``OUTDATED`` or ``DUPLICATE``."""
        pass
