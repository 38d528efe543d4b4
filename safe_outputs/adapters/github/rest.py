"""GitHub REST gateway built on aiohttp."""

import asyncio
import json
import logging
from typing import Any
from urllib.parse import quote

import aiohttp

from safe_outputs.adapters.github.base import Comment, Discussion, GitHubGateway, GitHubUser, Issue, Repository
from safe_outputs.core.errors import GatewayError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"

SEARCH_DISCUSSIONS_QUERY = """
query($searchTerms: String!, $first: Int!) {
  search(query: $searchTerms, type: DISCUSSION, first: $first) {
    nodes {
      ... on Discussion { id number title url closed category { id } }
    }
  }
}
"""

ADD_DISCUSSION_COMMENT_MUTATION = """
mutation($dId: ID!, $body: String!) {
  addDiscussionComment(input: { discussionId: $dId, body: $body }) {
    comment { id url }
  }
}
"""

CLOSE_DISCUSSION_MUTATION = """
mutation($dId: ID!, $reason: DiscussionCloseReason!) {
  closeDiscussion(input: { discussionId: $dId, reason: $reason }) {
    discussion { id url }
  }
}
"""


class GitHubRestGateway(GitHubGateway):
    """GitHub REST API v3 gateway.

    A single :class:`aiohttp.ClientSession` is created lazily and shared by
    all calls; close it with :meth:`aclose` (or use the gateway as an async
    context manager).

    Args:
        token: Token sent as a bearer credential.
        api_url: Base API URL (``GITHUB_API_URL`` on GitHub Enterprise).
        timeout: Total timeout in seconds for each request.
    """

    def __init__(self, token: str, api_url: str = DEFAULT_API_URL, timeout: float = 30.0):
        if not token:
            raise ValueError("A GitHub token is required")
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._graphql_url = graphql_url_for(self._api_url)
        self._timeout = timeout

    async def __aenter__(self) -> "GitHubRestGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # GitHubGateway interface
    # ------------------------------------------------------------------

    async def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        data = await self._request("GET", f"/repos/{owner}/{repo}/issues/{number}")
        return Issue.from_api(data)

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
        payload: dict[str, Any] = {}
        if state is not None:
            payload["state"] = state
        if state_reason is not None:
            payload["state_reason"] = state_reason
        if title is not None:
            payload["title"] = title
        if body is not None:
            payload["body"] = body
        data = await self._request("PATCH", f"/repos/{owner}/{repo}/issues/{number}", json=payload)
        return Issue.from_api(data)

    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> Comment:
        data = await self._request(
            "POST", f"/repos/{owner}/{repo}/issues/{number}/comments", json={"body": body}
        )
        return Comment.from_api(data)

    async def add_labels(self, owner: str, repo: str, number: int, labels: list[str]) -> list[str]:
        data = await self._request(
            "POST", f"/repos/{owner}/{repo}/issues/{number}/labels", json={"labels": labels}
        )
        return [label["name"] for label in data or [] if isinstance(label, dict) and "name" in label]

    async def remove_label(self, owner: str, repo: str, number: int, label: str) -> None:
        await self._request(
            "DELETE", f"/repos/{owner}/{repo}/issues/{number}/labels/{quote(label, safe='')}"
        )

    async def add_assignees(self, owner: str, repo: str, number: int, assignees: list[str]) -> list[str]:
        data = await self._request(
            "POST", f"/repos/{owner}/{repo}/issues/{number}/assignees", json={"assignees": assignees}
        )
        return [user["login"] for user in (data or {}).get("assignees") or [] if "login" in user]

    async def lock_issue(self, owner: str, repo: str, number: int, lock_reason: str | None = None) -> None:
        payload = {"lock_reason": lock_reason} if lock_reason else {}
        await self._request("PUT", f"/repos/{owner}/{repo}/issues/{number}/lock", json=payload)

    async def unlock_issue(self, owner: str, repo: str, number: int) -> None:
        await self._request("DELETE", f"/repos/{owner}/{repo}/issues/{number}/lock")

    async def get_repository(self, owner: str, repo: str) -> Repository:
        data = await self._request("GET", f"/repos/{owner}/{repo}")
        return Repository(
            full_name=data.get("full_name") or f"{owner}/{repo}",
            default_branch=data.get("default_branch") or "main",
        )

    async def create_workflow_dispatch(
        self,
        owner: str,
        repo: str,
        workflow_id: str,
        ref: str,
        inputs: dict[str, str],
    ) -> None:
        await self._request(
            "POST",
            f"/repos/{owner}/{repo}/actions/workflows/{quote(workflow_id, safe='')}/dispatches",
            json={"ref": ref, "inputs": inputs},
        )

    async def list_collaborators(
        self,
        owner: str,
        repo: str,
        affiliation: str = "direct",
        per_page: int = 30,
    ) -> list[GitHubUser]:
        data = await self._request(
            "GET",
            f"/repos/{owner}/{repo}/collaborators",
            params={"affiliation": affiliation, "per_page": str(per_page)},
        )
        return [GitHubUser(login=item["login"], type=item.get("type") or "User") for item in data or []]

    async def get_user(self, username: str) -> GitHubUser:
        data = await self._request("GET", f"/users/{quote(username, safe='')}")
        return GitHubUser(login=data.get("login") or username, type=data.get("type") or "User")

    async def get_collaborator_permission(self, owner: str, repo: str, username: str) -> str:
        data = await self._request(
            "GET", f"/repos/{owner}/{repo}/collaborators/{quote(username, safe='')}/permission"
        )
        return str(data.get("permission") or "none")

    async def search_issues(self, query: str, per_page: int = 50) -> list[Issue]:
        data = await self._request("GET", "/search/issues", params={"q": query, "per_page": str(per_page)})
        return [Issue.from_api(item) for item in (data or {}).get("items") or []]

    async def search_discussions(self, query: str, per_page: int = 50) -> list[Discussion]:
        data = await self._graphql(SEARCH_DISCUSSIONS_QUERY, {"searchTerms": query, "first": per_page})
        nodes = ((data or {}).get("search") or {}).get("nodes") or []
        return [Discussion.from_api(node) for node in nodes if node]

    async def add_discussion_comment(self, discussion_id: str, body: str) -> str:
        data = await self._graphql(ADD_DISCUSSION_COMMENT_MUTATION, {"dId": discussion_id, "body": body})
        comment = ((data or {}).get("addDiscussionComment") or {}).get("comment") or {}
        return comment.get("url") or ""

    async def close_discussion(self, discussion_id: str, reason: str = "OUTDATED") -> None:
        await self._graphql(CLOSE_DISCUSSION_MUTATION, {"dId": discussion_id, "reason": reason})

    # ------------------------------------------------------------------
    # Internal helpers: HTTP
    # ------------------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        """Return a shared aiohttp session, creating it on first use."""
        session = getattr(self, "_session", None)
        if session is None or session.closed:
            self._session = aiohttp.ClientSession(
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
        return self._session

    async def aclose(self) -> None:
        """Close the underlying aiohttp session, if it exists."""
        session = getattr(self, "_session", None)
        if session is not None and not session.closed:
            await session.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": "safe-outputs",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Perform a request and return the decoded JSON body (``None`` for 204)."""
        session = self._get_session()
        url = path if path.startswith(("http://", "https://")) else f"{self._api_url}{path}"
        try:
            async with session.request(method, url, json=json, params=params) as resp:
                if resp.status == 204:
                    return None
                text = await resp.text()
                payload = _decode(text)
                if resp.status >= 400:
                    message = payload.get("message") if isinstance(payload, dict) else None
                    raise GatewayError(message or text or resp.reason or "GitHub API error", status=resp.status)
                return payload
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("GitHub %s %s failed: %s", method, path, exc)
            raise GatewayError(f"GitHub API request failed: {exc}") from exc

    async def _graphql(self, query: str, variables: dict[str, Any]) -> Any:
        """POST a GraphQL document; GraphQL ``errors`` become a :class:`GatewayError`."""
        payload = await self._request("POST", self._graphql_url, json={"query": query, "variables": variables})
        if not isinstance(payload, dict):
            raise GatewayError("Empty GraphQL response")
        errors = payload.get("errors")
        if errors:
            messages = [str(error.get("message") or error) for error in errors if isinstance(error, dict)]
            raise GatewayError("; ".join(messages) or "GraphQL request failed")
        return payload.get("data")


def graphql_url_for(api_url: str) -> str:
    """GitHub Enterprise serves REST at ``/api/v3`` and GraphQL at ``/api/graphql``."""
    if api_url.endswith("/api/v3"):
        return api_url[: -len("/v3")] + "/graphql"
    return f"{api_url}/graphql"


def _decode(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None
