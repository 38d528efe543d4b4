"""Close issues and discussions superseded by a newer one from the same workflow.

Items created by a workflow carry a hidden ``gh-aw-workflow-id`` marker in
their body. When the workflow creates a new issue, older open issues with
the same marker are commented on and closed as not planned; older
discussions are commented on and closed as outdated.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from safe_outputs.adapters.github.base import Discussion, GitHubGateway, Issue
from safe_outputs.core.errors import GatewayError

logger = logging.getLogger(__name__)

MAX_CLOSE_COUNT = 10
API_DELAY_SECONDS = 0.5


@dataclass(frozen=True)
class ClosedIssue:
    number: int
    url: str


@dataclass(frozen=True)
class ClosedDiscussion:
    number: int
    url: str


def workflow_id_marker(workflow_id: str) -> str:
    return f"gh-aw-workflow-id: {workflow_id}"


def close_older_issue_message(new_issue: Issue, workflow_name: str, run_url: str) -> str:
    return (
        f"This issue is being closed as outdated. A newer issue has been created: #{new_issue.number}\n"
        "\n"
        f"[View newer issue]({new_issue.url})\n"
        "\n"
        "---\n"
        "\n"
        f"*This action was performed automatically by the [`{workflow_name}`]({run_url}) workflow.*"
    )


async def search_older_issues(
    gateway: GitHubGateway,
    owner: str,
    repo: str,
    workflow_id: str,
    exclude_number: int,
) -> list[Issue]:
    """Open issues carrying the workflow marker, excluding PRs and the new issue."""
    if not workflow_id:
        logger.info("No workflow ID provided - cannot search for older issues")
        return []

    marker = workflow_id_marker(workflow_id).replace('"', '\\"')
    query = f'repo:{owner}/{repo} is:issue is:open "{marker}" in:body'
    logger.info("Executing GitHub search with query: %s", query)
    items = await gateway.search_issues(query, per_page=50)
    logger.info("Search API returned %d total results", len(items))

    matched = []
    for item in items:
        if item.is_pull_request:
            continue
        if item.number == exclude_number:
            logger.info("Excluding issue #%d (the newly created issue)", item.number)
            continue
        matched.append(item)
    return matched


async def close_older_issues(
    gateway: GitHubGateway,
    owner: str,
    repo: str,
    workflow_id: str,
    new_issue: Issue,
    workflow_name: str,
    run_url: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[ClosedIssue]:
    """Comment on and close up to :data:`MAX_CLOSE_COUNT` older issues.

    Per-issue failures are logged and skipped; the remaining issues are
    still processed. Returns the issues that were closed.
    """
    older = await search_older_issues(gateway, owner, repo, workflow_id, new_issue.number)
    if not older:
        logger.info("No older issues found to close")
        return []

    to_close = older[:MAX_CLOSE_COUNT]
    if len(older) > MAX_CLOSE_COUNT:
        logger.warning(
            "Found %d older issues, but only closing the first %d; the remaining %d will be "
            "processed in subsequent runs",
            len(older),
            MAX_CLOSE_COUNT,
            len(older) - MAX_CLOSE_COUNT,
        )

    body = close_older_issue_message(new_issue, workflow_name, run_url)
    closed: list[ClosedIssue] = []
    for index, issue in enumerate(to_close):
        try:
            await gateway.create_comment(owner, repo, issue.number, body)
            await gateway.update_issue(owner, repo, issue.number, state="closed", state_reason="not_planned")
        except GatewayError as exc:
            logger.error("Failed to close issue #%d: %s", issue.number, exc)
        else:
            closed.append(ClosedIssue(number=issue.number, url=issue.url))
            logger.info("Closed issue #%d as not planned", issue.number)

        if index < len(to_close) - 1:
            await sleep(API_DELAY_SECONDS)

    logger.info("Closed %d of %d issue(s) successfully", len(closed), len(to_close))
    return closed


def close_older_discussion_message(new_discussion: Discussion, workflow_name: str, run_url: str) -> str:
    return (
        "This discussion is being closed as outdated. "
        f"A newer discussion has been created: #{new_discussion.number}\n"
        "\n"
        f"[View newer discussion]({new_discussion.url})\n"
        "\n"
        "---\n"
        "\n"
        f"*This action was performed automatically by the [`{workflow_name}`]({run_url}) workflow.*"
    )


async def search_older_discussions(
    gateway: GitHubGateway,
    owner: str,
    repo: str,
    workflow_id: str,
    category_id: str | None,
    exclude_number: int,
) -> list[Discussion]:
    """Open discussions carrying the workflow marker, optionally in one category."""
    if not workflow_id:
        logger.info("No workflow ID provided - cannot search for older discussions")
        return []

    marker = workflow_id_marker(workflow_id).replace('"', '\\"')
    query = f'repo:{owner}/{repo} is:open "{marker}" in:body'
    logger.info("Executing GitHub search with query: %s", query)
    nodes = await gateway.search_discussions(query, per_page=50)
    logger.info("Search API returned %d total results", len(nodes))

    matched = []
    for discussion in nodes:
        if discussion.number == exclude_number:
            logger.info("Excluding discussion #%d (the newly created discussion)", discussion.number)
            continue
        if discussion.closed:
            continue
        if category_id and discussion.category_id != category_id:
            continue
        matched.append(discussion)
    return matched


async def close_older_discussions(
    gateway: GitHubGateway,
    owner: str,
    repo: str,
    workflow_id: str,
    category_id: str | None,
    new_discussion: Discussion,
    workflow_name: str,
    run_url: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[ClosedDiscussion]:
    """Comment on and close up to :data:`MAX_CLOSE_COUNT` older discussions as outdated."""
    older = await search_older_discussions(gateway, owner, repo, workflow_id, category_id, new_discussion.number)
    if not older:
        logger.info("No older discussions found to close")
        return []

    to_close = older[:MAX_CLOSE_COUNT]
    if len(older) > MAX_CLOSE_COUNT:
        logger.warning(
            "Found %d older discussions, but only closing the first %d; the remaining %d will be "
            "processed in subsequent runs",
            len(older),
            MAX_CLOSE_COUNT,
            len(older) - MAX_CLOSE_COUNT,
        )

    body = close_older_discussion_message(new_discussion, workflow_name, run_url)
    closed: list[ClosedDiscussion] = []
    for index, discussion in enumerate(to_close):
        try:
            await gateway.add_discussion_comment(discussion.id, body)
            await gateway.close_discussion(discussion.id, reason="OUTDATED")
        except GatewayError as exc:
            logger.error("Failed to close discussion #%d: %s", discussion.number, exc)
        else:
            closed.append(ClosedDiscussion(number=discussion.number, url=discussion.url))
            logger.info("Closed discussion #%d as outdated", discussion.number)

        if index < len(to_close) - 1:
            await sleep(API_DELAY_SECONDS)

    if len(closed) < len(to_close):
        logger.warning(
            "Failed to close %d discussion(s) - check logs above for details", len(to_close) - len(closed)
        )
    logger.info("Closed %d of %d discussion(s) successfully", len(closed), len(to_close))
    return closed
