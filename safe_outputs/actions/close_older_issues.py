"""Entrypoint: close older issues created by the same workflow."""

import logging
import os
from collections.abc import Mapping

from safe_outputs.adapters.github.base import Issue
from safe_outputs.core.close_older import close_older_issues
from safe_outputs.core.errors import GatewayError
from safe_outputs.core.validation import parse_leading_int
from safe_outputs.handlers.base import HandlerRuntime

logger = logging.getLogger(__name__)


async def main(runtime: HandlerRuntime, env: Mapping[str, str] | None = None) -> None:
    """Read the new issue from ``GH_AW_NEW_ISSUE_NUMBER``/``GH_AW_NEW_ISSUE_URL``
    and the marker id from ``GH_AW_WORKFLOW_ID``; sets ``closed_count``."""
    env = os.environ if env is None else env
    context = runtime.context

    number = parse_leading_int(env.get("GH_AW_NEW_ISSUE_NUMBER") or "")
    if not number:
        runtime.actions.set_failed("GH_AW_NEW_ISSUE_NUMBER is not set")
        return

    workflow_id = env.get("GH_AW_WORKFLOW_ID") or ""
    workflow_name = env.get("GH_AW_WORKFLOW_NAME") or context.workflow or "workflow"
    new_issue = Issue(
        number=number,
        title="",
        body="",
        state="open",
        url=env.get("GH_AW_NEW_ISSUE_URL")
        or f"{context.server_url}/{context.repository.full_name}/issues/{number}",
    )

    try:
        closed = await close_older_issues(
            runtime.gateway,
            context.owner,
            context.repo,
            workflow_id,
            new_issue,
            workflow_name,
            context.run_url,
            sleep=runtime.sleep,
        )
    except GatewayError as exc:
        runtime.actions.set_failed(f"Failed to search for older issues: {exc}")
        return

    runtime.actions.set_output("closed_count", len(closed))
    runtime.actions.set_output("closed_issues", ",".join(str(issue.number) for issue in closed))
