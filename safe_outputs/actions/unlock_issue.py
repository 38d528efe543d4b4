"""Entrypoint: unlock the triggering issue after the agent finished."""

import logging

from safe_outputs.core.errors import GatewayError
from safe_outputs.handlers.base import HandlerRuntime

logger = logging.getLogger(__name__)


async def main(runtime: HandlerRuntime) -> None:
    context = runtime.context
    number = context.issue_number
    if not number:
        runtime.actions.set_failed("Issue number not found in context")
        return

    try:
        issue = await runtime.gateway.get_issue(context.owner, context.repo, number)
        if issue.is_pull_request:
            logger.info("Issue #%d is a pull request, skipping unlock operation", number)
            return
        if not issue.locked:
            logger.info("Issue #%d is not locked, skipping unlock operation", number)
            return
        await runtime.gateway.unlock_issue(context.owner, context.repo, number)
    except GatewayError as exc:
        runtime.actions.set_failed(f"Failed to unlock issue #{number}: {exc}")
        return

    logger.info("Successfully unlocked issue #%d", number)
