"""Entrypoint: lock the triggering issue while an agent works on it."""

import logging

from safe_outputs.core.errors import GatewayError
from safe_outputs.handlers.base import HandlerRuntime

logger = logging.getLogger(__name__)


async def main(runtime: HandlerRuntime) -> None:
    """Lock the issue from the event payload.

    Pull requests and already locked issues are skipped. Sets the ``locked``
    output to ``true`` only when this run locked the issue.
    """
    context = runtime.context
    actions = runtime.actions
    number = context.issue_number
    if not number:
        actions.set_failed("Issue number not found in context")
        return

    try:
        issue = await runtime.gateway.get_issue(context.owner, context.repo, number)
        if issue.is_pull_request:
            logger.info("Issue #%d is a pull request, skipping lock operation", number)
            actions.set_output("locked", "false")
            return
        if issue.locked:
            logger.info("Issue #%d is already locked, skipping lock operation", number)
            actions.set_output("locked", "false")
            return

        logger.info("Locking issue #%d for agent workflow execution", number)
        await runtime.gateway.lock_issue(context.owner, context.repo, number)
    except GatewayError as exc:
        actions.set_failed(f"Failed to lock issue #{number}: {exc}")
        actions.set_output("locked", "false")
        return

    logger.info("Successfully locked issue #%d", number)
    actions.set_output("locked", "true")
