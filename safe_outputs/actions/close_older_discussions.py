"""Entrypoint: close older discussions created by the same workflow."""

import logging
import os
from collections.abc import Mapping

from safe_outputs.adapters.github.base import Discussion
from safe_outputs.core.close_older import close_older_discussions
from safe_outputs.core.errors import GatewayError
from safe_outputs.core.validation import parse_leading_int
from safe_outputs.handlers.base import HandlerRuntime

logger = logging.getLogger(__name__)


async def main(runtime: HandlerRuntime, env: Mapping[str, str] | None = None) -> None:
    env = os.environ if env is None else env
    context = runtime.context

    number = parse_leading_int(env.get("GH_AW_NEW_DISCUSSION_NUMBER") or "")
    if not number:
        runtime.actions.set_failed("GH_AW_NEW_DISCUSSION_NUMBER is not set")
        return

    new_discussion = Discussion(
        id=env.get("GH_AW_NEW_DISCUSSION_ID") or "",
        number=number,
        url=env.get("GH_AW_NEW_DISCUSSION_URL")
        or f"{context.server_url}/{context.repository.full_name}/discussions/{number}",
    )

    try:
        closed = await close_older_discussions(
            runtime.gateway,
            context.owner,
            context.repo,
            env.get("GH_AW_WORKFLOW_ID") or "",
            env.get("GH_AW_DISCUSSION_CATEGORY_ID") or None,
            new_discussion,
            env.get("GH_AW_WORKFLOW_NAME") or context.workflow or "workflow",
            context.run_url,
            sleep=runtime.sleep,
        )
    except GatewayError as exc:
        runtime.actions.set_failed(f"Failed to search for older discussions: {exc}")
        return

    runtime.actions.set_output("closed_count", len(closed))
    runtime.actions.set_output("closed_discussions", ",".join(str(item.number) for item in closed))
