"""Entrypoint: assign the coding agent to issues created earlier in the run."""

import logging
import os
from collections.abc import Mapping

from safe_outputs.core.agent_assignment import assign_agent_to_issues, parse_assignment_targets
from safe_outputs.handlers.base import HandlerRuntime

logger = logging.getLogger(__name__)

ISSUES_ENV = "GH_AW_ISSUES_TO_ASSIGN_COPILOT"


async def main(runtime: HandlerRuntime, env: Mapping[str, str] | None = None) -> None:
    """Read ``owner/repo:number`` entries from ``GH_AW_ISSUES_TO_ASSIGN_COPILOT``.

    Writes a step summary and fails the step when any assignment failed.
    """
    env = os.environ if env is None else env
    raw = (env.get(ISSUES_ENV) or "").strip()
    if not raw or "${{" in raw:
        logger.info("No issues to assign copilot to")
        return

    targets = parse_assignment_targets(raw)
    if not targets:
        logger.info("No valid issue entries found")
        return

    logger.info("Processing %d issue(s) for copilot assignment", len(targets))
    report = await assign_agent_to_issues(runtime.gateway, targets, "copilot", sleep=runtime.sleep)

    runtime.actions.write_summary(report.to_markdown())
    runtime.actions.set_output("assigned_count", len(report.succeeded))
    if report.failed:
        runtime.actions.set_failed(f"Failed to assign copilot to {len(report.failed)} issue(s)")
