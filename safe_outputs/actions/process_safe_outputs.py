"""Entrypoint: apply the agent's safe outputs to GitHub."""

import logging
import os
from collections.abc import Mapping

from safe_outputs.core.agent_output import load_agent_output
from safe_outputs.core.config import load_handler_config
from safe_outputs.core.dispatch import process_messages
from safe_outputs.core.errors import ConfigurationError, SecurityError
from safe_outputs.core.models import RunSummary
from safe_outputs.handlers.base import HandlerRuntime
from safe_outputs.handlers.builtin import register_builtin_handlers
from safe_outputs.handlers.registry import HandlerRegistry

logger = logging.getLogger(__name__)


def default_registry() -> HandlerRegistry:
    """Registry with the built-in handlers plus any installed entry-point handlers."""
    registry = HandlerRegistry()
    register_builtin_handlers(registry)
    registry.load_entrypoint_handlers()
    return registry


async def main(
    runtime: HandlerRuntime,
    env: Mapping[str, str] | None = None,
    registry: HandlerRegistry | None = None,
    config_path: str | None = None,
) -> RunSummary | None:
    """Load config and agent output, run every message and write the step summary.

    Marks the step failed when configuration is invalid, a handler cannot be
    built, or any message fails.
    """
    env = os.environ if env is None else env
    actions = runtime.actions

    output = load_agent_output(env)
    if not output.success:
        if output.error:
            actions.set_failed(output.error)
        else:
            logger.info("No safe outputs to process")
        return None

    try:
        config = load_handler_config(config_path, env)
        handlers = (registry or default_registry()).build_handlers(config, runtime)
    except (ConfigurationError, SecurityError) as exc:
        actions.set_failed(str(exc))
        return None

    summary = await process_messages(handlers, output.items)
    actions.write_summary(summary.to_markdown())
    actions.set_output("processed_count", len(summary.results))
    actions.set_output("failed_count", summary.failure_count)

    if not summary.success:
        actions.set_failed(f"{summary.failure_count} of {len(summary.results)} safe output(s) failed")
    return summary
