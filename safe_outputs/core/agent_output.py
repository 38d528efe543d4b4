"""Loading of the agent output file (``$GH_AW_AGENT_OUTPUT``)."""

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

AGENT_OUTPUT_ENV = "GH_AW_AGENT_OUTPUT"
MAX_LOG_CONTENT_LENGTH = 10000


@dataclass(frozen=True)
class AgentOutput:
    """Parsed agent output; ``success`` is False when nothing usable was found."""

    success: bool
    items: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None


def truncate_for_logging(content: str) -> str:
    if len(content) <= MAX_LOG_CONTENT_LENGTH:
        return content
    return f"{content[:MAX_LOG_CONTENT_LENGTH]}\n... (truncated, total length: {len(content)})"


def load_agent_output(env: Mapping[str, str] | None = None) -> AgentOutput:
    """Read and parse the agent output file named by ``GH_AW_AGENT_OUTPUT``.

    A missing variable, missing file or empty file is not an error: agents
    that fail early produce no output.
    """
    env = os.environ if env is None else env
    path = env.get(AGENT_OUTPUT_ENV)
    if not path:
        logger.info("No %s environment variable found", AGENT_OUTPUT_ENV)
        return AgentOutput(success=False)

    try:
        with open(path, encoding="utf-8") as handle:
            content = handle.read()
    except OSError as exc:
        message = f"Error reading agent output file: {exc}"
        logger.info(message)
        return AgentOutput(success=False, error=message)

    if not content.strip():
        logger.info("Agent output content is empty")
        return AgentOutput(success=False)

    logger.info("Agent output content length: %d", len(content))
    try:
        parsed = json.loads(content)
    except ValueError as exc:
        message = f"Error parsing agent output JSON: {exc}"
        logger.error(message)
        logger.info("Failed to parse content:\n%s", truncate_for_logging(content))
        return AgentOutput(success=False, error=message)

    items = parsed.get("items") if isinstance(parsed, dict) else None
    if not isinstance(items, list):
        logger.info("No valid items found in agent output")
        logger.info("Parsed content: %s", truncate_for_logging(json.dumps(parsed)))
        return AgentOutput(success=False)

    return AgentOutput(success=True, items=[item for item in items if isinstance(item, dict)])
