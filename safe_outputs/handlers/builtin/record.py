"""Built-in record-and-acknowledge handlers: ``noop``, ``missing_data`` and ``missing_tool``.

These perform no GitHub mutation. They validate, count and return what
the agent reported so it shows up in the run summary.
"""

import json
import logging
from datetime import UTC, datetime

from safe_outputs.core.models import ProcessingResult, SafeOutputMessage
from safe_outputs.handlers.base import ResolvedIds, SafeOutputHandler

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class NoopHandler(SafeOutputHandler):
    handler_type = "noop"
    default_max = 0
    zero_is_unlimited = True
    count_attempts = False

    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        text = message.get("message")
        if not isinstance(text, str) or not text.strip():
            logger.warning("noop message missing or invalid 'message' field: %s", json.dumps(message.fields))
            return ProcessingResult.fail("Missing required field: message")
        logger.info("Recorded noop message: %s", text)
        return ProcessingResult.ok(message=text, timestamp=_timestamp())


class MissingDataHandler(SafeOutputHandler):
    handler_type = "missing_data"
    default_max = 0
    zero_is_unlimited = True

    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        data_type = message.get("data_type") or None
        reason = message.get("reason") or None
        context = message.get("context") or None
        alternatives = message.get("alternatives") or None

        logger.info("Recorded missing data%s", f": {data_type}" if data_type else "")
        if reason:
            logger.info("   Reason: %s", reason)
        if context:
            logger.info("   Context: %s", context)
        if alternatives:
            logger.info("   Alternatives: %s", alternatives)

        return ProcessingResult.ok(
            data_type=data_type,
            reason=reason,
            context=context,
            alternatives=alternatives,
            timestamp=_timestamp(),
        )


class MissingToolHandler(SafeOutputHandler):
    handler_type = "missing_tool"
    default_max = 0
    zero_is_unlimited = True
    count_attempts = False

    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        reason = message.get("reason")
        if not reason:
            logger.warning("missing_tool message missing 'reason' field: %s", json.dumps(message.fields))
            return ProcessingResult.fail("Missing required field: reason")

        tool = message.get("tool") or None
        alternatives = message.get("alternatives") or None
        if tool:
            logger.info("Recorded missing tool: %s", tool)
        else:
            logger.info("Recorded missing functionality/limitation")
        logger.info("   Reason: %s", reason)
        if alternatives:
            logger.info("   Alternatives: %s", alternatives)

        return ProcessingResult.ok(tool=tool, reason=reason, alternatives=alternatives, timestamp=_timestamp())


def register_handlers(registry) -> None:
    """Register the built-in record-only handlers in a HandlerRegistry."""
    registry.register_factory(
        name="noop",
        version="0.1.0",
        factory=NoopHandler,
        description="Acknowledge that the agent intentionally took no action",
    )
    registry.register_factory(
        name="missing_data",
        version="0.1.0",
        factory=MissingDataHandler,
        description="Record data the agent needed but could not find",
    )
    registry.register_factory(
        name="missing_tool",
        version="0.1.0",
        factory=MissingToolHandler,
        description="Record tools or capabilities the agent was missing",
    )
