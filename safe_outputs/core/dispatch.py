"""Sequential dispatch of agent messages to their handlers."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from safe_outputs.core.config import normalize_type_name
from safe_outputs.core.models import ProcessingResult, RunSummary, SafeOutputMessage

logger = logging.getLogger(__name__)


def record_temporary_id(
    message: SafeOutputMessage,
    result: ProcessingResult,
    resolved_ids: dict[str, dict[str, Any]],
) -> None:
    """Remember ``temporary_id -> {repo, number}`` so later messages can refer to it."""
    temporary_id = message.get("temporary_id")
    if not result.success or not isinstance(temporary_id, str) or not temporary_id.strip():
        return
    number = result.data.get("number")
    repo = result.data.get("repo")
    if not number or not repo:
        return
    resolved_ids[temporary_id.strip().lower()] = {"repo": repo, "number": number}
    logger.debug("Resolved temporary id %s to %s#%s", temporary_id, repo, number)


async def process_messages(
    handlers: Mapping[str, Any],
    messages: Iterable[SafeOutputMessage | dict[str, Any]],
    resolved_ids: dict[str, dict[str, Any]] | None = None,
) -> RunSummary:
    """Run every message through its handler, strictly in input order.

    Unknown message types and handler crashes become failed results; the
    run always continues with the next message.
    """
    summary = RunSummary()
    resolved = resolved_ids if resolved_ids is not None else {}

    for raw in messages:
        message = raw if isinstance(raw, SafeOutputMessage) else SafeOutputMessage.from_dict(raw)
        message_type = normalize_type_name(message.type) if message.type else ""
        handler = handlers.get(message_type)

        if handler is None:
            error = f"No handler registered for message type '{message.type}'"
            logger.warning(error)
            summary.add(message.type or "unknown", ProcessingResult.fail(error))
            continue

        try:
            result = await handler(message, resolved)
        except Exception as exc:
            logger.exception("Handler for %s raised", message_type)
            result = ProcessingResult.fail(str(exc) or type(exc).__name__)

        if result.success:
            logger.info("Processed %s message", message_type)
        else:
            logger.warning("Failed to process %s message: %s", message_type, result.error)
        record_temporary_id(message, result, resolved)
        summary.add(message_type, result)

    logger.info(
        "Processed %d message(s): %d succeeded, %d failed",
        len(summary.results),
        summary.success_count,
        summary.failure_count,
    )
    return summary
