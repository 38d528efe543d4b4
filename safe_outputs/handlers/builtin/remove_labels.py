"""Built-in handler: remove labels from an issue or pull request."""

import json
import logging

from safe_outputs.core.errors import GatewayError
from safe_outputs.core.models import ProcessingResult, SafeOutputMessage
from safe_outputs.core.validation import validate_labels
from safe_outputs.handlers.base import ResolvedIds, SafeOutputHandler, config_list

logger = logging.getLogger(__name__)


def _is_missing_label(exc: GatewayError) -> bool:
    return exc.is_not_found or "Label does not exist" in str(exc)


class RemoveLabelsHandler(SafeOutputHandler):
    """Remove labels one at a time (there is no bulk-remove endpoint).

    A label that is not on the item is skipped, not failed. Other removal
    errors are collected in ``failed_labels`` and do not stop the batch.
    """

    handler_type = "remove_labels"
    default_max = 10

    def __init__(self, config, runtime):
        super().__init__(config, runtime)
        self.allowed = config_list(self.config, "allowed")
        self.blocked = config_list(self.config, "blocked")
        if self.allowed:
            logger.info("Allowed labels to remove: %s", ", ".join(self.allowed))

    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        repo = self.resolve_repo(message)
        number = self.resolve_item_number(message, resolved_ids)

        requested = message.get("labels") or []
        if not requested:
            error = "No labels provided. Please provide at least one label from"
            if self.allowed:
                error += f" the allowed list: {json.dumps(self.allowed)}"
            else:
                error += " the issue/PR's current labels"
            return ProcessingResult.fail(error)

        result = validate_labels(
            requested,
            allowed_labels=self.allowed or None,
            blocked_patterns=self.blocked or None,
            max_count=len(requested) if isinstance(requested, list) else 0,
        )
        if not result.valid:
            if "No valid labels" in (result.error or ""):
                logger.info("No labels to remove")
                return ProcessingResult.ok(
                    number=number,
                    repo=repo.full_name,
                    labels_removed=[],
                    message="No valid labels found",
                )
            return ProcessingResult.fail(result.error or "Invalid labels")

        labels = result.value or []
        logger.info("Removing %d labels from #%d: %s", len(labels), number, json.dumps(labels))

        removed: list[str] = []
        failed: list[dict[str, str]] = []
        for label in labels:
            try:
                await self.gateway.remove_label(repo.owner, repo.name, number, label)
            except GatewayError as exc:
                if _is_missing_label(exc):
                    logger.info('Label "%s" was not present on #%d, skipping', label, number)
                    continue
                logger.warning('Failed to remove label "%s": %s', label, exc)
                failed.append({"label": label, "error": str(exc)})
                continue
            removed.append(label)
            logger.info('Removed label "%s" from #%d', label, number)

        return ProcessingResult.ok(
            number=number,
            repo=repo.full_name,
            labels_removed=removed,
            failed_labels=failed,
        )


def register_handlers(registry) -> None:
    """Register the built-in remove_labels handler in a HandlerRegistry."""
    registry.register_factory(
        name="remove_labels",
        version="0.1.0",
        factory=RemoveLabelsHandler,
        description="Remove allow-listed labels from issues and pull requests",
    )
