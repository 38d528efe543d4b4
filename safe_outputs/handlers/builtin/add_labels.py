"""Built-in handler: add labels to an issue or pull request."""

import json
import logging

from safe_outputs.core.models import ProcessingResult, SafeOutputMessage
from safe_outputs.core.validation import validate_labels
from safe_outputs.handlers.base import ResolvedIds, SafeOutputHandler, config_list

logger = logging.getLogger(__name__)


class AddLabelsHandler(SafeOutputHandler):
    """Add validated labels in a single API call.

    Labels go through :func:`validate_labels` with the configured
    ``allowed``/``blocked`` lists and are capped at ``max``.
    """

    handler_type = "add_labels"
    default_max = 3

    def __init__(self, config, runtime):
        super().__init__(config, runtime)
        self.allowed = config_list(self.config, "allowed")
        self.blocked = config_list(self.config, "blocked")

    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        repo = self.resolve_repo(message)
        number = self.resolve_item_number(message, resolved_ids)

        result = validate_labels(
            message.get("labels") or [],
            allowed_labels=self.allowed or None,
            blocked_patterns=self.blocked or None,
            max_count=self.budget.max_count,
        )
        if not result.valid:
            return ProcessingResult.fail(result.error or "Invalid labels")

        labels = result.value or []
        logger.info("Adding %d labels to #%d: %s", len(labels), number, json.dumps(labels))
        await self.gateway.add_labels(repo.owner, repo.name, number, labels)
        return ProcessingResult.ok(number=number, repo=repo.full_name, labels_added=labels)


def register_handlers(registry) -> None:
    """Register the built-in add_labels handler in a HandlerRegistry."""
    registry.register_factory(
        name="add_labels",
        version="0.1.0",
        factory=AddLabelsHandler,
        description="Add sanitized, allow-listed labels to issues and pull requests",
    )
