"""Built-in handler: assign users to an issue."""

import json
import logging

from safe_outputs.core.models import ProcessingResult, SafeOutputMessage
from safe_outputs.core.validation import filter_allowed_items
from safe_outputs.handlers.base import ResolvedIds, SafeOutputHandler, config_list

logger = logging.getLogger(__name__)


class AssignToUserHandler(SafeOutputHandler):
    handler_type = "assign_to_user"
    default_max = 10

    def __init__(self, config, runtime):
        super().__init__(config, runtime)
        self.allowed = config_list(self.config, "allowed")
        if self.allowed:
            logger.info("Allowed assignees: %s", ", ".join(self.allowed))

    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        repo = self.resolve_repo(message)
        field_name = "issue_number" if message.has("issue_number") else "item_number"
        number = self.resolve_item_number(message, resolved_ids, field_name, allow_pull_request=False)

        requested = message.get("assignees")
        if not isinstance(requested, list):
            single = message.get("assignee")
            requested = [single] if single else []
        logger.info("Requested assignees: %s", json.dumps(requested))

        assignees = filter_allowed_items(requested, self.allowed or None, self.budget.max_count)
        if not assignees:
            logger.info("No assignees to add")
            return ProcessingResult.ok(
                number=number,
                repo=repo.full_name,
                assignees_added=[],
                message="No valid assignees found",
            )

        await self.gateway.add_assignees(repo.owner, repo.name, number, assignees)
        logger.info("Assigned %d user(s) to issue #%d", len(assignees), number)
        return ProcessingResult.ok(number=number, repo=repo.full_name, assignees_added=assignees)


def register_handlers(registry) -> None:
    """Register the built-in assign_to_user handler in a HandlerRegistry."""
    registry.register_factory(
        name="assign_to_user",
        version="0.1.0",
        factory=AssignToUserHandler,
        description="Assign allow-listed users to issues",
    )
