"""Built-in handler: post a comment with untrusted mentions neutralized."""

import logging

from safe_outputs.core.mentions import neutralize_mentions, resolve_mentions_lazily
from safe_outputs.core.models import ProcessingResult, SafeOutputMessage
from safe_outputs.core.validation import validate_body
from safe_outputs.handlers.base import ResolvedIds, SafeOutputHandler

logger = logging.getLogger(__name__)


class AddCommentHandler(SafeOutputHandler):
    """Comment on an issue or pull request.

    Mentions of users other than the triggering authors and repository
    collaborators are wrapped in backticks so they do not notify anyone.
    """

    handler_type = "add_comment"
    default_max = 1

    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        repo = self.resolve_repo(message)
        number = self.resolve_item_number(message, resolved_ids)

        body_result = validate_body(message.get("body"), required=True)
        if not body_result.valid:
            return ProcessingResult.fail(body_result.error or "Invalid body")

        resolution = await resolve_mentions_lazily(
            body_result.value or "",
            self.context.known_authors(),
            repo.owner,
            repo.name,
            self.gateway,
        )
        body = neutralize_mentions(body_result.value or "", resolution.allowed_mentions)

        comment = await self.gateway.create_comment(repo.owner, repo.name, number, body)
        logger.info("Created comment on #%d: %s", number, comment.url)
        return ProcessingResult.ok(
            number=number,
            repo=repo.full_name,
            url=comment.url,
            comment_id=comment.id,
            allowed_mentions=resolution.allowed_mentions,
        )


def register_handlers(registry) -> None:
    """Register the built-in add_comment handler in a HandlerRegistry."""
    registry.register_factory(
        name="add_comment",
        version="0.1.0",
        factory=AddCommentHandler,
        description="Comment on issues and pull requests with mention neutralization",
    )
