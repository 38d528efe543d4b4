"""Built-in handler: close an issue, optionally with a comment."""

import logging

from safe_outputs.core.models import ProcessingResult, SafeOutputMessage
from safe_outputs.handlers.base import ResolvedIds, SafeOutputHandler, config_list

logger = logging.getLogger(__name__)


class CloseIssueHandler(SafeOutputHandler):
    """Close issues that satisfy the configured label/title filters.

    Config: ``max`` (default 10), ``required_labels`` (all must be present),
    ``required_title_prefix``, ``comment`` (used when the message has no
    ``body``), ``target-repo`` and ``allowed_repos``.

    Already-closed issues still receive the comment; the close call is
    skipped and the result carries ``already_closed=True``.
    """

    handler_type = "close_issue"
    default_max = 10

    def __init__(self, config, runtime):
        super().__init__(config, runtime)
        self.required_labels = config_list(self.config, "required_labels")
        self.required_title_prefix = str(self.config.get("required_title_prefix") or "")
        self.comment = str(self.config.get("comment") or "")
        if self.required_labels:
            logger.info("Required labels: %s", ", ".join(self.required_labels))
        if self.required_title_prefix:
            logger.info("Required title prefix: %s", self.required_title_prefix)

    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        repo = self.resolve_repo(message)
        field_name = "issue_number" if message.has("issue_number") else "item_number"
        number = self.resolve_item_number(message, resolved_ids, field_name, allow_pull_request=False)

        issue = await self.gateway.get_issue(repo.owner, repo.name, number)

        if self.required_labels:
            missing = [label for label in self.required_labels if label not in issue.labels]
            if missing:
                logger.warning("Issue #%d missing required labels: %s", number, ", ".join(missing))
                return ProcessingResult.fail(f"Missing required labels: {', '.join(missing)}")

        if self.required_title_prefix and not issue.title.startswith(self.required_title_prefix):
            logger.warning('Issue #%d title doesn\'t start with "%s"', number, self.required_title_prefix)
            return ProcessingResult.fail(f'Title doesn\'t start with "{self.required_title_prefix}"')

        body = message.get("body")
        comment_body = body.strip() if isinstance(body, str) and body.strip() else self.comment
        comment_url = None
        if comment_body:
            comment = await self.gateway.create_comment(repo.owner, repo.name, number, comment_body)
            comment_url = comment.url
            logger.info("Added comment to issue #%d", number)

        if issue.state == "closed":
            logger.info("Issue #%d is already closed", number)
            return ProcessingResult.ok(
                number=number,
                repo=repo.full_name,
                url=issue.url,
                already_closed=True,
                comment_url=comment_url,
            )

        closed = await self.gateway.update_issue(
            repo.owner, repo.name, number, state="closed", state_reason="completed"
        )
        logger.info("Closed issue #%d: %s", number, closed.url)
        return ProcessingResult.ok(
            number=number,
            repo=repo.full_name,
            url=closed.url,
            title=issue.title,
            comment_url=comment_url,
        )


def register_handlers(registry) -> None:
    """Register the built-in close_issue handler in a HandlerRegistry."""
    registry.register_factory(
        name="close_issue",
        version="0.1.0",
        factory=CloseIssueHandler,
        description="Close issues with optional comment and label/title filters",
    )
