"""Built-in handler: trigger allow-listed workflows via ``workflow_dispatch``."""

import json
import logging
from typing import Any

from safe_outputs.core.budget import DEFAULT_DISPATCH_INTERVAL_SECONDS, DispatchThrottle
from safe_outputs.core.errors import GatewayError
from safe_outputs.core.models import ProcessingResult, RepoRef, SafeOutputMessage
from safe_outputs.handlers.base import ResolvedIds, SafeOutputHandler, config_list

logger = logging.getLogger(__name__)

FALLBACK_REF = "refs/heads/main"


def stringify_inputs(raw: Any) -> dict[str, str]:
    """``workflow_dispatch`` inputs must all be strings."""
    if not isinstance(raw, dict):
        return {}
    inputs: dict[str, str] = {}
    for key, value in raw.items():
        if value is None:
            inputs[str(key)] = ""
        elif isinstance(value, (dict, list)):
            inputs[str(key)] = json.dumps(value, separators=(",", ":"))
        elif isinstance(value, bool):
            inputs[str(key)] = "true" if value else "false"
        else:
            inputs[str(key)] = str(value)
    return inputs


class DispatchWorkflowHandler(SafeOutputHandler):
    """Dispatch workflows named in the ``workflows`` allow-list.

    ``workflow_files`` maps each workflow name to its file extension
    (``.lock.yml`` or ``.yml``). Consecutive dispatches are spaced at least
    five seconds apart.
    """

    handler_type = "dispatch_workflow"
    default_max = 1

    def __init__(self, config, runtime):
        super().__init__(config, runtime)
        self.allowed_workflows = config_list(self.config, "workflows")
        files = self.config.get("workflow_files")
        self.workflow_files: dict[str, str] = dict(files) if isinstance(files, dict) else {}
        self.throttle = DispatchThrottle(
            DEFAULT_DISPATCH_INTERVAL_SECONDS, clock=runtime.clock, sleep=runtime.sleep
        )
        self._ref: str | None = None
        if self.allowed_workflows:
            logger.info("Allowed workflows: %s", ", ".join(self.allowed_workflows))

    async def resolve_ref(self, repo: RepoRef) -> str:
        """PR head branch, else ``GITHUB_REF``, else the default branch."""
        if self._ref:
            return self._ref
        if self.context.head_ref:
            self._ref = f"refs/heads/{self.context.head_ref}"
            logger.info("Using PR branch ref: %s", self._ref)
        elif self.context.ref:
            self._ref = self.context.ref
        else:
            self._ref = await self._default_branch_ref(repo)
            logger.info("Using default branch ref: %s", self._ref)
        return self._ref

    async def _default_branch_ref(self, repo: RepoRef) -> str:
        if self.context.default_branch:
            return f"refs/heads/{self.context.default_branch}"
        try:
            repository = await self.gateway.get_repository(repo.owner, repo.name)
        except GatewayError as exc:
            logger.warning("Failed to fetch default branch: %s", exc)
            return FALLBACK_REF
        return f"refs/heads/{repository.default_branch}"

    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        workflow_name = message.get("workflow_name")
        if not isinstance(workflow_name, str) or not workflow_name.strip():
            return ProcessingResult.fail("Workflow name is empty")
        workflow_name = workflow_name.strip()

        if self.allowed_workflows and workflow_name not in self.allowed_workflows:
            return ProcessingResult.fail(
                f'Workflow "{workflow_name}" is not in the allowed workflows list: '
                f"{', '.join(self.allowed_workflows)}"
            )

        extension = self.workflow_files.get(workflow_name)
        if not extension:
            return ProcessingResult.fail(
                f'Workflow "{workflow_name}" file extension not found in configuration. '
                "This workflow may not have been validated at compile time."
            )

        repo = self.resolve_repo(message)
        inputs = stringify_inputs(message.get("inputs"))
        ref = await self.resolve_ref(repo)
        workflow_file = f"{workflow_name}{extension}"

        await self.throttle.wait()
        try:
            await self.gateway.create_workflow_dispatch(repo.owner, repo.name, workflow_file, ref, inputs)
        except GatewayError as exc:
            return ProcessingResult.fail(f'Failed to dispatch workflow "{workflow_name}": {exc}')
        self.throttle.mark()

        logger.info("Dispatched workflow %s on %s", workflow_file, ref)
        return ProcessingResult.ok(
            workflow_name=workflow_name,
            workflow_file=workflow_file,
            ref=ref,
            inputs=inputs,
            repo=repo.full_name,
        )


def register_handlers(registry) -> None:
    """Register the built-in dispatch_workflow handler in a HandlerRegistry."""
    registry.register_factory(
        name="dispatch_workflow",
        version="0.1.0",
        factory=DispatchWorkflowHandler,
        description="Trigger allow-listed workflows with a minimum dispatch spacing",
    )
