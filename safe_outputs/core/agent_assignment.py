"""Assign a coding agent to a batch of freshly created issues.

Each assignment may start an agent session, so issues are handled one at a
time with :data:`AGENT_ASSIGNMENT_DELAY_SECONDS` between them. A failure on
one issue is recorded and the batch moves on.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from safe_outputs.adapters.github.base import GitHubGateway
from safe_outputs.core.errors import GatewayError
from safe_outputs.core.models import RepoRef

logger = logging.getLogger(__name__)

AGENT_ASSIGNMENT_DELAY_SECONDS = 10.0

#: Agent name -> assignee login used by the issues API.
AGENT_LOGIN_NAMES = {"copilot": "copilot-swe-agent"}

_PERMISSION_ERRORS = ("Resource not accessible", "Insufficient permissions")


@dataclass(frozen=True)
class AssignmentTarget:
    repo: RepoRef
    number: int

    @property
    def slug(self) -> str:
        return f"{self.repo.full_name}#{self.number}"


@dataclass(frozen=True)
class AssignmentOutcome:
    target: AssignmentTarget
    already_assigned: bool = False
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class AssignmentReport:
    agent_name: str
    outcomes: list[AssignmentOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[AssignmentOutcome]:
        return [outcome for outcome in self.outcomes if outcome.success]

    @property
    def failed(self) -> list[AssignmentOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    def to_markdown(self) -> str:
        lines = [f"## {self.agent_name.capitalize()} Assignment for Created Issues", ""]
        if self.succeeded:
            lines += [f"✅ Successfully assigned {self.agent_name} to {len(self.succeeded)} issue(s):", ""]
            lines += [
                f"- {outcome.target.slug}{' (already assigned)' if outcome.already_assigned else ''}"
                for outcome in self.succeeded
            ]
            lines.append("")
        if self.failed:
            lines += [f"❌ Failed to assign {self.agent_name} to {len(self.failed)} issue(s):", ""]
            lines += [f"- {outcome.target.slug}: {outcome.error}" for outcome in self.failed]
            if any(marker in (outcome.error or "") for outcome in self.failed for marker in _PERMISSION_ERRORS):
                lines += [
                    "",
                    "The token lacks permission to assign agents. Use a token with write access "
                    "to issues and pull requests (for example via `GH_AW_AGENT_TOKEN`).",
                ]
        return "\n".join(lines) + "\n"


def parse_assignment_targets(raw: str) -> list[AssignmentTarget]:
    """Parse ``owner/repo:number`` entries separated by commas.

    Malformed entries are logged and dropped.
    """
    targets: list[AssignmentTarget] = []
    for entry in (part.strip() for part in raw.split(",")):
        if not entry:
            continue
        slug, sep, number_text = entry.partition(":")
        if not sep or ":" in number_text:
            logger.warning("Invalid issue entry format: %s. Expected 'owner/repo:number'", entry)
            continue
        try:
            number = int(number_text)
        except ValueError:
            number = 0
        if number <= 0:
            logger.warning("Invalid issue number in entry: %s", entry)
            continue
        try:
            repo = RepoRef.parse(slug)
        except ValueError:
            logger.warning("Invalid repo format: %s. Expected 'owner/repo'", slug)
            continue
        targets.append(AssignmentTarget(repo, number))
    return targets


async def assign_agent_to_issues(
    gateway: GitHubGateway,
    targets: list[AssignmentTarget],
    agent_name: str = "copilot",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AssignmentReport:
    """Assign ``agent_name`` to every target, sequentially."""
    login = AGENT_LOGIN_NAMES.get(agent_name, agent_name)
    known_logins = {login.lower(), agent_name.lower()}
    report = AssignmentReport(agent_name=agent_name)

    for index, target in enumerate(targets):
        owner, repo = target.repo.owner, target.repo.name
        try:
            issue = await gateway.get_issue(owner, repo, target.number)
            if any(assignee.lower() in known_logins for assignee in issue.assignees):
                logger.info("%s is already assigned to issue %s", agent_name, target.slug)
                report.outcomes.append(AssignmentOutcome(target, already_assigned=True))
                continue

            logger.info("Assigning %s coding agent to issue %s", agent_name, target.slug)
            assigned = await gateway.add_assignees(owner, repo, target.number, [login])
        except GatewayError as exc:
            error = str(exc)
        else:
            # the issues API silently drops assignees it cannot assign
            error = None
            if not any(assignee.lower() in known_logins for assignee in assigned):
                error = f"{agent_name} coding agent is not available for this repository"

        if error:
            logger.error("Failed to assign %s to issue %s: %s", agent_name, target.slug, error)
            report.outcomes.append(AssignmentOutcome(target, error=error))
        else:
            report.outcomes.append(AssignmentOutcome(target))

        if index < len(targets) - 1:
            logger.info("Waiting %.0f seconds before processing next agent assignment", AGENT_ASSIGNMENT_DELAY_SECONDS)
            await sleep(AGENT_ASSIGNMENT_DELAY_SECONDS)

    return report
