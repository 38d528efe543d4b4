import argparse
import asyncio
import logging
import os
import sys

from safe_outputs.actions import (
    assign_agent_to_issues,
    check_permissions,
    close_older_discussions,
    close_older_issues,
    lock_issue,
    process_safe_outputs,
    unlock_issue,
)
from safe_outputs.adapters.actions.runtime import ActionsRuntime
from safe_outputs.adapters.github.rest import GitHubRestGateway
from safe_outputs.core.context import ActionContext
from safe_outputs.core.errors import ConfigurationError
from safe_outputs.core.utils.logging_filters import configure_logging
from safe_outputs.handlers.base import HandlerRuntime

logger = logging.getLogger(__name__)

SCRIPTS = {
    "process": (process_safe_outputs.main, "Apply agent safe outputs"),
    "check-permissions": (check_permissions.main, "Verify the actor holds a required role"),
    "lock-issue": (lock_issue.main, "Lock the triggering issue"),
    "unlock-issue": (unlock_issue.main, "Unlock the triggering issue"),
    "close-older-issues": (close_older_issues.main, "Close issues superseded by a newer one"),
    "close-older-discussions": (close_older_discussions.main, "Close discussions superseded by a newer one"),
    "assign-agent-to-issues": (assign_agent_to_issues.main, "Assign the coding agent to created issues"),
}


#: Commands that prefer a dedicated token over the workflow token.
TOKEN_OVERRIDES = {"assign-agent-to-issues": "GH_AW_AGENT_TOKEN"}


def token_for(command: str) -> str:
    names = [TOKEN_OVERRIDES[command]] if command in TOKEN_OVERRIDES else []
    names += ["GH_TOKEN", "GITHUB_TOKEN"]
    return next((os.environ[name] for name in names if os.environ.get(name)), "")


async def run_script(name: str, actions: ActionsRuntime) -> None:
    token = token_for(name)
    if not token:
        raise ConfigurationError("GH_TOKEN or GITHUB_TOKEN must be set")
    context = ActionContext.from_env()
    async with GitHubRestGateway(token, api_url=context.api_url) as gateway:
        runtime = HandlerRuntime(gateway=gateway, context=context, actions=actions, env=os.environ)
        script, _help = SCRIPTS[name]
        await script(runtime)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Safe outputs for agentic GitHub workflows")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    for name, (_script, help_text) in SCRIPTS.items():
        subparsers.add_parser(name, help=help_text)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 2

    token = token_for(args.command)
    configure_logging(
        level=logging.DEBUG if args.debug or os.environ.get("RUNNER_DEBUG") == "1" else logging.INFO,
        secrets=[token],
    )

    actions = ActionsRuntime()
    try:
        asyncio.run(run_script(args.command, actions))
    except ConfigurationError as exc:
        actions.set_failed(str(exc))
    return actions.exit_code


if __name__ == "__main__":
    sys.exit(main())
