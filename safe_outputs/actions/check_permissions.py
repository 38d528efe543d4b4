"""Entrypoint: verify the triggering actor holds one of the required roles."""

import logging
import os
from collections.abc import Mapping

from safe_outputs.core.errors import ConfigurationError, GatewayError
from safe_outputs.handlers.base import HandlerRuntime

logger = logging.getLogger(__name__)

#: Events that can only be triggered by someone who already has write access.
SAFE_EVENTS = ("workflow_dispatch", "schedule", "merge_group")
REQUIRED_ROLES_ENV = "GH_AW_REQUIRED_ROLES"


def parse_required_roles(env: Mapping[str, str]) -> list[str]:
    """Roles from ``GH_AW_REQUIRED_ROLES``; raises :class:`ConfigurationError` when empty."""
    raw = env.get(REQUIRED_ROLES_ENV) or ""
    roles = [role.strip() for role in raw.split(",") if role.strip()]
    if not roles:
        raise ConfigurationError("Configuration error: Required permissions not specified")
    return roles


def role_matches(permission: str, roles: list[str]) -> bool:
    """``maintainer`` in the role list accepts the API's ``maintain`` level."""
    return any(permission == role or (role == "maintainer" and permission == "maintain") for role in roles)


async def main(runtime: HandlerRuntime, env: Mapping[str, str] | None = None) -> None:
    env = os.environ if env is None else env
    context = runtime.context
    actions = runtime.actions

    if context.event_name in SAFE_EVENTS:
        logger.info("Event %s does not require validation", context.event_name)
        return

    try:
        roles = parse_required_roles(env)
    except ConfigurationError as exc:
        actions.set_failed(str(exc))
        return

    logger.info("Checking if user '%s' has required permissions for %s", context.actor, context.repository)
    try:
        permission = await runtime.gateway.get_collaborator_permission(context.owner, context.repo, context.actor)
    except GatewayError as exc:
        actions.set_failed(f"Repository permission check failed: {exc}")
        return

    logger.info("Repository permission level: %s", permission)
    if role_matches(permission, roles):
        logger.info("User has %s access to repository", permission)
        return

    actions.set_failed(
        f"Access denied: User '{context.actor}' is not authorized. Required permissions: {', '.join(roles)}"
    )
