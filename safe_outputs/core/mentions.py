"""@mention extraction and lazy permission-based resolution.

Agent text is untrusted: any ``@user`` it contains would notify that user
when posted. Only mentions of known authors or repository collaborators
are kept; everything else is neutralized before posting.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from safe_outputs.adapters.github.base import GitHubGateway
from safe_outputs.core.errors import GatewayError

logger = logging.getLogger(__name__)

#: Maximum number of unique mentions resolved per text.
MAX_MENTIONS = 50
#: Collaborators fetched up front (one API page).
COLLABORATOR_PAGE_SIZE = 30

MENTION_PATTERN = re.compile(
    r"(^|[^\w`])@([A-Za-z0-9](?:[A-Za-z0-9_-]{0,37}[A-Za-z0-9])?(?:/[A-Za-z0-9._-]+)?)"
)


@dataclass(frozen=True)
class MentionResolution:
    allowed_mentions: list[str] = field(default_factory=list)
    total_mentions: int = 0
    resolved_count: int = 0
    limit_exceeded: bool = False


def extract_mentions(text: Any) -> list[str]:
    """Return unique mentioned usernames, deduplicated case-insensitively.

    The first-seen casing of each username is preserved.
    """
    if not text or not isinstance(text, str):
        return []
    mentions: list[str] = []
    seen: set[str] = set()
    for match in MENTION_PATTERN.finditer(text):
        username = match.group(2)
        key = username.lower()
        if key not in seen:
            seen.add(key)
            mentions.append(username)
    return mentions


def is_payload_user_bot(user: dict[str, Any] | None) -> bool:
    """Return True when an event-payload user object is a bot account."""
    return bool(user and user.get("type") == "Bot")


async def get_recent_collaborators(gateway: GitHubGateway, owner: str, repo: str) -> dict[str, bool]:
    """Map lowercase login to allowed (non-bot) for the first collaborator page.

    A failure fetching the page yields an empty cache.
    """
    try:
        collaborators = await gateway.list_collaborators(
            owner, repo, affiliation="direct", per_page=COLLABORATOR_PAGE_SIZE
        )
    except GatewayError as exc:
        logger.warning("Failed to fetch recent collaborators: %s", exc)
        return {}
    return {collaborator.login.lower(): not collaborator.is_bot for collaborator in collaborators}


async def check_user_permission(gateway: GitHubGateway, username: str, owner: str, repo: str) -> bool:
    """Return True if ``username`` exists, is not a bot and has any repo permission."""
    try:
        user = await gateway.get_user(username)
        if user.is_bot:
            return False
        permission = await gateway.get_collaborator_permission(owner, repo, username)
    except GatewayError:
        return False
    return permission != "none"


async def resolve_mentions_lazily(
    text: str,
    known_authors: list[str | None],
    owner: str,
    repo: str,
    gateway: GitHubGateway,
) -> MentionResolution:
    """Resolve which mentions in ``text`` may be kept.

    Order of checks per mention: known authors, then the collaborator
    cache, then an individual user/permission lookup. Only the first
    :data:`MAX_MENTIONS` mentions are considered.
    """
    mentions = extract_mentions(text)
    total = len(mentions)
    logger.info("Found %d unique mentions in text", total)

    limit_exceeded = total > MAX_MENTIONS
    if limit_exceeded:
        logger.warning(
            "Mention limit exceeded: %d mentions found, processing only first %d", total, MAX_MENTIONS
        )
        mentions = mentions[:MAX_MENTIONS]

    known = {author.lower() for author in known_authors if author}
    cache = await get_recent_collaborators(gateway, owner, repo) if mentions else {}
    logger.info("Cached %d recent collaborators for optimistic resolution", len(cache))

    allowed: list[str] = []
    resolved = 0
    for mention in mentions:
        key = mention.lower()
        if key in known:
            allowed.append(mention)
            continue
        if key in cache:
            if cache[key]:
                allowed.append(mention)
            continue
        resolved += 1
        if await check_user_permission(gateway, mention, owner, repo):
            allowed.append(mention)

    logger.info("Resolved %d mentions via individual API calls", resolved)
    return MentionResolution(
        allowed_mentions=allowed,
        total_mentions=total,
        resolved_count=resolved,
        limit_exceeded=limit_exceeded,
    )


def neutralize_mentions(text: str, allowed: list[str]) -> str:
    """Wrap every mention not in ``allowed`` in backticks so it does not notify."""
    allowed_keys = {name.lower() for name in allowed}

    def _replace(match: re.Match[str]) -> str:
        prefix, username = match.group(1), match.group(2)
        if username.lower() in allowed_keys:
            return match.group(0)
        return f"{prefix}`@{username}`"

    return MENTION_PATTERN.sub(_replace, text)
