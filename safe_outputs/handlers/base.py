"""Handler protocol, registration metadata and the shared handler base class.

A handler is built once per message type per run by a factory
``factory(config, runtime)``. The returned object is awaited once per
message and always returns a :class:`ProcessingResult`; it never raises.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from safe_outputs.adapters.actions.runtime import ActionsRuntime
from safe_outputs.adapters.github.base import GitHubGateway
from safe_outputs.core.budget import MessageBudget
from safe_outputs.core.config import normalize_type_name, parse_int_templatable
from safe_outputs.core.context import ActionContext
from safe_outputs.core.errors import BudgetExceededError, ConfigurationError, SafeOutputError, ValidationError
from safe_outputs.core.models import ProcessingResult, RepoRef, SafeOutputMessage
from safe_outputs.core.repos import resolve_target_repo
from safe_outputs.core.validation import parse_leading_int, validate_max_count

logger = logging.getLogger(__name__)

#: Map of temporary id to ``{"repo": "owner/name", "number": int}``.
ResolvedIds = dict[str, dict[str, Any]]


@dataclass
class HandlerRuntime:
    """Everything a handler needs from the outside world.

    ``clock`` and ``sleep`` drive throttled handlers and are replaced in tests.
    ``env`` holds per-type ``GH_AW_<TYPE>_MAX`` overrides.
    """

    gateway: GitHubGateway
    context: ActionContext
    actions: ActionsRuntime = field(default_factory=ActionsRuntime)
    env: Mapping[str, str] = field(default_factory=dict)
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep


@runtime_checkable
class MessageHandler(Protocol):
    """Anything awaitable as ``handler(message, resolved_ids)``."""

    async def __call__(
        self, message: SafeOutputMessage | dict[str, Any], resolved_ids: ResolvedIds | None = None
    ) -> ProcessingResult:
        """Process one message."""


HandlerFactory = Callable[[dict[str, Any], HandlerRuntime], MessageHandler]


@dataclass(frozen=True)
class HandlerSpec:
    """Registration metadata for a message handler."""

    name: str
    version: str
    factory: HandlerFactory
    description: str = ""


def normalize_handler_name(name: str) -> str:
    """Normalize handler names for lookup and deduplication."""

    return normalize_type_name(name)


def max_count_env_var(handler_type: str) -> str:
    """``close_issue`` -> ``GH_AW_CLOSE_ISSUE_MAX``."""
    return f"GH_AW_{handler_type.upper()}_MAX"


def make_handler_spec(name: str, version: str, factory: HandlerFactory, description: str = "") -> HandlerSpec:
    """Create a normalized handler spec."""

    return HandlerSpec(
        name=normalize_handler_name(name),
        version=version,
        factory=factory,
        description=description,
    )


class SafeOutputHandler(ABC):
    """Base class implementing the budget and error boundary of every handler.

    Subclasses set :attr:`handler_type` and :attr:`default_max` and
    implement :meth:`handle`. When :attr:`count_attempts` is true the budget
    is consumed before validation; otherwise only successful messages count.
    """

    handler_type: str = ""
    default_max: int = 1
    zero_is_unlimited: bool = False
    count_attempts: bool = True

    def __init__(self, config: dict[str, Any], runtime: HandlerRuntime):
        self.config: dict[str, Any] = dict(config or {})
        self.runtime = runtime
        self.budget = MessageBudget(self._configured_max(), zero_is_unlimited=self.zero_is_unlimited)
        logger.info("%s configuration: max=%s", self.handler_type, self.budget.max_count)

    def _configured_max(self) -> int:
        """Resolve ``max`` with precedence env override > config > default.

        Raises:
            ConfigurationError: The env override is not a positive integer.
        """
        configured = parse_int_templatable(self.config.get("max"), self.default_max)
        if configured < 0 or (configured == 0 and not self.zero_is_unlimited):
            configured = self.default_max
        env_name = max_count_env_var(self.handler_type)
        result = validate_max_count(self.runtime.env.get(env_name), configured, self.default_max)
        if not result.valid:
            raise ConfigurationError(f"{env_name}: {result.error}")
        return result.value

    @property
    def gateway(self) -> GitHubGateway:
        return self.runtime.gateway

    @property
    def context(self) -> ActionContext:
        return self.runtime.context

    @property
    def processed_count(self) -> int:
        return self.budget.processed_count

    async def __call__(
        self, message: SafeOutputMessage | dict[str, Any], resolved_ids: ResolvedIds | None = None
    ) -> ProcessingResult:
        if isinstance(message, dict):
            message = SafeOutputMessage.from_dict(message)

        if self.budget.exhausted:
            error = BudgetExceededError(self.budget.max_count)
            logger.warning("Skipping %s: %s", self.handler_type, error)
            return ProcessingResult.fail(str(error))

        if self.count_attempts:
            self.budget.consume()

        try:
            result = await self.handle(message, resolved_ids if resolved_ids is not None else {})
        except SafeOutputError as exc:
            logger.warning("%s failed: %s", self.handler_type, exc)
            return ProcessingResult.fail(str(exc))
        except Exception as exc:
            logger.exception("Unexpected error in %s handler", self.handler_type)
            return ProcessingResult.fail(str(exc) or type(exc).__name__)

        if result.success and not self.count_attempts:
            self.budget.consume()
        return result

    @abstractmethod
    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        """Validate and apply one message.

        May raise :class:`SafeOutputError` subclasses; they become failed
        results.
        """

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def resolve_repo(self, message: SafeOutputMessage) -> RepoRef:
        return resolve_target_repo(message.get("repo"), self.config, self.context.repository)

    def resolve_item_number(
        self,
        message: SafeOutputMessage,
        resolved_ids: ResolvedIds,
        field_name: str = "item_number",
        *,
        allow_pull_request: bool = True,
    ) -> int:
        """Resolve the target issue/PR number from the message or the event.

        The field may hold a number, a numeric string, a ``#123`` reference or
        a temporary id already resolved earlier in the run.
        """
        raw = message.get(field_name)
        if raw is None:
            number = self.context.issue_number
            if number is None or (not allow_pull_request and "issue" not in self.context.payload):
                raise ValidationError("No issue number available")
            return number

        if isinstance(raw, str):
            key = raw.strip().lstrip("#")
            resolved = resolved_ids.get(key) or resolved_ids.get(key.lower())
            if resolved and resolved.get("number"):
                return int(resolved["number"])
            raw = key

        number = parse_leading_int(raw)
        if number is None or number <= 0:
            raise ValidationError(f"Invalid {field_name.replace('_', ' ')}: {message.get(field_name)}")
        return number


def config_list(config: Mapping[str, Any], key: str) -> list[str]:
    """Read a list-valued option that may also be a comma-separated string."""
    value = config.get(key)
    if not value:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return []
