"""Error taxonomy for safe-output processing.

Handlers convert :class:`ValidationError`, :class:`BudgetExceededError` and
:class:`GatewayError` into failed results at the message boundary.
:class:`ConfigurationError` and :class:`SecurityError` abort the current
script invocation.
"""


class SafeOutputError(Exception):
    """Base class for all safe-output errors."""


class ValidationError(SafeOutputError):
    """Raised when a message field is malformed or missing."""


class BudgetExceededError(SafeOutputError):
    """Raised when a handler has already processed its configured maximum."""

    def __init__(self, max_count: int):
        self.max_count = max_count
        super().__init__(f"Max count of {max_count} reached")


class GatewayError(SafeOutputError):
    """Raised when a GitHub API call fails.

    Args:
        message: Human-readable error text (usually the API's ``message``).
        status: HTTP status code, or ``None`` for transport failures.
    """

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class ConfigurationError(SafeOutputError):
    """Raised when required environment or configuration is missing."""


class SecurityError(SafeOutputError):
    """Raised on path traversal, null-byte injection or allow-list violations."""
