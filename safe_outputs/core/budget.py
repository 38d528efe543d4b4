"""Per-handler count budgets and dispatch spacing.

A :class:`MessageBudget` is owned by exactly one handler instance and is
never shared across handler types or runs. :class:`DispatchThrottle`
enforces a minimum interval between consecutive calls, measured from the
end of the previous call.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from safe_outputs.core.errors import BudgetExceededError

logger = logging.getLogger(__name__)

# Minimum spacing between consecutive workflow dispatches.
DEFAULT_DISPATCH_INTERVAL_SECONDS = 5.0


class MessageBudget:
    """Monotonic per-handler processed counter.

    ``max_count`` of ``0`` means unlimited when ``zero_is_unlimited`` is set;
    otherwise a zero budget rejects every message.
    """

    def __init__(self, max_count: int, zero_is_unlimited: bool = False):
        if max_count < 0:
            raise ValueError(f"max_count must be non-negative, got {max_count}")
        self.max_count = max_count
        self.zero_is_unlimited = zero_is_unlimited
        self._processed = 0

    @property
    def processed_count(self) -> int:
        return self._processed

    @property
    def unlimited(self) -> bool:
        return self.zero_is_unlimited and self.max_count == 0

    @property
    def exhausted(self) -> bool:
        if self.unlimited:
            return False
        return self._processed >= self.max_count

    def check(self) -> None:
        """Raise :class:`BudgetExceededError` when no budget is left."""
        if self.exhausted:
            raise BudgetExceededError(self.max_count)

    def consume(self) -> int:
        """Check and increment, returning the new processed count."""
        self.check()
        self._processed += 1
        return self._processed


class DispatchThrottle:
    """Keeps consecutive calls at least ``min_interval`` seconds apart.

    The first call never waits. ``clock`` and ``sleep`` are injectable so
    tests can run without real delays.
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_DISPATCH_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None

    @property
    def last_call(self) -> float | None:
        return self._last_call

    async def wait(self) -> float:
        """Sleep until the interval has elapsed; return the seconds slept."""
        if self._last_call is None:
            return 0.0
        elapsed = self._clock() - self._last_call
        remaining = self._min_interval - elapsed
        if remaining <= 0:
            return 0.0
        logger.info("Waiting %.0fms before next dispatch", remaining * 1000)
        await self._sleep(remaining)
        return remaining

    def mark(self) -> None:
        """Record the completion time of the call just made."""
        self._last_call = self._clock()
