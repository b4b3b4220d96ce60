"""Pause the run when the GitHub API quota is nearly exhausted."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from critscore.adapters.base import BaseHostClient
from critscore.errors import RateLimitExceededError

logger = logging.getLogger(__name__)


class QuotaGuard:
    """Checks remaining quota once before a batch of API calls.

    When fewer than ``floor`` calls remain, the whole run sleeps until the
    quota window resets, or for ``fallback_sleep`` seconds when the reset
    time is unknown. Call it centrally before fan-out, never per provider.
    """

    # Minimum remaining calls before a preemptive sleep
    DEFAULT_FLOOR = 50

    # Seconds to pause when GitHub doesn't report a reset time
    DEFAULT_FALLBACK_SLEEP = 3600.0

    def __init__(
        self,
        client: BaseHostClient,
        floor: int = DEFAULT_FLOOR,
        fallback_sleep: float = DEFAULT_FALLBACK_SLEEP,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.client = client
        self.floor = floor
        self.fallback_sleep = fallback_sleep
        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def check(self) -> None:
        """Raise RateLimitExceededError if remaining quota is below the floor."""
        status = await self.client.get_quota_status()
        if status.remaining < self.floor:
            raise RateLimitExceededError(status.remaining, status.reset_at)

    def sleep_seconds(self, e: RateLimitExceededError) -> float:
        """How long to pause for a given exhaustion."""
        if e.reset_time is None:
            return self.fallback_sleep
        return max((e.reset_time - self._clock()).total_seconds(), 0.0)

    async def wait_if_exhausted(self) -> float:
        """Block until quota is available again.

        Returns:
            Seconds slept (0 if quota was sufficient).
        """
        try:
            await self.check()
        except RateLimitExceededError as e:
            seconds = self.sleep_seconds(e)
            if seconds <= 0:
                logger.info("Rate limit reset time has passed, continuing...")
                return 0.0
            logger.warning(
                f"GitHub rate limit low (remaining: {e.remaining}). "
                f"Sleeping for {seconds:.0f} seconds before retry."
            )
            await self._sleep(seconds)
            logger.info("Resuming after rate limit sleep")
            return seconds
        return 0.0
