"""GitHub API rate limit tracking."""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

logger = logging.getLogger(__name__)

# Upper bound for any single wait, in seconds.
MAX_WAIT = 180.0


class RateLimitMonitor:
    """Track ``X-RateLimit-*`` headers and pause before the budget runs out."""

    def __init__(self, threshold: int = 10) -> None:
        self.threshold = threshold
        self._remaining: int | None = None
        self._reset_at: float | None = None

    def update(self, response: httpx.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")
        if remaining is not None:
            try:
                self._remaining = int(remaining)
            except ValueError:
                logger.debug("Ignoring malformed X-RateLimit-Remaining: %r", remaining)
        if reset is not None:
            try:
                self._reset_at = float(reset)
            except ValueError:
                logger.debug("Ignoring malformed X-RateLimit-Reset: %r", reset)

    def _seconds_until_reset(self) -> float:
        if self._reset_at is None:
            return 0.0
        return min(max(0.0, self._reset_at - time.time()) + 1, MAX_WAIT)

    async def wait_if_needed(self) -> None:
        if self._remaining is None or self._remaining > self.threshold:
            return
        wait = self._seconds_until_reset()
        logger.warning(
            "Rate limit nearly exhausted (%d remaining), sleeping %.0fs",
            self._remaining,
            wait,
        )
        await asyncio.sleep(wait)
        # Assume the window has rolled over until the next response says otherwise.
        self._remaining = None

    def retry_delay(self, response: httpx.Response, attempt: int) -> float | None:
        """Seconds to wait before retrying a rate-limited response, else None."""
        if response.status_code not in (403, 429):
            return None
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return min(float(retry_after), MAX_WAIT) + 1
            except ValueError:
                pass
        if response.headers.get("X-RateLimit-Remaining") == "0":
            self.update(response)
            return self._seconds_until_reset()
        if response.status_code == 429:
            return float(min(2**attempt, 60))
        # A plain 403 is a permission error, not a rate limit.
        return None
