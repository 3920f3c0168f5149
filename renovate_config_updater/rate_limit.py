"""Rate-limit decisions for the GitHub API."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from .models import LOW_WATER_MARK, RateLimitSnapshot

MIN_REFUSED_WAIT = 1.0  # seconds


@dataclass(frozen=True)
class RateLimitDecision:
    suspend: bool
    wait_seconds: float = 0.0
    low: bool = False


class RateLimiter:
    """Decides whether to block on an API response's rate-limit metadata.

    When the window is exhausted the caller sleeps until reset and then
    retries the same operation.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        low_water_mark: int = LOW_WATER_MARK,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.low_water_mark = low_water_mark
        self._clock = clock
        self._sleep = sleep
        self.waits = 0

    def decide(self, snapshot: RateLimitSnapshot) -> RateLimitDecision:
        low = snapshot.remaining < self.low_water_mark
        if snapshot.remaining > 0:
            return RateLimitDecision(suspend=False, low=low)
        wait = max(0.0, snapshot.reset_at - self._clock())
        return RateLimitDecision(suspend=True, wait_seconds=wait, low=low)

    def observe(self, snapshot: RateLimitSnapshot | None) -> RateLimitDecision:
        """Return the decision for a snapshot, warning when the budget runs low."""
        if snapshot is None:
            return RateLimitDecision(suspend=False)
        decision = self.decide(snapshot)
        if decision.low:
            self.logger.warning("Approaching rate limit. Remaining: %d", snapshot.remaining)
        return decision

    def wait(self, decision: RateLimitDecision, context: str = "") -> None:
        """Block the whole process until the window resets."""
        if not decision.suspend or decision.wait_seconds <= 0:
            return
        self.waits += 1
        suffix = f" {context}" if context else ""
        self.logger.warning(
            "Rate limit reached%s. Waiting %.0fs until reset", suffix, decision.wait_seconds
        )
        self._sleep(decision.wait_seconds)

    def wait_for_reset(self, snapshot: RateLimitSnapshot, context: str = "") -> None:
        """Wait after a request was refused for quota reasons.

        Always sleeps at least MIN_REFUSED_WAIT seconds, even when the
        reported reset time has already passed.
        """
        decision = self.decide(snapshot)
        wait = max(decision.wait_seconds, MIN_REFUSED_WAIT)
        self.wait(RateLimitDecision(suspend=True, wait_seconds=wait, low=decision.low), context=context)
