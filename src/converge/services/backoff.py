"""Backoff service for calculating intervals between polls."""
import random
from converge.core.enums import BackoffPolicy

# Floor for every interval, polls never busy-loop
MIN_INTERVAL = 0.01
MAX_EXPONENT = 32


class BackoffService:
    """Service for poll interval calculations."""

    def next_interval(
        self,
        attempt: int,
        policy: BackoffPolicy = BackoffPolicy.FIXED,
        base_interval: float = 1.0,
        max_interval: float = 10.0,
    ) -> float:
        """
        Calculate the delay before the next poll.

        Args:
            attempt: Number of polls already issued (0 before the first)
            policy: Backoff policy (fixed, exponential, jitter)
            base_interval: Base interval in seconds
            max_interval: Maximum interval in seconds

        Returns:
            float: Delay in seconds
        """
        if policy == BackoffPolicy.FIXED:
            delay = base_interval

        elif policy == BackoffPolicy.EXPONENTIAL:
            # base_interval * 2^attempt, capped
            delay = min(base_interval * (2 ** min(attempt, MAX_EXPONENT)), max_interval)

        elif policy == BackoffPolicy.JITTER:
            exponential_delay = min(base_interval * (2 ** min(attempt, MAX_EXPONENT)), max_interval)
            # Add random jitter (0 to 50% of exponential delay)
            jitter = random.uniform(0, exponential_delay * 0.5)
            delay = min(exponential_delay + jitter, max_interval)

        else:
            delay = base_interval

        return max(delay, MIN_INTERVAL)
