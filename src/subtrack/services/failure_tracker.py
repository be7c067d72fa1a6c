"""
Consecutive-failure counting and cool-down windows per channel.

A channel that fails ``max_retries`` fetches in a row is benched for
``retry_delay`` seconds. When the window expires the counter is cleared
and the channel re-enters normal rotation; nothing here ever removes a
channel from the tracked set.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class FailureState:
    """Failure bookkeeping for one channel."""

    consecutive_failures: int = 0
    cooldown_until: Optional[float] = None


class FailureTracker:
    """
    Track consecutive fetch failures and derive cool-down eligibility.

    Parameters
    ----------
    max_retries : int
        Consecutive failures that trigger a cool-down.
    retry_delay : float
        Cool-down window length in seconds.
    clock : Callable[[], float], optional
        Monotonic time source (default: ``time.monotonic``).

    Examples
    --------
    >>> tracker = FailureTracker(max_retries=5, retry_delay=60.0)
    >>> for _ in range(5):
    ...     tracker.record_failure("UCxyz")
    >>> tracker.is_cooling_down("UCxyz")
    True
    """

    def __init__(
        self,
        max_retries: int,
        retry_delay: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._clock = clock
        self._states: dict[str, FailureState] = {}

    def failure_count(self, channel_id: str) -> int:
        state = self._states.get(channel_id)
        return state.consecutive_failures if state else 0

    def record_success(self, channel_id: str) -> None:
        """Clear the counter and any cool-down for a channel."""
        self._states.pop(channel_id, None)

    def record_failure(self, channel_id: str) -> int:
        """
        Count one more consecutive failure.

        Returns
        -------
        int
            The updated consecutive failure count.
        """
        state = self._states.setdefault(channel_id, FailureState())
        state.consecutive_failures += 1

        if (
            state.consecutive_failures >= self.max_retries
            and state.cooldown_until is None
        ):
            state.cooldown_until = self._clock() + self.retry_delay
            logger.warning(
                "Channel %s failed %d times in a row; pausing for %.0fs",
                channel_id,
                state.consecutive_failures,
                self.retry_delay,
            )
        return state.consecutive_failures

    def is_cooling_down(self, channel_id: str) -> bool:
        """
        Check whether a channel should be skipped by the next sweep.

        An expired cool-down is cleared here, resetting the counter.
        """
        state = self._states.get(channel_id)
        if state is None or state.cooldown_until is None:
            return False

        if self._clock() >= state.cooldown_until:
            del self._states[channel_id]
            logger.info("Channel %s cool-down expired; back in rotation", channel_id)
            return False
        return True

    def cooling_down_count(self) -> int:
        """Number of channels currently benched (expired windows excluded)."""
        now = self._clock()
        return sum(
            1
            for state in self._states.values()
            if state.cooldown_until is not None and now < state.cooldown_until
        )
