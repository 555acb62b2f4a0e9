"""
Latency-adaptive pacing of dispatch admission.
"""
from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)

# Weight of the newest sample in the moving average
SAMPLE_WEIGHT = 0.1


class RateGovernor:
    """
    Shared EWMA of fetch latency.

    Fetch threads call observe() after every network call; the dispatcher
    calls next_delay() once per admitted URL. Reads may be slightly stale.
    """

    def __init__(
        self,
        initial_latency: float = 1.0,
        slack: float = 0.5,
        min_delay: float = 1.0,
    ) -> None:
        self._lock = threading.Lock()
        self._average = initial_latency
        self.slack = slack
        self.min_delay = min_delay

    @property
    def average_latency(self) -> float:
        return self._average

    def observe(self, duration: float) -> float:
        """Fold one fetch duration (seconds) into the average."""
        with self._lock:
            self._average = self._average * (1 - SAMPLE_WEIGHT) + duration * SAMPLE_WEIGHT
            average = self._average
        logger.debug("fetch took %.3fs, running average %.3fs", duration, average)
        return average

    def next_delay(self) -> float:
        """Seconds to wait before admitting the next URL."""
        return max(self._average - self.slack, self.min_delay)
