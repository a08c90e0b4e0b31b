"""
Progress Tracker - periodic progress reporting for long aggregation runs
Reports record counts, throughput and elapsed time with minimal per-record overhead
"""

import logging
import time
from typing import Callable, Optional

from services.aggregation_constants import DEFAULT_PROGRESS_INTERVAL

logger = logging.getLogger(__name__)


class ProgressTracker:
    """
    Counts processed records and reports progress every ``interval`` records.

    Reports go to the module logger and, when given, to ``progress_callback`` as
    (records_processed, status_message).
    """

    def __init__(self,
                 interval: int = DEFAULT_PROGRESS_INTERVAL,
                 progress_callback: Optional[Callable[[int, str], None]] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self.progress_callback = progress_callback
        self._clock = clock
        self._start_time = clock()
        self._processed = 0

    @property
    def processed(self) -> int:
        return self._processed

    @property
    def elapsed(self) -> float:
        return self._clock() - self._start_time

    @property
    def rate(self) -> float:
        """Records per second since start."""
        elapsed = self.elapsed
        return self._processed / elapsed if elapsed > 0 else 0.0

    def start(self) -> None:
        """Reset the counter and the clock."""
        self._start_time = self._clock()
        self._processed = 0

    def update(self, processed: int) -> None:
        """Record the running count; reports when it crosses a multiple of the interval."""
        self._processed = processed
        if processed % self.interval == 0:
            self._report()

    def finish(self) -> str:
        """Emit the final progress line and return it."""
        return self._report("Complete")

    def _report(self, suffix: str = '') -> str:
        status = (f"Processed: {self._processed:,} claims | "
                  f"Rate: {self.rate:,.0f}/sec | "
                  f"Time: {self.elapsed:.1f}s")
        if suffix:
            status = f"{status} {suffix}"

        logger.info(status)
        if self.progress_callback:
            self.progress_callback(self._processed, status)
        return status
