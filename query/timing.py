"""
Statement Timing

Records wall-clock duration of each statement issued by a listing.
Diagnostic only: recording never raises and never changes results.
"""

import logging
import time
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class TimingRecorder:
    """Collects (label, seconds) pairs in completion order."""

    def __init__(self):
        self.timings: list[tuple[str, float]] = []

    def record(self, label: str, seconds: float):
        try:
            self.timings.append((label, float(seconds)))
            logger.debug(f"{label} took {seconds:.4f}s")
        except Exception as e:
            logger.debug(f"Dropped timing for {label}: {e}")

    @asynccontextmanager
    async def measure(self, label: str):
        """
        Time the wrapped block.

        Usage:
            async with recorder.measure("page"):
                rows = await db.fetch(sql, *params)
        """
        started = time.perf_counter()
        try:
            yield
        finally:
            self.record(label, time.perf_counter() - started)
