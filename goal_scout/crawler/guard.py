# goal_scout/crawler/guard.py
"""
Termination machinery for a crawl run.

* :class:`TerminationSignal` - single-winner latch every termination path
  races on.
* :class:`ExecutionGuard` - synchronous checks the worker runs inside the
  stage loop (iteration and step caps, cycles, snapshot stagnation,
  sufficiency).
* :class:`Watchdog` - the two background tasks: wall-clock timeout and the
  no-progress timer.
"""
from __future__ import annotations

import asyncio
import time
from typing import Optional

from goal_scout.config import GuardConfig
from goal_scout.crawler.models import TerminationReason
from goal_scout.crawler.state import CrawlState
from goal_scout.logger import logger

__all__ = ("TerminationSignal", "ExecutionGuard", "Watchdog")

_MIN_REVISITED_URLS = 3
_MIN_SUFFICIENT_PAGES = 3


class TerminationSignal:
    """First :meth:`trigger` wins; later calls return ``False``."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[TerminationReason] = None
        self.detail: str = ""

    def trigger(self, reason: TerminationReason, detail: str = "") -> bool:
        if self._reason is not None:
            logger.debug("Termination %s ignored, %s already won", reason.value, self._reason.value)
            return False
        self._reason = reason
        self.detail = detail
        self._event.set()
        logger.info("Crawl terminating: %s %s", reason.value, detail)
        return True

    @property
    def reason(self) -> Optional[TerminationReason]:
        return self._reason

    @property
    def is_set(self) -> bool:
        return self._reason is not None

    async def wait(self) -> TerminationReason:
        await self._event.wait()
        assert self._reason is not None
        return self._reason


class ExecutionGuard:
    """In-loop checks. Each returns the reason to stop, or ``None``."""

    def __init__(self, config: GuardConfig, max_pages: int) -> None:
        self.config = config
        self.max_pages = max_pages

    def check_steps(self, state: CrawlState) -> Optional[TerminationReason]:
        if state.steps > self.config.recursion_limit:
            return TerminationReason.RECURSION_LIMIT
        return None

    def check_iterations(self, state: CrawlState) -> Optional[TerminationReason]:
        if state.iterations > self.config.max_iterations:
            return TerminationReason.ITERATION_CAP
        return None

    def check_current_url(self, state: CrawlState, url: str) -> Optional[TerminationReason]:
        if state.current_url_counts[url] > self.config.max_current_url_repeats:
            return TerminationReason.CYCLE
        return None

    def check_revisits(self, state: CrawlState) -> Optional[TerminationReason]:
        counts = state.url_visit_counts
        if not counts or max(counts.values()) <= 1:
            return None
        revisited = sum(1 for n in counts.values() if n > 1)
        if revisited >= _MIN_REVISITED_URLS and revisited * 2 > len(state.visited_urls):
            return TerminationReason.CYCLE
        return None

    def record_snapshot(self, state: CrawlState) -> Optional[TerminationReason]:
        """Append ``(queue size, extracted)`` and look at the trailing window."""
        state.snapshots.append((len(state.page_queue), len(state.extracted_content)))
        window = self.config.stagnation_window
        if len(state.snapshots) < window or not state.extracted_content:
            return None
        recent = list(state.snapshots)[-window:]
        if all(snap == recent[0] for snap in recent):
            return TerminationReason.STAGNATION
        return None

    def check_sufficiency(self, state: CrawlState) -> Optional[TerminationReason]:
        needed = max(_MIN_SUFFICIENT_PAGES, int(self.max_pages * self.config.sufficiency_page_fraction))
        if (
            state.value_metrics.completeness > self.config.sufficiency_threshold
            and len(state.extracted_content) >= needed
        ):
            return TerminationReason.SUFFICIENT
        return None

    def end_of_cycle(self, state: CrawlState) -> Optional[TerminationReason]:
        return self.check_sufficiency(state) or self.check_revisits(state) or self.record_snapshot(state)


class Watchdog:
    """Background timeout and stagnation tasks for one run."""

    def __init__(self, config: GuardConfig, state: CrawlState, signal: TerminationSignal) -> None:
        self.config = config
        self.state = state
        self.signal = signal

    async def timeout(self) -> None:
        await asyncio.sleep(self.config.max_execution_time_ms / 1000)
        self.signal.trigger(
            TerminationReason.TIMEOUT, f"after {self.config.max_execution_time_ms} ms"
        )

    async def stagnation(self) -> None:
        interval = self.config.deadlock_check_interval_ms / 1000
        limit = self.config.deadlock_detection_ms / 1000
        last = self.state.progress_counters()
        last_change = time.monotonic()
        while not self.signal.is_set:
            await asyncio.sleep(interval)
            current = self.state.progress_counters()
            now = time.monotonic()
            if current != last:
                last, last_change = current, now
                continue
            if now - last_change >= limit:
                self.signal.trigger(
                    TerminationReason.DEADLOCK,
                    f"no progress for {self.config.deadlock_detection_ms} ms",
                )
                return
