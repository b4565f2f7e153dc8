"""Idle and commit timers.

Both timers are asyncio tasks held by their owner, so they can be
cancelled and restarted explicitly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

# Default idle threshold before tracking pauses (seconds)
DEFAULT_IDLE_TIMEOUT = 30 * 60

# Default period between commits (seconds)
DEFAULT_COMMIT_INTERVAL = 60 * 60


class IdleMonitor:
    """Single-shot inactivity timer.

    Every call to reset() replaces the pending timer, so on_timeout fires
    at most once per reset cycle.
    """

    def __init__(
        self,
        timeout_seconds: float,
        on_timeout: Callable[[], None],
    ):
        """Initialize the idle monitor.

        Args:
            timeout_seconds: Seconds of inactivity before on_timeout fires.
            on_timeout: Callback run on the event loop when the timer expires.
        """
        self.timeout_seconds = timeout_seconds
        self.on_timeout = on_timeout
        self._timer: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        """Whether a timer is currently scheduled."""
        return self._timer is not None and not self._timer.done()

    def reset(self) -> None:
        """Cancel any pending timer and start a fresh one."""
        if self._timer is not None:
            self._timer.cancel()

        async def idle_timer():
            try:
                await asyncio.sleep(self.timeout_seconds)
            except asyncio.CancelledError:
                return  # Timer was replaced by new activity
            self._timer = None
            self.on_timeout()

        self._timer = asyncio.create_task(idle_timer())
        logger.debug(f"Idle timer reset ({self.timeout_seconds}s)")

    def cancel(self) -> None:
        """Cancel the pending timer. Only used at shutdown."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class CommitScheduler:
    """Fixed-period repeating timer.

    Each tick runs as its own task so a slow callback does not shift the
    period. Errors raised by a tick are logged and the schedule continues.
    """

    def __init__(
        self,
        interval_seconds: float,
        on_tick: Callable[[], Awaitable[object]],
    ):
        self.interval_seconds = interval_seconds
        self.on_tick = on_tick
        self._loop_task: asyncio.Task | None = None
        self._ticks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        """Start ticking. Calling start() on a running scheduler is a no-op."""
        if self.running:
            return
        self._loop_task = asyncio.create_task(self._tick_loop())
        logger.info(f"Commit scheduler started (interval: {self.interval_seconds}s)")

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            task = asyncio.create_task(self._run_tick())
            self._ticks.add(task)
            task.add_done_callback(self._ticks.discard)

    async def _run_tick(self) -> None:
        try:
            await self.on_tick()
        except Exception as e:
            logger.exception(f"Commit tick failed: {e}")

    def stop(self) -> None:
        """Stop the schedule and cancel in-flight ticks. Only used at shutdown."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            self._loop_task = None
        for task in list(self._ticks):
            task.cancel()
        self._ticks.clear()
