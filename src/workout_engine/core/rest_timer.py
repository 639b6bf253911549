"""
Rest countdown and tick scheduling.

The rest countdown counts from a duration down to zero and beyond
(signed, negative once overshot).  The set stopwatch lives in the timer
state.  Both are refreshed by one periodic tick that only runs while at
least one of them is live; when neither is, the asyncio task is
cancelled rather than left idling.

All timestamps are milliseconds from the caller's clock.
"""

import asyncio
import logging
import math
from typing import Callable

from .models import SetType
from .timer_state import TimerState, phase

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 1 / 30


class RestCountdown:
    """
    Countdown between sets.

    Holds the absolute end time rather than a decrementing counter, so
    the remaining time is always derived from the clock.
    """

    def __init__(self, on_complete: Callable[[], None] | None = None):
        self.on_complete = on_complete
        self.end_at: float | None = None
        self.total_seconds: int = 0
        self.set_type: SetType | None = None
        self.is_transition: bool = False
        self._completed = False

    @property
    def is_active(self) -> bool:
        """True from start() until dismiss(), including while overshot."""
        return self.end_at is not None

    def start(
        self,
        duration_s: int,
        set_type: SetType,
        transition: bool = False,
        now: float = 0.0,
    ) -> None:
        self.end_at = now + duration_s * 1000
        self.total_seconds = duration_s
        self.set_type = set_type
        self.is_transition = transition
        self._completed = False

    def dismiss(self) -> None:
        self.end_at = None
        self.total_seconds = 0
        self.set_type = None
        self.is_transition = False
        self._completed = False

    def precise_remaining(self, now: float) -> float:
        """Seconds left as a float; 0.0 when inactive."""
        if self.end_at is None:
            return 0.0
        return (self.end_at - now) / 1000

    def remaining_seconds(self, now: float) -> int:
        """Whole seconds left (ceil), negative once overshot; 0 when inactive."""
        if self.end_at is None:
            return 0
        return math.ceil((self.end_at - now) / 1000)

    def tick(self, now: float) -> bool:
        """
        Advance the countdown.

        Fires on_complete exactly once when zero is reached.

        Returns:
            True if the completion fired on this tick
        """
        if self.end_at is None or self._completed:
            return False
        if self.remaining_seconds(now) > 0:
            return False
        self._completed = True
        if self.on_complete is not None:
            self.on_complete()
        return True


def needs_tick(state: TimerState, countdown: RestCountdown) -> bool:
    """The tick loop must run while the stopwatch runs or a countdown is active."""
    return phase(state) == "running" or countdown.is_active


class TickScheduler:
    """
    Periodic callback on the running asyncio loop.

    update(True) starts the task if it is not running; update(False)
    cancels it.  The callback receives no arguments and reads its own
    clock.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        interval: float = DEFAULT_TICK_INTERVAL,
    ):
        self.callback = callback
        self.interval = interval
        self._task: asyncio.Task | None = None
        self.last_error: BaseException | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def update(self, needed: bool) -> None:
        if needed and not self.is_running:
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._run())
            self._task.add_done_callback(self._on_done)
            logger.debug("Tick loop started")
        elif not needed and self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Tick loop cancelled")

    async def stop(self) -> None:
        """Cancel the task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _on_done(self, task: asyncio.Task) -> None:
        """Retrieve and log the exception of a tick task that died."""
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Tick loop stopped by %r", error)
            self.last_error = error
        if self._task is task:
            self._task = None

    async def _run(self) -> None:
        while True:
            self.callback()
            await asyncio.sleep(self.interval)
