"""Frame scheduling — how the engine asks for its next frame.

The engine never loops on its own. After each frame it hands a tick
function to a FrameScheduler, and cancels it when the run stops. Hosts pick
the implementation: the asyncio scheduler for a live server, the manual one
for tests and headless runs.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional, Protocol

import structlog

logger = structlog.get_logger()

TickFn = Callable[[], None]


class FrameScheduler(Protocol):
    """Port the engine uses to schedule its own continuation."""

    def schedule(self, tick_fn: TickFn) -> None:
        """Arrange for tick_fn to run once, on the next frame."""
        ...

    def cancel(self) -> None:
        """Drop the pending tick, if any."""
        ...


class ManualScheduler:
    """Holds at most one pending tick until the caller steps it.

    Used for deterministic, time-independent frame stepping.
    """

    def __init__(self) -> None:
        self._pending: Optional[TickFn] = None
        self.frames_run = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, tick_fn: TickFn) -> None:
        self._pending = tick_fn

    def cancel(self) -> None:
        self._pending = None

    def step(self) -> bool:
        """Run the pending tick.

        Returns:
            True if a tick ran, False if nothing was scheduled.
        """
        tick_fn = self._pending
        if tick_fn is None:
            return False
        self._pending = None
        self.frames_run += 1
        tick_fn()
        return True

    def run_until_idle(self, max_frames: int = 100_000) -> int:
        """Step until nothing is scheduled or max_frames ticks have run.

        Returns:
            Number of ticks run by this call.
        """
        ran = 0
        while ran < max_frames and self.step():
            ran += 1
        return ran


class AsyncioFrameScheduler:
    """Runs ticks on an asyncio event loop at a fixed frame interval.

    When a tick schedules its own continuation, the delay is the frame
    interval minus the time already spent in that tick, so frame starts stay
    one interval apart as long as ticks fit their budget.
    """

    def __init__(
        self,
        frame_interval_ms: int = 16,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            frame_interval_ms: Target time between frames.
            loop: Event loop to schedule on. Defaults to the running loop at
                the time of the first schedule() call.
        """
        self.frame_interval_ms = frame_interval_ms
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tick_start: Optional[float] = None
        self.frames_run = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, tick_fn: TickFn) -> None:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        self.cancel()
        elapsed = 0.0
        if self._tick_start is not None:
            elapsed = time.perf_counter() - self._tick_start
        delay = max(0.0, self.frame_interval_ms / 1000.0 - elapsed)
        self._handle = self._loop.call_later(delay, self._run, tick_fn)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _run(self, tick_fn: TickFn) -> None:
        self._handle = None
        self.frames_run += 1
        self._tick_start = time.perf_counter()

        try:
            tick_fn()
        except Exception as exc:
            # Never let a bad frame kill the event loop
            logger.error(
                "frame_error",
                frame=self.frames_run,
                error=str(exc),
                error_type=type(exc).__name__,
            )

        duration = time.perf_counter() - self._tick_start
        self._tick_start = None
        if duration > self.frame_interval_ms / 1000.0:
            logger.warning(
                "frame_overrun",
                frame=self.frames_run,
                duration_ms=round(duration * 1000, 2),
                budget_ms=self.frame_interval_ms,
            )
