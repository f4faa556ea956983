"""Frame-rate scheduling for the sampling loop."""

from __future__ import annotations
import threading
import time
from typing import Callable, Optional

from ..logging_config import get_logger
from ..core.interfaces import IFrameScheduler, IScheduledTask

logger = get_logger(__name__)

DEFAULT_FRAME_RATE = 60.0


class ScheduledTask(IScheduledTask):
    """A callback invoked at a fixed rate on its own worker thread.

    Invocations never overlap: the worker waits for each call to return
    before scheduling the next tick. Ticks that fall behind are skipped
    rather than replayed in a burst.
    """

    def __init__(self, callback: Callable[[], None], interval: float) -> None:
        self._callback = callback
        self._interval = interval
        self._stop_event = threading.Event()
        self._ticks = 0
        self._thread = threading.Thread(
            target=self._run, name="chromatic-tuner-frames", daemon=True
        )

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        next_tick = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Frame callback failed: {e}", exc_info=True)
            self._ticks += 1

            next_tick += self._interval
            now = time.monotonic()
            if next_tick < now:
                # Fell behind; realign instead of catching up
                next_tick = now
            if self._stop_event.wait(next_tick - now):
                break

    def cancel(self) -> None:
        """Stop the task and wait for a running invocation to finish."""
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join()
        logger.debug(f"Frame task cancelled after {self._ticks} ticks")

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    @property
    def ticks(self) -> int:
        """Number of completed invocations."""
        return self._ticks

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the task is cancelled or ``timeout`` elapses.

        Returns:
            True if the task was cancelled
        """
        return self._stop_event.wait(timeout)


class FrameScheduler(IFrameScheduler):
    """Schedules callbacks once per display frame."""

    def __init__(self, frame_rate: float = DEFAULT_FRAME_RATE) -> None:
        if frame_rate <= 0:
            raise ValueError("frame_rate must be positive")
        self._frame_rate = frame_rate

    @property
    def frame_rate(self) -> float:
        return self._frame_rate

    def schedule(self, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(callback, 1.0 / self._frame_rate)
        task.start()
        logger.debug(f"Scheduled frame task at {self._frame_rate:.1f} fps")
        return task
