import logging
from typing import Any, Callable, Optional, Sequence

from activewindow.core.title import window_title_usable
from activewindow.core.tracker import TrackPhase, WindowTracker
from activewindow.utils.scheduler import Scheduler

logger = logging.getLogger(__name__)

DEFAULT_DELAYS = (0.05, 0.15, 0.35)
DEFAULT_POLL_INTERVAL = 0.5


class RetrySequencer:
    """Re-checks the active window's title until it becomes usable.

    A few quick re-checks run first, each after its own delay from
    ``delays``. When they are exhausted the window moves to a slow poll
    every ``poll_interval`` seconds with no upper bound. Every check
    re-reads the tracker when it fires, so a window that lost focus, got
    destroyed or was resolved elsewhere simply ends its chain.
    """

    def __init__(
        self,
        tracker: WindowTracker,
        scheduler: Scheduler,
        active_window: Callable[[], Optional[Any]],
        on_resolved: Callable[[Any], None],
        delays: Sequence[float] = DEFAULT_DELAYS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if not delays:
            raise ValueError("at least one fast retry delay is required")
        self.tracker = tracker
        self.scheduler = scheduler
        self.active_window = active_window
        self.on_resolved = on_resolved
        self.delays = tuple(delays)
        self.poll_interval = poll_interval
        self._poll_armed = False

    @property
    def max_attempts(self) -> int:
        return len(self.delays)

    def start_fast_retry(self, window) -> None:
        """Schedule the first re-check for a window the tracker just activated."""
        state = self.tracker.state_of(window)
        if state.phase != TrackPhase.FAST_RETRY:
            return
        self._schedule_check(window, state.token, 1)

    def _schedule_check(self, window, token: int, attempt: int) -> None:
        delay = self.delays[attempt - 1]
        self.scheduler.schedule_after(delay, lambda: self._check(window, token, attempt))

    def _check(self, window, token: int, attempt: int) -> None:
        state = self.tracker.state_of(window)
        if (state.phase != TrackPhase.FAST_RETRY or state.token != token
                or state.attempt != attempt):
            # Superseded by a newer activation, or finished elsewhere
            return

        if self.active_window() is not window:
            logger.debug(f"Abandoning title retry at attempt {attempt}: window no longer active")
            self.tracker.abandon(window)
            return

        if window_title_usable(window):
            logger.debug(f"Title resolved on fast retry {attempt}: {window.caption()!r}")
            self.tracker.resolve(window)
            self.on_resolved(window)
            return

        if attempt < self.max_attempts:
            self.tracker.advance(window)
            self._schedule_check(window, token, attempt + 1)
        else:
            logger.debug(f"Title still unusable after {attempt} retries, switching to slow poll")
            self.tracker.enter_slow_poll(window)
            self._arm_poll()

    def _arm_poll(self) -> None:
        if self._poll_armed:
            return
        self._poll_armed = True
        self.scheduler.schedule_after(self.poll_interval, self._poll_tick)

    def _poll_tick(self) -> None:
        self._poll_armed = False
        active = self.active_window()

        for window in self.tracker.polled_windows():
            if window is not active:
                self.tracker.abandon(window)

        if active is None or self.tracker.state_of(active).phase != TrackPhase.SLOW_POLL:
            return

        if window_title_usable(active):
            logger.debug(f"Title resolved on slow poll: {active.caption()!r}")
            self.tracker.resolve(active)
            self.on_resolved(active)
        else:
            self._arm_poll()
