"""Active window monitoring.

The ActiveClientMonitor turns compositor lifecycle callbacks into bus
notifications:

    window activated  -> Changed, plus a title retry when the title is a placeholder
    window created    -> Created, and a caption subscription for the window
    window destroyed  -> Destroyed, then an immediate re-check of the active window
    caption changed   -> Changed, only for the active window
    startup           -> Initial, only when a window is active
"""

import logging
from typing import Optional, Sequence

from activewindow.compositor.base_compositor import BaseCompositor, BaseWindow
from activewindow.core.retry import DEFAULT_DELAYS, DEFAULT_POLL_INTERVAL, RetrySequencer
from activewindow.core.title import window_title_usable
from activewindow.core.tracker import WindowTracker
from activewindow.utils.events import NotificationEvent, NotificationKind
from activewindow.utils.exceptions import PublishError
from activewindow.utils.scheduler import Scheduler

logger = logging.getLogger(__name__)


class ActiveClientMonitor:
    """Publishes active window changes, waiting out placeholder titles."""

    def __init__(
        self,
        compositor: BaseCompositor,
        publisher,
        scheduler: Scheduler,
        delays: Sequence[float] = DEFAULT_DELAYS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.compositor = compositor
        self.publisher = publisher
        self.scheduler = scheduler
        self.tracker = WindowTracker()
        self.retry = RetrySequencer(
            self.tracker,
            scheduler,
            active_window=compositor.active_window,
            on_resolved=self._on_title_resolved,
            delays=delays,
            poll_interval=poll_interval,
        )
        self.running = False

    def start(self) -> None:
        """Register with the compositor and queue the initial state."""
        if self.running:
            return
        self.running = True
        self.compositor.on_activated(self.on_window_activated)
        self.compositor.on_added(self.on_window_added)
        self.compositor.on_removed(self.on_window_removed)
        # Windows that predate us never get an "added" callback
        for window in self.compositor.windows():
            self.compositor.on_caption_changed(window, self.on_caption_changed)
        self.scheduler.schedule_after(0, self.emit_initial_state)
        logger.info("Active window monitor started")

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        for handler in (self.on_window_activated, self.on_window_added,
                        self.on_window_removed, self.on_caption_changed):
            self.compositor.disconnect(handler)
        # Pending checks end once their window is no longer polled
        for window in self.tracker.polled_windows():
            self.tracker.abandon(window)
        logger.info("Active window monitor stopped")

    def emit_initial_state(self) -> None:
        if not self.running:
            return
        window = self.compositor.active_window()
        if window is not None:
            self._emit(NotificationKind.INITIAL, window)

    def on_window_activated(self) -> None:
        if not self.running:
            return
        window = self.compositor.active_window()
        if window is None:
            return

        self._emit(NotificationKind.CHANGED, window)

        state = self.tracker.activate(window, window_title_usable(window))
        if state.polling:
            logger.debug(f"Placeholder title {window.caption()!r} for {window.resource_class()!r}, retrying")
            self.retry.start_fast_retry(window)

    def on_window_added(self, window: BaseWindow) -> None:
        if not self.running:
            return
        self._emit(NotificationKind.CREATED, window)
        self.compositor.on_caption_changed(window, self.on_caption_changed)

    def on_window_removed(self, window: BaseWindow) -> None:
        if not self.running:
            return
        self.tracker.remove(window)
        self._emit(NotificationKind.DESTROYED, window)
        self.scheduler.schedule_after(0, self.on_window_activated)

    def on_caption_changed(self, window: BaseWindow) -> None:
        if not self.running:
            return
        if window is not self.compositor.active_window():
            return
        if self.tracker.caption_changed(window, window_title_usable(window)):
            logger.debug(f"Caption change resolved title: {window.caption()!r}")
        self._emit(NotificationKind.CHANGED, window)

    def _on_title_resolved(self, window: BaseWindow) -> None:
        if not self.running:
            return
        self._emit(NotificationKind.CHANGED, window)

    def _emit(self, kind: NotificationKind, window: BaseWindow) -> Optional[NotificationEvent]:
        event = NotificationEvent.from_window(kind, window)
        logger.debug(f"{event.signal_name}: class={event.window_class!r} title={event.window_title!r}")
        try:
            self.publisher.publish(event)
        except PublishError as e:
            logger.warning(f"Dropped {event.signal_name} notification: {e}")
            return None
        return event
