"""Window tracking state.

This module holds the WindowTracker, which keeps the per-window state of
the title reconciliation process:

- which window is the active one being retried (the active reference)
- which windows are still waiting for a usable title (the polled set)
- where each of them stands in the retry sequence

The tracker never talks to the compositor or the bus. The monitor feeds
it lifecycle events and the retry sequencer reads it back when a timer
fires, so all state stays derivable from the live window set.
"""

import itertools
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class TrackPhase(Enum):
    UNTRACKED = "untracked"
    FAST_RETRY = "fast_retry"
    SLOW_POLL = "slow_poll"
    RESOLVED = "resolved"
    ABANDONED = "abandoned"


POLLING_PHASES = (TrackPhase.FAST_RETRY, TrackPhase.SLOW_POLL)


@dataclass(frozen=True)
class TrackState:
    phase: TrackPhase
    attempt: int = 0
    token: int = 0

    @property
    def polling(self) -> bool:
        return self.phase in POLLING_PHASES


UNTRACKED = TrackState(TrackPhase.UNTRACKED)


class WindowTracker:
    """Tracks title polling state per window handle."""

    def __init__(self) -> None:
        self.active_ref: Optional[Any] = None
        self._states: Dict[Any, TrackState] = {}
        self._tokens = itertools.count(1)

    def state_of(self, window) -> TrackState:
        return self._states.get(window, UNTRACKED)

    def is_polled(self, window) -> bool:
        return self.state_of(window).polling

    def polled_windows(self) -> List[Any]:
        return [window for window, state in self._states.items() if state.polling]

    def activate(self, window, usable: bool) -> TrackState:
        """Record that ``window`` became active.

        Any other window still being polled is abandoned. When the title
        is not usable the window enters its first fast retry with a fresh
        token, otherwise the active reference is cleared.
        """
        for other in self.polled_windows():
            if other is not window:
                self.abandon(other)

        if usable:
            self.active_ref = None
            if self.is_polled(window):
                self._set(window, TrackState(TrackPhase.RESOLVED))
            return self.state_of(window)

        self.active_ref = window
        state = TrackState(TrackPhase.FAST_RETRY, attempt=1, token=next(self._tokens))
        self._set(window, state)
        return state

    def advance(self, window) -> TrackState:
        """Move a fast-retrying window to its next attempt."""
        state = self.state_of(window)
        state = replace(state, attempt=state.attempt + 1)
        self._set(window, state)
        return state

    def enter_slow_poll(self, window) -> TrackState:
        state = replace(self.state_of(window), phase=TrackPhase.SLOW_POLL)
        self._set(window, state)
        return state

    def resolve(self, window) -> None:
        self._set(window, TrackState(TrackPhase.RESOLVED))
        if self.active_ref is window:
            self.active_ref = None

    def abandon(self, window) -> None:
        self._set(window, TrackState(TrackPhase.ABANDONED))
        if self.active_ref is window:
            self.active_ref = None

    def caption_changed(self, window, usable: bool) -> bool:
        """Resolve a polled window whose caption became usable.

        Returns True when the window left the polled set.
        """
        if usable and self.is_polled(window):
            self.resolve(window)
            return True
        return False

    def remove(self, window) -> None:
        """Forget a destroyed window."""
        state = self._states.pop(window, None)
        if state is not None and state.polling:
            logger.debug(f"Dropped polling for destroyed window (was {state.phase.value})")
        if self.active_ref is window:
            self.active_ref = None

    def _set(self, window, state: TrackState) -> None:
        previous = self.state_of(window)
        self._states[window] = state
        if previous.phase != state.phase:
            logger.debug(f"Window state {previous.phase.value} -> {state.phase.value}")
