# activewindow/compositor/base_compositor.py
import abc
import asyncio
import logging
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

class BaseWindow(abc.ABC):
    """A compositor-owned window, referenced but never owned by the tracker."""

    @abc.abstractmethod
    def resource_class(self) -> str:
        """Application identifier, e.g. ``firefox``."""
        raise NotImplementedError

    @abc.abstractmethod
    def caption(self) -> str:
        """Current window title."""
        raise NotImplementedError

class BaseCompositor(abc.ABC):
    """Abstract base class for compositor implementations.

    Backends keep their own window table and report lifecycle changes
    through the ``_notify_*`` helpers. Listeners are plain callables,
    invoked synchronously on the thread that delivers compositor events.
    """

    def __init__(self) -> None:
        self._activated_callbacks: List[Callable[[], None]] = []
        self._added_callbacks: List[Callable[[BaseWindow], None]] = []
        self._removed_callbacks: List[Callable[[BaseWindow], None]] = []
        self._caption_callbacks: Dict[BaseWindow, List[Callable[[BaseWindow], None]]] = {}

    @abc.abstractmethod
    def active_window(self) -> Optional[BaseWindow]:
        """Get the currently focused window.

        Returns:
            The active window, or None if no window is active.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def windows(self) -> List[BaseWindow]:
        """Get all windows the compositor currently knows about."""
        raise NotImplementedError

    @abc.abstractmethod
    async def start(self) -> None:
        """Connect to the compositor and begin delivering events."""
        raise NotImplementedError

    async def wait_closed(self) -> None:
        """Return once the compositor stops delivering events.

        Backends without an external event stream never close on their own.
        """
        await asyncio.get_running_loop().create_future()

    @abc.abstractmethod
    async def cleanup(self) -> None:
        """Clean up any resources used by the compositor."""
        raise NotImplementedError

    def on_activated(self, callback: Callable[[], None]) -> None:
        self._activated_callbacks.append(callback)

    def on_added(self, callback: Callable[[BaseWindow], None]) -> None:
        self._added_callbacks.append(callback)

    def on_removed(self, callback: Callable[[BaseWindow], None]) -> None:
        self._removed_callbacks.append(callback)

    def on_caption_changed(self, window: BaseWindow, callback: Callable[[BaseWindow], None]) -> None:
        """Listen for title changes of one window."""
        self._caption_callbacks.setdefault(window, []).append(callback)

    def disconnect(self, callback: Callable) -> None:
        """Remove a callback from every registration it appears in."""
        for callbacks in (self._activated_callbacks, self._added_callbacks, self._removed_callbacks):
            while callback in callbacks:
                callbacks.remove(callback)
        for window in list(self._caption_callbacks):
            callbacks = self._caption_callbacks[window]
            while callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                del self._caption_callbacks[window]

    def _notify_activated(self) -> None:
        for callback in list(self._activated_callbacks):
            self._dispatch(callback)

    def _notify_added(self, window: BaseWindow) -> None:
        for callback in list(self._added_callbacks):
            self._dispatch(callback, window)

    def _notify_removed(self, window: BaseWindow) -> None:
        for callback in list(self._removed_callbacks):
            self._dispatch(callback, window)
        # Caption subscriptions die with the window
        self._caption_callbacks.pop(window, None)

    def _notify_caption_changed(self, window: BaseWindow) -> None:
        for callback in list(self._caption_callbacks.get(window, [])):
            self._dispatch(callback, window)

    def _dispatch(self, callback: Callable, *args) -> None:
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Error in compositor event callback: {e}", exc_info=True)
