# activewindow/compositor/memory.py
import logging
from typing import List, Optional

from activewindow.compositor.base_compositor import BaseCompositor, BaseWindow

logger = logging.getLogger(__name__)

class MemoryWindow(BaseWindow):
    """Window held entirely in memory."""

    def __init__(self, window_class: str, title: str = "") -> None:
        self.window_class = window_class
        self.title = title

    def resource_class(self) -> str:
        return self.window_class

    def caption(self) -> str:
        return self.title

    def __repr__(self) -> str:
        return f"MemoryWindow({self.window_class!r}, {self.title!r})"

class InMemoryCompositor(BaseCompositor):
    """Scriptable compositor.

    Each method mirrors one thing a real desktop would do and fires the
    same callbacks a live backend would, in the same order.
    """

    def __init__(self) -> None:
        super().__init__()
        self._windows: List[MemoryWindow] = []
        self._active: Optional[MemoryWindow] = None

    def active_window(self) -> Optional[MemoryWindow]:
        return self._active

    def windows(self) -> List[MemoryWindow]:
        return list(self._windows)

    async def start(self) -> None:
        pass

    async def cleanup(self) -> None:
        self._windows.clear()
        self._active = None

    def open_window(self, window_class: str, title: str = "", activate: bool = False) -> MemoryWindow:
        window = MemoryWindow(window_class, title)
        self._windows.append(window)
        self._notify_added(window)
        if activate:
            self.activate(window)
        return window

    def activate(self, window: Optional[MemoryWindow]) -> None:
        self._active = window
        self._notify_activated()

    def set_title(self, window: MemoryWindow, title: str) -> None:
        window.title = title
        self._notify_caption_changed(window)

    def close_window(self, window: MemoryWindow, next_active: Optional[MemoryWindow] = None) -> None:
        """Destroy a window; focus moves to ``next_active`` before listeners run."""
        self._windows.remove(window)
        if self._active is window:
            self._active = next_active
        self._notify_removed(window)
