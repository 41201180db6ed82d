import logging
import threading
from typing import Any, Callable, Optional

from pydbus import SessionBus

from activewindow.bus.publisher import INTERFACE_NAME, OBJECT_PATH
from activewindow.utils.events import NotificationEvent, NotificationKind

logger = logging.getLogger(__name__)


class ActiveWindowListener:
    """Keeps the latest active window announced on the session bus.

    Only ``Changed`` and ``Initial`` update the cached window. ``Created``
    and ``Destroyed`` are passed to the callback but do not say anything
    about focus.
    """

    def __init__(self, bus: Optional[Any] = None,
                 callback: Optional[Callable[[NotificationEvent], None]] = None) -> None:
        self._bus = bus
        self._callback = callback
        self._subscription = None
        self._lock = threading.Lock()
        self._window_class = ""
        self._window_title = ""

    def start(self) -> None:
        if self._subscription is not None:
            return
        if self._bus is None:
            self._bus = SessionBus()
        self._subscription = self._bus.subscribe(
            iface=INTERFACE_NAME,
            object=OBJECT_PATH,
            signal_fired=self._on_signal,
        )
        logger.info(f"Listening for {INTERFACE_NAME} signals")

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_signal(self, sender, object_path, iface, signal_name, params) -> None:
        try:
            kind = NotificationKind(signal_name)
        except ValueError:
            logger.debug(f"Ignoring unknown signal {signal_name} from {sender}")
            return

        if not isinstance(params, (tuple, list)) or len(params) != 2:
            logger.warning(f"Failed to parse {signal_name} arguments: {params!r}")
            return

        event = NotificationEvent(kind, str(params[0]), str(params[1]))
        if kind in (NotificationKind.CHANGED, NotificationKind.INITIAL):
            with self._lock:
                self._window_class = event.window_class
                self._window_title = event.window_title
            logger.debug(f"Active window: class={event.window_class!r} title={event.window_title!r}")

        if self._callback:
            self._callback(event)

    def current_application(self) -> Optional[str]:
        with self._lock:
            return self._window_class or None

    def current_window(self) -> Optional[str]:
        with self._lock:
            return self._window_title or None
