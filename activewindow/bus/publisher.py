"""Session bus publishing of active window notifications.

Consumers match on this exact contract:

- object path ``/ActiveWindow``
- interface ``org.ahkwayland.ActiveWindow``
- signals ``Created``, ``Changed``, ``Destroyed`` and ``Initial``
- payload ``(window_class, window_title)``, both strings
"""

import logging
from typing import Any, Optional

from gi.repository import GLib
from pydbus import SessionBus
from pydbus.generic import signal

from activewindow.utils.events import NotificationEvent
from activewindow.utils.exceptions import PublishError

logger = logging.getLogger(__name__)

OBJECT_PATH = "/ActiveWindow"
INTERFACE_NAME = "org.ahkwayland.ActiveWindow"


class ActiveWindowSignals(object):
    """
    <node>
        <interface name='org.ahkwayland.ActiveWindow'>
            <signal name='Created'>
                <arg type='s' name='window_class'/>
                <arg type='s' name='window_title'/>
            </signal>
            <signal name='Changed'>
                <arg type='s' name='window_class'/>
                <arg type='s' name='window_title'/>
            </signal>
            <signal name='Destroyed'>
                <arg type='s' name='window_class'/>
                <arg type='s' name='window_title'/>
            </signal>
            <signal name='Initial'>
                <arg type='s' name='window_class'/>
                <arg type='s' name='window_title'/>
            </signal>
        </interface>
    </node>
    """
    Created = signal()
    Changed = signal()
    Destroyed = signal()
    Initial = signal()


class NotificationPublisher:
    """Fire-and-forget sender for notification events.

    The bus connection and object registration are made on first use, and
    retried on the next publish if they fail.
    """

    def __init__(self, bus: Optional[Any] = None) -> None:
        self._bus = bus
        self._registration = None
        self.signals = ActiveWindowSignals()

    @property
    def connected(self) -> bool:
        return self._registration is not None

    def connect(self) -> None:
        if self._registration is not None:
            return
        try:
            if self._bus is None:
                self._bus = SessionBus()
            self._registration = self._bus.register_object(OBJECT_PATH, self.signals, None)
        except GLib.Error as e:
            raise PublishError(f"Could not register {OBJECT_PATH} on the session bus: {e}") from e
        logger.info(f"Publishing {INTERFACE_NAME} signals on {OBJECT_PATH}")

    def publish(self, event: NotificationEvent) -> None:
        """Send ``event`` as the signal named after its kind."""
        self.connect()
        emit = getattr(self.signals, event.signal_name)
        try:
            emit(*event.as_args())
        except GLib.Error as e:
            raise PublishError(f"Failed to send {event.signal_name}: {e}", event.signal_name) from e

    def close(self) -> None:
        if self._registration is not None:
            self._registration.unregister()
            self._registration = None
