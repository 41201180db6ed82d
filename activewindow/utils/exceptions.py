"""Custom exceptions for the system."""

class ConfigError(Exception):
    """Raised when there is a configuration error."""
    pass


class CompositorError(Exception):
    """Raised when no usable compositor backend can be set up.

    This covers unsupported desktops as well as a compositor whose IPC
    endpoint cannot be located.
    """
    pass


class PublishError(Exception):
    """Raised when a notification cannot be sent on the session bus.

    The caller decides what to do with it. The monitor only logs it,
    since notifications are best effort.
    """
    def __init__(self, message: str, signal_name: str = None):
        super().__init__(message)
        self.signal_name = signal_name
