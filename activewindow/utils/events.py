from dataclasses import dataclass
from enum import Enum


class NotificationKind(Enum):
    """Signal member names, as seen on the bus."""
    CREATED = "Created"
    CHANGED = "Changed"
    DESTROYED = "Destroyed"
    INITIAL = "Initial"


@dataclass(frozen=True)
class NotificationEvent:
    kind: NotificationKind
    window_class: str
    window_title: str

    @classmethod
    def from_window(cls, kind: NotificationKind, window) -> "NotificationEvent":
        """Snapshot a window's current class and caption."""
        return cls(kind, window.resource_class(), window.caption())

    @property
    def signal_name(self) -> str:
        return self.kind.value

    def as_args(self):
        return (self.window_class, self.window_title)
