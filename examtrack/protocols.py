"""Collaborator interfaces consumed by examtrack.

The core never awaits or branches on a notifier; notifications are
fire-and-forget.
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class Notification:
    type: str  # success | error | warning | info
    message: str
    description: Optional[str] = None


@runtime_checkable
class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class NullNotifier:
    """Drops every notification."""

    def notify(self, notification: Notification) -> None:
        return None


class CollectingNotifier:
    """Keeps notifications in a list. Useful for tests and batch callers."""

    def __init__(self):
        self.notifications: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
