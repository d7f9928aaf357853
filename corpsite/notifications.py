"""
User-facing notifications emitted by mutations and auth actions.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

logger = logging.getLogger(__name__)

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = DEFAULT

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class Notifier:
    """Collects the notifications raised while handling one user action."""

    notifications: list[Notification] = field(default_factory=list)

    def notify(self, title: str, description: str, variant: str = DEFAULT) -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self.notifications.append(notification)
        level = logging.WARNING if variant == DESTRUCTIVE else logging.INFO
        logger.log(level, "Notify [%s] %s: %s", variant, title, description)
        return notification

    def destructive(self, title: str, description: str) -> Notification:
        return self.notify(title, description, DESTRUCTIVE)

    def as_list(self) -> list[dict]:
        return [n.as_dict() for n in self.notifications]
