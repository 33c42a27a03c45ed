"""User-facing notifications raised by the stores."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Notification(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class Notifier:
    """Fire-and-forget notification sink.

    Notifications are logged and kept in ``sent`` so the caller can hand
    them to whatever displays them.
    """

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    def notify(
        self,
        title: str,
        description: str,
        variant: Literal["default", "destructive"] = "default",
    ) -> None:
        notification = Notification(title=title, description=description, variant=variant)
        self.sent.append(notification)
        if variant == "destructive":
            logger.warning("%s: %s", title, description)
        else:
            logger.info("%s: %s", title, description)

    def success(self, description: str) -> None:
        self.notify("Success", description)

    def error(self, description: str) -> None:
        self.notify("Error", description, "destructive")
