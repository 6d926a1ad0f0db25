"""Transient notifications shown to the operator.

Failures of background operations never reach the caller as exceptions; they
are logged and recorded here, and the front end polls GET /notifications.
"""

from collections import deque
from datetime import datetime

import pytz
from pydantic import BaseModel

from shared.helper.HelperConfig import HelperConfig

NOTIFICATION_LEVELS = ("info", "success", "warning", "error")


class Notification(BaseModel):
    level: str
    title: str
    message: str
    created: datetime


class NotificationLog:
    """Bounded, newest-last log of notifications (NOTIFICATION_LIMIT, default 50)."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        limit = int(helper_config.get_number_val("NOTIFICATION_LIMIT", default=50))
        self._tz = pytz.timezone(helper_config.get_string_val("TIMEZONE", default="Europe/Berlin"))
        self._entries: deque[Notification] = deque(maxlen=max(limit, 1))

    def notify(self, level: str, title: str, message: str) -> Notification | None:
        """Record a notification and log it at the matching level.

        An exact repeat of the newest entry is not recorded again.

        Returns:
            Notification | None: The recorded entry, or None for a duplicate.
        """
        if level not in NOTIFICATION_LEVELS:
            raise ValueError(f"Unsupported notification level '{level}'.")

        if level == "error":
            self.logging.error("%s: %s", title, message)
        elif level == "warning":
            self.logging.warning("%s: %s", title, message)
        else:
            self.logging.info("%s: %s", title, message)

        if self._entries:
            last = self._entries[-1]
            if (last.level, last.title, last.message) == (level, title, message):
                return None

        entry = Notification(level=level, title=title, message=message, created=datetime.now(self._tz))
        self._entries.append(entry)
        return entry

    def get_entries(self) -> list[Notification]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
