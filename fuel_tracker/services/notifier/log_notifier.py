"""
Log Notifier

Notifier that writes every notification to the structured log. Used when
no real transport is configured, and as the default in development.
"""

from typing import Any, Optional
from uuid import uuid4

import structlog

from fuel_tracker.services.notifier.interface import NotifierInterface, ScheduleTrigger


class LogNotifier(NotifierInterface):
    """Logs instead of delivering. Keeps scheduled entries in memory."""

    def __init__(self):
        self._logger = structlog.get_logger(__name__)
        self.sent: list[dict[str, Any]] = []
        self.scheduled: dict[str, dict[str, Any]] = {}

    async def send_immediate(
        self,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        entry = {"title": title, "message": message, "data": data or {}}
        self.sent.append(entry)
        self._logger.info("notification_sent", **entry)

    async def schedule(
        self,
        title: str,
        message: str,
        trigger: ScheduleTrigger,
        data: Optional[dict[str, Any]] = None,
    ) -> str:
        schedule_id = str(uuid4())
        self.scheduled[schedule_id] = {
            "title": title,
            "message": message,
            "trigger": trigger.model_dump(mode="json"),
            "data": data or {},
        }
        self._logger.info(
            "notification_scheduled",
            schedule_id=schedule_id,
            title=title,
            trigger=self.scheduled[schedule_id]["trigger"],
        )
        return schedule_id

    async def cancel_all(self) -> None:
        self._logger.info("notifications_cancelled", count=len(self.scheduled))
        self.scheduled.clear()
