"""
Notification Dispatcher

Hands recorded notifications to the external notifier.

Delivery is fire-and-forget from the engine's point of view: a failure
is retried with exponential backoff, then logged. It never raises and
never removes the notification from the inbox.
"""

from typing import Any, Optional

import structlog
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from fuel_tracker.models.notification import Notification
from fuel_tracker.services.notifier.interface import NotifierInterface, ScheduleTrigger


logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """Retrying wrapper around a NotifierInterface."""

    def __init__(
        self,
        notifier: NotifierInterface,
        attempts: int = 3,
        max_wait_seconds: float = 10.0,
    ):
        self._notifier = notifier
        self._attempts = attempts
        self._max_wait = max_wait_seconds

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=1, min=min(2.0, self._max_wait), max=self._max_wait),
            reraise=True,
        )

    async def deliver(self, notification: Notification) -> bool:
        """Send now. Returns False when every attempt failed."""
        data = {
            "notification_id": notification.id,
            "type": notification.type.value,
            "priority": notification.priority.value,
            **(notification.action_data or {}),
        }
        return await self.send(notification.title, notification.message, data)

    async def send(
        self,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> bool:
        try:
            async for attempt in self._retrying():
                with attempt:
                    await self._notifier.send_immediate(title, message, data)
        except Exception as e:
            logger.error("notification_delivery_failed", title=title, error=str(e))
            return False
        return True

    async def schedule(
        self,
        title: str,
        message: str,
        trigger: ScheduleTrigger,
        data: Optional[dict[str, Any]] = None,
    ) -> Optional[str]:
        """Schedule through the notifier. Returns None when every attempt failed."""
        try:
            async for attempt in self._retrying():
                with attempt:
                    return await self._notifier.schedule(title, message, trigger, data)
        except Exception as e:
            logger.error("notification_schedule_failed", title=title, error=str(e))
        return None

    async def cancel_all(self) -> bool:
        try:
            async for attempt in self._retrying():
                with attempt:
                    await self._notifier.cancel_all()
        except Exception as e:
            logger.error("notification_cancel_failed", error=str(e))
            return False
        return True
