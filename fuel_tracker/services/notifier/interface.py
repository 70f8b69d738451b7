"""
Abstract Notifier Interface

The transport that actually shows notifications to the user (push
service, OS notification center, chat bot). The engine only needs to
send now, schedule for later and cancel everything scheduled.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


class ScheduleTrigger(BaseModel):
    """
    When a scheduled notification fires.

    Either a one-off moment (`at`) or a daily time (`hour`/`minute`,
    usually with `repeats=True`).
    """

    at: Optional[datetime] = None
    hour: Optional[int] = Field(default=None, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)
    repeats: bool = Field(default=False)

    @model_validator(mode="after")
    def check_one_of(self) -> "ScheduleTrigger":
        if (self.at is None) == (self.hour is None):
            raise ValueError("Give exactly one of 'at' or 'hour'")
        return self


class NotifierInterface(ABC):
    """
    Abstract interface for notification delivery.

    Implementations may raise any exception; callers retry and log.
    """

    @abstractmethod
    async def send_immediate(
        self,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        """Deliver a notification right away."""
        pass

    @abstractmethod
    async def schedule(
        self,
        title: str,
        message: str,
        trigger: ScheduleTrigger,
        data: Optional[dict[str, Any]] = None,
    ) -> str:
        """
        Schedule a notification.

        Returns:
            An identifier for the scheduled notification
        """
        pass

    @abstractmethod
    async def cancel_all(self) -> None:
        """Cancel every scheduled notification."""
        pass


class NotifierError(Exception):
    """Delivery failed at the transport."""
    pass
