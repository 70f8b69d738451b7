"""
Notification Models

A notification is created once and is never edited afterwards, except
for being marked read or deleted.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Priority(str, Enum):
    """Priority shared by notifications and suggestions."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def weight(self) -> int:
        return PRIORITY_WEIGHTS[self]


PRIORITY_WEIGHTS: dict[Priority, int] = {
    Priority.LOW: 1,
    Priority.NORMAL: 2,
    Priority.HIGH: 3,
    Priority.URGENT: 4,
}


class NotificationType(str, Enum):
    """Kinds of notification the engine produces."""
    # Fuel level downgrades
    FUEL_EMPTY = "fuel_empty"
    FUEL_CRITICAL = "fuel_critical"
    FUEL_LOW = "fuel_low"
    FUEL_MEDIUM = "fuel_medium"

    # Spending
    BIG_SPEND = "big_spend"
    HIGH_SPENDING = "high_spending"

    # Everything else
    ACHIEVEMENT = "achievement"
    SALARY_RECEIVED = "salary_received"
    BILL_DUE = "bill_due"
    SUGGESTION = "suggestion"
    DAILY_REMINDER = "daily_reminder"


class NotificationInput(BaseModel):
    """A notification candidate, before the gate decides whether it fires."""

    type: NotificationType
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., max_length=1000)
    priority: Priority = Field(default=Priority.NORMAL)
    action_data: Optional[dict[str, Any]] = None
    dedup_key: Optional[str] = Field(
        default=None,
        description="Candidates sharing a key with an inbox entry are dropped"
    )


class Notification(BaseModel):
    """A notification that made it into the inbox."""

    id: str
    type: NotificationType
    title: str
    message: str
    priority: Priority = Field(default=Priority.NORMAL)
    is_read: bool = Field(default=False)
    created_at: datetime
    action_data: Optional[dict[str, Any]] = None
    dedup_key: Optional[str] = None


_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class QuietHours(BaseModel):
    """
    Local time window in which non-urgent notifications are suppressed.

    Times are "HH:MM" strings. A window whose start is after its end
    wraps past midnight.
    """

    enabled: bool = Field(default=False)
    start_time: str = Field(default="22:00")
    end_time: str = Field(default="08:00")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not _TIME_PATTERN.match(v):
            raise ValueError(f"Expected HH:MM (24h), got {v!r}")
        return v


class NotificationSettings(BaseModel):
    """Per-category toggles and quiet hours. Everything is on by default."""
    model_config = ConfigDict(validate_assignment=True)

    fuel_alerts: bool = Field(default=True)
    big_spend_alerts: bool = Field(default=True)
    achievement_alerts: bool = Field(default=True)
    bill_reminders: bool = Field(default=True)
    daily_reminders: bool = Field(default=True)
    quiet_hours: QuietHours = Field(default_factory=QuietHours)
    sound_enabled: bool = Field(default=True)
    vibration_enabled: bool = Field(default=True)
