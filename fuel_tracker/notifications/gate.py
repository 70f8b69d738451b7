"""
Notification Gate

Decides which notification candidates reach the user's inbox.

The gate watches consecutive fuel readings as a small state machine over
the ordered levels

    empty < critical < low < medium < high < full

and only announces DOWNGRADES. Upgrades and repeated readings at the
same level are silent, so recomputing metrics never spams the user.

Every candidate, whatever produced it, then passes the same checks:
1. Per-category toggle in NotificationSettings
2. Quiet hours (urgent notifications bypass them)
3. Dedup key already present in the inbox

DESIGN DECISION: The remembered fuel level advances on every reading,
even when the resulting notification is suppressed. Otherwise a
notification blocked by quiet hours would fire late, the next time any
metric is recomputed, describing a state that may no longer hold.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional

import structlog
from pydantic import BaseModel

from fuel_tracker.ledger.store import generate_id
from fuel_tracker.metrics.analytics import discretionary_expenses
from fuel_tracker.models.events import MutationResult
from fuel_tracker.models.ledger import Expense, LedgerSnapshot
from fuel_tracker.models.metrics import DerivedMetrics, FuelLevel
from fuel_tracker.models.notification import (
    Notification,
    NotificationInput,
    NotificationSettings,
    NotificationType,
    Priority,
    QuietHours,
)
from fuel_tracker.notifications.templates import NotificationBuilder


logger = structlog.get_logger(__name__)


# Notification type -> settings toggle. None means always on.
TOGGLES: dict[NotificationType, Optional[str]] = {
    NotificationType.FUEL_EMPTY: "fuel_alerts",
    NotificationType.FUEL_CRITICAL: "fuel_alerts",
    NotificationType.FUEL_LOW: "fuel_alerts",
    NotificationType.FUEL_MEDIUM: "fuel_alerts",
    NotificationType.BIG_SPEND: "big_spend_alerts",
    NotificationType.HIGH_SPENDING: "big_spend_alerts",
    NotificationType.ACHIEVEMENT: "achievement_alerts",
    NotificationType.BILL_DUE: "bill_reminders",
    NotificationType.DAILY_REMINDER: "daily_reminders",
    NotificationType.SALARY_RECEIVED: None,
    NotificationType.SUGGESTION: None,
}


def is_within_quiet_hours(quiet_hours: QuietHours, now: datetime) -> bool:
    """
    Inclusive check of local "HH:MM" against the window.

    A window with start after end wraps past midnight; start == end
    covers the whole day.
    """
    if not quiet_hours.enabled:
        return False

    current = now.strftime("%H:%M")
    start, end = quiet_hours.start_time, quiet_hours.end_time
    if start < end:
        return start <= current <= end
    return current >= start or current <= end


class NotificationGate:
    """
    In-memory notification inbox plus the rules deciding what enters it.

    Newest notifications come first.
    """

    def __init__(
        self,
        settings: Optional[NotificationSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
        big_spend_ratio: Decimal = Decimal("0.10"),
        high_spending_multiplier: Decimal = Decimal("2"),
    ):
        self._settings = settings or NotificationSettings()
        self._clock = clock
        self._big_spend_ratio = big_spend_ratio
        self._high_spending_multiplier = high_spending_multiplier

        self._notifications: list[Notification] = []
        self._unread_count = 0
        # No salary reads as empty, so the first salary is a silent upgrade
        self._previous_level = FuelLevel.EMPTY

    @property
    def notifications(self) -> list[Notification]:
        return list(self._notifications)

    @property
    def unread_count(self) -> int:
        return self._unread_count

    @property
    def settings(self) -> NotificationSettings:
        return self._settings

    @property
    def previous_level(self) -> FuelLevel:
        return self._previous_level

    def prime(self, level: FuelLevel) -> None:
        """Set the remembered level without announcing anything (used on load)."""
        self._previous_level = level

    def restore(
        self,
        notifications: list[Notification],
        settings: Optional[NotificationSettings] = None,
    ) -> None:
        self._notifications = list(notifications)
        self._unread_count = sum(1 for n in self._notifications if not n.is_read)
        if settings is not None:
            self._settings = settings

    # -------------------------------------------------------------------------
    # Producers
    # -------------------------------------------------------------------------

    def observe_fuel(self, metrics: DerivedMetrics) -> Optional[Notification]:
        """Feed the latest reading. Returns the notification if one fired."""
        previous = self._previous_level
        current = metrics.fuel_status.level
        self._previous_level = current

        if not current.is_below(previous):
            return None

        logger.info(
            "fuel_level_downgrade",
            previous=previous.value,
            current=current.value,
            percentage=metrics.fuel_status.percentage,
        )
        candidate = NotificationBuilder.fuel_downgrade(
            current,
            metrics.days_remaining,
            metrics.fuel_status.percentage,
        )
        if candidate is None:
            return None
        return self.submit(candidate)

    def check_big_spend(
        self,
        expense: Expense,
        result: MutationResult,
    ) -> Optional[Notification]:
        """
        A single expense larger than a tenth of the balance it was paid from.

        Measured against the balance BEFORE the expense, so the same
        purchase is judged the same way regardless of its own size.
        """
        threshold = result.before.balance * self._big_spend_ratio
        if expense.amount <= threshold:
            return None

        return self.submit(NotificationBuilder.big_spend(
            expense.amount,
            expense.category,
            result.before.days_remaining,
            result.after.days_remaining,
        ))

    def check_high_spending_day(
        self,
        snapshot: LedgerSnapshot,
        average_daily_spend: Decimal,
    ) -> Optional[Notification]:
        """Today's spend above twice the daily average; at most once per day."""
        if average_daily_spend <= 0:
            return None

        today = self._clock().date()
        today_total = sum(
            (e.amount for e in discretionary_expenses(snapshot) if e.date.date() == today),
            Decimal("0"),
        )
        if today_total <= average_daily_spend * self._high_spending_multiplier:
            return None

        return self.submit(
            NotificationBuilder.high_spending_day(today_total, average_daily_spend, today)
        )

    # -------------------------------------------------------------------------
    # Gatekeeping
    # -------------------------------------------------------------------------

    def should_deliver(self, candidate: NotificationInput, now: Optional[datetime] = None) -> bool:
        now = now or self._clock()

        toggle = TOGGLES[candidate.type]
        if toggle is not None and not getattr(self._settings, toggle):
            logger.debug("notification_suppressed", reason="toggle_off", type=candidate.type.value)
            return False

        if candidate.priority != Priority.URGENT and is_within_quiet_hours(
            self._settings.quiet_hours, now
        ):
            logger.debug("notification_suppressed", reason="quiet_hours", type=candidate.type.value)
            return False

        if candidate.dedup_key and any(
            n.dedup_key == candidate.dedup_key for n in self._notifications
        ):
            logger.debug("notification_suppressed", reason="duplicate", dedup_key=candidate.dedup_key)
            return False

        return True

    def submit(self, candidate: NotificationInput) -> Optional[Notification]:
        """Record the candidate if it passes the gate. Returns what was recorded."""
        now = self._clock()
        if not self.should_deliver(candidate, now):
            return None

        notification = Notification(
            id=generate_id(),
            type=candidate.type,
            title=candidate.title,
            message=candidate.message,
            priority=candidate.priority,
            created_at=now,
            action_data=candidate.action_data,
            dedup_key=candidate.dedup_key,
        )
        self._notifications.insert(0, notification)
        self._unread_count += 1
        logger.info(
            "notification_recorded",
            notification_id=notification.id,
            type=notification.type.value,
            priority=notification.priority.value,
        )
        return notification

    # -------------------------------------------------------------------------
    # Inbox
    # -------------------------------------------------------------------------

    def get(self, notification_id: str) -> Optional[Notification]:
        return next((n for n in self._notifications if n.id == notification_id), None)

    def by_type(self, notification_type: NotificationType) -> list[Notification]:
        return [n for n in self._notifications if n.type == notification_type]

    def unread(self) -> list[Notification]:
        return [n for n in self._notifications if not n.is_read]

    def mark_as_read(self, notification_id: str) -> bool:
        """No-op (returns False) when unknown or already read."""
        for index, notification in enumerate(self._notifications):
            if notification.id == notification_id:
                if notification.is_read:
                    return False
                self._notifications[index] = notification.model_copy(update={"is_read": True})
                self._unread_count = max(0, self._unread_count - 1)
                return True
        return False

    def mark_all_as_read(self) -> None:
        self._notifications = [
            n if n.is_read else n.model_copy(update={"is_read": True})
            for n in self._notifications
        ]
        self._unread_count = 0

    def delete(self, notification_id: str) -> bool:
        notification = self.get(notification_id)
        if notification is None:
            return False
        self._notifications = [n for n in self._notifications if n.id != notification_id]
        if not notification.is_read:
            self._unread_count = max(0, self._unread_count - 1)
        return True

    def clear_all(self) -> None:
        self._notifications = []
        self._unread_count = 0

    def update_settings(self, changes: dict[str, Any]) -> NotificationSettings:
        """
        Merge `changes` into the current settings.

        quiet_hours may be given as a partial dict. Unknown keys raise
        ValueError; invalid values raise pydantic's ValidationError.
        """
        unknown = set(changes) - set(NotificationSettings.model_fields)
        if unknown:
            raise ValueError(f"Unknown notification settings: {', '.join(sorted(unknown))}")

        merged = self._settings.model_dump()
        for key, value in changes.items():
            if isinstance(value, BaseModel):
                value = value.model_dump()
            if key == "quiet_hours" and isinstance(value, dict):
                merged["quiet_hours"] = {**merged["quiet_hours"], **value}
            else:
                merged[key] = value

        self._settings = NotificationSettings.model_validate(merged)
        logger.info("notification_settings_updated", fields=sorted(changes))
        return self._settings
