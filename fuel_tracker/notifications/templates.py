"""
Notification Templates

Helper class to build notification candidates with the product's wording.

Usage:
    candidate = NotificationBuilder.big_spend(amount, category, 12, 7)
    candidate = NotificationBuilder.fuel_downgrade(FuelLevel.LOW, 4, 9)

The builder only shapes text and payload. Whether a candidate actually
reaches the inbox is decided by NotificationGate.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from fuel_tracker.models.ledger import ExpenseCategory
from fuel_tracker.models.metrics import FuelLevel
from fuel_tracker.models.notification import NotificationInput, NotificationType, Priority


def format_inr(amount: Decimal) -> str:
    """Rupee amount without paise when it is a whole number."""
    if amount == amount.to_integral_value():
        return f"₹{amount:,.0f}"
    return f"₹{amount:,.2f}"


# Downgrade target -> (type, priority, title, message template).
# None means a downgrade into that level is not announced.
FUEL_ALERTS: dict[FuelLevel, Optional[tuple[NotificationType, Priority, str, str]]] = {
    FuelLevel.EMPTY: (
        NotificationType.FUEL_EMPTY,
        Priority.URGENT,
        "🚨 Fuel Tank Empty!",
        "Your balance is critically low. Time to refuel!",
    ),
    FuelLevel.CRITICAL: (
        NotificationType.FUEL_CRITICAL,
        Priority.HIGH,
        "⚠️ Critical Fuel Level!",
        "Only {days} days of fuel left ({percentage}%). Plan your expenses carefully.",
    ),
    FuelLevel.LOW: (
        NotificationType.FUEL_LOW,
        Priority.HIGH,
        "⚠️ Low Fuel Warning!",
        "Only {days} days of fuel remaining ({percentage}%)",
    ),
    FuelLevel.MEDIUM: (
        NotificationType.FUEL_MEDIUM,
        Priority.NORMAL,
        "⛽ Fuel Half Empty",
        "Fuel is down to {percentage}%, about {days} days remaining.",
    ),
    FuelLevel.HIGH: None,
    FuelLevel.FULL: None,
}


class NotificationBuilder:
    """Static constructors for every notification the engine emits."""

    @staticmethod
    def fuel_downgrade(
        level: FuelLevel,
        days_remaining: int,
        percentage: int,
    ) -> Optional[NotificationInput]:
        template = FUEL_ALERTS[level]
        if template is None:
            return None
        notification_type, priority, title, message = template
        return NotificationInput(
            type=notification_type,
            title=title,
            message=message.format(days=days_remaining, percentage=percentage),
            priority=priority,
            action_data={
                "level": level.value,
                "days_remaining": days_remaining,
                "percentage": percentage,
            },
        )

    @staticmethod
    def big_spend(
        amount: Decimal,
        category: ExpenseCategory,
        previous_days: int,
        new_days: int,
    ) -> NotificationInput:
        return NotificationInput(
            type=NotificationType.BIG_SPEND,
            title="🚨 Big Spend Alert!",
            message=(
                f"{format_inr(amount)} spent on {category.value}. "
                f"Days reduced from {previous_days} → {new_days}"
            ),
            priority=Priority.HIGH,
            action_data={
                "amount": str(amount),
                "category": category.value,
                "previous_days": previous_days,
                "new_days": new_days,
                "days_lost": previous_days - new_days,
            },
        )

    @staticmethod
    def high_spending_day(
        today_total: Decimal,
        average: Decimal,
        day: date,
    ) -> NotificationInput:
        return NotificationInput(
            type=NotificationType.HIGH_SPENDING,
            title="💸 High Spending Day!",
            message=(
                f"You've spent {format_inr(today_total)} today, "
                f"more than twice your average daily spend of {format_inr(average.quantize(Decimal('1')))}."
            ),
            priority=Priority.NORMAL,
            action_data={"amount": str(today_total), "average": str(average)},
            dedup_key=f"high_spending:{day.isoformat()}",
        )

    @staticmethod
    def achievement(title: str, description: str, achievement_id: str) -> NotificationInput:
        return NotificationInput(
            type=NotificationType.ACHIEVEMENT,
            title="🏆 Achievement Unlocked!",
            message=f"{title} - {description}",
            priority=Priority.NORMAL,
            action_data={"achievement_id": achievement_id},
            dedup_key=f"achievement:{achievement_id}",
        )

    @staticmethod
    def salary_received(amount: Decimal) -> NotificationInput:
        return NotificationInput(
            type=NotificationType.SALARY_RECEIVED,
            title="💰 Salary Received!",
            message=f"Wallet recharged with {format_inr(amount)}!",
            priority=Priority.NORMAL,
            action_data={"amount": str(amount)},
        )

    @staticmethod
    def bill_due(
        bill_id: str,
        bill_name: str,
        amount: Decimal,
        due_date: datetime,
    ) -> NotificationInput:
        due_day = due_date.date()
        return NotificationInput(
            type=NotificationType.BILL_DUE,
            title="📅 Bill Due Reminder",
            message=f"{bill_name} ({format_inr(amount)}) is due on {due_day.strftime('%d %b %Y')}",
            priority=Priority.HIGH,
            action_data={"bill_id": bill_id, "due_date": due_day.isoformat()},
            dedup_key=f"bill_due:{bill_id}:{due_day.isoformat()}",
        )

    @staticmethod
    def daily_reminder() -> NotificationInput:
        return NotificationInput(
            type=NotificationType.DAILY_REMINDER,
            title="📝 Daily Expense Check",
            message="Don't forget to log your expenses today to keep track of your spending.",
            priority=Priority.LOW,
        )

    @staticmethod
    def suggestion(
        title: str,
        description: str,
        suggestion_id: str,
        priority: Priority = Priority.NORMAL,
    ) -> NotificationInput:
        return NotificationInput(
            type=NotificationType.SUGGESTION,
            title=title,
            message=description,
            priority=priority,
            action_data={"suggestion_id": suggestion_id},
            dedup_key=f"suggestion:{suggestion_id}",
        )
