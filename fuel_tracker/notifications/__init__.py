"""
Notifications Package

NotificationGate decides what reaches the inbox, NotificationBuilder
shapes the text, NotificationDispatcher hands it to the notifier.
"""

from fuel_tracker.notifications.dispatcher import NotificationDispatcher
from fuel_tracker.notifications.gate import (
    TOGGLES,
    NotificationGate,
    is_within_quiet_hours,
)
from fuel_tracker.notifications.templates import (
    FUEL_ALERTS,
    NotificationBuilder,
    format_inr,
)

__all__ = [
    "FUEL_ALERTS",
    "NotificationBuilder",
    "NotificationDispatcher",
    "NotificationGate",
    "TOGGLES",
    "format_inr",
    "is_within_quiet_hours",
]
