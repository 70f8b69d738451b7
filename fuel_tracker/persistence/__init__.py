"""Persistence of engine state to a key/value store."""

from fuel_tracker.persistence.snapshots import (
    ACHIEVEMENTS_KEY,
    LEDGER_KEY,
    NOTIFICATIONS_KEY,
    SCHEMA_VERSION,
    SUGGESTIONS_KEY,
    AchievementState,
    NotificationState,
    SnapshotRepository,
    SuggestionState,
)

__all__ = [
    # Keys
    "ACHIEVEMENTS_KEY",
    "LEDGER_KEY",
    "NOTIFICATIONS_KEY",
    "SCHEMA_VERSION",
    "SUGGESTIONS_KEY",
    # Sections
    "AchievementState",
    "NotificationState",
    "SuggestionState",
    # Repository
    "SnapshotRepository",
]
