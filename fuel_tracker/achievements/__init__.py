"""Achievements package - catalog and progress tracking."""

from fuel_tracker.achievements.catalog import ACHIEVEMENT_CATALOG
from fuel_tracker.achievements.tracker import AchievementTracker

__all__ = [
    "ACHIEVEMENT_CATALOG",
    "AchievementTracker",
]
