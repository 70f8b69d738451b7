"""
Achievement Tracker

Keeps progress for every catalog achievement and reports unlocks.

Invariants:
- current never decreases and never exceeds target
- percentage = round(100 * current / target), at most 100
- unlocked_at is set exactly once, the first time percentage hits 100

The tracker does not notify anyone itself. Methods return the
achievements unlocked by the call and the coordinator turns them into
achievement notifications.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Iterable, Optional

import structlog

from fuel_tracker.achievements import catalog
from fuel_tracker.metrics.analytics import discretionary_expenses, savings_streak
from fuel_tracker.models.achievement import (
    Achievement,
    AchievementDefinition,
    AchievementProgress,
)
from fuel_tracker.models.ledger import ExpenseCategory, LedgerSnapshot
from fuel_tracker.models.metrics import DerivedMetrics


logger = structlog.get_logger(__name__)

FUEL_EFFICIENT_THRESHOLD = 50


def _percentage(current: Decimal, target: Decimal) -> int:
    raw = (current / target * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return min(100, int(raw))


class AchievementTracker:
    """Progress and unlock bookkeeping for the achievement catalog."""

    def __init__(
        self,
        definitions: Iterable[AchievementDefinition] = catalog.ACHIEVEMENT_CATALOG,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._clock = clock
        self._achievements: dict[str, Achievement] = {}
        self._last_fuel_day: Optional[date] = None

        for definition in definitions:
            if definition.target <= 0:
                logger.error(
                    "achievement_invalid_target",
                    achievement_id=definition.id,
                    target=str(definition.target),
                )
                continue
            self._achievements[definition.id] = Achievement(
                id=definition.id,
                type=definition.type,
                title=definition.title,
                description=definition.description,
                tier=definition.tier,
                progress=AchievementProgress(target=definition.target),
            )

    @property
    def achievements(self) -> list[Achievement]:
        return list(self._achievements.values())

    def get(self, achievement_id: str) -> Optional[Achievement]:
        return self._achievements.get(achievement_id)

    def unlocked(self) -> list[Achievement]:
        return [a for a in self._achievements.values() if a.is_unlocked]

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def update_progress(self, achievement_id: str, delta: Any = 1) -> Optional[Achievement]:
        """
        Add `delta` to the current progress.

        Returns the achievement if this call unlocked it. Unknown ids and
        negative deltas change nothing.
        """
        achievement = self._achievements.get(achievement_id)
        if achievement is None:
            return None

        delta = Decimal(str(delta))
        if delta < 0:
            logger.warning("achievement_negative_delta", achievement_id=achievement_id, delta=str(delta))
            return None

        return self._advance(achievement, achievement.progress.current + delta)

    def observe(self, achievement_id: str, value: Any) -> Optional[Achievement]:
        """Raise progress to an observed cumulative value. Lower values are ignored."""
        achievement = self._achievements.get(achievement_id)
        if achievement is None:
            return None

        value = Decimal(str(value))
        if value <= achievement.progress.current:
            return None
        return self._advance(achievement, value)

    def _advance(self, achievement: Achievement, current: Decimal) -> Optional[Achievement]:
        target = achievement.progress.target
        current = min(current, target)
        progress = AchievementProgress(
            current=current,
            target=target,
            percentage=_percentage(current, target),
        )

        newly_unlocked = progress.percentage >= 100 and not achievement.is_unlocked
        updated = achievement.model_copy(update={
            "progress": progress,
            "unlocked_at": self._clock() if newly_unlocked else achievement.unlocked_at,
        })
        self._achievements[achievement.id] = updated

        if newly_unlocked:
            logger.info("achievement_unlocked", achievement_id=achievement.id, title=achievement.title)
            return updated
        return None

    # -------------------------------------------------------------------------
    # Ledger checks
    # -------------------------------------------------------------------------

    def on_salary_set(self, metrics: DerivedMetrics) -> list[Achievement]:
        return self._collect([
            self.observe(catalog.EMERGENCY_FUND, metrics.balance),
        ])

    def on_expense_added(
        self,
        snapshot: LedgerSnapshot,
        metrics: DerivedMetrics,
    ) -> list[Achievement]:
        now = self._clock()
        invested = sum(
            (e.amount for e in snapshot.expenses if e.category == ExpenseCategory.INVESTMENT),
            Decimal("0"),
        )
        streak = savings_streak(discretionary_expenses(snapshot), now)

        results = [
            self.observe(catalog.EXPENSE_LOGGER, len(snapshot.expenses)),
            self.observe(catalog.INVESTMENT_STARTER, invested),
            self.observe(catalog.SAVINGS_STREAK_7, streak),
            self.observe(catalog.SAVINGS_STREAK_30, streak),
        ]

        # One count per calendar day spent above half a tank
        today = now.date()
        if metrics.fuel_status.percentage > FUEL_EFFICIENT_THRESHOLD and self._last_fuel_day != today:
            self._last_fuel_day = today
            results.append(self.update_progress(catalog.FUEL_EFFICIENT, 1))

        return self._collect(results)

    def on_bill_added(self, snapshot: LedgerSnapshot) -> list[Achievement]:
        active = sum(1 for b in snapshot.recurring_bills if b.is_active)
        return self._collect([self.observe(catalog.BILL_TRACKER, active)])

    @staticmethod
    def _collect(results: list[Optional[Achievement]]) -> list[Achievement]:
        return [a for a in results if a is not None]

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    @property
    def last_fuel_day(self) -> Optional[date]:
        """Last day counted toward the fuel efficient achievement."""
        return self._last_fuel_day

    def restore(self, achievements: list[Achievement], last_fuel_day: Optional[date] = None) -> None:
        """
        Overlay persisted progress on the catalog.

        Entries for ids no longer in the catalog are dropped; targets
        always come from the catalog.
        """
        for saved in achievements:
            current = self._achievements.get(saved.id)
            if current is None:
                logger.warning("achievement_unknown_on_restore", achievement_id=saved.id)
                continue
            target = current.progress.target
            value = min(saved.progress.current, target)
            self._achievements[saved.id] = current.model_copy(update={
                "progress": AchievementProgress(
                    current=value,
                    target=target,
                    percentage=_percentage(value, target),
                ),
                "unlocked_at": saved.unlocked_at,
            })
        self._last_fuel_day = last_fuel_day
