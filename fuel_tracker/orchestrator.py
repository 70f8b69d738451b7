"""
Main Orchestrator for Fuel Tracker

This module ties together all the components. FuelTankEngine is the
single writer of the ledger and the one place where a mutation fans
out to the rest of the system:

    Ledger → MetricsCalculator → NotificationGate
           → AchievementTracker / SuggestionEngine (on salary, expense, bill add)
           → background: notifier delivery, persistence

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every mutation goes through the ledger; nothing else writes it
- A mutation completes (ledger, metrics, gate, achievements, inbox)
  without yielding to the event loop, so mutations never interleave
- Notifier delivery and persistence run as background tasks and can
  never fail or roll back a mutation
- Every step is audited

CRITICAL: The external suggestion generator is optional and untrusted.
It is bounded by a timeout, a failure degrades to the rule set, and a
result computed against an older ledger revision is discarded.
"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Coroutine, Iterable, Optional
from uuid import UUID

import structlog

from fuel_tracker.achievements import ACHIEVEMENT_CATALOG, AchievementTracker
from fuel_tracker.audit import AuditLogger, create_correlation_id
from fuel_tracker.config import EngineSettings, get_settings
from fuel_tracker.ledger import Ledger
from fuel_tracker.metrics import (
    MetricsCalculator,
    calculate_balance,
    financial_context,
    spending_analytics,
)
from fuel_tracker.models import (
    Achievement,
    AchievementDefinition,
    DerivedMetrics,
    ExpenseInput,
    ExpensePatch,
    ExpenseSource,
    FinancialContext,
    FuelStatus,
    LedgerSnapshot,
    MutationResult,
    Notification,
    NotificationInput,
    NotificationSettings,
    ParsedExpense,
    Priority,
    RecurringBillInput,
    RecurringBillPatch,
    SalaryFrequency,
    SpendingAnalytics,
    Suggestion,
    SuggestionInput,
    ValidationResult,
)
from fuel_tracker.notifications import (
    NotificationBuilder,
    NotificationDispatcher,
    NotificationGate,
)
from fuel_tracker.persistence import SnapshotRepository
from fuel_tracker.services.notifier import LogNotifier, NotifierInterface, ScheduleTrigger
from fuel_tracker.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStorage,
    KeyValueStorage,
)
from fuel_tracker.suggestions import (
    ExternalSuggestionGenerator,
    GeminiSuggestionGenerator,
    SuggestionBook,
    SuggestionEngine,
    plan_action,
)
from fuel_tracker.validation import ParsedExpenseValidator


logger = structlog.get_logger(__name__)


class FuelTankEngine:
    """
    Financial state and decision engine.

    Flow for every ledger mutation:
    1. Ledger applies the change and returns a MutationResult
    2. Domain events are audited
    3. The gate sees the new fuel status (downgrade alerts)
    4. Expense-specific alerts (big spend, high spending day)
    5. Achievement checks (salary, expense, bill add)
    6. Rule-based suggestions refresh (salary, expense add)
    7. Background: deliver new notifications, persist changed sections
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        storage: Optional[KeyValueStorage] = None,
        notifier: Optional[NotifierInterface] = None,
        generator: Optional[ExternalSuggestionGenerator] = None,
        clock: Callable[[], datetime] = datetime.now,
        audit_logger: Optional[AuditLogger] = None,
        achievements: Iterable[AchievementDefinition] = ACHIEVEMENT_CATALOG,
    ):
        self._settings = settings or get_settings().engine
        self._clock = clock
        self._audit = audit_logger or AuditLogger()
        self._generator = generator

        s = self._settings
        self._calculator = MetricsCalculator(
            window_days=s.spending_window_days,
            days_sentinel=s.days_remaining_sentinel,
        )
        self._ledger = Ledger(calculator=self._calculator, clock=clock)
        self._gate = NotificationGate(
            clock=clock,
            big_spend_ratio=Decimal(str(s.big_spend_ratio)),
            high_spending_multiplier=Decimal(str(s.high_spending_multiplier)),
        )
        self._dispatcher = NotificationDispatcher(
            notifier or LogNotifier(),
            attempts=s.notifier_retry_attempts,
            max_wait_seconds=s.notifier_retry_max_wait_seconds,
        )
        self._suggestion_engine = SuggestionEngine(max_suggestions=s.max_suggestions, clock=clock)
        self._book = SuggestionBook(history_limit=s.suggestion_history_limit, clock=clock)
        self._achievements = AchievementTracker(achievements, clock=clock)
        self._validator = ParsedExpenseValidator.from_settings(s, clock=clock)
        self._repository = (
            SnapshotRepository(
                storage,
                notification_limit=s.notification_history_limit,
                suggestion_history_limit=s.suggestion_history_limit,
            )
            if storage is not None
            else None
        )

        self._tasks: set[asyncio.Task] = set()

    # =========================================================================
    # STATE ACCESS
    # =========================================================================

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._ledger.snapshot

    @property
    def revision(self) -> int:
        return self._ledger.revision

    @property
    def notifications(self) -> list[Notification]:
        return self._gate.notifications

    @property
    def unread_count(self) -> int:
        return self._gate.unread_count

    @property
    def notification_settings(self) -> NotificationSettings:
        return self._gate.settings

    @property
    def suggestions(self) -> list[Suggestion]:
        """Active suggestions (not applied, not dismissed, not expired)."""
        return self._book.active()

    @property
    def suggestion_history(self) -> list[Suggestion]:
        return self._book.history

    @property
    def last_generated(self) -> Optional[datetime]:
        return self._book.last_generated

    @property
    def achievements(self) -> list[Achievement]:
        return self._achievements.achievements

    @property
    def suggestion_book(self) -> SuggestionBook:
        return self._book

    @property
    def notification_gate(self) -> NotificationGate:
        return self._gate

    # =========================================================================
    # DERIVED METRICS
    # =========================================================================

    def metrics(self) -> DerivedMetrics:
        return self._ledger.metrics()

    def calculate_balance(self) -> Decimal:
        return calculate_balance(self._ledger.snapshot)

    def calculate_average_daily_spend(self) -> Decimal:
        return self._calculator.average_daily_spend(self._ledger.snapshot, self._clock())

    def calculate_days_remaining(self) -> int:
        return self.metrics().days_remaining

    def calculate_fuel_status(self) -> FuelStatus:
        return self.metrics().fuel_status

    def get_financial_context(self) -> FinancialContext:
        return financial_context(
            self._ledger.snapshot,
            self._clock(),
            window_days=self._settings.spending_window_days,
            sentinel=self._settings.days_remaining_sentinel,
        )

    def get_spending_analytics(self) -> SpendingAnalytics:
        return spending_analytics(
            self._ledger.snapshot,
            self._clock(),
            window_days=self._settings.spending_window_days,
        )

    # =========================================================================
    # LEDGER MUTATIONS
    # =========================================================================

    async def set_salary(
        self,
        amount: Any,
        frequency: SalaryFrequency = SalaryFrequency.MONTHLY,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """
        Fill the tank.

        Raises:
            LedgerValidationError: If the amount is not positive
        """
        correlation_id = correlation_id or create_correlation_id()
        result = self._ledger.set_salary(amount, frequency, correlation_id)
        fresh = self._after_mutation(result, correlation_id)

        fresh.append(self._gate.submit(NotificationBuilder.salary_received(
            self._ledger.snapshot.salary.amount
        )))
        fresh.extend(self._unlock(self._achievements.on_salary_set(result.after), correlation_id))
        fresh.extend(self._refresh_suggestions())

        self._finish(fresh, correlation_id, achievements=True, suggestions=True)
        return result

    async def add_expense(
        self,
        data: ExpenseInput,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """
        Record an expense.

        Raises:
            LedgerValidationError: If the amount is not positive
        """
        correlation_id = correlation_id or create_correlation_id()
        result = self._ledger.add_expense(data, correlation_id)
        fresh = self._after_mutation(result, correlation_id)

        snapshot = self._ledger.snapshot
        expense = snapshot.find_expense(result.entity_id)
        fresh.append(self._gate.check_big_spend(expense, result))
        fresh.append(self._gate.check_high_spending_day(snapshot, result.after.average_daily_spend))
        fresh.extend(self._unlock(
            self._achievements.on_expense_added(snapshot, result.after),
            correlation_id,
        ))
        fresh.extend(self._refresh_suggestions())

        self._finish(fresh, correlation_id, achievements=True, suggestions=True)
        return result

    async def update_expense(
        self,
        expense_id: str,
        patch: ExpensePatch,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """Unknown ids are a silent no-op."""
        correlation_id = correlation_id or create_correlation_id()
        result = self._ledger.update_expense(expense_id, patch, correlation_id)
        self._finish(
            self._after_mutation(result, correlation_id),
            correlation_id,
            ledger=result.changed,
        )
        return result

    async def delete_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        correlation_id = correlation_id or create_correlation_id()
        result = self._ledger.delete_expense(expense_id, correlation_id)
        self._finish(
            self._after_mutation(result, correlation_id),
            correlation_id,
            ledger=result.changed,
        )
        return result

    async def ingest_parsed_expense(
        self,
        parsed: ParsedExpense,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ValidationResult, Optional[MutationResult]]:
        """
        Record an expense proposed by the message parser.

        Returns:
            (validation, result). result is None when the candidate was
            rejected; nothing is written in that case.
        """
        correlation_id = correlation_id or create_correlation_id()
        validation = self._validator.validate(parsed)
        if not validation.is_valid:
            self._audit.log_validation_failed("parsed_expense", validation.errors, correlation_id)
            return validation, None

        data = ExpenseInput(
            amount=parsed.amount,
            category=parsed.category,
            description=parsed.description,
            date=parsed.transaction_date,
            source=ExpenseSource.PARSED,
            tags=[parsed.merchant] if parsed.merchant else [],
        )
        return validation, await self.add_expense(data, correlation_id)

    async def add_recurring_bill(
        self,
        data: RecurringBillInput,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """
        Register a recurring bill.

        Raises:
            LedgerValidationError: If the name is empty or the amount is not positive
        """
        correlation_id = correlation_id or create_correlation_id()
        result = self._ledger.add_recurring_bill(data, correlation_id)
        fresh = self._after_mutation(result, correlation_id)
        fresh.extend(self._unlock(
            self._achievements.on_bill_added(self._ledger.snapshot),
            correlation_id,
        ))
        self._finish(fresh, correlation_id, achievements=True)
        return result

    async def update_recurring_bill(
        self,
        bill_id: str,
        patch: RecurringBillPatch,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        correlation_id = correlation_id or create_correlation_id()
        result = self._ledger.update_recurring_bill(bill_id, patch, correlation_id)
        self._finish(
            self._after_mutation(result, correlation_id),
            correlation_id,
            ledger=result.changed,
        )
        return result

    async def delete_recurring_bill(
        self,
        bill_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        correlation_id = correlation_id or create_correlation_id()
        result = self._ledger.delete_recurring_bill(bill_id, correlation_id)
        self._finish(
            self._after_mutation(result, correlation_id),
            correlation_id,
            ledger=result.changed,
        )
        return result

    # =========================================================================
    # NOTIFICATIONS
    # =========================================================================

    async def add_notification(self, candidate: NotificationInput) -> Optional[Notification]:
        """Submit a notification through the gate. Returns None when suppressed."""
        correlation_id = create_correlation_id()
        notification = self._gate.submit(candidate)
        self._finish([notification], correlation_id, ledger=False)
        return notification

    async def mark_as_read(self, notification_id: str) -> bool:
        changed = self._gate.mark_as_read(notification_id)
        if changed:
            self._persist_notifications()
        return changed

    async def mark_all_as_read(self) -> None:
        self._gate.mark_all_as_read()
        self._persist_notifications()

    async def delete_notification(self, notification_id: str) -> bool:
        deleted = self._gate.delete(notification_id)
        if deleted:
            self._persist_notifications()
        return deleted

    async def clear_all_notifications(self) -> None:
        """Empty the inbox and cancel everything scheduled with the notifier."""
        self._gate.clear_all()
        self._spawn(self._dispatcher.cancel_all())
        self._persist_notifications()

    async def update_settings(self, changes: dict[str, Any]) -> NotificationSettings:
        """
        Merge notification settings.

        Raises:
            ValueError: For unknown setting names
            pydantic.ValidationError: For invalid values
        """
        settings = self._gate.update_settings(changes)
        self._persist_notifications()
        return settings

    async def check_bill_reminders(self) -> list[Notification]:
        """Remind about active bills due today or tomorrow. Each bill/due date fires once."""
        correlation_id = create_correlation_id()
        today = self._clock().date()
        window = (today, today + timedelta(days=1))

        fresh = [
            self._gate.submit(NotificationBuilder.bill_due(
                bill.id, bill.name, bill.amount, bill.next_due_date,
            ))
            for bill in self._ledger.snapshot.recurring_bills
            if bill.is_active and bill.next_due_date.date() in window
        ]
        return self._finish(fresh, correlation_id, ledger=False)

    async def schedule_daily_reminder(self) -> Optional[str]:
        """
        Schedule the repeating daily reminder with the notifier.

        Returns the notifier's schedule id, or None when daily reminders
        are disabled or scheduling failed.
        """
        if not self._gate.settings.daily_reminders:
            logger.info("daily_reminder_disabled")
            return None

        reminder = NotificationBuilder.daily_reminder()
        trigger = ScheduleTrigger(hour=self._settings.daily_reminder_hour, minute=0, repeats=True)
        return await self._dispatcher.schedule(
            reminder.title,
            reminder.message,
            trigger,
            {"type": reminder.type.value},
        )

    # =========================================================================
    # SUGGESTIONS
    # =========================================================================

    async def add_suggestion(self, candidate: SuggestionInput) -> Suggestion:
        suggestion = self._book.add(candidate)
        self._persist_suggestions()
        return suggestion

    async def apply_suggestion(
        self,
        suggestion_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Suggestion]:
        """
        Apply a suggestion and send the matching confirmation.

        Returns None when the suggestion is unknown, already applied or
        dismissed, or needs an amount it does not have.
        """
        correlation_id = correlation_id or create_correlation_id()
        suggestion = self._book.get(suggestion_id)
        if suggestion is None:
            return None

        plan = plan_action(suggestion, self._clock())
        if plan is None:
            logger.warning(
                "suggestion_action_refused",
                suggestion_id=suggestion_id,
                action=suggestion.action.value,
                reason="missing_amount",
            )
            return None

        applied = self._book.apply(suggestion_id)
        if applied is None:
            return None

        self._audit.log_suggestion_applied(applied.id, applied.action.value, correlation_id)
        if plan.trigger is not None:
            self._spawn(self._dispatcher.schedule(plan.title, plan.message, plan.trigger, plan.data))
        else:
            self._spawn(self._dispatcher.send(plan.title, plan.message, plan.data))
        self._persist_suggestions()
        return applied

    async def dismiss_suggestion(self, suggestion_id: str) -> Optional[Suggestion]:
        dismissed = self._book.dismiss(suggestion_id)
        if dismissed is not None:
            self._persist_suggestions()
        return dismissed

    async def delete_suggestion(self, suggestion_id: str) -> bool:
        return self._book.delete(suggestion_id)

    async def generate_suggestions(self) -> list[Suggestion]:
        """
        Regenerate the active suggestions, consulting the external
        generator when one is configured.

        Returns the active suggestions after regeneration. If the ledger
        changed while the generator was running, the result is discarded
        and the current active set is returned unchanged.
        """
        correlation_id = create_correlation_id()
        revision = self._ledger.revision
        context = self.get_financial_context()
        analytics = self.get_spending_analytics()

        external: list[SuggestionInput] = []
        degraded = False
        if self._generator is not None and context.salary > 0:
            try:
                external = await asyncio.wait_for(
                    self._generator.generate(context, analytics),
                    timeout=self._settings.suggestion_timeout_seconds,
                )
            except asyncio.TimeoutError:
                degraded = True
                self._audit.log_external_service_error(
                    service="suggestion_generator",
                    error_message="timed out",
                    correlation_id=correlation_id,
                )
            except Exception as e:
                degraded = True
                self._audit.log_external_service_error(
                    service="suggestion_generator",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )

        if self._ledger.revision != revision:
            logger.info(
                "suggestions_stale",
                started_at_revision=revision,
                current_revision=self._ledger.revision,
            )
            return self._book.active()

        ranked = self._suggestion_engine.generate(context, analytics, external)
        fresh = self._replace_suggestions(ranked)
        self._audit.log_suggestions_generated(len(ranked), degraded, correlation_id)
        self._finish(fresh, correlation_id, ledger=False, suggestions=True)
        return self._book.active()

    # =========================================================================
    # ACHIEVEMENTS
    # =========================================================================

    async def update_achievement_progress(
        self,
        achievement_id: str,
        delta: Any = 1,
    ) -> Optional[Achievement]:
        """Returns the achievement when this call unlocked it."""
        correlation_id = create_correlation_id()
        unlocked = self._achievements.update_progress(achievement_id, delta)
        fresh = self._unlock([unlocked] if unlocked else [], correlation_id)
        self._finish(fresh, correlation_id, ledger=False, achievements=True)
        return unlocked

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def load(self) -> None:
        """
        Restore persisted state. Sections that are missing or corrupt
        keep their defaults.
        """
        if self._repository is None:
            return

        ledger = await self._repository.load_ledger()
        notifications = await self._repository.load_notifications()
        suggestions = await self._repository.load_suggestions()
        achievements = await self._repository.load_achievements()

        if ledger is not None:
            self._ledger.restore(ledger)
        if notifications is not None:
            self._gate.restore(notifications.notifications, notifications.settings)
        if suggestions is not None:
            self._book.restore(suggestions.history, suggestions.last_generated)
        if achievements is not None:
            self._achievements.restore(achievements.achievements, achievements.last_fuel_day)

        # A reload is not a downgrade
        self._gate.prime(self.metrics().fuel_status.level)
        logger.info(
            "engine_loaded",
            revision=self._ledger.revision,
            expenses=len(self._ledger.snapshot.expenses),
            notifications=len(self._gate.notifications),
        )

    async def flush(self) -> None:
        """Wait for every pending delivery and persistence task."""
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    self._audit.log_error(
                        "background_task_failed",
                        str(result),
                        details={"exception": type(result).__name__},
                    )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _after_mutation(
        self,
        result: MutationResult,
        correlation_id: UUID,
    ) -> list[Optional[Notification]]:
        for event in result.events:
            self._audit.log_event(event)
        if not result.changed:
            return []
        return [self._gate.observe_fuel(result.after)]

    def _unlock(
        self,
        unlocked: list[Achievement],
        correlation_id: UUID,
    ) -> list[Optional[Notification]]:
        fresh = []
        for achievement in unlocked:
            self._audit.log_achievement_unlocked(achievement.id, achievement.title, correlation_id)
            fresh.append(self._gate.submit(NotificationBuilder.achievement(
                achievement.title, achievement.description, achievement.id,
            )))
        return fresh

    def _refresh_suggestions(self) -> list[Optional[Notification]]:
        """Rule-set-only regeneration, run inline after salary and expense changes."""
        context = self.get_financial_context()
        analytics = self.get_spending_analytics()
        return self._replace_suggestions(
            self._suggestion_engine.generate(context, analytics)
        )

    def _replace_suggestions(self, ranked: list[SuggestionInput]) -> list[Optional[Notification]]:
        """Swap in the ranked set; new urgent suggestions are announced."""
        known = {s.id for s in self._book.active()}
        fresh = []
        for suggestion in self._book.replace_active(ranked):
            if suggestion.id not in known and suggestion.priority == Priority.URGENT:
                fresh.append(self._gate.submit(NotificationBuilder.suggestion(
                    suggestion.title, suggestion.description, suggestion.id, suggestion.priority,
                )))
        return fresh

    def _finish(
        self,
        fresh: list[Optional[Notification]],
        correlation_id: UUID,
        ledger: bool = True,
        achievements: bool = False,
        suggestions: bool = False,
    ) -> list[Notification]:
        """Audit and deliver what entered the inbox, then persist."""
        recorded = [n for n in fresh if n is not None]
        for notification in recorded:
            self._audit.log_notification(notification, correlation_id)
            self._spawn(self._dispatcher.deliver(notification))

        if ledger:
            self._persist_ledger()
        if recorded:
            self._persist_notifications()
        if achievements:
            self._persist_achievements()
        if suggestions:
            self._persist_suggestions()
        return recorded

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _persist_ledger(self) -> None:
        if self._repository is not None:
            self._spawn(self._repository.save_ledger(self._ledger.snapshot))

    def _persist_notifications(self) -> None:
        if self._repository is not None:
            self._spawn(self._repository.save_notifications(
                self._gate.notifications,
                self._gate.settings,
            ))

    def _persist_suggestions(self) -> None:
        if self._repository is not None:
            self._spawn(self._repository.save_suggestions(
                self._book.history,
                self._book.last_generated,
            ))

    def _persist_achievements(self) -> None:
        if self._repository is not None:
            self._spawn(self._repository.save_achievements(
                self._achievements.achievements,
                self._achievements.last_fuel_day,
            ))


def create_engine(
    use_storage: bool = True,
    use_gemini: bool = True,
    notifier: Optional[NotifierInterface] = None,
) -> FuelTankEngine:
    """
    Factory function to create a fully wired engine.

    Args:
        use_storage: Whether to persist to Google Sheets.
                    Set to False for testing without storage.
        use_gemini: Whether to consult Gemini for extra suggestions.
        notifier: Push transport. Defaults to logging only.

    Call `await engine.load()` before first use.
    """
    storage = None
    generator = None

    if use_storage:
        try:
            storage = GoogleSheetsKeyValueStorage(GoogleSheetsClient())
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            storage = None

    if use_gemini:
        try:
            generator = GeminiSuggestionGenerator()
        except Exception as e:
            logger.warning("suggestion_generator_not_configured", error=str(e))
            generator = None

    return FuelTankEngine(
        storage=storage,
        notifier=notifier,
        generator=generator,
    )
