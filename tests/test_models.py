"""
Tests for Fuel Tracker models

Test strategy:
1. Unit tests for individual components (models, ledger, metrics, gate)
2. Integration tests for the engine (with fake notifier, storage, clock)
3. No real API calls in tests (use fakes)
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from fuel_tracker.models import (
    FUEL_LEVEL_ORDER,
    AchievementProgress,
    DomainEvent,
    DomainEventType,
    Expense,
    ExpenseCategory,
    ExpenseSource,
    FuelLevel,
    LedgerSnapshot,
    NotificationSettings,
    ParsedExpense,
    Priority,
    QuietHours,
    RecurringBill,
    Suggestion,
    SuggestionAction,
    SuggestionImpact,
    SuggestionInput,
    SuggestionType,
    ValidationIssue,
    ValidationResult,
)


NOW = datetime(2024, 6, 15, 12, 0)


def _expense(**overrides) -> Expense:
    data = dict(
        id="exp1",
        amount=Decimal("250"),
        category=ExpenseCategory.FOOD,
        description="Lunch",
        date=NOW,
        created_at=NOW,
        updated_at=NOW,
    )
    data.update(overrides)
    return Expense(**data)


def _bill(**overrides) -> RecurringBill:
    data = dict(
        id="bill1",
        name="Internet",
        amount=Decimal("999"),
        next_due_date=NOW + timedelta(days=3),
        created_at=NOW,
        updated_at=NOW,
    )
    data.update(overrides)
    return RecurringBill(**data)


class TestLedgerModels:
    """Tests for salary, expense and bill records."""

    def test_expense_creation(self):
        """Test Expense model creation with defaults."""
        expense = _expense()
        assert expense.amount == Decimal("250")
        assert expense.source == ExpenseSource.MANUAL
        assert expense.tags == ()

    def test_expense_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValidationError):
            _expense(amount=Decimal("0"))
        with pytest.raises(ValidationError):
            _expense(amount=Decimal("-10"))

    def test_expense_is_frozen(self):
        """Test that a stored expense cannot be modified in place."""
        expense = _expense()
        with pytest.raises(ValidationError):
            expense.amount = Decimal("1")

    def test_expense_strips_whitespace(self):
        """Test that whitespace is stripped from the description."""
        assert _expense(description="  Coffee  ").description == "Coffee"

    def test_bill_deducts_only_when_active_and_auto(self):
        """Test that only active auto-deduct bills reduce the balance."""
        assert _bill(auto_deduct=True).deducts_from_balance
        assert not _bill(auto_deduct=False).deducts_from_balance
        assert not _bill(auto_deduct=True, is_active=False).deducts_from_balance

    def test_bill_default_category(self):
        """Test that bills default to utilities."""
        assert _bill().category == ExpenseCategory.UTILITIES

    def test_snapshot_lookup(self):
        """Test finding records in a snapshot by id."""
        snapshot = LedgerSnapshot(expenses=(_expense(),), recurring_bills=(_bill(),))
        assert snapshot.find_expense("exp1").description == "Lunch"
        assert snapshot.find_bill("bill1").name == "Internet"
        assert snapshot.find_expense("missing") is None

    def test_parsed_expense_confidence_bounds(self):
        """Test that parser confidence must be within 0-1."""
        with pytest.raises(ValidationError):
            ParsedExpense(amount=Decimal("10"), description="x", confidence=1.5)


class TestMetricModels:
    """Tests for fuel level ordering."""

    def test_fuel_level_order(self):
        """Test that levels are ordered from empty to full."""
        assert FUEL_LEVEL_ORDER[0] == FuelLevel.EMPTY
        assert FUEL_LEVEL_ORDER[-1] == FuelLevel.FULL
        assert FuelLevel.CRITICAL.is_below(FuelLevel.LOW)
        assert not FuelLevel.HIGH.is_below(FuelLevel.MEDIUM)
        assert not FuelLevel.LOW.is_below(FuelLevel.LOW)

    def test_priority_weights(self):
        """Test that priority weights follow urgency."""
        weights = [p.weight for p in (Priority.LOW, Priority.NORMAL, Priority.HIGH, Priority.URGENT)]
        assert weights == sorted(weights)
        assert len(set(weights)) == 4


class TestNotificationModels:
    """Tests for notification settings."""

    def test_settings_defaults(self):
        """Test that everything is enabled by default and quiet hours are off."""
        settings = NotificationSettings()
        assert settings.fuel_alerts
        assert settings.big_spend_alerts
        assert settings.daily_reminders
        assert not settings.quiet_hours.enabled
        assert settings.quiet_hours.start_time == "22:00"
        assert settings.quiet_hours.end_time == "08:00"

    def test_quiet_hours_rejects_bad_time(self):
        """Test that quiet hours must be HH:MM."""
        with pytest.raises(ValidationError):
            QuietHours(start_time="25:00")
        with pytest.raises(ValidationError):
            QuietHours(end_time="8am")

    def test_settings_validate_assignment(self):
        """Test that assignments are validated too."""
        settings = NotificationSettings()
        with pytest.raises(ValidationError):
            settings.quiet_hours = {"start_time": "nope"}


class TestSuggestionModels:
    """Tests for suggestion lifecycle helpers."""

    def _suggestion(self, **overrides) -> Suggestion:
        data = dict(
            id="s1",
            rule="savings",
            type=SuggestionType.SAVINGS,
            title="Save",
            description="Save some money",
            action=SuggestionAction.SAVE,
            impact=SuggestionImpact(confidence_score=0.8),
            created_at=NOW,
        )
        data.update(overrides)
        return Suggestion(**data)

    def test_rule_key_defaults_to_type(self):
        """Test that the rule key falls back to the suggestion type."""
        candidate = SuggestionInput(
            type=SuggestionType.INVESTMENT,
            title="Invest",
            description="Invest surplus",
            action=SuggestionAction.INVEST,
            impact=SuggestionImpact(confidence_score=0.7),
        )
        assert candidate.rule_key == "investment"
        assert candidate.model_copy(update={"rule": "custom"}).rule_key == "custom"

    def test_active_until_expired(self):
        """Test that expiry ends the active state."""
        suggestion = self._suggestion(expires_at=NOW + timedelta(hours=24))
        assert suggestion.is_active(NOW)
        assert not suggestion.is_active(NOW + timedelta(hours=24))

    def test_applied_or_dismissed_is_inactive(self):
        """Test that final states are not active."""
        assert not self._suggestion(is_applied=True).is_active(NOW)
        assert not self._suggestion(is_dismissed=True).is_active(NOW)

    def test_confidence_bounds(self):
        """Test that confidence must be within 0-1."""
        with pytest.raises(ValidationError):
            SuggestionImpact(confidence_score=1.2)


class TestAchievementModels:
    """Tests for achievement progress."""

    def test_progress_target_must_be_positive(self):
        """Test that a zero target is rejected."""
        with pytest.raises(ValidationError):
            AchievementProgress(target=Decimal("0"))

    def test_progress_percentage_bounds(self):
        """Test that percentage cannot exceed 100."""
        with pytest.raises(ValidationError):
            AchievementProgress(target=Decimal("10"), percentage=101)


class TestEventModels:
    """Tests for domain events and validation results."""

    def test_event_log_dict(self):
        """Test DomainEvent serializes for structured logging."""
        correlation_id = uuid4()
        event = DomainEvent(
            type=DomainEventType.EXPENSE_ADDED,
            occurred_at=NOW,
            correlation_id=correlation_id,
            entity_id="exp1",
            details={"amount": "250"},
        )
        log = event.to_log_dict()
        assert log["event_type"] == "expense_added"
        assert log["correlation_id"] == str(correlation_id)
        assert log["details"] == {"amount": "250"}

    def test_validation_result_splits_by_severity(self):
        """Test errors and warnings are separated."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(field="amount", issue_type="invalid_value", message="bad"),
                ValidationIssue(field="date", issue_type="stale", message="old", severity="warning"),
            ],
        )
        assert [i.field for i in result.errors] == ["amount"]
        assert [i.field for i in result.warnings] == ["date"]

    def test_validation_issue_rejects_unknown_severity(self):
        """Test severity is restricted."""
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
