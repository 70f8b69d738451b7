"""Tests for the ledger: mutations, events, validation and no-ops."""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from conftest import FakeClock
from fuel_tracker.ledger import Ledger, LedgerValidationError, next_cycle_date
from fuel_tracker.models import (
    DomainEventType,
    ExpenseCategory,
    ExpenseInput,
    ExpensePatch,
    RecurringBillInput,
    RecurringBillPatch,
    SalaryFrequency,
)


@pytest.fixture
def ledger(clock) -> Ledger:
    return Ledger(clock=clock)


def _bill(amount: str, auto_deduct: bool = True, name: str = "Rent") -> RecurringBillInput:
    return RecurringBillInput(
        name=name,
        amount=Decimal(amount),
        next_due_date=datetime(2024, 7, 1),
        auto_deduct=auto_deduct,
    )


class TestSalary:
    """Tests for setting the salary."""

    def test_set_salary(self, ledger):
        """Test that the salary fills the tank."""
        result = ledger.set_salary(Decimal("10000"))

        assert ledger.snapshot.salary.amount == Decimal("10000")
        assert result.after.balance == Decimal("10000")
        assert result.before.balance == Decimal("0")
        assert [e.type for e in result.events] == [DomainEventType.SALARY_SET]
        assert result.revision == 1

    def test_set_salary_replaces_previous(self, ledger):
        """Test that there is only ever one salary."""
        ledger.set_salary(10000)
        ledger.set_salary(12000, SalaryFrequency.WEEKLY)
        assert ledger.snapshot.salary.amount == Decimal("12000")
        assert ledger.snapshot.salary.frequency == SalaryFrequency.WEEKLY

    @pytest.mark.parametrize("amount", [0, -100, "abc", "NaN"])
    def test_set_salary_rejects_invalid_amount(self, ledger, amount):
        """Test that invalid salaries are rejected and nothing changes."""
        with pytest.raises(LedgerValidationError) as exc_info:
            ledger.set_salary(amount)

        assert exc_info.value.issues[0].field == "amount"
        assert ledger.snapshot.salary is None
        assert ledger.revision == 0

    def test_validation_error_is_value_error(self, ledger):
        """Test that callers can catch ValueError."""
        with pytest.raises(ValueError):
            ledger.set_salary(-1)

    def test_records_auto_deducted_total(self, ledger):
        """Test the salary record remembers the auto-deduct total at set time."""
        ledger.add_recurring_bill(_bill("3000"))
        ledger.add_recurring_bill(_bill("500", auto_deduct=False, name="Gym"))
        ledger.set_salary(10000)
        assert ledger.snapshot.salary.recurring_deducted == Decimal("3000")


class TestNextCycleDate:
    """Tests for salary cycle dates."""

    def test_monthly_is_first_of_next_month(self):
        """Test monthly salary arrives on the 1st."""
        assert next_cycle_date(SalaryFrequency.MONTHLY, datetime(2024, 6, 15, 9)) == datetime(2024, 7, 1, 9)

    def test_monthly_wraps_year(self):
        """Test December rolls over to January."""
        assert next_cycle_date(SalaryFrequency.MONTHLY, datetime(2024, 12, 20)).date() == datetime(2025, 1, 1).date()

    def test_weekly_and_biweekly(self):
        """Test weekly and biweekly offsets."""
        now = datetime(2024, 6, 15)
        assert next_cycle_date(SalaryFrequency.WEEKLY, now) == now + timedelta(days=7)
        assert next_cycle_date(SalaryFrequency.BIWEEKLY, now) == now + timedelta(days=14)


class TestExpenses:
    """Tests for expense mutations."""

    def test_add_update_delete_scenario(self, ledger):
        """Test the basic add → update → delete cycle against the balance."""
        ledger.set_salary(10000)

        added = ledger.add_expense(ExpenseInput(amount=Decimal("1500"), category=ExpenseCategory.FOOD))
        assert added.after.balance == Decimal("8500")
        expense_id = added.entity_id

        updated = ledger.update_expense(expense_id, ExpensePatch(amount=Decimal("1200")))
        assert updated.after.balance == Decimal("8800")
        assert [e.type for e in updated.events] == [DomainEventType.EXPENSE_UPDATED]

        deleted = ledger.delete_expense(expense_id)
        assert deleted.after.balance == Decimal("10000")
        assert ledger.snapshot.expenses == ()

    def test_add_expense_defaults_date_to_now(self, ledger, clock):
        """Test that expenses without a date are dated now."""
        result = ledger.add_expense(ExpenseInput(amount=Decimal("50")))
        expense = ledger.snapshot.find_expense(result.entity_id)
        assert expense.date == clock.now
        assert expense.category == ExpenseCategory.OTHERS

    def test_add_expense_rejects_non_positive(self, ledger):
        """Test that the ledger is unchanged after a rejected expense."""
        ledger.set_salary(10000)
        with pytest.raises(LedgerValidationError):
            ledger.add_expense(ExpenseInput(amount=Decimal("0")))
        assert ledger.snapshot.expenses == ()
        assert ledger.revision == 1

    def test_update_keeps_id_and_created_at(self, ledger, clock):
        """Test that updates keep identity and move updated_at."""
        result = ledger.add_expense(ExpenseInput(amount=Decimal("100"), description="Taxi"))
        original = ledger.snapshot.find_expense(result.entity_id)

        clock.advance(hours=1)
        ledger.update_expense(original.id, ExpensePatch(description="Cab", tags=["work"]))
        updated = ledger.snapshot.find_expense(original.id)

        assert updated.description == "Cab"
        assert updated.tags == ("work",)
        assert updated.amount == Decimal("100")
        assert updated.created_at == original.created_at
        assert updated.updated_at == clock.now

    def test_update_rejects_bad_amount(self, ledger):
        """Test that a patch with an invalid amount is rejected."""
        result = ledger.add_expense(ExpenseInput(amount=Decimal("100")))
        with pytest.raises(LedgerValidationError):
            ledger.update_expense(result.entity_id, ExpensePatch(amount=Decimal("-5")))
        assert ledger.snapshot.find_expense(result.entity_id).amount == Decimal("100")

    def test_unknown_id_is_noop(self, ledger):
        """Test update/delete of unknown ids change nothing."""
        ledger.set_salary(10000)
        revision = ledger.revision

        update = ledger.update_expense("missing", ExpensePatch(amount=Decimal("5")))
        delete = ledger.delete_expense("missing")

        for result in (update, delete):
            assert result.events == []
            assert not result.changed
            assert result.before == result.after
        assert ledger.revision == revision

    def test_snapshot_not_affected_by_later_mutation(self, ledger):
        """Test that a snapshot handed out earlier never changes."""
        ledger.set_salary(10000)
        before = ledger.snapshot
        ledger.add_expense(ExpenseInput(amount=Decimal("100")))
        assert before.expenses == ()
        assert len(ledger.snapshot.expenses) == 1

    def test_events_carry_correlation_id(self, ledger):
        """Test the correlation id flows into events."""
        correlation_id = uuid4()
        result = ledger.add_expense(ExpenseInput(amount=Decimal("10")), correlation_id=correlation_id)
        assert result.events[0].correlation_id == correlation_id
        assert result.events[0].entity_id == result.entity_id


class TestRecurringBills:
    """Tests for recurring bill mutations."""

    def test_auto_deduct_scenario(self, ledger):
        """Test auto-deducted bills and toggling auto-deduct off."""
        ledger.set_salary(20000)
        rent = ledger.add_recurring_bill(_bill("8000"))
        ledger.add_recurring_bill(_bill("1000", name="Electricity"))
        assert ledger.metrics().balance == Decimal("11000")

        ledger.add_expense(ExpenseInput(amount=Decimal("500")))
        assert ledger.metrics().balance == Decimal("10500")

        ledger.update_recurring_bill(rent.entity_id, RecurringBillPatch(auto_deduct=False))
        assert ledger.metrics().balance == Decimal("18500")

    def test_inactive_bill_not_deducted(self, ledger):
        """Test that deactivating a bill gives the money back."""
        ledger.set_salary(10000)
        bill = ledger.add_recurring_bill(_bill("2000"))
        ledger.update_recurring_bill(bill.entity_id, RecurringBillPatch(is_active=False))
        assert ledger.metrics().balance == Decimal("10000")

    def test_delete_bill(self, ledger):
        """Test deleting a bill."""
        ledger.set_salary(10000)
        bill = ledger.add_recurring_bill(_bill("2000"))
        result = ledger.delete_recurring_bill(bill.entity_id)
        assert [e.type for e in result.events] == [DomainEventType.BILL_DELETED]
        assert ledger.snapshot.recurring_bills == ()

    def test_reports_every_issue(self, ledger):
        """Test that all problems are reported at once."""
        with pytest.raises(LedgerValidationError) as exc_info:
            ledger.add_recurring_bill(RecurringBillInput(
                name="   ",
                amount=Decimal("-1"),
                next_due_date=datetime(2024, 7, 1),
            ))
        fields = {issue.field for issue in exc_info.value.issues}
        assert fields == {"name", "amount"}
        assert ledger.snapshot.recurring_bills == ()

    def test_unknown_bill_is_noop(self, ledger):
        """Test update/delete of unknown bills change nothing."""
        assert not ledger.update_recurring_bill("missing", RecurringBillPatch(name="x")).changed
        assert not ledger.delete_recurring_bill("missing").changed
        assert ledger.revision == 0

    def test_balance_never_negative(self, ledger):
        """Test that bills bigger than the salary floor the balance at zero."""
        ledger.set_salary(1000)
        ledger.add_recurring_bill(_bill("5000"))
        assert ledger.metrics().balance == Decimal("0")


class TestRestore:
    """Tests for restoring a snapshot."""

    def test_restore_replaces_snapshot(self, clock):
        """Test that restore swaps the snapshot and bumps the revision."""
        source = Ledger(clock=clock)
        source.set_salary(5000)
        source.add_expense(ExpenseInput(amount=Decimal("700")))

        target = Ledger(clock=FakeClock(clock.now))
        target.restore(source.snapshot)
        assert target.metrics() == source.metrics()
        assert target.revision == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
