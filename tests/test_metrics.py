"""Tests for the metrics calculator and spending analytics."""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from fuel_tracker.metrics import (
    MetricsCalculator,
    build_fuel_status,
    calculate_average_daily_spend,
    calculate_balance,
    calculate_days_remaining,
    calculate_fuel_percentage,
    category_breakdown,
    derive_metrics,
    financial_context,
    fuel_level_for,
    monthly_trend,
    savings_streak,
    spending_analytics,
)
from fuel_tracker.models import (
    Expense,
    ExpenseCategory,
    ExpenseSource,
    FuelLevel,
    LedgerSnapshot,
    RecurringBill,
    SalaryRecord,
)
from fuel_tracker.metrics.calculator import FUEL_COLORS, FUEL_WARNINGS


NOW = datetime(2024, 6, 15, 12, 0)

_counter = iter(range(10_000))


def expense(
    amount: str,
    days_ago: int = 0,
    category: ExpenseCategory = ExpenseCategory.FOOD,
    source: ExpenseSource = ExpenseSource.MANUAL,
) -> Expense:
    when = NOW - timedelta(days=days_ago)
    return Expense(
        id=f"e{next(_counter)}",
        amount=Decimal(amount),
        category=category,
        date=when,
        source=source,
        created_at=when,
        updated_at=when,
    )


def bill(amount: str, auto_deduct: bool = True, is_active: bool = True) -> RecurringBill:
    return RecurringBill(
        id=f"b{next(_counter)}",
        name="Bill",
        amount=Decimal(amount),
        next_due_date=NOW + timedelta(days=10),
        auto_deduct=auto_deduct,
        is_active=is_active,
        created_at=NOW,
        updated_at=NOW,
    )


def snapshot(salary: str = None, expenses=(), bills=()) -> LedgerSnapshot:
    record = None
    if salary is not None:
        record = SalaryRecord(
            amount=Decimal(salary),
            last_updated=NOW,
            next_cycle_date=datetime(2024, 7, 1),
        )
    return LedgerSnapshot(salary=record, expenses=tuple(expenses), recurring_bills=tuple(bills))


class TestBalance:
    """Tests for the balance formula."""

    def test_no_salary_is_zero(self):
        """Test that balance is zero without a salary."""
        assert calculate_balance(snapshot(expenses=[expense("100")])) == Decimal("0")

    def test_subtracts_expenses_and_auto_deduct_bills(self):
        """Test the full balance formula."""
        snap = snapshot(
            "20000",
            expenses=[expense("500")],
            bills=[bill("8000"), bill("1000"), bill("300", auto_deduct=False), bill("50", is_active=False)],
        )
        assert calculate_balance(snap) == Decimal("10500")

    def test_never_negative(self):
        """Test that overspending floors at zero."""
        assert calculate_balance(snapshot("1000", expenses=[expense("1500")])) == Decimal("0")


class TestAverageDailySpend:
    """Tests for the trailing-window burn rate."""

    def test_no_expenses(self):
        """Test that no history means zero burn."""
        assert calculate_average_daily_spend(snapshot("1000"), NOW) == Decimal("0")

    def test_averages_over_span_since_first_expense(self):
        """Test expenses over three days average over three days."""
        snap = snapshot("15000", expenses=[expense("2000", 0), expense("1500", 1), expense("1000", 2)])
        assert calculate_average_daily_spend(snap, NOW) == Decimal("1500")

    def test_single_day(self):
        """Test that one day's spending is that day's average."""
        assert calculate_average_daily_spend(snapshot("1000", expenses=[expense("300")]), NOW) == Decimal("300")

    def test_excludes_expenses_outside_window(self):
        """Test that old expenses do not count."""
        snap = snapshot("10000", expenses=[expense("300", 0), expense("9000", 45)])
        assert calculate_average_daily_spend(snap, NOW) == Decimal("300")

    def test_span_capped_at_window(self):
        """Test the divisor never exceeds the window."""
        snap = snapshot("10000", expenses=[expense("600", 0), expense("300", 29)])
        assert calculate_average_daily_spend(snap, NOW, window_days=30) == Decimal("30")

    def test_window_is_thirty_calendar_days(self):
        """Test a month of daily spending averages to the daily amount."""
        snap = snapshot("50000", expenses=[expense("100", days) for days in range(31)])
        assert calculate_average_daily_spend(snap, NOW, window_days=30) == Decimal("100")

    def test_excludes_recurring_source(self):
        """Test that materialized recurring bills are not burn."""
        snap = snapshot("10000", expenses=[expense("300"), expense("5000", source=ExpenseSource.RECURRING)])
        assert calculate_average_daily_spend(snap, NOW) == Decimal("300")

    def test_excludes_future_dated(self):
        """Test that post-dated expenses do not count yet."""
        snap = snapshot("10000", expenses=[expense("300"), expense("700", days_ago=-3)])
        assert calculate_average_daily_spend(snap, NOW) == Decimal("300")


class TestDaysRemaining:
    """Tests for the runway calculation."""

    def test_floor_division(self):
        """Test runway is floored."""
        assert calculate_days_remaining(Decimal("1000"), Decimal("300")) == 3

    def test_sentinel_when_no_spending(self):
        """Test unbounded runway is reported as the sentinel."""
        assert calculate_days_remaining(Decimal("1000"), Decimal("0")) == 999
        assert calculate_days_remaining(Decimal("1000"), Decimal("0"), sentinel=365) == 365

    def test_zero_when_empty(self):
        """Test an empty tank with no burn has no runway."""
        assert calculate_days_remaining(Decimal("0"), Decimal("0")) == 0


class TestFuelStatus:
    """Tests for the fuel gauge."""

    @pytest.mark.parametrize("percentage,level", [
        ("100", FuelLevel.FULL),
        ("75.01", FuelLevel.FULL),
        ("75", FuelLevel.HIGH),
        ("50.5", FuelLevel.HIGH),
        ("50", FuelLevel.MEDIUM),
        ("25", FuelLevel.LOW),
        ("10", FuelLevel.CRITICAL),
        ("5.01", FuelLevel.CRITICAL),
        ("5", FuelLevel.EMPTY),
        ("0", FuelLevel.EMPTY),
    ])
    def test_thresholds(self, percentage, level):
        """Test the level step function at and around each bound."""
        assert fuel_level_for(Decimal(percentage)) == level

    def test_thresholds_use_exact_value(self):
        """Test that 74.6% is high even though it displays as 75."""
        status = build_fuel_status(Decimal("74.6"), 10)
        assert status.level == FuelLevel.HIGH
        assert status.percentage == 75

    def test_percentage_rounds_half_up(self):
        """Test display rounding."""
        assert build_fuel_status(Decimal("62.5"), 10).percentage == 63

    def test_no_salary_status(self):
        """Test the status when no salary is set."""
        status = build_fuel_status(Decimal("0"), 0, has_salary=False)
        assert status.level == FuelLevel.EMPTY
        assert status.warning_message == "Please set your salary first"

    def test_percentage_clamped(self):
        """Test the percentage stays within 0-100."""
        assert calculate_fuel_percentage(snapshot("1000", expenses=[expense("5000")])) == Decimal("0")
        assert calculate_fuel_percentage(snapshot("1000")) == Decimal("100")

    def test_warnings_and_colors(self):
        """Test low levels carry a warning and high levels do not."""
        assert build_fuel_status(Decimal("90"), 30).warning_message is None
        assert "Low fuel" in build_fuel_status(Decimal("20"), 3).warning_message
        assert build_fuel_status(Decimal("40"), 5).color == "#f59e0b"

    def test_burn_rate_scenario(self):
        """Test salary 15000 with 4500 spent over three days."""
        snap = snapshot("15000", expenses=[expense("2000", 0), expense("1500", 1), expense("1000", 2)])
        metrics = derive_metrics(snap, NOW)

        assert metrics.balance == Decimal("10500")
        assert metrics.average_daily_spend == Decimal("1500")
        assert metrics.days_remaining == 7
        assert metrics.fuel_status.percentage == 70
        assert metrics.fuel_status.level == FuelLevel.HIGH

    def test_calculator_uses_configured_window(self):
        """Test MetricsCalculator binds window and sentinel."""
        calculator = MetricsCalculator(window_days=7, days_sentinel=100)
        assert calculator.derive(snapshot("1000"), NOW).days_remaining == 100
        snap = snapshot("1000", expenses=[expense("70", 0), expense("700", 10)])
        assert calculator.average_daily_spend(snap, NOW) == Decimal("70")


class TestAnalytics:
    """Tests for spending analytics."""

    def test_category_breakdown(self):
        """Test per-category totals sorted largest first."""
        breakdown = category_breakdown([
            expense("100", category=ExpenseCategory.TRANSPORT),
            expense("300", category=ExpenseCategory.FOOD),
            expense("100", category=ExpenseCategory.FOOD),
        ])
        assert [c.category for c in breakdown] == [ExpenseCategory.FOOD, ExpenseCategory.TRANSPORT]
        assert breakdown[0].amount == Decimal("400")
        assert breakdown[0].count == 2
        assert breakdown[0].percentage == pytest.approx(80.0)

    def test_monthly_trend(self):
        """Test six months of totals, oldest first."""
        trend = monthly_trend([expense("100", 0), expense("50", 20), expense("999", 400)], NOW)
        assert len(trend) == 6
        assert (trend[0].month, trend[0].year) == ("Jan", 2024)
        assert (trend[-1].month, trend[-1].amount) == ("Jun", Decimal("100"))
        assert trend[-2].amount == Decimal("50")

    def test_savings_streak(self):
        """Test consecutive days each cheaper than the day before."""
        expenses = [expense("100", 0), expense("200", 1), expense("300", 2), expense("100", 3)]
        assert savings_streak(expenses, NOW) == 2

    def test_savings_streak_zero_when_today_higher(self):
        """Test that a more expensive today breaks the streak."""
        assert savings_streak([expense("500", 0), expense("100", 1)], NOW) == 0

    def test_spending_analytics_empty(self):
        """Test that no expenses give default analytics."""
        analytics = spending_analytics(snapshot("1000"), NOW)
        assert analytics.category_breakdown == []
        assert analytics.average_daily_spend == Decimal("0")

    def test_spending_analytics(self):
        """Test the assembled analytics."""
        snap = snapshot("10000", expenses=[
            expense("600", category=ExpenseCategory.SHOPPING),
            expense("5000", source=ExpenseSource.RECURRING, category=ExpenseCategory.RENT),
        ])
        analytics = spending_analytics(snap, NOW)
        assert analytics.top_categories == [ExpenseCategory.SHOPPING]
        assert analytics.projected_burn_rate == Decimal("18000")
        assert 0.0 <= analytics.budget_adherence <= 1.0

    def test_adherence_zero_without_salary(self):
        """Test that adherence is zero when there is no salary."""
        analytics = spending_analytics(snapshot(expenses=[expense("10")]), NOW)
        assert analytics.budget_adherence == 0.0

    def test_financial_context(self):
        """Test the condensed context counts every active bill."""
        snap = snapshot(
            "10000",
            expenses=[expense("1000")],
            bills=[bill("2000"), bill("500", auto_deduct=False), bill("100", is_active=False)],
        )
        context = financial_context(snap, NOW)
        assert context.balance == Decimal("7000")
        assert context.salary == Decimal("10000")
        assert context.days_left == 7
        assert context.recurring_bills_amount == Decimal("2500")
        assert context.total_expenses == Decimal("1000")


class TestFuelTables:
    """Tests for the per-level lookup tables."""

    def test_every_level_covered(self):
        """Test each fuel level has a color and a warning entry."""
        assert set(FUEL_COLORS) == set(FuelLevel)
        assert set(FUEL_WARNINGS) == set(FuelLevel)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
