"""
Spending Analytics

Breakdowns and trends built on top of the core metrics. Used by the
suggestion rules (category share, top categories) and by reports.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable

from fuel_tracker.metrics.calculator import (
    DEFAULT_DAYS_SENTINEL,
    DEFAULT_WINDOW_DAYS,
    ZERO,
    calculate_average_daily_spend,
    calculate_balance,
    calculate_days_remaining,
)
from fuel_tracker.models.ledger import Expense, ExpenseCategory, ExpenseSource, LedgerSnapshot
from fuel_tracker.models.metrics import (
    CategorySpending,
    FinancialContext,
    MonthlySpending,
    SpendingAnalytics,
)


TREND_MONTHS = 6
TOP_CATEGORY_COUNT = 3
PROJECTION_DAYS = Decimal("30")
MAX_STREAK_DAYS = 30

# Budget adherence is measured against keeping 10% of salary in reserve.
RESERVE_SHARE = Decimal("0.1")

_MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def discretionary_expenses(snapshot: LedgerSnapshot) -> list[Expense]:
    """Expenses excluding those materialized from recurring bills."""
    return [e for e in snapshot.expenses if e.source != ExpenseSource.RECURRING]


def category_breakdown(expenses: Iterable[Expense]) -> list[CategorySpending]:
    """Per-category totals, largest first."""
    totals: dict[ExpenseCategory, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[ExpenseCategory, int] = defaultdict(int)
    for expense in expenses:
        totals[expense.category] += expense.amount
        counts[expense.category] += 1

    grand_total = sum(totals.values(), ZERO)
    breakdown = [
        CategorySpending(
            category=category,
            amount=amount,
            percentage=float(amount / grand_total * 100) if grand_total > 0 else 0.0,
            count=counts[category],
        )
        for category, amount in totals.items()
    ]
    # sorted() is stable, so equal amounts keep first-seen order
    return sorted(breakdown, key=lambda c: c.amount, reverse=True)


def _month_start(today: date, months_back: int) -> date:
    index = today.year * 12 + (today.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def monthly_trend(
    expenses: Iterable[Expense],
    now: datetime,
    months: int = TREND_MONTHS,
) -> list[MonthlySpending]:
    """Monthly totals for the last `months` months, oldest first."""
    expenses = list(expenses)
    today = now.date()
    trend = []
    for months_back in range(months - 1, -1, -1):
        start = _month_start(today, months_back)
        end = _month_start(today, months_back - 1)
        total = sum(
            (e.amount for e in expenses if start <= e.date.date() < end),
            ZERO,
        )
        trend.append(MonthlySpending(
            month=_MONTH_NAMES[start.month - 1],
            year=start.year,
            amount=total,
        ))
    return trend


def savings_streak(
    expenses: Iterable[Expense],
    now: datetime,
    max_days: int = MAX_STREAK_DAYS,
) -> int:
    """
    Consecutive days, counting back from today, on which less was spent
    than on the day before.
    """
    per_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        per_day[expense.date.date()] += expense.amount

    streak = 0
    day = now.date()
    for _ in range(max_days):
        previous = day - timedelta(days=1)
        if per_day[day] < per_day[previous]:
            streak += 1
            day = previous
        else:
            break
    return streak


def spending_analytics(
    snapshot: LedgerSnapshot,
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> SpendingAnalytics:
    expenses = discretionary_expenses(snapshot)
    if not expenses:
        return SpendingAnalytics()

    average = calculate_average_daily_spend(snapshot, now, window_days)
    breakdown = category_breakdown(expenses)

    adherence = 0.0
    if snapshot.salary is not None:
        reserve = snapshot.salary.amount * RESERVE_SHARE
        adherence = float(min(Decimal("1"), calculate_balance(snapshot) / reserve))

    return SpendingAnalytics(
        average_daily_spend=average,
        category_breakdown=breakdown,
        monthly_trend=monthly_trend(expenses, now),
        projected_burn_rate=average * PROJECTION_DAYS,
        savings_streak=savings_streak(expenses, now),
        budget_adherence=adherence,
        top_categories=[c.category for c in breakdown[:TOP_CATEGORY_COUNT]],
    )


def financial_context(
    snapshot: LedgerSnapshot,
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
    sentinel: int = DEFAULT_DAYS_SENTINEL,
) -> FinancialContext:
    """
    Condensed picture for the suggestion rules.

    NOTE: recurring_bills_amount counts every active bill, including the
    ones that are not auto-deducted. It measures commitment, not balance.
    """
    balance = calculate_balance(snapshot)
    average = calculate_average_daily_spend(snapshot, now, window_days)
    breakdown = category_breakdown(discretionary_expenses(snapshot))

    return FinancialContext(
        balance=balance,
        days_left=calculate_days_remaining(balance, average, sentinel),
        salary=snapshot.salary.amount if snapshot.salary else ZERO,
        avg_daily_spend=average,
        top_categories=[c.category for c in breakdown[:TOP_CATEGORY_COUNT]],
        total_expenses=sum((e.amount for e in snapshot.expenses), ZERO),
        recurring_bills_amount=sum(
            (b.amount for b in snapshot.recurring_bills if b.is_active),
            ZERO,
        ),
    )
