"""
Metrics Calculator

Pure functions that turn a ledger snapshot into the fuel tank reading:

    balance      = max(0, salary - expenses - active auto-deduct bills)
    burn rate    = average daily spend over the trailing window
    runway       = floor(balance / burn rate) days
    fuel level   = step function of balance as a share of salary

DESIGN DECISION: Every function takes the snapshot and "now" explicitly.
Nothing here reads a clock or mutates state, so the same inputs always
give the same reading and the functions can be tested without fakes.

Money stays in Decimal throughout. Only the gauge percentage is
converted to an integer for display.
"""

import math
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fuel_tracker.models.ledger import ExpenseSource, LedgerSnapshot
from fuel_tracker.models.metrics import DerivedMetrics, FuelLevel, FuelStatus


ZERO = Decimal("0")
HUNDRED = Decimal("100")

DEFAULT_WINDOW_DAYS = 30
DEFAULT_DAYS_SENTINEL = 999

NO_SALARY_WARNING = "Please set your salary first"

# Lower bounds (exclusive) of each level, checked from the top down.
FUEL_THRESHOLDS: tuple[tuple[Decimal, FuelLevel], ...] = (
    (Decimal("75"), FuelLevel.FULL),
    (Decimal("50"), FuelLevel.HIGH),
    (Decimal("25"), FuelLevel.MEDIUM),
    (Decimal("10"), FuelLevel.LOW),
    (Decimal("5"), FuelLevel.CRITICAL),
)

FUEL_COLORS: dict[FuelLevel, str] = {
    FuelLevel.FULL: "#22c55e",
    FuelLevel.HIGH: "#22c55e",
    FuelLevel.MEDIUM: "#f59e0b",
    FuelLevel.LOW: "#ef4444",
    FuelLevel.CRITICAL: "#991b1b",
    FuelLevel.EMPTY: "#991b1b",
}

FUEL_WARNINGS: dict[FuelLevel, Optional[str]] = {
    FuelLevel.FULL: None,
    FuelLevel.HIGH: None,
    FuelLevel.MEDIUM: None,
    FuelLevel.LOW: "Low fuel warning! Plan your expenses carefully.",
    FuelLevel.CRITICAL: "Critical fuel level! Take action soon.",
    FuelLevel.EMPTY: "Emergency! Refuel immediately!",
}


def calculate_balance(snapshot: LedgerSnapshot) -> Decimal:
    """Remaining fuel. Zero when no salary is set; never negative."""
    if snapshot.salary is None:
        return ZERO

    spent = sum((e.amount for e in snapshot.expenses), ZERO)
    deducted = sum(
        (b.amount for b in snapshot.recurring_bills if b.deducts_from_balance),
        ZERO,
    )
    return max(ZERO, snapshot.salary.amount - spent - deducted)


def calculate_average_daily_spend(
    snapshot: LedgerSnapshot,
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> Decimal:
    """
    Average daily spend over the trailing window.

    Only expenses dated within the last `window_days` calendar days count,
    and expenses materialized from recurring bills are excluded. The total
    is spread over the days from the oldest qualifying expense through
    today (inclusive), capped at the window length. A user who started
    tracking three days ago is therefore averaged over three days, not
    thirty.
    """
    today = now.date()
    window_start = today - timedelta(days=window_days - 1)

    dates = []
    total = ZERO
    for expense in snapshot.expenses:
        if expense.source == ExpenseSource.RECURRING:
            continue
        spent_on = expense.date.date()
        if window_start <= spent_on <= today:
            dates.append(spent_on)
            total += expense.amount

    if not dates:
        return ZERO

    span_days = (today - min(dates)).days + 1
    span_days = max(1, min(span_days, window_days))
    return total / Decimal(span_days)


def calculate_days_remaining(
    balance: Decimal,
    average_daily_spend: Decimal,
    sentinel: int = DEFAULT_DAYS_SENTINEL,
) -> int:
    """
    Runway in whole days.

    With no spending history the runway is unbounded; that is reported
    as `sentinel` while there is fuel left, and 0 once the tank is empty.
    """
    if average_daily_spend <= ZERO:
        return sentinel if balance > ZERO else 0
    return math.floor(balance / average_daily_spend)


def fuel_level_for(percentage: Decimal) -> FuelLevel:
    """Map a fill percentage onto a level. Monotonic in `percentage`."""
    for lower_bound, level in FUEL_THRESHOLDS:
        if percentage > lower_bound:
            return level
    return FuelLevel.EMPTY


def calculate_fuel_percentage(snapshot: LedgerSnapshot) -> Decimal:
    """Balance as a share of salary, clamped to [0, 100]."""
    if snapshot.salary is None:
        return ZERO
    raw = calculate_balance(snapshot) / snapshot.salary.amount * HUNDRED
    return min(HUNDRED, max(ZERO, raw))


def build_fuel_status(
    percentage: Decimal,
    days_remaining: int,
    has_salary: bool = True,
) -> FuelStatus:
    if not has_salary:
        return FuelStatus(
            level=FuelLevel.EMPTY,
            percentage=0,
            days_remaining=0,
            color=FUEL_COLORS[FuelLevel.EMPTY],
            warning_message=NO_SALARY_WARNING,
        )

    # Thresholds apply to the exact value; only the display is rounded.
    level = fuel_level_for(percentage)
    return FuelStatus(
        level=level,
        percentage=int(percentage.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
        days_remaining=days_remaining,
        color=FUEL_COLORS[level],
        warning_message=FUEL_WARNINGS[level],
    )


def calculate_fuel_status(
    snapshot: LedgerSnapshot,
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
    sentinel: int = DEFAULT_DAYS_SENTINEL,
) -> FuelStatus:
    return derive_metrics(snapshot, now, window_days, sentinel).fuel_status


def derive_metrics(
    snapshot: LedgerSnapshot,
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
    sentinel: int = DEFAULT_DAYS_SENTINEL,
) -> DerivedMetrics:
    """Compute balance, burn rate, runway and gauge in one pass."""
    balance = calculate_balance(snapshot)
    average = calculate_average_daily_spend(snapshot, now, window_days)
    days = calculate_days_remaining(balance, average, sentinel)

    status = build_fuel_status(
        calculate_fuel_percentage(snapshot),
        days,
        has_salary=snapshot.salary is not None,
    )
    return DerivedMetrics(
        balance=balance,
        average_daily_spend=average,
        days_remaining=days,
        fuel_status=status,
    )


class MetricsCalculator:
    """
    Binds the pure metric functions to the configured window and sentinel.

    Injected into the ledger so that every mutation can report the
    metrics before and after the change.
    """

    def __init__(
        self,
        window_days: int = DEFAULT_WINDOW_DAYS,
        days_sentinel: int = DEFAULT_DAYS_SENTINEL,
    ):
        self.window_days = window_days
        self.days_sentinel = days_sentinel

    def derive(self, snapshot: LedgerSnapshot, now: datetime) -> DerivedMetrics:
        return derive_metrics(snapshot, now, self.window_days, self.days_sentinel)

    def average_daily_spend(self, snapshot: LedgerSnapshot, now: datetime) -> Decimal:
        return calculate_average_daily_spend(snapshot, now, self.window_days)
