"""
Derived Metric Models

Nothing in this module is authoritative. Every value is recomputed from
a ledger snapshot, and persisted copies are treated as caches.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fuel_tracker.models.ledger import ExpenseCategory


class FuelLevel(str, Enum):
    """
    Discrete fuel level.

    Ordered from empty to full; see FUEL_LEVEL_ORDER.
    """
    EMPTY = "empty"
    CRITICAL = "critical"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    FULL = "full"

    @property
    def rank(self) -> int:
        """Position in FUEL_LEVEL_ORDER (0 = empty)."""
        return FUEL_LEVEL_ORDER.index(self)

    def is_below(self, other: "FuelLevel") -> bool:
        return self.rank < other.rank


FUEL_LEVEL_ORDER: tuple[FuelLevel, ...] = (
    FuelLevel.EMPTY,
    FuelLevel.CRITICAL,
    FuelLevel.LOW,
    FuelLevel.MEDIUM,
    FuelLevel.HIGH,
    FuelLevel.FULL,
)


class FuelStatus(BaseModel):
    """Gauge reading derived from balance against salary."""
    model_config = ConfigDict(frozen=True)

    level: FuelLevel
    percentage: int = Field(..., ge=0, le=100)
    days_remaining: int = Field(..., ge=0)
    color: str
    warning_message: Optional[str] = None


class DerivedMetrics(BaseModel):
    """Everything the dashboard needs, computed in one pass."""
    model_config = ConfigDict(frozen=True)

    balance: Decimal = Field(..., ge=0)
    average_daily_spend: Decimal = Field(..., ge=0)
    days_remaining: int = Field(..., ge=0)
    fuel_status: FuelStatus


class CategorySpending(BaseModel):
    category: ExpenseCategory
    amount: Decimal
    percentage: float = Field(..., ge=0.0, le=100.0)
    count: int = Field(..., ge=0)


class MonthlySpending(BaseModel):
    month: str = Field(..., description="Short month name, e.g. 'Jan'")
    year: int
    amount: Decimal


class SpendingAnalytics(BaseModel):
    """
    Spending breakdown used by suggestions and reports.

    Expenses materialized from recurring bills are excluded so that
    fixed costs do not drown out discretionary spending patterns.
    """

    average_daily_spend: Decimal = Field(default=Decimal("0"))
    category_breakdown: list[CategorySpending] = Field(default_factory=list)
    monthly_trend: list[MonthlySpending] = Field(default_factory=list)
    projected_burn_rate: Decimal = Field(
        default=Decimal("0"),
        description="Average daily spend projected over 30 days"
    )
    savings_streak: int = Field(
        default=0,
        ge=0,
        description="Consecutive days each spending less than the day before"
    )
    budget_adherence: float = Field(default=1.0, ge=0.0, le=1.0)
    top_categories: list[ExpenseCategory] = Field(default_factory=list)


class FinancialContext(BaseModel):
    """Condensed financial picture handed to the suggestion rules."""

    balance: Decimal = Field(default=Decimal("0"))
    days_left: int = Field(default=0, ge=0)
    salary: Decimal = Field(default=Decimal("0"))
    avg_daily_spend: Decimal = Field(default=Decimal("0"))
    top_categories: list[ExpenseCategory] = Field(default_factory=list)
    total_expenses: Decimal = Field(default=Decimal("0"))
    recurring_bills_amount: Decimal = Field(
        default=Decimal("0"),
        description="Sum of all active bills, auto-deducted or not"
    )
