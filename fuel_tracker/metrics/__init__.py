"""
Metrics Package

Pure derivations from a ledger snapshot: balance, burn rate, runway,
fuel gauge, spending analytics and the financial context.
"""

from fuel_tracker.metrics.calculator import (
    FUEL_COLORS,
    FUEL_WARNINGS,
    MetricsCalculator,
    build_fuel_status,
    calculate_average_daily_spend,
    calculate_balance,
    calculate_days_remaining,
    calculate_fuel_percentage,
    calculate_fuel_status,
    derive_metrics,
    fuel_level_for,
)
from fuel_tracker.metrics.analytics import (
    category_breakdown,
    financial_context,
    monthly_trend,
    savings_streak,
    spending_analytics,
)

__all__ = [
    # Core metrics
    "FUEL_COLORS",
    "FUEL_WARNINGS",
    "MetricsCalculator",
    "build_fuel_status",
    "calculate_average_daily_spend",
    "calculate_balance",
    "calculate_days_remaining",
    "calculate_fuel_percentage",
    "calculate_fuel_status",
    "derive_metrics",
    "fuel_level_for",
    # Analytics
    "category_breakdown",
    "financial_context",
    "monthly_trend",
    "savings_streak",
    "spending_analytics",
]
