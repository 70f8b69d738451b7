"""
Suggestion Engine

Turns the financial context into a short, ranked list of things the user
could do. Each rule below is independent and looks at the context only;
ranking and deduplication happen afterwards, in one place.

Ranking:
1. Candidates are deduplicated by rule key; the first one wins.
   External candidates come first, so an external suggestion overrides
   a rule-based one with the same key.
2. Stable sort by priority (urgent > high > normal > low), then by
   confidence, both descending.
3. Truncate to the configured maximum (5 by default).

With no salary set no rule fires: every threshold is a share of salary.
"""

import math
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional

import structlog

from fuel_tracker.models.ledger import ExpenseCategory
from fuel_tracker.models.metrics import FinancialContext, SpendingAnalytics
from fuel_tracker.models.notification import Priority
from fuel_tracker.models.suggestion import (
    SuggestionAction,
    SuggestionImpact,
    SuggestionInput,
    SuggestionType,
)
from fuel_tracker.notifications.templates import format_inr


logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
DEFAULT_MAX_SUGGESTIONS = 5


CATEGORY_TIPS: dict[ExpenseCategory, list[str]] = {
    ExpenseCategory.FOOD: [
        "Cook more meals at home",
        "Plan weekly meal prep",
        "Buy groceries in bulk",
        "Avoid food delivery apps",
        "Use grocery store loyalty programs",
        "Choose seasonal produce",
    ],
    ExpenseCategory.TRANSPORT: [
        "Use public transportation",
        "Carpool with colleagues",
        "Walk or bike for short distances",
        "Combine multiple errands in one trip",
        "Maintain your vehicle regularly",
    ],
    ExpenseCategory.ENTERTAINMENT: [
        "Look for free events and activities",
        "Share streaming subscriptions",
        "Host game nights at home",
        "Use discount apps and coupons",
    ],
    ExpenseCategory.SHOPPING: [
        "Make a shopping list and stick to it",
        "Wait 24 hours before big purchases",
        "Compare prices online",
        "Consider second-hand options",
    ],
    ExpenseCategory.UTILITIES: [
        "Use energy-efficient appliances",
        "Monitor water consumption",
        "Switch to a cheaper internet plan",
        "Unplug devices when not in use",
    ],
    ExpenseCategory.SUBSCRIPTION: [
        "Audit all active subscriptions",
        "Cancel unused services",
        "Downgrade premium plans",
        "Look for annual discounts",
    ],
}

DEFAULT_TIPS = [
    "Track expenses in this category",
    "Set a monthly budget limit",
    "Look for alternatives and discounts",
    "Review necessity of purchases",
]


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT)


def _days_bought(amount: Decimal, avg_daily_spend: Decimal) -> Optional[int]:
    if avg_daily_spend <= 0:
        return None
    return math.floor(amount / avg_daily_spend)


# =============================================================================
# RULES
# =============================================================================

def emergency_rule(context: FinancialContext, now: datetime) -> Optional[SuggestionInput]:
    if context.balance >= context.salary * Decimal("0.05"):
        return None
    avg = context.avg_daily_spend
    return SuggestionInput(
        type=SuggestionType.EMERGENCY,
        rule="emergency",
        title="🚨 Emergency Mode Activated",
        description=(
            "Your fuel is critically low! Immediate action required "
            "to avoid running out of money."
        ),
        action=SuggestionAction.REDUCE_SPENDING,
        priority=Priority.URGENT,
        impact=SuggestionImpact(
            money_saved=_money(avg * Decimal("0.5") * 7),
            confidence_score=0.95,
        ),
        action_data={
            "emergency_level": "critical",
            "recommendations": [
                "Stop all non-essential spending",
                "Cancel subscriptions temporarily",
                "Look for immediate income sources",
            ],
            "target_daily_budget": _money(max(Decimal("0"), context.balance / 7)),
        },
    )


def low_fuel_rule(context: FinancialContext, now: datetime) -> Optional[SuggestionInput]:
    # Emergency takes over below 5%
    if context.balance < context.salary * Decimal("0.05"):
        return None
    if not (context.balance < context.salary * Decimal("0.10") or context.days_left < 7):
        return None
    return SuggestionInput(
        type=SuggestionType.EMERGENCY,
        rule="low_fuel",
        title="⚠️ Low Fuel Warning",
        description=(
            "You're running low on fuel. Time to tighten your spending "
            "and look for ways to stretch your money."
        ),
        action=SuggestionAction.REDUCE_SPENDING,
        priority=Priority.HIGH,
        impact=SuggestionImpact(
            days_gained=5,
            money_saved=_money(context.avg_daily_spend * Decimal("0.3") * 7),
            confidence_score=0.85,
        ),
        action_data={
            "emergency_level": "warning",
            "recommendations": [
                "Reduce dining out by 50%",
                "Use public transport",
                "Cook meals at home",
                "Avoid impulse purchases",
            ],
            "target_daily_budget": _money(context.balance / 14),
        },
    )


def budget_adjustment_rule(context: FinancialContext, now: datetime) -> Optional[SuggestionInput]:
    avg = context.avg_daily_spend
    if not (avg > context.salary / 30 and context.days_left < 20):
        return None

    recommended = context.balance / 20
    potential_savings = (avg - recommended) * 20
    return SuggestionInput(
        type=SuggestionType.BUDGET_ADJUSTMENT,
        rule="budget_adjustment",
        title="📊 Budget Optimization",
        description=(
            f"Your current spending pace needs adjustment. Reduce daily expenses "
            f"from {format_inr(avg.quantize(Decimal('1')))} "
            f"to {format_inr(recommended.quantize(Decimal('1')))}."
        ),
        action=SuggestionAction.ADJUST_BUDGET,
        priority=Priority.HIGH,
        impact=SuggestionImpact(
            days_gained=10,
            money_saved=_money(potential_savings),
            confidence_score=0.8,
        ),
        action_data={
            "current_daily_spend": _money(avg),
            "recommended_daily_budget": _money(recommended),
            "potential_savings": _money(potential_savings),
        },
    )


def investment_rule(context: FinancialContext, now: datetime) -> Optional[SuggestionInput]:
    if not (context.balance > context.salary * Decimal("0.5") and context.days_left > 25):
        return None

    amount = Decimal(math.floor(context.balance * Decimal("0.3")))
    return SuggestionInput(
        type=SuggestionType.INVESTMENT,
        rule="investment",
        title="💎 Investment Opportunity",
        description=(
            f"You have surplus funds! Consider investing {format_inr(amount)} "
            "for long-term growth."
        ),
        action=SuggestionAction.INVEST,
        priority=Priority.NORMAL,
        action_amount=amount,
        impact=SuggestionImpact(
            # Assumes a 12% annual return
            money_saved=_money(amount * Decimal("0.12")),
            confidence_score=0.7,
        ),
        action_data={
            "recommended_amount": amount,
            "time_horizon": "Long-term (3+ years)",
        },
    )


def savings_rule(context: FinancialContext, now: datetime) -> Optional[SuggestionInput]:
    salary = context.salary
    if not (
        salary * Decimal("0.3") < context.balance <= salary * Decimal("0.5")
        and context.days_left > 20
    ):
        return None

    amount = Decimal(math.floor(context.balance * Decimal("0.2")))
    return SuggestionInput(
        type=SuggestionType.SAVINGS,
        rule="savings",
        title="🏦 Smart Savings",
        description=f"Build your emergency fund! Save {format_inr(amount)} for financial security.",
        action=SuggestionAction.SAVE,
        priority=Priority.NORMAL,
        action_amount=amount,
        impact=SuggestionImpact(
            money_saved=amount,
            confidence_score=0.8,
        ),
        action_data={
            "savings_goal": salary,
            "target_amount": amount,
        },
    )


def category_optimization_rule(
    context: FinancialContext,
    analytics: Optional[SpendingAnalytics],
    now: datetime,
) -> Optional[SuggestionInput]:
    if analytics is None:
        return None

    for spending in analytics.category_breakdown[:3]:
        if spending.percentage <= 40:
            continue

        potential = spending.amount * Decimal("0.2")
        category = spending.category
        return SuggestionInput(
            type=SuggestionType.CATEGORY_OPTIMIZATION,
            rule=f"category_optimization:{category.value}",
            title=f"🎯 Optimize {category.value} Spending",
            description=(
                f"{category.value} accounts for {round(spending.percentage)}% of your spending. "
                f"Here's how to save {format_inr(potential.quantize(Decimal('1')))}."
            ),
            action=SuggestionAction.REVIEW_EXPENSES,
            priority=Priority.NORMAL,
            category=category,
            impact=SuggestionImpact(
                money_saved=_money(potential),
                days_gained=_days_bought(potential, context.avg_daily_spend),
                confidence_score=0.6,
            ),
            action_data={
                "category": category.value,
                "current_amount": spending.amount,
                "percentage": spending.percentage,
                "tips": CATEGORY_TIPS.get(category, DEFAULT_TIPS),
                "target_reduction": _money(potential),
            },
        )
    return None


def bill_review_rule(context: FinancialContext, now: datetime) -> Optional[SuggestionInput]:
    bills = context.recurring_bills_amount
    if bills <= context.salary * Decimal("0.4"):
        return None

    reduction = bills * Decimal("0.2")
    return SuggestionInput(
        type=SuggestionType.RECURRING_BILL,
        rule="bill_review",
        title="📋 Review Subscriptions",
        description=(
            f"Your recurring bills are high ({format_inr(bills)}). Cancel unused "
            f"subscriptions to free up {format_inr(Decimal(math.floor(reduction)))} monthly."
        ),
        action=SuggestionAction.REVIEW_EXPENSES,
        priority=Priority.NORMAL,
        impact=SuggestionImpact(
            money_saved=_money(reduction),
            days_gained=_days_bought(reduction, context.avg_daily_spend),
            confidence_score=0.75,
        ),
        action_data={
            "total_bills": bills,
            "percentage_of_salary": float(bills / context.salary * 100),
            "recommended_reduction": _money(reduction),
        },
    )


def fuel_warning_rule(context: FinancialContext, now: datetime) -> Optional[SuggestionInput]:
    days = context.days_left
    if not 0 < days < 10:
        return None

    avg = context.avg_daily_spend
    return SuggestionInput(
        type=SuggestionType.FUEL_WARNING,
        rule="fuel_warning",
        title="🔥 Fuel Running Low",
        description=(
            f"Only {days} days of fuel remaining! Reduce daily spending by 30% "
            "to extend your runway."
        ),
        action=SuggestionAction.REDUCE_SPENDING,
        priority=Priority.HIGH,
        impact=SuggestionImpact(
            days_gained=math.floor(days * 0.4),
            money_saved=_money(avg * Decimal("0.3") * days),
            confidence_score=0.85,
        ),
        expires_at=now + timedelta(hours=24),
        action_data={
            "current_daily_spend": _money(avg),
            "target_daily_spend": _money(avg * Decimal("0.7")),
        },
    )


CONTEXT_RULES: tuple[Callable[[FinancialContext, datetime], Optional[SuggestionInput]], ...] = (
    emergency_rule,
    low_fuel_rule,
    budget_adjustment_rule,
    investment_rule,
    savings_rule,
    bill_review_rule,
    fuel_warning_rule,
)


# =============================================================================
# ENGINE
# =============================================================================

class SuggestionEngine:
    """Runs the rule set and ranks candidates."""

    def __init__(
        self,
        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._max_suggestions = max_suggestions
        self._clock = clock

    def rule_candidates(
        self,
        context: FinancialContext,
        analytics: Optional[SpendingAnalytics] = None,
    ) -> list[SuggestionInput]:
        if context.salary <= 0:
            return []

        now = self._clock()
        candidates = [rule(context, now) for rule in CONTEXT_RULES]
        candidates.append(category_optimization_rule(context, analytics, now))
        return [c for c in candidates if c is not None]

    def is_relevant(self, candidate: SuggestionInput, context: FinancialContext) -> bool:
        """
        Sanity filter for candidates from outside the rule set.

        An external generator may propose investing while the tank is
        nearly empty; those proposals are dropped.
        """
        balance, salary, days = context.balance, context.salary, context.days_left
        if candidate.type == SuggestionType.INVESTMENT and (
            balance < salary * Decimal("0.2") or days < 10
        ):
            return False
        if candidate.type == SuggestionType.SAVINGS and balance < salary * Decimal("0.15"):
            return False
        if candidate.type == SuggestionType.EMERGENCY and days > 15:
            return False
        return True

    def rank(self, candidates: Iterable[SuggestionInput]) -> list[SuggestionInput]:
        seen: set[str] = set()
        unique = []
        for candidate in candidates:
            if candidate.rule_key in seen:
                continue
            seen.add(candidate.rule_key)
            unique.append(candidate)

        ranked = sorted(
            unique,
            key=lambda c: (c.priority.weight, c.impact.confidence_score),
            reverse=True,
        )
        return ranked[:self._max_suggestions]

    def generate(
        self,
        context: FinancialContext,
        analytics: Optional[SpendingAnalytics] = None,
        external: Optional[list[SuggestionInput]] = None,
    ) -> list[SuggestionInput]:
        """External candidates (already fetched) merged ahead of the rule set, then ranked."""
        merged = []
        for candidate in external or []:
            if candidate.rule is None:
                candidate = candidate.model_copy(update={"rule": f"external:{candidate.type.value}"})
            if self.is_relevant(candidate, context):
                merged.append(candidate)
            else:
                logger.info("external_suggestion_dropped", type=candidate.type.value)

        merged.extend(self.rule_candidates(context, analytics))
        ranked = self.rank(merged)
        logger.debug(
            "suggestions_ranked",
            candidates=len(merged),
            kept=[c.rule_key for c in ranked],
        )
        return ranked
