"""
Suggestion Models

Suggestions move through a small lifecycle:

    generated -> applied
              -> dismissed

Applied and dismissed are mutually exclusive and final. Active
suggestions are regenerated every cycle; the ones the user acted on are
kept in a capped history.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from fuel_tracker.models.ledger import ExpenseCategory
from fuel_tracker.models.notification import Priority


class SuggestionType(str, Enum):
    EMERGENCY = "emergency"
    INVESTMENT = "investment"
    SAVINGS = "savings"
    BUDGET_ADJUSTMENT = "budget_adjustment"
    CATEGORY_OPTIMIZATION = "category_optimization"
    RECURRING_BILL = "recurring_bill"
    FUEL_WARNING = "fuel_warning"


class SuggestionAction(str, Enum):
    """What the user is asked to do."""
    SAVE = "save"
    INVEST = "invest"
    REDUCE_SPENDING = "reduce_spending"
    REVIEW_EXPENSES = "review_expenses"
    ADD_INCOME = "add_income"
    TRANSFER_MONEY = "transfer_money"
    SET_REMINDER = "set_reminder"
    ADJUST_BUDGET = "adjust_budget"


class SuggestionImpact(BaseModel):
    """Estimated effect of following a suggestion."""

    days_gained: Optional[int] = None
    money_saved: Optional[Decimal] = None
    confidence_score: float = Field(..., ge=0.0, le=1.0)


class SuggestionInput(BaseModel):
    """
    A suggestion candidate, from the rule set or an external generator.

    The rule key identifies the rule that produced the candidate and is
    used to deduplicate candidates and to keep an already active
    suggestion instead of replacing it.
    """

    type: SuggestionType
    rule: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=1000)
    action: SuggestionAction
    priority: Priority = Field(default=Priority.NORMAL)
    action_amount: Optional[Decimal] = Field(default=None, ge=0)
    category: Optional[ExpenseCategory] = None
    impact: SuggestionImpact
    expires_at: Optional[datetime] = None
    action_data: dict[str, Any] = Field(default_factory=dict)

    @property
    def rule_key(self) -> str:
        return self.rule or self.type.value


class Suggestion(SuggestionInput):
    """A suggestion handed to the user."""

    id: str
    rule: str
    is_applied: bool = Field(default=False)
    is_dismissed: bool = Field(default=False)
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def is_active(self, now: datetime) -> bool:
        return not (self.is_applied or self.is_dismissed or self.is_expired(now))
