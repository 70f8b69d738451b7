"""
Suggestion Actions

Translates an applied suggestion into the confirmation the user sees.
Nothing here moves money; the plan is only a message (and, for
reminders, a schedule trigger) for the notifier.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from fuel_tracker.models.suggestion import Suggestion, SuggestionAction
from fuel_tracker.notifications.templates import format_inr
from fuel_tracker.services.notifier.interface import ScheduleTrigger


class ActionPlan(BaseModel):
    """What to tell the notifier once a suggestion is applied."""

    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    trigger: Optional[ScheduleTrigger] = Field(
        default=None,
        description="Schedule instead of sending immediately"
    )


# Actions that make no sense without an amount
AMOUNT_REQUIRED = {
    SuggestionAction.SAVE,
    SuggestionAction.INVEST,
    SuggestionAction.ADD_INCOME,
    SuggestionAction.TRANSFER_MONEY,
}


def _save(s: Suggestion, now: datetime) -> ActionPlan:
    return ActionPlan(
        title="🏦 Savings Action",
        message=f"{format_inr(s.action_amount)} has been set aside for savings.",
        data={"amount": str(s.action_amount)},
    )


def _invest(s: Suggestion, now: datetime) -> ActionPlan:
    return ActionPlan(
        title="💎 Investment Action",
        message=f"{format_inr(s.action_amount)} has been allocated for investment.",
        data={"amount": str(s.action_amount)},
    )


def _reduce_spending(s: Suggestion, now: datetime) -> ActionPlan:
    target = s.action_data.get("target_daily_budget") or s.action_data.get("target_daily_spend")
    message = "Spending reduction plan activated."
    if target:
        message = f"Keep daily spending under {format_inr(Decimal(str(target)))}."
    return ActionPlan(title="💰 Spending Reduction", message=message)


def _review_expenses(s: Suggestion, now: datetime) -> ActionPlan:
    message = "Expense review initiated."
    if s.category:
        message = f"Reviewing expenses in {s.category.value} category."
    return ActionPlan(
        title="📋 Expense Review",
        message=message,
        data={"category": s.category.value if s.category else None},
    )


def _add_income(s: Suggestion, now: datetime) -> ActionPlan:
    return ActionPlan(
        title="💼 Income Addition",
        message=f"Log {format_inr(s.action_amount)} of extra income when it arrives.",
        data={"amount": str(s.action_amount)},
    )


def _transfer_money(s: Suggestion, now: datetime) -> ActionPlan:
    source = s.action_data.get("from_account", "default")
    target = s.action_data.get("to_account", "savings")
    return ActionPlan(
        title="🔁 Money Transfer",
        message=f"{format_inr(s.action_amount)} marked for transfer from {source} to {target}.",
        data={"amount": str(s.action_amount), "from": source, "to": target},
    )


def _set_reminder(s: Suggestion, now: datetime) -> ActionPlan:
    due = s.action_data.get("due_date")
    at = datetime.fromisoformat(due) if isinstance(due, str) else (due or now + timedelta(days=1))
    return ActionPlan(
        title="📅 Financial Reminder",
        message=s.action_data.get("reminder_text", "Financial task"),
        trigger=ScheduleTrigger(at=at),
    )


def _adjust_budget(s: Suggestion, now: datetime) -> ActionPlan:
    budget = s.action_data.get("recommended_daily_budget")
    message = "Budget adjusted successfully."
    if budget:
        suffix = f" for {s.category.value}" if s.category else ""
        message = f"Daily budget set to {format_inr(Decimal(str(budget)))}{suffix}."
    return ActionPlan(
        title="📊 Budget Adjustment",
        message=message,
        data={"daily_budget": str(budget) if budget else None},
    )


ACTION_PLANNERS: dict[SuggestionAction, Callable[[Suggestion, datetime], ActionPlan]] = {
    SuggestionAction.SAVE: _save,
    SuggestionAction.INVEST: _invest,
    SuggestionAction.REDUCE_SPENDING: _reduce_spending,
    SuggestionAction.REVIEW_EXPENSES: _review_expenses,
    SuggestionAction.ADD_INCOME: _add_income,
    SuggestionAction.TRANSFER_MONEY: _transfer_money,
    SuggestionAction.SET_REMINDER: _set_reminder,
    SuggestionAction.ADJUST_BUDGET: _adjust_budget,
}


def plan_action(suggestion: Suggestion, now: datetime) -> Optional[ActionPlan]:
    """
    Build the confirmation for an applied suggestion.

    Returns None when the suggestion cannot be acted on (an amount-based
    action without an amount).
    """
    if suggestion.action in AMOUNT_REQUIRED and not suggestion.action_amount:
        return None

    plan = ACTION_PLANNERS[suggestion.action](suggestion, now)
    plan.data = {
        "type": "suggestion_action",
        "action": suggestion.action.value,
        "suggestion_id": suggestion.id,
        **plan.data,
    }
    return plan
