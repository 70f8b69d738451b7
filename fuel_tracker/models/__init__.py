"""
Data Models Package

This package contains all Pydantic models used by the Fuel Tracker engine.
All data flowing through the system must conform to these schemas.
"""

from fuel_tracker.models.ledger import (
    BillFrequency,
    Expense,
    ExpenseCategory,
    ExpenseInput,
    ExpensePatch,
    ExpenseSource,
    LedgerSnapshot,
    ParsedExpense,
    RecurringBill,
    RecurringBillInput,
    RecurringBillPatch,
    SalaryFrequency,
    SalaryRecord,
)
from fuel_tracker.models.metrics import (
    FUEL_LEVEL_ORDER,
    CategorySpending,
    DerivedMetrics,
    FinancialContext,
    FuelLevel,
    FuelStatus,
    MonthlySpending,
    SpendingAnalytics,
)
from fuel_tracker.models.notification import (
    Notification,
    NotificationInput,
    NotificationSettings,
    NotificationType,
    Priority,
    QuietHours,
)
from fuel_tracker.models.suggestion import (
    Suggestion,
    SuggestionAction,
    SuggestionImpact,
    SuggestionInput,
    SuggestionType,
)
from fuel_tracker.models.achievement import (
    Achievement,
    AchievementDefinition,
    AchievementProgress,
    AchievementTier,
    AchievementType,
)
from fuel_tracker.models.events import (
    DomainEvent,
    DomainEventType,
    MutationResult,
)
from fuel_tracker.models.validation import (
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Ledger models
    "BillFrequency",
    "Expense",
    "ExpenseCategory",
    "ExpenseInput",
    "ExpensePatch",
    "ExpenseSource",
    "LedgerSnapshot",
    "ParsedExpense",
    "RecurringBill",
    "RecurringBillInput",
    "RecurringBillPatch",
    "SalaryFrequency",
    "SalaryRecord",
    # Derived metrics
    "FUEL_LEVEL_ORDER",
    "CategorySpending",
    "DerivedMetrics",
    "FinancialContext",
    "FuelLevel",
    "FuelStatus",
    "MonthlySpending",
    "SpendingAnalytics",
    # Notifications
    "Notification",
    "NotificationInput",
    "NotificationSettings",
    "NotificationType",
    "Priority",
    "QuietHours",
    # Suggestions
    "Suggestion",
    "SuggestionAction",
    "SuggestionImpact",
    "SuggestionInput",
    "SuggestionType",
    # Achievements
    "Achievement",
    "AchievementDefinition",
    "AchievementProgress",
    "AchievementTier",
    "AchievementType",
    # Events
    "DomainEvent",
    "DomainEventType",
    "MutationResult",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
