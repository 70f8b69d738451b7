"""
Ledger Data Models for Fuel Tracker

These models describe the financial records the user owns: the salary
that fills the tank, the expenses that burn it, and the recurring bills
that may be deducted automatically.

DESIGN DECISION: Stored records (SalaryRecord, Expense, RecurringBill) are
frozen. The ledger replaces a record wholesale on update, so a snapshot
handed out to a reader can never change underneath it.

Input and patch models are deliberately permissive: business rules
(positive amounts, non-empty names) are checked by the ledger, which
reports every violation at once instead of failing on the first one.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: A closed set keeps analytics and category tips
    consistent. Free-text categories would fragment the breakdown.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    UTILITIES = "Utilities"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    RENT = "Rent"
    EMI = "EMI"
    SUBSCRIPTION = "Subscription"
    INVESTMENT = "Investment"
    SAVINGS = "Savings"
    OTHERS = "Others"


class ExpenseSource(str, Enum):
    """Where an expense record came from."""
    MANUAL = "manual"        # Entered by the user
    PARSED = "parsed"        # Produced by the bank/SMS message parser
    RECURRING = "recurring"  # Materialized from a recurring bill


class SalaryFrequency(str, Enum):
    """How often the salary arrives."""
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"


class BillFrequency(str, Enum):
    """How often a recurring bill is due."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# =============================================================================
# STORED RECORDS
# =============================================================================

class SalaryRecord(BaseModel):
    """
    The active salary.

    There is at most one. Setting a new salary replaces it.
    """
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Salary amount per cycle"
    )
    frequency: SalaryFrequency = Field(
        default=SalaryFrequency.MONTHLY,
        description="Pay cycle"
    )
    last_updated: datetime = Field(
        ...,
        description="When the salary was last set"
    )
    next_cycle_date: datetime = Field(
        ...,
        description="When the next salary is expected"
    )
    recurring_deducted: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Auto-deduct bill total at the time the salary was set"
    )


class Expense(BaseModel):
    """
    A single expense.

    The id never changes. Amount, category, description, date and tags
    can be edited through the ledger.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount spent"
    )
    category: ExpenseCategory
    description: str = Field(default="", max_length=500)
    date: datetime = Field(
        ...,
        description="When the money was spent"
    )
    source: ExpenseSource = Field(default=ExpenseSource.MANUAL)
    tags: tuple[str, ...] = Field(default=())
    created_at: datetime
    updated_at: datetime


class RecurringBill(BaseModel):
    """
    A recurring bill.

    IMPORTANT: Only bills that are both active and auto-deducted reduce
    the balance. Other bills are tracked for reminders and suggestions.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., gt=0)
    frequency: BillFrequency = Field(default=BillFrequency.MONTHLY)
    next_due_date: datetime
    category: ExpenseCategory = Field(default=ExpenseCategory.UTILITIES)
    auto_deduct: bool = Field(default=False)
    is_active: bool = Field(default=True)
    created_at: datetime
    updated_at: datetime

    @property
    def deducts_from_balance(self) -> bool:
        return self.is_active and self.auto_deduct


# =============================================================================
# INPUTS AND PATCHES
# =============================================================================

class ExpenseInput(BaseModel):
    """Data needed to record a new expense."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal
    category: ExpenseCategory = Field(default=ExpenseCategory.OTHERS)
    description: str = Field(default="")
    date: Optional[datetime] = Field(
        default=None,
        description="Defaults to the time the expense is recorded"
    )
    source: ExpenseSource = Field(default=ExpenseSource.MANUAL)
    tags: list[str] = Field(default_factory=list)


class ExpensePatch(BaseModel):
    """Partial update of an expense. Unset fields are left unchanged."""
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = None
    category: Optional[ExpenseCategory] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    tags: Optional[list[str]] = None


class RecurringBillInput(BaseModel):
    """Data needed to register a recurring bill."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    amount: Decimal
    frequency: BillFrequency = Field(default=BillFrequency.MONTHLY)
    next_due_date: datetime
    category: ExpenseCategory = Field(default=ExpenseCategory.UTILITIES)
    auto_deduct: bool = Field(default=False)
    is_active: bool = Field(default=True)


class RecurringBillPatch(BaseModel):
    """Partial update of a recurring bill. Unset fields are left unchanged."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    amount: Optional[Decimal] = None
    frequency: Optional[BillFrequency] = None
    next_due_date: Optional[datetime] = None
    category: Optional[ExpenseCategory] = None
    auto_deduct: Optional[bool] = None
    is_active: Optional[bool] = None


class ParsedExpense(BaseModel):
    """
    Expense candidate produced by the bank/SMS message parser.

    CRITICAL: This is PROPOSED data. It must pass ParsedExpenseValidator
    before it reaches the ledger.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal
    description: str = Field(default="")
    category: ExpenseCategory = Field(default=ExpenseCategory.OTHERS)
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Parser confidence in the extraction (0-1)"
    )
    merchant: Optional[str] = None
    transaction_date: Optional[datetime] = None
    raw_message: Optional[str] = Field(
        default=None,
        description="Original message text, kept for traceability"
    )


# =============================================================================
# SNAPSHOT
# =============================================================================

class LedgerSnapshot(BaseModel):
    """
    Immutable view of the whole ledger at one revision.

    Readers (metrics, analytics, persistence) only ever see snapshots.
    """
    model_config = ConfigDict(frozen=True)

    salary: Optional[SalaryRecord] = None
    expenses: tuple[Expense, ...] = Field(default=())
    recurring_bills: tuple[RecurringBill, ...] = Field(default=())

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        return next((e for e in self.expenses if e.id == expense_id), None)

    def find_bill(self, bill_id: str) -> Optional[RecurringBill]:
        return next((b for b in self.recurring_bills if b.id == bill_id), None)
