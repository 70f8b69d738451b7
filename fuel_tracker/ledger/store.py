"""
Ledger - the canonical store of salary, expenses and recurring bills

DESIGN DECISION: The ledger holds a single immutable LedgerSnapshot and
swaps it for a new one on every mutation. Readers get the snapshot
itself, never a live collection, so a reader can never observe a
half-applied change.

Every mutation:
1. Validates its input and raises LedgerValidationError listing every
   problem found. The ledger is left untouched.
2. Builds the next snapshot and stamps created_at/updated_at.
3. Bumps the revision counter.
4. Returns a MutationResult with the domain events and the metrics
   before and after the change.

Updates and deletes that name an unknown id are silent no-ops: no error,
no revision bump, no events.
"""

import time
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

import structlog

from fuel_tracker.metrics.calculator import MetricsCalculator
from fuel_tracker.models.events import DomainEvent, DomainEventType, MutationResult
from fuel_tracker.models.ledger import (
    Expense,
    ExpenseInput,
    ExpensePatch,
    LedgerSnapshot,
    RecurringBill,
    RecurringBillInput,
    RecurringBillPatch,
    SalaryFrequency,
    SalaryRecord,
)
from fuel_tracker.models.metrics import DerivedMetrics
from fuel_tracker.models.validation import ValidationIssue


logger = structlog.get_logger(__name__)


class LedgerValidationError(ValueError):
    """Input rejected by the ledger. The ledger is unchanged."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(f"{i.field}: {i.message}" for i in issues))


def generate_id() -> str:
    """
    Process-unique identifier: random prefix plus millisecond timestamp.

    Not suitable for anything security related.
    """
    return f"{uuid4().hex[:9]}{int(time.time() * 1000):x}"


def next_cycle_date(frequency: SalaryFrequency, now: datetime) -> datetime:
    """When the next salary is expected after one set at `now`."""
    if frequency == SalaryFrequency.WEEKLY:
        return now + timedelta(days=7)
    if frequency == SalaryFrequency.BIWEEKLY:
        return now + timedelta(days=14)
    # Monthly salaries arrive on the 1st
    if now.month == 12:
        return now.replace(year=now.year + 1, month=1, day=1)
    return now.replace(month=now.month + 1, day=1)


def _to_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _check_amount(field: str, value: Any, issues: list[ValidationIssue]) -> Optional[Decimal]:
    amount = _to_decimal(value)
    if amount is None or not amount.is_finite():
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_format",
            message=f"Not a number: {value!r}",
            suggested_fix="Enter the amount as a plain number",
        ))
        return None
    if amount <= 0:
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message="Amount must be greater than zero",
            suggested_fix="Enter a positive amount",
        ))
        return None
    return amount


def _check_name(value: Optional[str], issues: list[ValidationIssue]) -> None:
    if value is not None and not value.strip():
        issues.append(ValidationIssue(
            field="name",
            issue_type="missing",
            message="Bill name cannot be empty",
            suggested_fix="Give the bill a recognizable name",
        ))


class Ledger:
    """
    Single source of truth for the user's financial records.

    Not thread-safe. The coordinator is its only writer.
    """

    def __init__(
        self,
        calculator: Optional[MetricsCalculator] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._calculator = calculator or MetricsCalculator()
        self._clock = clock
        self._snapshot = LedgerSnapshot()
        self._revision = 0

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    @property
    def revision(self) -> int:
        return self._revision

    def metrics(self) -> DerivedMetrics:
        return self._calculator.derive(self._snapshot, self._clock())

    def restore(self, snapshot: LedgerSnapshot) -> None:
        """Replace the whole ledger, e.g. with a persisted snapshot."""
        self._snapshot = snapshot
        self._revision += 1

    # -------------------------------------------------------------------------
    # Salary
    # -------------------------------------------------------------------------

    def set_salary(
        self,
        amount: Any,
        frequency: SalaryFrequency = SalaryFrequency.MONTHLY,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        issues: list[ValidationIssue] = []
        value = _check_amount("amount", amount, issues)
        if issues:
            raise LedgerValidationError(issues)

        now = self._clock()
        deducted = sum(
            (b.amount for b in self._snapshot.recurring_bills if b.deducts_from_balance),
            Decimal("0"),
        )
        salary = SalaryRecord(
            amount=value,
            frequency=frequency,
            last_updated=now,
            next_cycle_date=next_cycle_date(frequency, now),
            recurring_deducted=deducted,
        )
        event = DomainEvent(
            type=DomainEventType.SALARY_SET,
            occurred_at=now,
            correlation_id=correlation_id,
            details={"amount": str(value), "frequency": frequency.value},
        )
        return self._commit(
            self._snapshot.model_copy(update={"salary": salary}),
            [event],
        )

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        data: ExpenseInput,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        issues: list[ValidationIssue] = []
        amount = _check_amount("amount", data.amount, issues)
        if issues:
            raise LedgerValidationError(issues)

        now = self._clock()
        expense = Expense(
            id=generate_id(),
            amount=amount,
            category=data.category,
            description=data.description,
            date=data.date or now,
            source=data.source,
            tags=tuple(data.tags),
            created_at=now,
            updated_at=now,
        )
        event = DomainEvent(
            type=DomainEventType.EXPENSE_ADDED,
            occurred_at=now,
            correlation_id=correlation_id,
            entity_id=expense.id,
            details={
                "amount": str(expense.amount),
                "category": expense.category.value,
                "source": expense.source.value,
            },
        )
        return self._commit(
            self._snapshot.model_copy(
                update={"expenses": self._snapshot.expenses + (expense,)}
            ),
            [event],
            entity_id=expense.id,
        )

    def update_expense(
        self,
        expense_id: str,
        patch: ExpensePatch,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        issues: list[ValidationIssue] = []
        if "amount" in changes:
            changes["amount"] = _check_amount("amount", changes["amount"], issues)
        if issues:
            raise LedgerValidationError(issues)

        current = self._snapshot.find_expense(expense_id)
        if current is None:
            return self._noop(expense_id)

        if "tags" in changes:
            changes["tags"] = tuple(changes["tags"])
        now = self._clock()
        updated = current.model_copy(update={**changes, "updated_at": now})

        event = DomainEvent(
            type=DomainEventType.EXPENSE_UPDATED,
            occurred_at=now,
            correlation_id=correlation_id,
            entity_id=expense_id,
            details={"fields": sorted(changes), "amount": str(updated.amount)},
        )
        expenses = tuple(updated if e.id == expense_id else e for e in self._snapshot.expenses)
        return self._commit(
            self._snapshot.model_copy(update={"expenses": expenses}),
            [event],
            entity_id=expense_id,
        )

    def delete_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        current = self._snapshot.find_expense(expense_id)
        if current is None:
            return self._noop(expense_id)

        event = DomainEvent(
            type=DomainEventType.EXPENSE_DELETED,
            occurred_at=self._clock(),
            correlation_id=correlation_id,
            entity_id=expense_id,
            details={"amount": str(current.amount)},
        )
        expenses = tuple(e for e in self._snapshot.expenses if e.id != expense_id)
        return self._commit(
            self._snapshot.model_copy(update={"expenses": expenses}),
            [event],
            entity_id=expense_id,
        )

    # -------------------------------------------------------------------------
    # Recurring bills
    # -------------------------------------------------------------------------

    def add_recurring_bill(
        self,
        data: RecurringBillInput,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        issues: list[ValidationIssue] = []
        amount = _check_amount("amount", data.amount, issues)
        _check_name(data.name, issues)
        if issues:
            raise LedgerValidationError(issues)

        now = self._clock()
        bill = RecurringBill(
            id=generate_id(),
            name=data.name,
            amount=amount,
            frequency=data.frequency,
            next_due_date=data.next_due_date,
            category=data.category,
            auto_deduct=data.auto_deduct,
            is_active=data.is_active,
            created_at=now,
            updated_at=now,
        )
        event = DomainEvent(
            type=DomainEventType.BILL_ADDED,
            occurred_at=now,
            correlation_id=correlation_id,
            entity_id=bill.id,
            details={
                "name": bill.name,
                "amount": str(bill.amount),
                "auto_deduct": bill.auto_deduct,
            },
        )
        return self._commit(
            self._snapshot.model_copy(
                update={"recurring_bills": self._snapshot.recurring_bills + (bill,)}
            ),
            [event],
            entity_id=bill.id,
        )

    def update_recurring_bill(
        self,
        bill_id: str,
        patch: RecurringBillPatch,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        issues: list[ValidationIssue] = []
        if "amount" in changes:
            changes["amount"] = _check_amount("amount", changes["amount"], issues)
        _check_name(changes.get("name"), issues)
        if issues:
            raise LedgerValidationError(issues)

        current = self._snapshot.find_bill(bill_id)
        if current is None:
            return self._noop(bill_id)

        now = self._clock()
        updated = current.model_copy(update={**changes, "updated_at": now})
        event = DomainEvent(
            type=DomainEventType.BILL_UPDATED,
            occurred_at=now,
            correlation_id=correlation_id,
            entity_id=bill_id,
            details={"fields": sorted(changes)},
        )
        bills = tuple(updated if b.id == bill_id else b for b in self._snapshot.recurring_bills)
        return self._commit(
            self._snapshot.model_copy(update={"recurring_bills": bills}),
            [event],
            entity_id=bill_id,
        )

    def delete_recurring_bill(
        self,
        bill_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        current = self._snapshot.find_bill(bill_id)
        if current is None:
            return self._noop(bill_id)

        event = DomainEvent(
            type=DomainEventType.BILL_DELETED,
            occurred_at=self._clock(),
            correlation_id=correlation_id,
            entity_id=bill_id,
            details={"name": current.name},
        )
        bills = tuple(b for b in self._snapshot.recurring_bills if b.id != bill_id)
        return self._commit(
            self._snapshot.model_copy(update={"recurring_bills": bills}),
            [event],
            entity_id=bill_id,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _commit(
        self,
        snapshot: LedgerSnapshot,
        events: list[DomainEvent],
        entity_id: Optional[str] = None,
    ) -> MutationResult:
        now = self._clock()
        before = self._calculator.derive(self._snapshot, now)
        after = self._calculator.derive(snapshot, now)

        self._snapshot = snapshot
        self._revision += 1

        return MutationResult(
            events=events,
            before=before,
            after=after,
            revision=self._revision,
            entity_id=entity_id,
        )

    def _noop(self, entity_id: str) -> MutationResult:
        logger.debug("ledger_unknown_id", entity_id=entity_id)
        metrics = self.metrics()
        return MutationResult(
            events=[],
            before=metrics,
            after=metrics,
            revision=self._revision,
            entity_id=None,
        )
