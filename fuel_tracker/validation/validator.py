"""
Parsed Expense Validation

Candidates from the bank/SMS message parser are PROPOSED data. Before
one reaches the ledger it must pass:

- Amount sanity: strictly positive and below the misread ceiling
- Description present
- Parser confidence at or above the configured minimum
- Transaction date in naive local time and not in the future

IMPORTANT: Validation NEVER silently fixes issues. It reports them and
the caller decides; the engine drops invalid candidates.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from fuel_tracker.config import EngineSettings
from fuel_tracker.models.ledger import ParsedExpense
from fuel_tracker.models.validation import ValidationIssue, ValidationResult


# Clock skew between the phone and the bank's timestamp
FUTURE_TOLERANCE = timedelta(minutes=5)


class ParsedExpenseValidator:
    """Checks parsed expense candidates before ingestion."""

    def __init__(
        self,
        min_confidence: float = 0.6,
        max_amount: Decimal = Decimal("1000000"),
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._min_confidence = min_confidence
        self._max_amount = max_amount
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "ParsedExpenseValidator":
        return cls(
            min_confidence=settings.min_parse_confidence,
            max_amount=Decimal(str(settings.max_parsed_amount)),
            clock=clock,
        )

    def validate(self, parsed: ParsedExpense) -> ValidationResult:
        issues: list[ValidationIssue] = []

        if parsed.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                suggested_fix="Check if the amount was read correctly",
            ))
        elif parsed.amount >= self._max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount {parsed.amount} is unusually large for a single transaction",
                suggested_fix="Verify the amount - might be a parsing error",
            ))

        if not parsed.description.strip():
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                suggested_fix="Use the merchant name from the message",
            ))

        if parsed.confidence < self._min_confidence:
            issues.append(ValidationIssue(
                field="confidence",
                issue_type="low_confidence",
                message=(
                    f"Parser confidence {parsed.confidence:.0%} is below "
                    f"the required {self._min_confidence:.0%}"
                ),
                suggested_fix="Ask the user to confirm or enter the expense manually",
            ))

        # Ledger dates are naive local time
        if parsed.transaction_date and parsed.transaction_date.tzinfo is not None:
            issues.append(ValidationIssue(
                field="transaction_date",
                issue_type="invalid_format",
                message="Transaction date carries a timezone; local time is expected",
                suggested_fix="Convert the date to local time before submitting",
            ))
        elif parsed.transaction_date and parsed.transaction_date > self._clock() + FUTURE_TOLERANCE:
            issues.append(ValidationIssue(
                field="transaction_date",
                issue_type="future_date",
                message="Transaction date is in the future",
                suggested_fix="Check the date in the original message",
            ))

        return ValidationResult(
            is_valid=not any(i.severity == "error" for i in issues),
            issues=issues,
        )
