"""Ledger package - canonical store of the user's financial records."""

from fuel_tracker.ledger.store import (
    Ledger,
    LedgerValidationError,
    generate_id,
    next_cycle_date,
)

__all__ = [
    "Ledger",
    "LedgerValidationError",
    "generate_id",
    "next_cycle_date",
]
