"""Validation package."""

from fuel_tracker.validation.validator import ParsedExpenseValidator

__all__ = ["ParsedExpenseValidator"]
