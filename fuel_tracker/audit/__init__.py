"""Audit logging package."""

from fuel_tracker.audit.logger import AuditLogger, create_correlation_id

__all__ = [
    "AuditLogger",
    "create_correlation_id",
]
