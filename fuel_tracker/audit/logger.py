"""
Audit Logger

DESIGN DECISION: Every significant action in the engine is logged.
This provides:
1. Complete traceability of every ledger change
2. Debugging capability for notification and suggestion decisions
3. A record of every external-service failure

The audit logger:
- Writes structured local log lines only. The ledger itself is the
  persisted record, so there is no separate audit store.
- Is synchronous, so it can run inside a mutation without yielding
  to the event loop
- Supports correlation IDs to trace everything one user action caused
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from fuel_tracker.models.events import DomainEvent
from fuel_tracker.models.notification import Notification
from fuel_tracker.models.validation import ValidationIssue


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def _cid(correlation_id: Optional[UUID]) -> Optional[str]:
    return str(correlation_id) if correlation_id else None


class AuditLogger:
    """
    Central audit logging service.

    One method per kind of record. All of them log and return; none
    of them raise.
    """

    def __init__(self):
        self._logger = structlog.get_logger("fuel_tracker.audit")

    def log_event(self, event: DomainEvent) -> None:
        """Log a ledger domain event."""
        self._logger.info("audit_event", **event.to_log_dict())

    def log_notification(
        self,
        notification: Notification,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a notification that entered the inbox."""
        self._logger.info(
            "audit_notification",
            notification_id=notification.id,
            notification_type=notification.type.value,
            priority=notification.priority.value,
            title=notification.title,
            correlation_id=_cid(correlation_id),
        )

    def log_achievement_unlocked(
        self,
        achievement_id: str,
        title: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self._logger.info(
            "audit_achievement_unlocked",
            achievement_id=achievement_id,
            title=title,
            correlation_id=_cid(correlation_id),
        )

    def log_suggestions_generated(
        self,
        count: int,
        degraded: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a suggestion regeneration. `degraded` means rule set only."""
        self._logger.info(
            "audit_suggestions_generated",
            count=count,
            degraded=degraded,
            correlation_id=_cid(correlation_id),
        )

    def log_suggestion_applied(
        self,
        suggestion_id: str,
        action: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self._logger.info(
            "audit_suggestion_applied",
            suggestion_id=suggestion_id,
            action=action,
            correlation_id=_cid(correlation_id),
        )

    def log_validation_failed(
        self,
        stage: str,
        issues: list[ValidationIssue],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log rejected input."""
        self._logger.warning(
            "audit_validation_failed",
            stage=stage,
            issues=[i.model_dump() for i in issues],
            correlation_id=_cid(correlation_id),
        )

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict[str, Any]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self._logger.error(
            "audit_error",
            error_type=error_type,
            error_message=error_message,
            details=details or {},
            correlation_id=_cid(correlation_id),
        )

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        self._logger.warning(
            "audit_external_service_error",
            service=service,
            error_message=error_message,
            correlation_id=_cid(correlation_id),
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
