"""
Domain Event Models

Every ledger mutation produces domain events. The coordinator dispatches
them to the notification, suggestion and achievement subsystems and the
audit logger records them.

DESIGN DECISION: Events are returned from the mutation call instead of
being broadcast through a global emitter. The caller decides what
happens next and tests can assert on exactly what a mutation produced.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from fuel_tracker.models.metrics import DerivedMetrics


class DomainEventType(str, Enum):
    SALARY_SET = "salary_set"
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    BILL_ADDED = "bill_added"
    BILL_UPDATED = "bill_updated"
    BILL_DELETED = "bill_deleted"


class DomainEvent(BaseModel):
    """A single change to the ledger."""

    event_id: UUID = Field(default_factory=uuid4)
    type: DomainEventType
    occurred_at: datetime
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by everything triggered by one user action"
    )
    entity_id: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "event_type": self.type.value,
            "occurred_at": self.occurred_at.isoformat(),
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "entity_id": self.entity_id,
            "details": self.details,
        }


class MutationResult(BaseModel):
    """
    Outcome of one ledger mutation.

    A no-op (e.g. updating an unknown id) has no events and identical
    before/after metrics, and leaves the revision unchanged.
    """

    events: list[DomainEvent] = Field(default_factory=list)
    before: DerivedMetrics
    after: DerivedMetrics
    revision: int = Field(..., ge=0)
    entity_id: Optional[str] = None

    @property
    def changed(self) -> bool:
        return bool(self.events)
