"""
Suggestion Book

Holds the active suggestions and the history of the ones the user acted
on. Applying and dismissing are mutually exclusive; once either has
happened, further transitions are ignored.
"""

from datetime import datetime
from typing import Callable, Iterable, Optional

import structlog

from fuel_tracker.ledger.store import generate_id
from fuel_tracker.models.notification import Priority
from fuel_tracker.models.suggestion import Suggestion, SuggestionInput, SuggestionType


logger = structlog.get_logger(__name__)


class SuggestionBook:
    """Active suggestions plus a capped, newest-first history."""

    def __init__(
        self,
        history_limit: int = 20,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._history_limit = history_limit
        self._clock = clock
        self._active: list[Suggestion] = []
        self._history: list[Suggestion] = []
        self.last_generated: Optional[datetime] = None

    @property
    def history(self) -> list[Suggestion]:
        return list(self._history)

    def restore(
        self,
        history: list[Suggestion],
        last_generated: Optional[datetime] = None,
    ) -> None:
        self._history = list(history)[:self._history_limit]
        self.last_generated = last_generated

    def _materialize(self, candidate: SuggestionInput, now: datetime) -> Suggestion:
        return Suggestion(
            **candidate.model_dump(exclude={"rule"}),
            id=generate_id(),
            rule=candidate.rule_key,
            created_at=now,
        )

    def add(self, candidate: SuggestionInput) -> Suggestion:
        """Add one suggestion, or return the active one already held for its rule."""
        now = self._clock()
        current = next(
            (s for s in self._active if s.rule == candidate.rule_key and s.is_active(now)),
            None,
        )
        if current is not None:
            logger.debug("suggestion_already_active", rule=candidate.rule_key)
            return current

        suggestion = self._materialize(candidate, now)
        self._active.append(suggestion)
        return suggestion

    def replace_active(self, ranked: Iterable[SuggestionInput]) -> list[Suggestion]:
        """
        Make `ranked` the new active set.

        A candidate whose rule already has an active suggestion keeps the
        existing record (same id, same creation time).
        """
        now = self._clock()
        existing = {s.rule: s for s in self._active if s.is_active(now)}

        active = []
        for candidate in ranked:
            current = existing.get(candidate.rule_key)
            active.append(current if current is not None else self._materialize(candidate, now))

        self._active = active
        self.last_generated = now
        return list(active)

    def get(self, suggestion_id: str) -> Optional[Suggestion]:
        return next((s for s in self._active if s.id == suggestion_id), None)

    def active(self, now: Optional[datetime] = None) -> list[Suggestion]:
        now = now or self._clock()
        return [s for s in self._active if s.is_active(now)]

    def by_type(self, suggestion_type: SuggestionType) -> list[Suggestion]:
        return [s for s in self.active() if s.type == suggestion_type]

    def high_priority(self) -> list[Suggestion]:
        return [s for s in self.active() if s.priority in (Priority.HIGH, Priority.URGENT)]

    def apply(self, suggestion_id: str) -> Optional[Suggestion]:
        return self._transition(suggestion_id, "is_applied")

    def dismiss(self, suggestion_id: str) -> Optional[Suggestion]:
        return self._transition(suggestion_id, "is_dismissed")

    def delete(self, suggestion_id: str) -> bool:
        before = len(self._active)
        self._active = [s for s in self._active if s.id != suggestion_id]
        return len(self._active) != before

    def _transition(self, suggestion_id: str, flag: str) -> Optional[Suggestion]:
        for index, suggestion in enumerate(self._active):
            if suggestion.id != suggestion_id:
                continue
            if suggestion.is_applied or suggestion.is_dismissed:
                logger.debug("suggestion_already_final", suggestion_id=suggestion_id)
                return None

            updated = suggestion.model_copy(update={flag: True})
            self._active[index] = updated
            self._history.insert(0, updated)
            del self._history[self._history_limit:]
            logger.info("suggestion_transition", suggestion_id=suggestion_id, state=flag)
            return updated
        return None
