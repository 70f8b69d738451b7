"""
Shared fixtures and fakes.

No real API calls in tests: the notifier, the suggestion generator and
the clock are all replaced by the fakes below.
"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional

import pytest

from fuel_tracker.config import EngineSettings
from fuel_tracker.models import (
    FinancialContext,
    Priority,
    SpendingAnalytics,
    SuggestionAction,
    SuggestionImpact,
    SuggestionInput,
    SuggestionType,
)
from fuel_tracker.orchestrator import FuelTankEngine
from fuel_tracker.services.notifier import LogNotifier, NotifierError, NotifierInterface, ScheduleTrigger
from fuel_tracker.services.storage import InMemoryStorage, KeyValueStorage, StorageError
from fuel_tracker.suggestions.generator import ExternalSuggestionGenerator, SuggestionGenerationError


# Saturday noon; quiet hours (when enabled) default to 22:00-08:00
NOW = datetime(2024, 6, 15, 12, 0)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FailingNotifier(NotifierInterface):
    """Every call fails."""

    def __init__(self):
        self.attempts = 0

    async def send_immediate(self, title: str, message: str, data: Optional[dict[str, Any]] = None) -> None:
        self.attempts += 1
        raise NotifierError("transport down")

    async def schedule(
        self,
        title: str,
        message: str,
        trigger: ScheduleTrigger,
        data: Optional[dict[str, Any]] = None,
    ) -> str:
        self.attempts += 1
        raise NotifierError("transport down")

    async def cancel_all(self) -> None:
        self.attempts += 1
        raise NotifierError("transport down")


class FlakyNotifier(LogNotifier):
    """Fails the first `failures` sends, then behaves like LogNotifier."""

    def __init__(self, failures: int = 1):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    async def send_immediate(self, title: str, message: str, data: Optional[dict[str, Any]] = None) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise NotifierError("temporary failure")
        await super().send_immediate(title, message, data)


class FailingStorage(KeyValueStorage):
    async def get(self, key: str) -> Optional[str]:
        raise StorageError("backend unavailable")

    async def set(self, key: str, value: str) -> None:
        raise StorageError("backend unavailable")

    async def remove(self, key: str) -> None:
        raise StorageError("backend unavailable")


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the key/value layout."""

    def __init__(self, rows=None):
        self.rows = rows or [["key", "value", "updated_at"]]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append(list(values))

    def update(self, range_name, values, value_input_option=None):
        index = int(range_name.split(":")[0][1:]) - 1
        self.rows[index] = list(values[0])

    def delete_rows(self, index):
        del self.rows[index - 1]


class FlakyWorksheet(FakeWorksheet):
    """Rejects the first write for `key`, then behaves like FakeWorksheet."""

    def __init__(self, key: str):
        super().__init__()
        self.key = key
        self.failed = False

    def _maybe_fail(self, row):
        if row[0] == self.key and not self.failed:
            self.failed = True
            raise ConnectionResetError("connection reset by peer")

    def append_row(self, values, value_input_option=None):
        self._maybe_fail(values)
        super().append_row(values, value_input_option)

    def update(self, range_name, values, value_input_option=None):
        self._maybe_fail(values[0])
        super().update(range_name, values, value_input_option)


class StaticGenerator(ExternalSuggestionGenerator):
    """Returns the same proposals every time, optionally after a hook runs."""

    def __init__(
        self,
        proposals: list[SuggestionInput],
        before_return: Optional[Callable[[], Awaitable[Any]]] = None,
    ):
        self.proposals = proposals
        self.before_return = before_return
        self.calls = 0

    async def generate(
        self,
        context: FinancialContext,
        analytics: Optional[SpendingAnalytics] = None,
    ) -> list[SuggestionInput]:
        self.calls += 1
        if self.before_return is not None:
            await self.before_return()
        return list(self.proposals)


class FailingGenerator(ExternalSuggestionGenerator):
    async def generate(self, context, analytics=None):
        raise SuggestionGenerationError("model unavailable")


class SlowGenerator(ExternalSuggestionGenerator):
    def __init__(self, delay: float):
        self.delay = delay

    async def generate(self, context, analytics=None):
        await asyncio.sleep(self.delay)
        return []


def make_suggestion(
    suggestion_type: SuggestionType = SuggestionType.SAVINGS,
    rule: Optional[str] = None,
    priority: Priority = Priority.NORMAL,
    confidence: float = 0.5,
    action: SuggestionAction = SuggestionAction.REVIEW_EXPENSES,
    action_amount: Optional[Decimal] = None,
    expires_at: Optional[datetime] = None,
    title: str = "Test suggestion",
) -> SuggestionInput:
    return SuggestionInput(
        type=suggestion_type,
        rule=rule,
        title=title,
        description="Something worth doing",
        action=action,
        priority=priority,
        action_amount=action_amount,
        impact=SuggestionImpact(confidence_score=confidence),
        expires_at=expires_at,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings(
        notifier_retry_max_wait_seconds=0.0,
        suggestion_timeout_seconds=0.05,
    )


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def notifier() -> LogNotifier:
    return LogNotifier()


@pytest.fixture
def engine(settings, storage, notifier, clock) -> FuelTankEngine:
    return FuelTankEngine(
        settings=settings,
        storage=storage,
        notifier=notifier,
        clock=clock,
    )
