"""
Snapshot Persistence

Serializes the engine's replayable state to a KeyValueStorage.

DESIGN DECISION: Only source data is persisted. Balance, days remaining
and fuel status are recomputed on load, so a stored snapshot can never
disagree with the ledger it came from.

Each section lives under its own key, wrapped in a versioned envelope:

    {"version": 1, "state": {...}}

CRITICAL: Loading never raises. A missing key yields None; a corrupt or
unknown-version payload is logged and also yields None, so the caller
falls back to the default state for that section only. Storage failures
on save are logged and swallowed; the in-memory state stays authoritative.

Saves to the same key run one at a time, in request order. A save still
waiting when a newer one for its key is requested is skipped, so a slow
or retried write can never land on top of newer data.
"""

import asyncio
import json
from datetime import date, datetime
from typing import Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, Field, ValidationError

from fuel_tracker.models.achievement import Achievement
from fuel_tracker.models.ledger import LedgerSnapshot
from fuel_tracker.models.notification import Notification, NotificationSettings
from fuel_tracker.models.suggestion import Suggestion
from fuel_tracker.services.storage.interface import KeyValueStorage


logger = structlog.get_logger(__name__)

SCHEMA_VERSION = 1

LEDGER_KEY = "@fuel-tracker/app-store"
NOTIFICATIONS_KEY = "@fuel-tracker/notification-store"
SUGGESTIONS_KEY = "@fuel-tracker/suggestions-store"
ACHIEVEMENTS_KEY = "@fuel-tracker/achievements"


# =============================================================================
# PERSISTED SECTIONS
# =============================================================================

class NotificationState(BaseModel):
    notifications: list[Notification] = Field(default_factory=list)
    settings: NotificationSettings = Field(default_factory=NotificationSettings)


class SuggestionState(BaseModel):
    history: list[Suggestion] = Field(default_factory=list)
    last_generated: Optional[datetime] = None


class AchievementState(BaseModel):
    achievements: list[Achievement] = Field(default_factory=list)
    last_fuel_day: Optional[date] = None


StateT = TypeVar("StateT", bound=BaseModel)


# =============================================================================
# REPOSITORY
# =============================================================================

class SnapshotRepository:
    """Reads and writes the persisted sections."""

    def __init__(
        self,
        storage: KeyValueStorage,
        notification_limit: int = 50,
        suggestion_history_limit: int = 20,
    ):
        self._storage = storage
        self._notification_limit = notification_limit
        self._suggestion_history_limit = suggestion_history_limit
        self._locks: dict[str, asyncio.Lock] = {}
        self._requested: dict[str, int] = {}

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    async def save_ledger(self, snapshot: LedgerSnapshot) -> bool:
        return await self._save(LEDGER_KEY, snapshot)

    async def save_notifications(
        self,
        notifications: list[Notification],
        settings: NotificationSettings,
    ) -> bool:
        state = NotificationState(
            notifications=notifications[:self._notification_limit],
            settings=settings,
        )
        return await self._save(NOTIFICATIONS_KEY, state)

    async def save_suggestions(
        self,
        history: list[Suggestion],
        last_generated: Optional[datetime],
    ) -> bool:
        state = SuggestionState(
            history=history[:self._suggestion_history_limit],
            last_generated=last_generated,
        )
        return await self._save(SUGGESTIONS_KEY, state)

    async def save_achievements(
        self,
        achievements: list[Achievement],
        last_fuel_day: Optional[date],
    ) -> bool:
        state = AchievementState(achievements=achievements, last_fuel_day=last_fuel_day)
        return await self._save(ACHIEVEMENTS_KEY, state)

    async def _save(self, key: str, state: BaseModel) -> bool:
        payload = json.dumps({
            "version": SCHEMA_VERSION,
            "state": state.model_dump(mode="json"),
        })
        sequence = self._requested.get(key, 0) + 1
        self._requested[key] = sequence
        lock = self._locks.setdefault(key, asyncio.Lock())

        async with lock:
            if sequence < self._requested[key]:
                logger.debug("snapshot_save_superseded", key=key, sequence=sequence)
                return True
            try:
                await self._storage.set(key, payload)
            except Exception as e:
                # Log failure but don't raise
                logger.error("snapshot_save_failed", key=key, error=str(e))
                return False
        return True

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    async def load_ledger(self) -> Optional[LedgerSnapshot]:
        return await self._load(LEDGER_KEY, LedgerSnapshot)

    async def load_notifications(self) -> Optional[NotificationState]:
        return await self._load(NOTIFICATIONS_KEY, NotificationState)

    async def load_suggestions(self) -> Optional[SuggestionState]:
        return await self._load(SUGGESTIONS_KEY, SuggestionState)

    async def load_achievements(self) -> Optional[AchievementState]:
        return await self._load(ACHIEVEMENTS_KEY, AchievementState)

    async def _load(self, key: str, model: Type[StateT]) -> Optional[StateT]:
        try:
            raw = await self._storage.get(key)
        except Exception as e:
            logger.error("snapshot_load_failed", key=key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            envelope = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("snapshot_corrupt", key=key, error=str(e))
            return None

        if not isinstance(envelope, dict) or envelope.get("version") != SCHEMA_VERSION:
            logger.warning(
                "snapshot_version_mismatch",
                key=key,
                version=envelope.get("version") if isinstance(envelope, dict) else None,
            )
            return None

        try:
            return model.model_validate(envelope.get("state") or {})
        except ValidationError as e:
            logger.warning("snapshot_invalid", key=key, errors=e.error_count())
            return None

    async def clear(self) -> None:
        for key in (LEDGER_KEY, NOTIFICATIONS_KEY, SUGGESTIONS_KEY, ACHIEVEMENTS_KEY):
            try:
                await self._storage.remove(key)
            except Exception as e:
                logger.error("snapshot_remove_failed", key=key, error=str(e))
