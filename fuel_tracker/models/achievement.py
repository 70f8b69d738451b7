"""
Achievement Models

Progress only moves forward and an achievement unlocks at most once.
The tracker enforces both; the models only describe the shape.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AchievementType(str, Enum):
    SAVINGS_STREAK = "savings_streak"
    BUDGET_MASTER = "budget_master"
    CATEGORY_SAVER = "category_saver"
    FUEL_EFFICIENT = "fuel_efficient"
    EMERGENCY_FUND = "emergency_fund"
    INVESTMENT_STARTER = "investment_starter"
    BILL_TRACKER = "bill_tracker"
    EXPENSE_LOGGER = "expense_logger"


class AchievementTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class AchievementDefinition(BaseModel):
    """Catalog entry. The target is validated by the tracker, not here."""

    id: str
    type: AchievementType
    title: str
    description: str
    tier: AchievementTier
    target: Decimal


class AchievementProgress(BaseModel):
    current: Decimal = Field(default=Decimal("0"), ge=0)
    target: Decimal = Field(..., gt=0)
    percentage: int = Field(default=0, ge=0, le=100)


class Achievement(BaseModel):
    id: str
    type: AchievementType
    title: str
    description: str
    tier: AchievementTier
    progress: AchievementProgress
    unlocked_at: Optional[datetime] = None

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_at is not None
