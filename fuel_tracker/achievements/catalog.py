"""Fixed achievement catalog."""

from decimal import Decimal

from fuel_tracker.models.achievement import (
    AchievementDefinition,
    AchievementTier,
    AchievementType,
)


SAVINGS_STREAK_7 = "savings-streak-7"
SAVINGS_STREAK_30 = "savings-streak-30"
BUDGET_MASTER = "budget-master"
FOOD_FRUGAL = "category-saver-food"
FUEL_EFFICIENT = "fuel-efficient"
EMERGENCY_FUND = "emergency-fund-10k"
INVESTMENT_STARTER = "investment-starter"
BILL_TRACKER = "bill-tracker-10"
EXPENSE_LOGGER = "expense-logger-100"


ACHIEVEMENT_CATALOG: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        id=SAVINGS_STREAK_7,
        type=AchievementType.SAVINGS_STREAK,
        title="Savings Streak Starter",
        description="Save money for 7 consecutive days",
        tier=AchievementTier.BRONZE,
        target=Decimal("7"),
    ),
    AchievementDefinition(
        id=SAVINGS_STREAK_30,
        type=AchievementType.SAVINGS_STREAK,
        title="Savings Streak Master",
        description="Save money for 30 consecutive days",
        tier=AchievementTier.SILVER,
        target=Decimal("30"),
    ),
    AchievementDefinition(
        id=BUDGET_MASTER,
        type=AchievementType.BUDGET_MASTER,
        title="Budget Master",
        description="Stay within budget for an entire month",
        tier=AchievementTier.GOLD,
        target=Decimal("30"),
    ),
    AchievementDefinition(
        id=FOOD_FRUGAL,
        type=AchievementType.CATEGORY_SAVER,
        title="Food Frugal",
        description="Reduce food spending by 20% for a month",
        tier=AchievementTier.BRONZE,
        target=Decimal("100"),
    ),
    AchievementDefinition(
        id=FUEL_EFFICIENT,
        type=AchievementType.FUEL_EFFICIENT,
        title="Fuel Efficient",
        description="Maintain over 50% fuel level for 14 days",
        tier=AchievementTier.SILVER,
        target=Decimal("14"),
    ),
    AchievementDefinition(
        id=EMERGENCY_FUND,
        type=AchievementType.EMERGENCY_FUND,
        title="Emergency Fund Starter",
        description="Save ₹10,000 for emergencies",
        tier=AchievementTier.GOLD,
        target=Decimal("10000"),
    ),
    AchievementDefinition(
        id=INVESTMENT_STARTER,
        type=AchievementType.INVESTMENT_STARTER,
        title="Investment Beginner",
        description="Start investing with ₹1,000",
        tier=AchievementTier.BRONZE,
        target=Decimal("1000"),
    ),
    AchievementDefinition(
        id=BILL_TRACKER,
        type=AchievementType.BILL_TRACKER,
        title="Bill Tracker Pro",
        description="Track 10 recurring bills",
        tier=AchievementTier.SILVER,
        target=Decimal("10"),
    ),
    AchievementDefinition(
        id=EXPENSE_LOGGER,
        type=AchievementType.EXPENSE_LOGGER,
        title="Expense Logging Expert",
        description="Log 100 expenses",
        tier=AchievementTier.GOLD,
        target=Decimal("100"),
    ),
)
