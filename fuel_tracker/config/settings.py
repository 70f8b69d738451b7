"""
Configuration Management for Fuel Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunable constants of the engine live here rather than
being scattered across modules. Rule thresholds that define the product
(fuel level steps, suggestion rules) are NOT configuration; they are part
of the domain and stay in their modules.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets key/value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    state_sheet_name: str = Field(
        default="FuelTrackerState",
        description="Name of the sheet holding persisted key/value snapshots"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration for the external suggestion generator."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class EngineSettings(BaseSettings):
    """
    Engine settings.

    Loads configuration from environment variables (FUEL_TRACKER_*) and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FUEL_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Metrics
    spending_window_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Trailing window used for the average daily spend"
    )
    days_remaining_sentinel: int = Field(
        default=999,
        ge=1,
        description="Days remaining reported when nothing has been spent yet"
    )

    # Notifications
    big_spend_ratio: float = Field(
        default=0.10,
        gt=0.0,
        le=1.0,
        description="Expense share of the pre-expense balance that counts as a big spend"
    )
    high_spending_multiplier: float = Field(
        default=2.0,
        gt=1.0,
        description="Today's spend above this multiple of the daily average is flagged"
    )
    notification_history_limit: int = Field(
        default=50,
        ge=1,
        description="Number of notifications kept when persisting"
    )
    daily_reminder_hour: int = Field(
        default=9,
        ge=0,
        le=23,
        description="Local hour of the daily expense reminder"
    )
    notifier_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Delivery attempts before a notification is given up"
    )
    notifier_retry_max_wait_seconds: float = Field(
        default=10.0,
        ge=0.0,
        description="Upper bound of the exponential backoff between delivery attempts"
    )

    # Suggestions
    max_suggestions: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Number of ranked suggestions kept active"
    )
    suggestion_history_limit: int = Field(
        default=20,
        ge=1,
        description="Number of applied/dismissed suggestions kept in history"
    )
    suggestion_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="Time budget for the external suggestion generator"
    )

    # Parsed expense intake
    min_parse_confidence: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Minimum parser confidence for an expense candidate to be ingested"
    )
    max_parsed_amount: float = Field(
        default=1000000.0,
        gt=0.0,
        description="Parsed amounts at or above this are treated as misreads"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for each section that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("google_sheets", "gemini", "engine"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
