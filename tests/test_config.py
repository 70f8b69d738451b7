"""Tests for settings loading and the engine factory."""

import pytest
from pydantic import ValidationError

from fuel_tracker.config import EngineSettings, get_settings, validate_all_settings
from fuel_tracker.orchestrator import FuelTankEngine, create_engine


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for name in ("GEMINI_API_KEY", "GOOGLE_SHEETS_CREDENTIALS_PATH", "GOOGLE_SHEETS_SPREADSHEET_ID"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestEngineSettings:
    """Tests for engine configuration."""

    def test_defaults(self):
        """Test the documented defaults."""
        settings = EngineSettings()
        assert settings.spending_window_days == 30
        assert settings.days_remaining_sentinel == 999
        assert settings.big_spend_ratio == 0.10
        assert settings.min_parse_confidence == 0.6

    def test_env_prefix(self, monkeypatch):
        """Test FUEL_TRACKER_ variables override defaults."""
        monkeypatch.setenv("FUEL_TRACKER_BIG_SPEND_RATIO", "0.25")
        assert EngineSettings().big_spend_ratio == 0.25

    def test_out_of_range_rejected(self):
        """Test field bounds are enforced."""
        with pytest.raises(ValidationError):
            EngineSettings(high_spending_multiplier=1.0)


class TestValidateAllSettings:
    """Tests for the configuration report."""

    def test_reports_missing_sections(self):
        """Test unconfigured integrations are reported, not raised."""
        results = validate_all_settings()

        assert results["engine"] is True
        assert results["gemini"] is False
        assert "gemini_error" in results

    def test_gemini_configured(self, monkeypatch):
        """Test a configured section validates."""
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        assert validate_all_settings()["gemini"] is True


class TestCreateEngine:
    """Tests for the engine factory."""

    def test_without_integrations(self, monkeypatch):
        """Test the factory wires an engine from environment settings."""
        monkeypatch.setenv("FUEL_TRACKER_DAILY_REMINDER_HOUR", "7")

        engine = create_engine(use_storage=False, use_gemini=False)

        assert isinstance(engine, FuelTankEngine)
        assert engine.settings.daily_reminder_hour == 7


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
