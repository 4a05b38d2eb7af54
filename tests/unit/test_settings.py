"""
Unit tests for engine settings.
"""

import pytest
from pydantic import ValidationError

from config.settings import Settings


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.projection_horizon_days == 30
        assert settings.service_level == 0.95
        assert settings.warning_buffer_ratio == 0.5
        assert settings.min_transfer_quantity == 10
        assert settings.supabase_configured is False

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SERVICE_LEVEL", "0.99")
        monkeypatch.setenv("MIN_TRANSFER_QUANTITY", "25")

        settings = Settings(_env_file=None)

        assert settings.service_level == 0.99
        assert settings.min_transfer_quantity == 25

    @pytest.mark.parametrize("level", [0.5, 1.0, 1.2])
    def test_service_level_bounds(self, level):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, service_level=level)

    def test_supabase_configured(self):
        settings = Settings(_env_file=None, supabase_url="https://example.supabase.co", supabase_key="key")

        assert settings.supabase_configured is True
