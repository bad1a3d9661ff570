from __future__ import annotations

import pytest
from pydantic import ValidationError

from musicmentor.core.config import Settings


def test_default_secret_key_allowed_in_development() -> None:
    settings = Settings(_env_file=None, app_env="development", secret_key="change-me")
    assert settings.secret_key == "change-me"


def test_default_secret_key_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="change-me")


def test_placeholder_secret_key_prefix_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="prod", secret_key="change-me-in-production")


def test_custom_secret_key_allowed_in_production() -> None:
    settings = Settings(_env_file=None, app_env="production", secret_key="super-secure-value")
    assert settings.secret_key == "super-secure-value"
    assert settings.daily_api_key is None


def test_required_video_needs_api_key_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            app_env="production",
            secret_key="super-secure-value",
            video_required_in_production=True,
        )

    settings = Settings(
        _env_file=None,
        app_env="production",
        secret_key="super-secure-value",
        video_required_in_production=True,
        daily_api_key="daily-key",
    )
    assert settings.daily_api_key == "daily-key"


def test_blank_daily_api_key_is_treated_as_missing() -> None:
    settings = Settings(_env_file=None, daily_api_key="   ")
    assert settings.daily_api_key is None


def test_slot_engine_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.slot_horizon_days == 20
    assert settings.slot_display_max_dates == 14
    assert settings.slot_truncate_overrun is False
    assert settings.video_access_window_minutes == 30
