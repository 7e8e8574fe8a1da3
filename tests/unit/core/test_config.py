"""
Unit tests for sessionware/core/config.py - Settings Class and Singleton.

Reference:
- Pydantic BaseSettings pattern with SESSIONWARE_ environment prefix
"""

import os
from unittest.mock import patch

import pytest


# =============================================================================
# Settings Class
# =============================================================================


class TestSettingsClass:
    """Tests for the Settings class definition."""

    def test_settings_extends_base_settings(self):
        """
        Settings extends pydantic_settings.BaseSettings.
        """
        from pydantic_settings import BaseSettings

        from sessionware.core.config import Settings

        assert issubclass(Settings, BaseSettings)

    def test_env_prefix(self):
        """
        Environment variables use the SESSIONWARE_ prefix.
        """
        from sessionware.core.config import Settings

        assert Settings.model_config["env_prefix"] == "SESSIONWARE_"


class TestSettingsDefaults:
    """Tests for default values of every group."""

    def test_service_defaults(self):
        from sessionware.core.config import Settings

        settings = Settings()

        assert settings.service_name == "sessionware"
        assert settings.environment == "development"
        assert settings.log_level == "INFO"

    def test_engine_defaults(self):
        """
        Lazy sessions with locking reads are the default.
        """
        from sessionware.core.config import Settings

        settings = Settings()

        assert settings.use_lazy_session is True
        assert settings.non_locking is False

    def test_store_defaults(self):
        from sessionware.core.config import Settings

        settings = Settings()

        assert settings.store_enabled is True
        assert settings.redis_url == "redis://localhost:6379"
        assert settings.redis_key_prefix == "session:"
        assert settings.session_ttl_seconds == 1440

    def test_cookie_defaults(self):
        from sessionware.core.config import Settings

        settings = Settings()

        assert settings.cookie_name == "sessionid"
        assert settings.cookie_lifetime == 0
        assert settings.cookie_domain == ""
        assert settings.cookie_path == "/"
        assert settings.cookie_secure is False
        assert settings.cookie_httponly is False
        assert settings.cookie_samesite is None

    def test_cache_defaults(self):
        from sessionware.core.config import Settings

        settings = Settings()

        assert settings.cache_limiter == "nocache"
        assert settings.cache_expire == 180


class TestSettingsEnvironment:
    """Tests for loading values from the environment."""

    def test_reads_prefixed_variables(self):
        """
        SESSIONWARE_* variables override defaults.
        """
        from sessionware.core.config import Settings

        with patch.dict(
            os.environ,
            {
                "SESSIONWARE_COOKIE_NAME": "sid",
                "SESSIONWARE_COOKIE_LIFETIME": "3600",
                "SESSIONWARE_USE_LAZY_SESSION": "false",
                "SESSIONWARE_CACHE_LIMITER": "private",
            },
        ):
            settings = Settings()

        assert settings.cookie_name == "sid"
        assert settings.cookie_lifetime == 3600
        assert settings.use_lazy_session is False
        assert settings.cache_limiter == "private"

    def test_unprefixed_variables_are_ignored(self):
        from sessionware.core.config import Settings

        with patch.dict(os.environ, {"COOKIE_NAME": "other"}):
            settings = Settings()

        assert settings.cookie_name == "sessionid"


# =============================================================================
# Validation
# =============================================================================


class TestSettingsValidation:
    """Tests for field validators."""

    def test_invalid_redis_url(self):
        from pydantic import ValidationError

        from sessionware.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(redis_url="http://localhost:6379")

    def test_rediss_url_accepted(self):
        from sessionware.core.config import Settings

        assert Settings(redis_url="rediss://cache:6380").redis_url == "rediss://cache:6380"

    @pytest.mark.parametrize(
        "limiter", ["", "nocache", "public", "private", "private_no_expire"]
    )
    def test_supported_cache_limiters(self, limiter):
        from sessionware.core.config import Settings

        assert Settings(cache_limiter=limiter).cache_limiter == limiter

    def test_unknown_cache_limiter_rejected(self):
        from pydantic import ValidationError

        from sessionware.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(cache_limiter="forever")

    @pytest.mark.parametrize(
        ("given", "expected"),
        [("lax", "Lax"), ("STRICT", "Strict"), ("None", "None"), ("", None)],
    )
    def test_samesite_is_normalized(self, given, expected):
        from sessionware.core.config import Settings

        assert Settings(cookie_samesite=given).cookie_samesite == expected

    def test_unknown_samesite_rejected(self):
        from pydantic import ValidationError

        from sessionware.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(cookie_samesite="sometimes")

    def test_empty_cookie_name_rejected(self):
        from pydantic import ValidationError

        from sessionware.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(cookie_name="")

    def test_negative_cookie_lifetime_rejected(self):
        from pydantic import ValidationError

        from sessionware.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(cookie_lifetime=-1)

    def test_invalid_environment_rejected(self):
        from pydantic import ValidationError

        from sessionware.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(environment="qa")


# =============================================================================
# Settings Singleton
# =============================================================================


class TestGetSettings:
    """Tests for the lru_cache singleton accessor."""

    def test_returns_same_instance(self):
        from sessionware.core.config import get_settings

        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self):
        from sessionware.core.config import get_settings

        first = get_settings()
        get_settings.cache_clear()

        try:
            assert get_settings() is not first
        finally:
            get_settings.cache_clear()
