"""
Tests for config module.
"""
import pytest

import config


class TestEnvHelpers:
    """Test environment variable helpers."""

    @pytest.mark.parametrize("raw", ["true", "1", "YES", "on"])
    def test_truthy_bool(self, monkeypatch, raw):
        monkeypatch.setenv("PAGEKEEPER_FLAG", raw)
        assert config.get_env_bool("PAGEKEEPER_FLAG") is True

    def test_bool_default(self, monkeypatch):
        monkeypatch.delenv("PAGEKEEPER_FLAG", raising=False)
        assert config.get_env_bool("PAGEKEEPER_FLAG", True) is True

    def test_int_falls_back_on_bad_input(self, monkeypatch):
        monkeypatch.setenv("PAGEKEEPER_NUMBER", "lots")
        assert config.get_env_int("PAGEKEEPER_NUMBER", 7) == 7

    def test_int_parsed(self, monkeypatch):
        monkeypatch.setenv("PAGEKEEPER_NUMBER", "42")
        assert config.get_env_int("PAGEKEEPER_NUMBER", 7) == 42


class TestValidateConfig:
    """Test startup validation."""

    def test_defaults_are_valid(self, monkeypatch):
        monkeypatch.setattr(config, "PASSWORD_HASH_ITERATIONS", 200000)
        config.validate_config()

    def test_bad_values_reported_together(self, monkeypatch):
        monkeypatch.setattr(config, "LOG_LEVEL", "LOUD")
        monkeypatch.setattr(config, "DEFAULT_CHALLENGE_TARGET", 0)
        monkeypatch.setattr(config, "PASSWORD_HASH_ITERATIONS", 200000)

        with pytest.raises(ValueError) as exc_info:
            config.validate_config()
        assert "LOG_LEVEL" in str(exc_info.value)
        assert "DEFAULT_CHALLENGE_TARGET" in str(exc_info.value)
