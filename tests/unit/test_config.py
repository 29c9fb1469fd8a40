"""
Unit tests for config.py Pydantic models.

Tests validation, defaults, and serialization of configuration classes.
"""

import pytest

from heirloom.config import AppSettings, RunConfig


class TestRunConfig:
    """Tests for RunConfig validation."""

    def test_defaults(self):
        """Test default values."""
        config = RunConfig()

        assert config.horizon_years == 75
        assert config.n_paths == 1000
        assert config.seed is None
        assert config.stochastic is True
        assert config.include_outlooks is True
        assert config.outlook_paths == 500
        assert config.assumed_death_age == 85

    def test_custom_values(self):
        config = RunConfig(horizon_years=40, n_paths=200, seed=7, stochastic=False)

        assert config.horizon_years == 40
        assert config.n_paths == 200
        assert config.seed == 7
        assert config.stochastic is False

    @pytest.mark.parametrize("kwargs", [
        {"horizon_years": 0},
        {"horizon_years": 121},
        {"n_paths": 0},
        {"n_paths": 20_000},
        {"outlook_paths": 0},
        {"assumed_death_age": 30},
    ])
    def test_range_validation(self, kwargs):
        with pytest.raises(ValueError):
            RunConfig(**kwargs)

    def test_negative_seed(self):
        with pytest.raises(ValueError, match="seed must be non-negative"):
            RunConfig(seed=-1)

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            RunConfig(paths=10)

    def test_immutable(self):
        config = RunConfig()
        with pytest.raises(Exception):  # Pydantic raises ValidationError
            config.n_paths = 10

    def test_serialization(self):
        config = RunConfig(n_paths=250, seed=42)

        data = config.model_dump()
        assert data["n_paths"] == 250
        assert data["seed"] == 42

        restored = RunConfig.model_validate_json(config.model_dump_json())
        assert restored == config


class TestAppSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for var in ("HEIRLOOM_DEBUG", "HEIRLOOM_LOG_LEVEL", "HEIRLOOM_DEFAULT_SEED", "HEIRLOOM_DEFAULT_PATHS"):
            monkeypatch.delenv(var, raising=False)
        settings = AppSettings(_env_file=None)

        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.default_seed is None
        assert settings.default_paths == 1000
        assert settings.effective_log_level == "INFO"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("HEIRLOOM_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("HEIRLOOM_DEFAULT_SEED", "11")
        monkeypatch.setenv("HEIRLOOM_DEFAULT_PATHS", "300")
        settings = AppSettings(_env_file=None)

        assert settings.log_level == "WARNING"
        assert settings.default_seed == 11
        assert settings.default_paths == 300

    def test_debug_forces_debug_level(self, monkeypatch):
        monkeypatch.setenv("HEIRLOOM_DEBUG", "true")
        monkeypatch.setenv("HEIRLOOM_LOG_LEVEL", "ERROR")
        settings = AppSettings(_env_file=None)

        assert settings.effective_log_level == "DEBUG"

    def test_invalid_level(self, monkeypatch):
        monkeypatch.setenv("HEIRLOOM_LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError):
            AppSettings(_env_file=None)
