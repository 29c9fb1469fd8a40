"""
Configuration management module for Heirloom.

Purpose
-------
Centralized run configuration using Pydantic models for type-safe parameter
management, validation, and serialization, plus environment-driven
application settings.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Environment-aware: AppSettings reads HEIRLOOM_* variables and .env files

Example
-------
>>> from heirloom.config import RunConfig
>>> config = RunConfig(n_paths=2000, seed=42)
>>> RunConfig.model_validate_json(config.model_dump_json()) == config
True
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_HORIZON_YEARS,
    DEFAULT_N_PATHS,
    DEFAULT_OUTLOOK_PATHS,
)

__all__ = ["RunConfig", "AppSettings"]


# ---------------------------------------------------------------------------
# Run Configuration
# ---------------------------------------------------------------------------

class RunConfig(BaseModel):
    """
    Configuration for one comprehensive projection.

    Attributes
    ----------
    horizon_years : int
        Lifecycle projection horizon (1-120 years).
    n_paths : int
        Number of Monte Carlo lifecycle runs (1-10,000).
    seed : int, optional
        Base seed. None draws from an ambient source (non-reproducible).
    stochastic : bool
        False disables return noise and random life events in the
        lifecycle projector.
    include_outlooks : bool
        Also run market, inflation and healthcare-cost outlooks.
    outlook_paths : int
        Paths per outlook ensemble (1-10,000).
    assumed_death_age : int
        Age at which the estate is assumed to transfer.

    Examples
    --------
    >>> config = RunConfig(horizon_years=40, seed=7)
    >>> config.n_paths
    1000
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    horizon_years: int = Field(
        default=DEFAULT_HORIZON_YEARS,
        ge=1,
        le=120,
        description="Projection horizon in years"
    )
    n_paths: int = Field(
        default=DEFAULT_N_PATHS,
        ge=1,
        le=10_000,
        description="Number of Monte Carlo lifecycle runs"
    )
    seed: Optional[int] = Field(
        default=None,
        description="Base random seed for reproducibility"
    )
    stochastic: bool = Field(
        default=True,
        description="Enable return noise and random life events"
    )
    include_outlooks: bool = Field(
        default=True,
        description="Run market, inflation and healthcare outlooks"
    )
    outlook_paths: int = Field(
        default=DEFAULT_OUTLOOK_PATHS,
        ge=1,
        le=10_000,
        description="Paths per outlook ensemble"
    )
    assumed_death_age: int = Field(
        default=85,
        ge=40,
        le=120,
        description="Age at which the estate transfers"
    )

    @field_validator("seed")
    @classmethod
    def validate_seed(cls, v):
        """Seeds must be non-negative."""
        if v is not None and v < 0:
            raise ValueError(f"seed must be non-negative, got {v}")
        return v


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    should be prefixed with HEIRLOOM_ (e.g., HEIRLOOM_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    debug : bool
        Enable debug mode (forces DEBUG logging)
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    default_seed : int, optional
        Seed used by the CLI when none is given on the command line
    default_paths : int
        Monte Carlo path count used by the CLI by default

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'INFO'
    """

    model_config = SettingsConfigDict(
        env_prefix="HEIRLOOM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )
    default_seed: Optional[int] = Field(
        default=None,
        description="Default seed for CLI runs"
    )
    default_paths: int = Field(
        default=DEFAULT_N_PATHS,
        ge=1,
        le=10_000,
        description="Default Monte Carlo path count for CLI runs"
    )

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level
