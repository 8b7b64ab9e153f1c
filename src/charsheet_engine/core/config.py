"""Configuration management for the character sheet engine.

Centralized configuration using pydantic-settings, supporting environment
variables, .env files and runtime overrides. The skill cost schedule lives
here rather than in the rule tables because only its first bracket is fixed
by the rules; the remaining brackets are tuned per deployment.

Example:
    >>> from charsheet_engine.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.cost.skill_thresholds
    [50, 75, 99999]

Environment Variables:
    CHARSHEET_DATABASE_PATH: Path to the SQLite database file
    CHARSHEET_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    CHARSHEET_COST_SKILL_THRESHOLDS: JSON list of bracket upper bounds
    CHARSHEET_COST_COST_MATRIX: JSON list of per-category price rows
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from charsheet_engine.core.constants import NUMBER_OF_COST_CATEGORIES
from charsheet_engine.core.exceptions import ConfigurationError


class CostSettings(BaseSettings):
    """Point-economy schedule for skills.

    Attributes:
        skill_thresholds: Exclusive upper bounds of each value bracket.
        cost_matrix: Price per point, one row per cost category and one
            column per bracket.
        activation_costs: Flat activation fee per cost category.
        learning_method_multipliers: Price multiplier per learning method.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHARSHEET_COST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    skill_thresholds: list[int] = Field(
        default_factory=lambda: [50, 75, 99999],
        description="Exclusive upper bounds of the value brackets",
    )
    cost_matrix: list[list[float]] = Field(
        default_factory=lambda: [
            [0, 0, 0],
            [0.5, 1, 2],
            [1, 2, 3],
            [2, 3, 4],
            [3, 4, 5],
        ],
        description="Price per point by cost category and bracket",
    )
    activation_costs: list[float] = Field(
        default_factory=lambda: [0, 40, 50, 60, 70],
        description="Activation fee by cost category",
    )
    learning_method_multipliers: dict[str, float] = Field(
        default_factory=lambda: {
            "FREE": 0.0,
            "LOW_PRICED": 0.5,
            "NORMAL": 1.0,
            "EXPENSIVE": 2.0,
        },
        description="Price multiplier by learning method",
    )

    @model_validator(mode="after")
    def validate_schedule(self) -> "CostSettings":
        """Ensure the schedule is complete and consistent.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If the schedule is malformed.
        """
        thresholds = self.skill_thresholds
        if not thresholds or any(a >= b for a, b in zip(thresholds, thresholds[1:])):
            raise ConfigurationError(
                "skill_thresholds must be a non-empty, strictly ascending list",
                config_key="skill_thresholds",
            )
        if len(self.cost_matrix) != NUMBER_OF_COST_CATEGORIES:
            raise ConfigurationError(
                f"cost_matrix needs one row per cost category ({NUMBER_OF_COST_CATEGORIES})",
                config_key="cost_matrix",
            )
        for row in self.cost_matrix:
            if len(row) != len(thresholds):
                raise ConfigurationError(
                    "Every cost_matrix row needs one price per threshold",
                    config_key="cost_matrix",
                    details={"row": row, "thresholds": thresholds},
                )
            if any(price < 0 for price in row):
                raise ConfigurationError("Prices must not be negative", config_key="cost_matrix")
        if len(self.activation_costs) != NUMBER_OF_COST_CATEGORIES:
            raise ConfigurationError(
                f"activation_costs needs one entry per cost category ({NUMBER_OF_COST_CATEGORIES})",
                config_key="activation_costs",
            )
        if any(cost < 0 for cost in self.activation_costs):
            raise ConfigurationError("Activation costs must not be negative", config_key="activation_costs")
        if any(multiplier < 0 for multiplier in self.learning_method_multipliers.values()):
            raise ConfigurationError(
                "Learning method multipliers must not be negative",
                config_key="learning_method_multipliers",
            )
        return self


class StorageSettings(BaseSettings):
    """Configuration for the persistence collaborator.

    Attributes:
        database_path: Path to the SQLite database file.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHARSHEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_path: Path = Field(
        default=Path("data/charsheet.db"),
        description="Path to SQLite database",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        log_json: Render logs as JSON instead of console output.
        cost: Skill cost schedule.
        storage: Persistence settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHARSHEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="Charsheet Engine",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON",
    )

    cost: CostSettings = Field(default_factory=CostSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"cause": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "CostSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
