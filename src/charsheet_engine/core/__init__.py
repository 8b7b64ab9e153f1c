"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        CharsheetError: Base exception for all engine errors.
        ValidationError, ConflictError, NotFoundError and friends.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from charsheet_engine.core.config import (
    CostSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from charsheet_engine.core.exceptions import (
    CharsheetError,
    ConfigurationError,
    ConflictError,
    DiceRollError,
    InsufficientBudgetError,
    InvalidEffectError,
    InvalidLearningMethodError,
    InvalidPointsError,
    NotFoundError,
    RuleConfigurationError,
    StorageError,
    ValidationError,
)
from charsheet_engine.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Exceptions
    "CharsheetError",
    "ValidationError",
    "InvalidPointsError",
    "InvalidLearningMethodError",
    "InvalidEffectError",
    "InsufficientBudgetError",
    "DiceRollError",
    "ConflictError",
    "NotFoundError",
    "RuleConfigurationError",
    "ConfigurationError",
    "StorageError",
    # Configuration
    "Settings",
    "CostSettings",
    "StorageSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
