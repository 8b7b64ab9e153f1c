"""Tests for structured logging setup."""

from __future__ import annotations

from collections.abc import Generator

import pytest
import structlog
from structlog.testing import capture_logs

from charsheet_engine.core.config import Settings
from charsheet_engine.core.logging import (
    add_engine_context,
    bind_context,
    clear_context,
    component_name,
    configure_logging,
    get_logger,
)


@pytest.fixture
def restore_structlog() -> Generator[None, None, None]:
    yield
    structlog.reset_defaults()
    clear_context()


class TestComponentName:
    """Tests for module name shortening."""

    def test_package_prefix_removed(self) -> None:
        """Test the package name is stripped."""
        assert component_name("charsheet_engine.services.mutations") == "services.mutations"

    def test_foreign_module_kept(self) -> None:
        """Test other modules keep their name."""
        assert component_name("tests.conftest") == "tests.conftest"
        assert component_name(None) is None


class TestEngineContext:
    """Tests for the engine processor."""

    def test_app_added(self) -> None:
        """Test entries are tagged with the engine name."""
        event = add_engine_context(None, "info", {"event": "x", "character_id": "c-1"})

        assert event == {"event": "x", "character_id": "c-1", "app": "charsheet_engine"}

    def test_unset_character_dropped(self) -> None:
        """Test a None character id is left out."""
        event = add_engine_context(None, "info", {"event": "x", "character_id": None})

        assert "character_id" not in event


class TestLogging:
    """Tests for loggers and configuration."""

    def test_logger_carries_component(self) -> None:
        """Test entries name the module they come from."""
        logger = get_logger("charsheet_engine.rules.costs")

        with capture_logs() as logs:
            logger.info("Point price", value=16, price=1.0)

        assert logs == [{"component": "rules.costs", "value": 16, "price": 1.0, "event": "Point price", "log_level": "info"}]

    def test_configure_from_settings(self, restore_structlog: None) -> None:
        """Test configuration reads level and renderer from settings."""
        configure_logging(Settings(log_level="WARNING", log_json=True))

        config = structlog.get_config()
        assert isinstance(config["processors"][-1], structlog.processors.JSONRenderer)
        assert add_engine_context in config["processors"]

    def test_console_renderer_override(self, restore_structlog: None) -> None:
        """Test explicit arguments override settings."""
        configure_logging(Settings(log_json=True), json_format=False, level="debug")

        assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)

    def test_context_binding(self, restore_structlog: None) -> None:
        """Test bound context reaches entries until cleared."""
        bind_context(user_id="u-1")
        assert structlog.contextvars.get_contextvars() == {"user_id": "u-1"}

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
