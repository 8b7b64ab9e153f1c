"""Structured logging for the character sheet engine.

Every module logs through structlog with a ``component`` field naming the
module relative to the package, and every service operation binds
``operation``, ``user_id`` and ``character_id`` as context variables, so a
single mutation can be followed from request to history record.

Example:
    >>> from charsheet_engine.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Skill increased", skill="body/athletics", points=3)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

from charsheet_engine.core.config import Settings, get_settings


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


PACKAGE_NAME = "charsheet_engine"

_STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def component_name(module_name: str | None) -> str | None:
    """Strip the package prefix from a module name.

    Example:
        >>> component_name("charsheet_engine.services.mutations")
        'services.mutations'
    """
    if module_name is None:
        return None
    if module_name.startswith(f"{PACKAGE_NAME}."):
        return module_name[len(PACKAGE_NAME) + 1:]
    return module_name


def add_engine_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag entries with the engine name and drop unset operation context.

    Operations on no particular character bind ``character_id=None``;
    leaving it out keeps console output readable.
    """
    event_dict["app"] = PACKAGE_NAME
    if event_dict.get("character_id", "") is None:
        del event_dict["character_id"]
    return event_dict


def configure_logging(
    settings: Settings | None = None,
    *,
    level: str | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Configure structlog and the stdlib bridge.

    Args:
        settings: Settings to read ``log_level`` and ``log_json`` from.
            Defaults to the application settings.
        level: Overrides the configured level.
        json_format: Overrides the configured renderer; JSON when True.
        log_file: Optional file that also receives stdlib log records.

    Example:
        >>> configure_logging(level="DEBUG", json_format=False)
    """
    settings = settings or get_settings()
    level = (level or settings.log_level).upper()
    if json_format is None:
        json_format = settings.log_json
    log_level = getattr(logging, level, logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_engine_context,
        structlog.processors.StackInfoRenderer(),
    ]
    renderer: Processor
    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=settings.debug)

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format=_STDLIB_FORMAT, level=log_level, stream=sys.stderr, force=True)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(_STDLIB_FORMAT))
        logging.getLogger().addHandler(file_handler)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Logger carrying the module's ``component`` name.

    Args:
        name: Module name, typically ``__name__``.
    """
    component = component_name(name)
    if component is None:
        return structlog.get_logger()
    return structlog.get_logger(component=component)


def bind_context(**kwargs: Any) -> None:
    """Bind values included in every entry logged until :func:`clear_context`."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "PACKAGE_NAME",
    "add_engine_context",
    "bind_context",
    "clear_context",
    "component_name",
    "configure_logging",
    "get_logger",
]
