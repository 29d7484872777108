"""Loguru setup: colorized console sink on terminals, JSON lines everywhere else.

Engine components log through logger.bind(component=...). A per-component
level table (LOG_COMPONENT_LEVELS, e.g. '{"PlatformAPIClient": "WARNING"}')
quiets or opens up one component without moving the global level.
"""

import sys
from typing import Any, Callable, Dict, Mapping, Optional

from loguru import logger

from rating_system.config.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | <level>{message}</level>"
)

DEFAULT_COMPONENT = "rating_system"


def component_filter(
    default_level: str,
    component_levels: Mapping[str, str],
) -> Callable[[Dict[str, Any]], bool]:
    """Sink filter applying a component's own level, else default_level."""
    thresholds = {name: logger.level(lvl.upper()).no for name, lvl in component_levels.items()}
    default_no = logger.level(default_level.upper()).no

    def _filter(record: Dict[str, Any]) -> bool:
        component = record["extra"].get("component", DEFAULT_COMPONENT)
        return record["level"].no >= thresholds.get(component, default_no)

    return _filter


def configure_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    component_levels: Optional[Mapping[str, str]] = None,
) -> None:
    """
    Install the single loguru sink.

    Args:
        level: Global level (defaults to settings.log_level)
        log_format: "console" or "json" (defaults to settings.log_format);
            console only applies when stderr is a TTY
        component_levels: Per-component levels (defaults to
            settings.log_component_levels)
    """
    level = level or settings.log_level
    log_format = (log_format or settings.log_format).lower()
    if component_levels is None:
        component_levels = settings.log_component_levels

    # Level gating happens in the filter
    log_filter = component_filter(level, component_levels)

    logger.remove()
    logger.configure(extra={"component": DEFAULT_COMPONENT})

    if sys.stderr.isatty() and log_format == "console":
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=0, filter=log_filter, colorize=True)
    else:
        logger.add(
            sys.stdout,
            format="{message}",
            level=0,
            filter=log_filter,
            serialize=True,
            diagnose=False,
        )


def get_logger(component: str):
    """Logger bound to a component name, e.g. get_logger("cli")."""
    return logger.bind(component=component)


configure_logging()

__all__ = ["logger", "get_logger", "configure_logging", "component_filter"]
