import os
from collections.abc import MutableMapping
from typing import Any

import structlog

RED = "\033[0;31m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[0;34m"
CYAN = "\033[0;36m"
NC = "\033[0m"

# Map string level to integer
LEVEL_MAP = {
    "INFO": 20,
    "DEBUG": 10,
    "TRACE": 5,
}

_TAGS = {
    "debug": ("DEBUG", CYAN),
    "info": ("INFO", BLUE),
    "ok": ("OK", GREEN),
    "warning": ("WARN", YELLOW),
    "error": ("ERROR", RED),
    "critical": ("ERROR", RED),
}


def _paint(text: str, color: str, colors: bool) -> str:
    return f"{color}{text}{NC}" if colors else text


class ConsoleRenderer:
    """Render events as ``[TAG] message key=value`` lines.

    An info event carrying ``status="ok"`` is tagged ``[OK]``; an event carrying
    ``section=True`` is rendered as a banner.
    """

    def __init__(self, colors: bool = True) -> None:
        self.colors = colors

    def __call__(self, _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> str:  # noqa: ANN401
        level = str(event_dict.pop("level", "info"))
        status = event_dict.pop("status", None)
        section = event_dict.pop("section", False)
        event = str(event_dict.pop("event", ""))
        event_dict.pop("logger", None)

        if section:
            rule = _paint("=" * 40, CYAN, self.colors)
            return f"\n{rule}\n{_paint(event, CYAN, self.colors)}\n{rule}\n"

        key = "ok" if status == "ok" and level == "info" else level
        tag, color = _TAGS.get(key, (level.upper(), NC))
        line = f"{_paint(f'[{tag}]', color, self.colors)} {event}"
        if event_dict:
            line += " " + " ".join(f"{k}={v}" for k, v in event_dict.items())
        return line


def configure_logging(log_level: str = "INFO", colors: bool | None = None) -> None:
    """Configure structlog for console output.

    Args:
        log_level: One of INFO, DEBUG or TRACE
        colors: Force ANSI colours on or off. Defaults to on unless NO_COLOR is set.
    """
    if colors is None:
        colors = "NO_COLOR" not in os.environ

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            ConsoleRenderer(colors=colors),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(LEVEL_MAP.get(log_level, 20)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,  # Disable cache to allow level updates
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name

    Returns:
        Logger instance bound to the current configuration
    """
    return structlog.get_logger(name)


def log_section(logger: structlog.BoundLogger, title: str) -> None:
    """Print a section banner."""
    logger.info(title, section=True)
