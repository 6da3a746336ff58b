"""
Centralized Logging.

structlog configured on top of the standard logging module. Diagnostic
entries go to stderr (and optionally a rotating file); command output never
passes through here.

Log Sources:
    cli, shell, http, process, config, internal. Any other value is
    recorded as "unknown".

Usage:
    from tomcatctl.core.logging import get_logger, setup_logging
    setup_logging(level="DEBUG")
    logger = get_logger(__name__)
    logger.info("Request sent", path="/list")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from tomcatctl.core.exceptions import ConfigurationError

LOG_SOURCES = {"cli", "shell", "http", "process", "config", "internal", "unknown"}

LOG_FORMATS = {"console", "json"}

_FILE_MAX_BYTES = 10 * 1024 * 1024
_FILE_BACKUP_COUNT = 5

_shared_processors: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _build_formatter(format_type: str) -> logging.Formatter:
    """Create a stdlib formatter that renders structlog and foreign records alike."""
    if format_type == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(
    level: str = "WARNING",
    format_type: str = "console",
    log_file: Path | None = None,
) -> None:
    """
    Configure structlog and the root logger.

    Safe to call more than once; existing root handlers are replaced.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "console" for human-readable lines, "json" for one JSON object per line
        log_file: Optional path of an additional rotating log file

    Raises:
        ValueError: If level or format_type is not recognised
        ConfigurationError: If the log file cannot be created
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    if format_type not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {format_type}")

    structlog.configure(
        processors=[
            *_shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = _build_formatter(format_type)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=_FILE_MAX_BYTES,
                backupCount=_FILE_BACKUP_COUNT,
            )
        except OSError as e:
            raise ConfigurationError(f"Cannot open log file {log_file}: {e}") from e
        file_handler.setFormatter(_build_formatter("json"))
        root_logger.addHandler(file_handler)

    root_logger.setLevel(numeric_level)

    # httpx logs every request at INFO; keep it quiet unless debugging
    http_level = numeric_level if numeric_level <= logging.DEBUG else max(numeric_level, logging.WARNING)
    logging.getLogger("httpx").setLevel(http_level)
    logging.getLogger("httpcore").setLevel(http_level)


def get_logger(name: str) -> Any:
    """Get a structlog logger bound to the given module name."""
    return structlog.get_logger(name)


def log_with_source(
    logger: Any,
    source: str,
    level: str,
    message: str,
    **kwargs: Any,
) -> None:
    """
    Log a message tagged with the subsystem it came from.

    Args:
        logger: structlog logger
        source: One of LOG_SOURCES; other values are logged as "unknown"
        level: Method name on the logger (debug, info, warning, error, critical)
        message: Event message
        **kwargs: Additional structured fields
    """
    if source not in LOG_SOURCES:
        source = "unknown"
    log_method = getattr(logger, level)
    log_method(message, source=source, **kwargs)
