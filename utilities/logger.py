"""
Structured logging setup using structlog.
Provides JSON or console output, optional file logging and a sync-run logger.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    debug: bool = False
) -> None:
    """
    Set up structured logging with configurable output formats.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional log file path
        debug: Add call-site information to every event
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(structlog.processors.CallsiteParameterAdder())

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.getLogger().addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class SyncLogger:
    """
    Logger for catalog sync runs with bound context.
    """

    def __init__(self, name: str = "catalog_sync"):
        self.logger = structlog.get_logger(name)
        self.context = {}

    def bind_context(self, **kwargs) -> 'SyncLogger':
        """
        Bind context variables to the logger.

        Args:
            **kwargs: Context variables to bind

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    def clear_context(self) -> 'SyncLogger':
        """Clear all context variables."""
        self.context.clear()
        return self

    def log_sync_start(self, source: str) -> None:
        self.logger.info("Catalog sync started", source=source, **self.context)

    def log_feed_fetched(self, item_count: int) -> None:
        self.logger.info("Feed fetched", item_count=item_count, **self.context)

    def log_phase(self, phase: str, success: bool, count: Optional[int] = None) -> None:
        """Log the outcome of a store phase (purge, load, restore)."""
        level = "info" if success else "error"
        getattr(self.logger, level)(
            "Sync phase finished",
            phase=phase,
            success=success,
            count=count,
            **self.context
        )

    def log_sync_complete(self, inserted: int, purged: int, duration_seconds: float) -> None:
        self.logger.info(
            "Catalog sync completed",
            inserted=inserted,
            purged=purged,
            duration_seconds=duration_seconds,
            **self.context
        )

    def log_error(self, error: str, phase: Optional[str] = None) -> None:
        """Log a sync failure with context."""
        self.logger.error(
            "Catalog sync failed",
            error=error,
            phase=phase,
            **self.context
        )
