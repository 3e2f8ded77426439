"""
Logging Setup - PB Portal Scoring Engine
pbportal/core/logging.py

Routes structlog and stdlib logging through one handler. LOG_FORMAT picks
JSON lines (default) or the console renderer; LOG_LEVEL sets the level.
"""

import logging
import sys
from typing import Optional

import structlog

from pbportal.config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging and structlog from settings."""
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL)

    if settings.LOG_FORMAT == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Connector chatter
    logging.getLogger("snowflake.connector").setLevel(max(level, logging.WARNING))
