"""
Logging setup.

Modules create their own bound logger:

    logger = structlog.get_logger(component="mock_adapter")

and `configure_logging()` is called once by the entry point (`main.py`).
"""

import logging

import structlog

from settings import settings


def configure_logging(level: str | None = None) -> None:
    """Configure structlog with a console renderer at `level`."""

    name = (level or settings.log_level).upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        cache_logger_on_first_use=True,
    )
