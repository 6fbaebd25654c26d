"""Logging configuration for olio.

Modules log through ``logging.getLogger(__name__)``. The level comes from
the OLIO_LOG_LEVEL environment variable (default WARNING, so CLI output
stays clean).
"""

import logging
import os
import sys


def configure_logging(level_name: str | None = None) -> None:
    """Configure the ``olio`` package logger. Subsequent calls are no-ops."""
    root_logger = logging.getLogger("olio")
    if root_logger.handlers:
        return

    level_name = (level_name or os.environ.get("OLIO_LOG_LEVEL", "WARNING")).upper()
    level = getattr(logging, level_name, logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(name)s: %(message)s"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    root_logger.propagate = False
