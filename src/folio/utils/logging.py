"""Logging configuration for Folio.

Folio modules log through module-level loggers (`logging.getLogger(__name__)`) and never
configure handlers on import. Applications that want Folio's output call `configure_logging()`.
"""

import logging
import os
import sys


def configure_logging(level=None, format_string=None):
    """Configure logging for Folio.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Read from the
            `FOLIO_LOG_LEVEL` environment variable when not supplied.
        format_string: Custom format string for log messages
    """
    if level is None:
        level = os.environ.get("FOLIO_LOG_LEVEL", "INFO")
    level = str(level).upper()

    numeric_level = getattr(logging, level, logging.INFO)

    if format_string is None:
        if numeric_level == logging.DEBUG:
            # Cache hits, fetch windows and count transitions name their module
            format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        else:
            format_string = "%(asctime)s %(levelname)s: %(message)s"

    logging.basicConfig(
        level=numeric_level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,  # Replace any existing configuration
    )

    # Reduce verbosity of third-party libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)

    if numeric_level == logging.DEBUG:
        logging.getLogger("folio").setLevel(logging.DEBUG)
        logging.getLogger("folio.core").setLevel(logging.NOTSET)
    else:
        logging.getLogger("folio").setLevel(numeric_level)
        # Page-level chatter stays quiet unless debugging
        logging.getLogger("folio.core").setLevel(max(numeric_level, logging.WARNING))


def get_logger(name):
    """Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
