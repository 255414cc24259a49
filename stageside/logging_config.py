"""Logging configuration for Stageside."""

import logging
import sys

PACKAGE_LOGGER = "stageside"


def setup_logging(verbose: bool = False):
    """Configure logging for the application.

    Only Stageside's own loggers follow ``verbose``; everything else stays at
    WARNING so library chatter never mixes into scoring output.

    Args:
        verbose: Enable debug logging if True.
    """
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(levelname)s %(name)s: %(message)s" if verbose else "%(levelname)s: %(message)s"

    logging.basicConfig(
        level=logging.WARNING,
        format=fmt,
        stream=sys.stderr,
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
