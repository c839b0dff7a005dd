"""Logging configuration for the application."""

import logging


def configure_logging(level: str = "INFO"):
    """Configure application-wide logging settings."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)7s %(message)s",
        datefmt="%H:%M:%S",
        level=level,
    )
    logging.getLogger("pika").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
