"""Logging configuration for the converter."""

import logging
import os

LOG_LEVEL = os.environ.get("NAMEDARGS_LOG_LEVEL", "WARNING").upper()

logging.basicConfig(
    format="%(asctime)s.%(msecs)03d %(name)-32s %(levelname)-5s %(message)s",
    datefmt="%H:%M:%S",
    level=getattr(logging, LOG_LEVEL, logging.WARNING),
)


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the 'namedargs.' namespace.

    Level controlled by NAMEDARGS_LOG_LEVEL env var (default WARNING).
    """
    return logging.getLogger(f"namedargs.{name}")


def set_verbose(enabled: bool = True) -> None:
    """Lower the namespace level to INFO so every skipped call is logged."""
    if enabled:
        logging.getLogger("namedargs").setLevel(logging.INFO)
