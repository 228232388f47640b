"""Logging setup shared by the API server and the terminal client."""

import logging

from aiquiz.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure the root logger once.

    Args:
        level: Logging level name, e.g. "INFO".
    """
    global _configured
    if _configured:
        return
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    _configured = True
