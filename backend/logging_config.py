"""Logging setup shared by the API server and scripts."""

import logging

from config import settings

# Loggers that log each outbound quote request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "urllib3")

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger at ``level`` (settings.LOG_LEVEL by default)."""
    logging.basicConfig(
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        level=logging.getLevelName(level or settings.LOG_LEVEL),
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
