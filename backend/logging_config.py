"""Centralized logging configuration."""

import logging

from config import settings

# Third-party loggers that log every query or HTTP request at INFO
NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
    "urllib3",
    "keyring",
)


def setup_logging() -> None:
    """Configure logging for the API process and the operator CLI.

    Sets the root level from settings.LOG_LEVEL and pins NOISY_LOGGERS to
    WARNING.  Cron triggers hit the API every few minutes, so uvicorn's
    access log is also held at WARNING unless DEBUG is on.
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=getattr(logging, settings.LOG_LEVEL),
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    access_level = logging.INFO if settings.DEBUG else logging.WARNING
    logging.getLogger("uvicorn.access").setLevel(access_level)
