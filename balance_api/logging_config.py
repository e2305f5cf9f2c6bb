"""
Logging setup shared by the API process and the reset worker.

Modules log through `logging.getLogger(__name__)`; this sets the format and
level once, at process start.
"""

import logging.config

from balance_api.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": "WARNING",
            },
            "loggers": {
                "balance_api": {
                    "level": (level or settings.LOG_LEVEL).upper(),
                },
            },
        }
    )
