import logging
from logging import config


def init(log_level: str = "WARNING") -> None:
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s | %(levelname)s | %(message)s (%(filename)s:%(lineno)s)",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "auto_tester": {
                "handlers": ["console"],
                "level": log_level.upper(),
                "propagate": False,
            },
        },
    }

    config.dictConfig(log_config)
