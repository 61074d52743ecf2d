import logging
import logging.config
import os
import sys

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)-6s %(name)8s:%(lineno)d %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": sys.stdout,
        },
    },
    "loggers": {
        "stakeclaim": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False,
        },
        # httpx logs every request at INFO
        "httpx": {
            "level": "WARNING",
        },
    },
    "root": {
        "level": "WARNING",
        "handlers": ["console"],
    },
}


def setup_logging(level: str | None = None, log_file: str | None = None) -> dict:
    """ Apply the logging configuration. LOG_LEVEL and STAKECLAIM_LOG_FILE fill in unset arguments. """
    config = {**LOGGING_CONFIG, "handlers": dict(LOGGING_CONFIG["handlers"]), "loggers": dict(LOGGING_CONFIG["loggers"])}
    stakeclaim = dict(config["loggers"]["stakeclaim"], level=(level or os.getenv("LOG_LEVEL", "INFO")).upper())

    log_file = log_file or os.getenv("STAKECLAIM_LOG_FILE")
    if log_file:
        config["handlers"]["file"] = {
            "class": "logging.FileHandler",
            "formatter": "default",
            "filename": log_file,
            "mode": "a",
        }
        stakeclaim["handlers"] = ["console", "file"]
    config["loggers"]["stakeclaim"] = stakeclaim

    logging.config.dictConfig(config)
    os.environ.setdefault("PYTHONUNBUFFERED", "1")
    return config
