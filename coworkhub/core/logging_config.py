"""dictConfig used at application startup."""

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOGGING_CONFIG: dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": LOG_FORMAT,
            "datefmt": DATE_FORMAT,
        },
    },
    "handlers": {
        "stdout": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "coworkhub": {
            "handlers": ["stdout"],
            "level": "INFO",
            # Keep records out of the root logger to avoid duplicate lines
            "propagate": False,
        },
        "uvicorn.access": {
            "handlers": ["stdout"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}
