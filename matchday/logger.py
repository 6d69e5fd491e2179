import logging
import logging.config
from typing import Optional

from .config import LOG_LEVEL, SQL_LOG_LEVEL


def _level(value: str, default: str) -> str:
    value = (value or default).strip().upper()
    return value if isinstance(logging.getLevelName(value), int) else default


APP_LEVEL = _level(LOG_LEVEL, "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "": {"handlers": ["console"], "level": APP_LEVEL},
        # uvicorn keeps its own handlers unless told to hand records to root
        "uvicorn": {"handlers": [], "level": APP_LEVEL, "propagate": True},
        "uvicorn.error": {"handlers": [], "level": APP_LEVEL, "propagate": True},
        "uvicorn.access": {"handlers": [], "level": APP_LEVEL, "propagate": True},
        "sqlalchemy.engine": {"handlers": [], "level": _level(SQL_LOG_LEVEL, "WARNING"), "propagate": True},
    },
}

logging.config.dictConfig(LOGGING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "matchday")


logger = get_logger()
