import logging
import os
import sys
from datetime import date
from typing import List

from app.core.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(filename)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers kept above DEBUG even in debug mode
QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "multipart": logging.INFO,
}


def daily_log_path(log_dir: str) -> str:
    return os.path.join(log_dir, f"survey_api_{date.today():%Y%m%d}.log")


def _handlers(log_dir: str, level: int) -> List[logging.Handler]:
    os.makedirs(log_dir, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: List[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(daily_log_path(log_dir), encoding="utf-8"),
    ]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging() -> None:
    """
    Route the root logger to stdout and to one file per day under LOG_DIR.

    Handlers installed earlier (uvicorn's, or a previous call) are replaced so
    repeated calls do not duplicate output.
    """
    settings = get_settings()
    level = logging.DEBUG if settings.DEBUG_MODE else logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    for handler in _handlers(settings.LOG_DIR, level):
        root.addHandler(handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    root.info("Logging configured at %s (log dir: %s)", logging.getLevelName(level), settings.LOG_DIR)
