import logging
from logging.handlers import RotatingFileHandler

from cadence import config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None, max_bytes: int = 1_000_000, backup_count: int = 3):
    """Attach a rotating file handler and a stderr handler to the package logger."""
    logger = logging.getLogger("cadence")
    if logger.handlers:
        return logger

    stderr_level = getattr(logging, level or config.get_log_level(), logging.WARNING)
    logger.setLevel(logging.DEBUG)

    config.CADENCE_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        config.LOG_PATH, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)

    stream = logging.StreamHandler()
    stream.setLevel(stderr_level)
    stream.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    logger.addHandler(stream)
    return logger
