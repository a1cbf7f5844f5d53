import logging
import os
from collections.abc import Callable
from pathlib import Path

import yaml

from .core.errors import ValidationError

CADENCE_DIR = Path(os.environ.get("CADENCE_HOME", Path.home() / ".cadence"))
DB_PATH = CADENCE_DIR / "cadence.db"
CONFIG_PATH = CADENCE_DIR / "config.yaml"
LOG_PATH = CADENCE_DIR / "cadence.log"
BACKUP_DIR = CADENCE_DIR / "backups"

DEFAULT_REMINDER = "You still have remaining habits!"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

logger = logging.getLogger(__name__)


def _log_level(value: object) -> str:
    level = str(value).strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(level)
    return level


def _busy_timeout(value: object) -> float:
    seconds = float(value)  # type: ignore[arg-type]
    if seconds < 0:
        raise ValueError(seconds)
    return seconds


def _week_start(value: object) -> str:
    day = str(value).strip().lower()
    if day not in ("sunday", "monday"):
        raise ValueError(day)
    return day


def _reminder_text(value: object) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValueError("empty reminder")
    return text


DEFAULTS: dict[str, object] = {
    "log_level": "WARNING",
    "busy_timeout": 30.0,
    "week_start": "sunday",
    "reminder_text": DEFAULT_REMINDER,
}

_COERCE: dict[str, Callable[[object], object]] = {
    "log_level": _log_level,
    "busy_timeout": _busy_timeout,
    "week_start": _week_start,
    "reminder_text": _reminder_text,
}


class Config:
    """Settings from config.yaml, checked key by key and cached for the process.

    A bad value in the file falls back to its default with a warning; `set`
    refuses it outright.
    """

    _instance: "Config | None" = None
    _raw: dict[str, object]
    _settings: dict[str, object]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None

    @staticmethod
    def _read() -> dict[str, object]:
        if not CONFIG_PATH.exists():
            return {}
        try:
            loaded = yaml.safe_load(CONFIG_PATH.read_text())
        except yaml.YAMLError as e:
            logger.warning("ignoring unreadable %s: %s", CONFIG_PATH, e)
            return {}
        return loaded if isinstance(loaded, dict) else {}

    def _load(self) -> None:
        self._raw = self._read()
        self._settings = dict(DEFAULTS)
        for key, value in self._raw.items():
            coerce = _COERCE.get(key)
            if coerce is None:
                logger.warning("unknown config key '%s'", key)
                continue
            try:
                self._settings[key] = coerce(value)
            except (TypeError, ValueError):
                logger.warning("invalid %s %r in %s, using %r", key, value, CONFIG_PATH, DEFAULTS[key])

    def get(self, key: str) -> object:
        return self._settings[key]

    def set(self, key: str, value: object) -> None:
        """Validate, then persist to config.yaml."""
        coerce = _COERCE.get(key)
        if coerce is None:
            raise ValidationError(f"unknown config key '{key}'")
        try:
            coerced = coerce(value)
        except (TypeError, ValueError):
            raise ValidationError(f"invalid {key}: {value!r}") from None
        self._raw[key] = coerced
        self._settings[key] = coerced
        CADENCE_DIR.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(yaml.safe_dump(self._raw, default_flow_style=False, allow_unicode=True))


def get_log_level() -> str:
    return str(Config().get("log_level"))


def get_busy_timeout() -> float:
    """Seconds sqlite waits on a locked database before failing."""
    return float(Config().get("busy_timeout"))  # type: ignore[arg-type]


def get_week_start() -> str:
    return str(Config().get("week_start"))


def get_reminder_text() -> str:
    return str(Config().get("reminder_text"))
