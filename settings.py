"""JSON-based settings persistence for the paged calendar."""

from __future__ import annotations

import json
import logging
import os
from datetime import date

from paged_calendar import CalendarConfig

logger = logging.getLogger(__name__)

_SETTINGS_ENV = "PAGED_CALENDAR_SETTINGS"
_DEFAULT_PATH = os.path.join(os.path.expanduser("~"), ".paged-calendar-settings.json")

_DEFAULTS = {
    "min_date": None,
    "max_date": None,
    "initial_date": None,
    "start_week_with_sunday": False,
    "invisible_months_threshold": 1,
    "keep_alive": False,
    "window_width": None,
    "window_height": None,
}

_DATE_KEYS = ("min_date", "max_date", "initial_date")


def settings_path() -> str:
    """Return the settings file location, honouring the env override."""
    return os.getenv(_SETTINGS_ENV) or _DEFAULT_PATH


def _valid_iso_date(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def load_settings(path: str | None = None) -> dict:
    """Load settings from disk, returning defaults for missing keys."""
    settings = dict(_DEFAULTS)
    path = path or settings_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            stored = json.load(f)
    except FileNotFoundError:
        return settings
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return settings
    if not isinstance(stored, dict):
        logger.warning("Ignoring settings file %s: not a JSON object", path)
        return settings

    for key in _DATE_KEYS:
        if key in stored and (stored[key] is None or _valid_iso_date(stored[key])):
            settings[key] = stored[key]
    for key in ("start_week_with_sunday", "keep_alive"):
        if key in stored and isinstance(stored[key], bool):
            settings[key] = stored[key]
    threshold = stored.get("invisible_months_threshold")
    if isinstance(threshold, int) and not isinstance(threshold, bool) and threshold >= 0:
        settings["invisible_months_threshold"] = threshold
    for key in ("window_width", "window_height"):
        if (
            key in stored
            and isinstance(stored[key], int)
            and not isinstance(stored[key], bool)
        ):
            settings[key] = stored[key]
    return settings


def save_settings(settings: dict, path: str | None = None) -> None:
    """Persist settings to disk."""
    with open(path or settings_path(), "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)


def config_from_settings(settings: dict) -> CalendarConfig:
    """Build a :class:`CalendarConfig` from a settings dict.

    Raises:
        ValueError: a date is malformed or ``min_date`` is after ``max_date``.
    """
    dates = {
        key: date.fromisoformat(settings[key]) if settings.get(key) else None
        for key in _DATE_KEYS
    }
    return CalendarConfig(
        min_date=dates["min_date"],
        max_date=dates["max_date"],
        initial_date=dates["initial_date"],
        start_week_with_sunday=bool(settings.get("start_week_with_sunday", False)),
        invisible_months_threshold=int(settings.get("invisible_months_threshold", 1)),
        keep_alive=bool(settings.get("keep_alive", False)),
    )


def settings_from_config(config: CalendarConfig, settings: dict | None = None) -> dict:
    """Return ``settings`` (or defaults) updated with the values of ``config``."""
    result = dict(_DEFAULTS if settings is None else settings)
    for key in _DATE_KEYS:
        value = getattr(config, key)
        result[key] = value.isoformat() if value is not None else None
    result["start_week_with_sunday"] = config.start_week_with_sunday
    result["invisible_months_threshold"] = config.invisible_months_threshold
    result["keep_alive"] = config.keep_alive
    return result
