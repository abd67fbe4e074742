"""Application-wide preferences and the store that keeps them."""

from __future__ import annotations

import json
import locale
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

LANGUAGES = (
    ("en", "English"),
    ("de", "Deutsch"),
    ("tr", "Türkçe"),
    ("ru", "Русский"),
    ("cz", "Česky"),
    ("es", "Español"),
    ("fr", "Français"),
    ("it", "Italiano"),
    ("pt-BR", "Português do Brasil"),
    ("pl", "Polski"),
)
LANGUAGE_CODES = tuple(code for code, _ in LANGUAGES)
ICON_THEMES = ("Oxygen", "Crystal")
TAB_POSITIONS = ("Top", "Bottom", "Left", "Right")
DEFAULT_ICON_THEME = "oxygen"


class Settings:
    """Key/value preferences, kept in a JSON file when a path is given."""

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self._values: dict[str, Any] = {}
        if self.path is not None and self.path.exists():
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"{self.path} does not hold a settings object")
            self._values = data

    def value(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        self._values[key] = value
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(self._values, indent=2, sort_keys=True), encoding="utf-8"
            )


@dataclass
class Preferences:
    """The settings edited in the configuration dialog."""

    before_start: str = ""
    command: str = "qemu"
    after_exit: str = ""
    icon_theme: str = DEFAULT_ICON_THEME
    language: str = "en"


def language_index(code: str) -> int:
    """Position of a language code in the language list; unknown codes map to 0."""
    try:
        return LANGUAGE_CODES.index(code)
    except ValueError:
        return 0


def language_for_index(index: int) -> str:
    """Language code at ``index``; out-of-range positions map to English."""
    if 0 <= index < len(LANGUAGE_CODES):
        return LANGUAGE_CODES[index]
    return "en"


def default_command(platform: str, app_dir: str) -> str:
    """The emulator command used when none is configured."""
    if platform.startswith("win"):
        return f"{app_dir}/qemu/qemu.exe"
    return "qemu"


def _system_language() -> str:
    name = locale.getlocale()[0]
    return name or "en"


def _match_icon_theme(value: str) -> str:
    wanted = str(value).lower()
    for theme in ICON_THEMES:
        if wanted in theme.lower():
            return theme.lower()
    return ""


def load_preferences(
    settings: Settings,
    platform: Optional[str] = None,
    app_dir: Optional[str] = None,
) -> Preferences:
    """Read the preferences from ``settings``, filling in defaults."""
    if platform is None:
        platform = sys.platform
    if app_dir is None:
        app_dir = str(Path(sys.argv[0]).resolve().parent) if sys.argv[0] else "."
    return Preferences(
        before_start=settings.value("beforeStart", ""),
        command=settings.value("command", default_command(platform, app_dir)),
        after_exit=settings.value("afterExit", ""),
        icon_theme=_match_icon_theme(settings.value("iconTheme", DEFAULT_ICON_THEME)),
        language=settings.value("language", _system_language()),
    )


def save_preferences(settings: Settings, preferences: Preferences) -> None:
    """Write ``preferences`` into ``settings``."""
    settings.set_value("beforeStart", preferences.before_start)
    settings.set_value("command", preferences.command)
    settings.set_value("afterExit", preferences.after_exit)
    settings.set_value("iconTheme", preferences.icon_theme.lower())
    settings.set_value("language", language_for_index(language_index(preferences.language)))