"""Locating the installed help pages."""

from __future__ import annotations

import locale
from pathlib import Path
from typing import Optional

HELP_PAGE = "main.htm"


def _system_language() -> str:
    return locale.getlocale()[0] or "en"


def _candidates(app_dir: Path, language: str) -> list[Path]:
    local = app_dir / "help"
    installed = app_dir / ".." / "share" / "qtemu" / "help"
    found = []
    if language != "en":
        found += [local / language, installed / language]
    found += [local, installed]
    return found


def help_location(app_dir: str | Path, language: Optional[str] = None) -> Optional[Path]:
    """Directory holding the help pages, preferring ``language``; None if absent.

    The directories next to the program and under ``../share/qtemu/help`` are
    searched, the translated ones first.
    """
    if language is None:
        language = _system_language()
    return next(
        (path for path in _candidates(Path(app_dir), language) if path.exists()),
        None,
    )


def help_file(app_dir: str | Path, language: Optional[str] = None) -> Path:
    """Path of the main help page; raises FileNotFoundError if no help is installed."""
    location = help_location(app_dir, language)
    if location is None:
        raise FileNotFoundError("help not found; it is probably not installed")
    return location / HELP_PAGE