"""Light/dark theme preference, persisted between sessions."""

import json
import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

STORAGE_KEY = "fuel-finder-theme"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class ThemeStore(Protocol):
    def load(self) -> str | None: ...

    def save(self, value: str) -> None: ...


class MemoryThemeStore:
    """Keeps the preference for the lifetime of the process."""

    def __init__(self, value: str | None = None):
        self.value = value

    def load(self) -> str | None:
        return self.value

    def save(self, value: str) -> None:
        self.value = value


class FileThemeStore:
    """Stores the preference as {"fuel-finder-theme": "dark"} in a JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> str | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable theme file %s: %s", self.path, e)
            return None
        value = data.get(STORAGE_KEY) if isinstance(data, dict) else None
        return value if isinstance(value, str) else None

    def save(self, value: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({STORAGE_KEY: value}), encoding="utf-8")


class ThemeService:
    """
    Current theme with explicit init and update.

    init() reads the stored preference, falling back to the system preference;
    set()/toggle() persist the new value and notify subscribers.
    """

    def __init__(
        self,
        store: ThemeStore,
        prefers_dark: Callable[[], bool] = lambda: False,
    ):
        self.store = store
        self.prefers_dark = prefers_dark
        self._theme: Theme | None = None
        self._listeners: list[Callable[[Theme], None]] = []

    @property
    def theme(self) -> Theme:
        if self._theme is None:
            return self.init()
        return self._theme

    def init(self) -> Theme:
        stored = self.store.load()
        if stored in (Theme.LIGHT.value, Theme.DARK.value):
            self._theme = Theme(stored)
        else:
            self._theme = Theme.DARK if self.prefers_dark() else Theme.LIGHT
        return self._theme

    def subscribe(self, listener: Callable[[Theme], None]) -> None:
        self._listeners.append(listener)

    def set(self, theme: Theme) -> Theme:
        self._theme = Theme(theme)
        self.store.save(self._theme.value)
        for listener in list(self._listeners):
            listener(self._theme)
        return self._theme

    def toggle(self) -> Theme:
        return self.set(Theme.LIGHT if self.theme is Theme.DARK else Theme.DARK)
