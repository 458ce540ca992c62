"""
Persisted key/value settings for PokeAuto.

Every user-facing toggle of the automation (feature on/off switches,
dungeon policies, last selected focus topic) is stored here as a string
value, the way the in-game script keeps them in local storage.

Architecture Role:
    Automations never keep their own copy of a policy flag: they read the
    store at the top of every tick, so a flag flipped by the user between
    two ticks is honoured on the very next one.

    ControlPanel / user → SettingsStore ← automation ticks

Design Decisions:
    - String values: Booleans are stored as "true"/"false" so a settings
      file stays readable and matches the in-game storage format.
    - Write-through: When a path is configured, every change rewrites the
      JSON file; settings change on user clicks, not per tick.
    - Thread-safe: Timer callbacks may run on separate threads, so access
      goes through a lock.

Dependencies:
    - json/pathlib: For the optional settings file
    - threading: For the store lock
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

# =============================================================================
# SETTING KEYS
# =============================================================================

FOCUS_ENABLED = "Focus-Enabled"
FOCUS_SELECTED_TOPIC = "Focus-SelectedTopic"

DUNGEON_ENABLED = "Dungeon-FightEnabled"
DUNGEON_STOP_ON_POKEDEX = "Dungeon-FightStopOnPokedex"
DUNGEON_SHINY_STOP_MODE = "Dungeon-FightStopOnShinyPokedex"
DUNGEON_BOSS_RUSH = "Dungeon-FightBossRushEnabled"
DUNGEON_SKIP_CHESTS = "Dungeon-FightDontOpenChests"

GYM_ENABLED = "Gym-FightEnabled"
GYM_SELECTED = "Gym-SelectedGym"

NOTIFICATIONS_ENABLED = "automationNotificationsEnabled"


def _to_str(value: str | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# =============================================================================
# SETTINGS STORE
# =============================================================================


class SettingsStore:
    """
    Thread-safe string key/value store with optional JSON persistence.

    Attributes:
        path: JSON file backing the store, or None for memory only.

    Example:
        >>> store = SettingsStore()
        >>> store.set_default_value("Dungeon-FightEnabled", False)
        >>> store.get_bool("Dungeon-FightEnabled")
        False
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._values: dict[str, str] = {}
        self._lock = threading.Lock()

        if path is not None and path.exists():
            with open(path) as f:
                raw = json.load(f)
            self._values = {str(k): _to_str(v) for k, v in raw.items()}
            logger.debug("Loaded %d settings from %s", len(self._values), path)

    def get_value(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Read ``key`` as a boolean; absent keys read as ``default``."""
        value = self.get_value(key)
        if value is None:
            return default
        return value == "true"

    def set_value(self, key: str, value: str | bool) -> None:
        with self._lock:
            self._values[key] = _to_str(value)
            self._save()

    def set_default_value(self, key: str, value: str | bool) -> None:
        """Set ``key`` only if it has never been set before."""
        with self._lock:
            if key in self._values:
                return
            self._values[key] = _to_str(value)
            self._save()

    def as_dict(self) -> dict[str, str]:
        with self._lock:
            return dict(self._values)

    def _save(self) -> None:
        # Caller holds the lock
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._values, f, indent=2, sort_keys=True)
