"""
Presentation-side control panel for PokeAuto.

The automation core never draws anything. What it needs from a user
interface boils down to: an on/off switch per feature, the ability to force
a switch on or off, a way to grey a switch out with a reason, category
visibility, and one-shot warning notifications. ControlPanel is that
contract, backed by the SettingsStore.

Architecture Role:
    User click → ControlPanel.toggle() → settings flag → feature listener
    Automation → ControlPanel.force_state() → settings flag → feature listener

    Feature listeners are the components' own on/off handlers
    (StrategyScheduler, DungeonExplorer, GymFighter), so a forced state
    change and a user click take the exact same path.

Dependencies:
    - collections.deque: Bounded notification history
    - pokeauto.settings: Backing store for the switches
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable

from pokeauto.settings import NOTIFICATIONS_ENABLED, SettingsStore

logger = logging.getLogger(__name__)

ToggleListener = Callable[[bool], None]

# Notifications kept for the presentation layer to display
_NOTIFICATION_HISTORY = 50


@dataclass(frozen=True)
class Notification:
    title: str
    message: str


class ControlPanel:
    """
    On/off switches, disabled states and notifications.

    Attributes:
        settings: Store the switch values live in.
        notifications: Most recent notifications, oldest first.
    """

    def __init__(self, settings: SettingsStore, notifications_enabled: bool = True) -> None:
        self.settings = settings
        self.notifications: deque[Notification] = deque(maxlen=_NOTIFICATION_HISTORY)
        self._listeners: dict[str, list[ToggleListener]] = {}
        self._disabled: dict[str, str] = {}
        self._hidden_categories: set[str] = set()

        settings.set_default_value(NOTIFICATIONS_ENABLED, notifications_enabled)

    # =========================================================================
    # SWITCHES
    # =========================================================================

    def register_feature(
        self,
        key: str,
        listener: ToggleListener | None = None,
        default: bool = False,
    ) -> None:
        """Declare a switch, giving it a default value on first run."""
        self.settings.set_default_value(key, default)
        self._listeners.setdefault(key, [])
        if listener is not None:
            self._listeners[key].append(listener)

    def is_enabled(self, key: str) -> bool:
        return self.settings.get_bool(key)

    def toggle(self, key: str) -> bool:
        """
        Handle a user click on a switch.

        Clicks on a disabled switch are ignored.

        Returns:
            The switch state after the click.
        """
        if key in self._disabled:
            logger.debug("Ignoring click on disabled switch %s", key)
            return self.is_enabled(key)
        enabled = not self.is_enabled(key)
        self.settings.set_value(key, enabled)
        self._dispatch(key, enabled)
        return enabled

    def force_state(self, key: str, enabled: bool) -> None:
        """Set a switch from code, notifying its listeners."""
        self.settings.set_value(key, enabled)
        self._dispatch(key, enabled)

    def _dispatch(self, key: str, enabled: bool) -> None:
        for listener in list(self._listeners.get(key, ())):
            listener(enabled)

    # =========================================================================
    # DISABLED STATES AND VISIBILITY
    # =========================================================================

    def set_disabled_state(self, key: str, disabled: bool, reason: str = "") -> None:
        if disabled:
            self._disabled[key] = reason
        else:
            self._disabled.pop(key, None)

    def is_disabled(self, key: str) -> bool:
        return key in self._disabled

    def disabled_reason(self, key: str) -> str | None:
        return self._disabled.get(key)

    def set_category_visible(self, category: str, visible: bool) -> None:
        if visible:
            self._hidden_categories.discard(category)
        else:
            self._hidden_categories.add(category)

    def is_category_visible(self, category: str) -> bool:
        return category not in self._hidden_categories

    # =========================================================================
    # NOTIFICATIONS
    # =========================================================================

    def notify(self, message: str, title: str = "Automation") -> None:
        """Show a one-shot warning to the player, if notifications are on."""
        logger.warning("[%s] %s", title, message.replace("\n", " "))
        if not self.settings.get_bool(NOTIFICATIONS_ENABLED, default=True):
            return
        self.notifications.append(Notification(title=title, message=message))
