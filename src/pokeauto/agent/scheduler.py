"""
Focus strategy scheduler for PokeAuto.

The "Focus on" feature lets the player pick one long-running goal
(experience, money, dungeon tokens, a gem type, ...) and have the agent
pursue it. This module owns the catalog of such strategies and guarantees
that at most one of them runs at any time.

Architecture Role:
    The scheduler sits between the user's switch and the strategies:

    ControlPanel (Focus-Enabled) → turn_on/turn_off → active strategy
    TimerService → strategy.action() every cadence_ms

    Strategies are built by FocusCatalog (focus.py) and registered once at
    startup; the catalog is frozen by finalize().

Lifecycle:
    - turn_on(): resolve the selected strategy, run its action once right
      away (no waiting a full cadence on cold start), then arm a repeating
      timer unless the strategy is one-shot.
    - turn_off(): cancel the timer, call on_deactivate exactly once, clear
      the per-strategy cache (focus_data).
    - set_active(): switch the selected strategy. The running one is always
      deactivated before the next one's first action.

Locked Strategies:
    A strategy whose is_available() is false at finalize() is hidden from
    selection. A coarse background watcher re-checks hidden strategies and
    stops itself once none remain.

Dependencies:
    - pokeauto.timers: Strategy and watcher loops
    - pokeauto.panel: The Focus-Enabled switch
    - pokeauto.settings: Last selected strategy
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

from pokeauto.panel import ControlPanel
from pokeauto.settings import FOCUS_ENABLED, FOCUS_SELECTED_TOPIC
from pokeauto.timers import TimerHandle, TimerService

logger = logging.getLogger(__name__)

# Cadence sentinel: run the action once when turned on, never again
NO_REFRESH = -1

SEPARATOR_ID = "separator"

# =============================================================================
# STRATEGY
# =============================================================================


@dataclass(frozen=True)
class Strategy:
    """
    A user-selectable focus strategy.

    Attributes:
        id: Stable unique identifier, persisted as the last selection.
        name: Display name.
        tooltip: Display help text.
        action: Tick handler. Must no-op when its preconditions are unmet.
        cadence_ms: Interval between two actions, or NO_REFRESH.
        on_deactivate: Cleanup called once when the strategy stops.
        is_available: Unlock predicate; None means always available.
    """

    id: str
    name: str
    tooltip: str = ""
    action: Callable[[], None] | None = None
    cadence_ms: int = NO_REFRESH
    on_deactivate: Callable[[], None] | None = None
    is_available: Callable[[], bool] | None = None

    @classmethod
    def separator(cls, title: str) -> "Strategy":
        """Create a presentation-only catalog entry."""
        return cls(id=SEPARATOR_ID, name=title)

    @property
    def is_separator(self) -> bool:
        return self.id == SEPARATOR_ID

    @property
    def is_one_shot(self) -> bool:
        return self.cadence_ms == NO_REFRESH


# =============================================================================
# STRATEGY SCHEDULER
# =============================================================================


class StrategyScheduler:
    """
    Runs at most one focus strategy at a time.

    Attributes:
        panel: Control panel owning the Focus-Enabled switch.
        timers: Timer service for the strategy and watcher loops.
        unlock_watch_ms: Cadence of the locked-strategy watcher.
        focus_data: Cache strategies keep while they stay active; cleared on
            every turn_off().
    """

    def __init__(
        self,
        panel: ControlPanel,
        timers: TimerService,
        unlock_watch_ms: int = 5_000,
    ) -> None:
        self.panel = panel
        self.timers = timers
        self.unlock_watch_ms = unlock_watch_ms
        self.focus_data: dict[str, Any] = {}

        self._strategies: list[Strategy] = []
        self._finalized = False
        self._locked: list[Strategy] = []
        self._selected_id: str | None = None
        self._active: Strategy | None = None
        self._loop: TimerHandle | None = None
        self._watcher: TimerHandle | None = None
        # Reentrant: a strategy action may switch the focus off from turn_on()
        self._lock = threading.RLock()

    # =========================================================================
    # CATALOG
    # =========================================================================

    def register(self, strategy: Strategy) -> None:
        """
        Append a strategy to the catalog.

        Raises:
            ValueError: If the catalog is frozen or the id is already taken.
        """
        if self._finalized:
            raise ValueError(f"Cannot register {strategy.id!r}: catalog is frozen")
        if not strategy.is_separator:
            if any(s.id == strategy.id for s in self._strategies):
                raise ValueError(f"Duplicate strategy id {strategy.id!r}")
            if strategy.action is None:
                raise ValueError(f"Strategy {strategy.id!r} has no action")
        self._strategies.append(strategy)

    def finalize(self) -> None:
        """
        Freeze the catalog, hide locked strategies and restore the last
        session's selection.
        """
        if self._finalized:
            return
        self._finalized = True

        self.panel.register_feature(FOCUS_ENABLED, self._on_toggled)

        self._locked = [
            s for s in self._strategies
            if not s.is_separator and s.is_available is not None and not s.is_available()
        ]
        if self._locked:
            logger.info("%d focus strategies locked, watching for unlocks", len(self._locked))
            self._watcher = self.timers.set_interval(
                self._check_unlocks, self.unlock_watch_ms, name="focus-unlock-watcher"
            )

        last = self.panel.settings.get_value(FOCUS_SELECTED_TOPIC)
        if last is not None and last in self.selectable_ids():
            self._selected_id = last
        else:
            ids = self.selectable_ids()
            self._selected_id = ids[0] if ids else None

    @property
    def strategies(self) -> tuple[Strategy, ...]:
        return tuple(self._strategies)

    def get(self, strategy_id: str) -> Strategy:
        for strategy in self._strategies:
            if strategy.id == strategy_id and not strategy.is_separator:
                return strategy
        raise ValueError(f"Unknown strategy id {strategy_id!r}")

    def is_locked(self, strategy_id: str) -> bool:
        return any(s.id == strategy_id for s in self._locked)

    def selectable_ids(self) -> list[str]:
        locked = {s.id for s in self._locked}
        return [
            s.id for s in self._strategies
            if not s.is_separator and s.id not in locked
        ]

    def _check_unlocks(self) -> None:
        # Reverse iteration keeps indices valid while removing
        for i in range(len(self._locked) - 1, -1, -1):
            strategy = self._locked[i]
            if strategy.is_available is not None and strategy.is_available():
                logger.info("Focus strategy %s unlocked", strategy.id)
                del self._locked[i]

        if not self._locked:
            self.timers.clear_interval(self._watcher)
            self._watcher = None

    @property
    def is_watching_unlocks(self) -> bool:
        return self._watcher is not None

    # =========================================================================
    # SELECTION
    # =========================================================================

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def active(self) -> Strategy | None:
        """The running strategy, None when the focus is off."""
        return self._active

    @property
    def is_running(self) -> bool:
        return self._active is not None

    def set_active(self, strategy_id: str, force_off: bool = True) -> bool:
        """
        Select the strategy to focus on.

        Args:
            strategy_id: Strategy to select.
            force_off: Turn the focus switch off (the default), so the new
                strategy only starts on the next user toggle. When False and
                the focus is running, the running strategy is deactivated
                and the new one started immediately.

        Returns:
            False if the strategy is still locked, True otherwise.

        Raises:
            ValueError: If the id is unknown or a separator.
        """
        strategy = self.get(strategy_id)
        if self.is_locked(strategy_id):
            logger.info("Focus strategy %s is locked, ignoring selection", strategy_id)
            return False

        previous = self._selected_id
        self._selected_id = strategy.id
        self.panel.settings.set_value(FOCUS_SELECTED_TOPIC, strategy.id)

        if force_off:
            self.panel.force_state(FOCUS_ENABLED, False)
            return True

        with self._lock:
            if self._active is not None and self._active.id != strategy.id:
                logger.info("Switching focus from %s to %s", previous, strategy.id)
                self.turn_off()
                self.turn_on()
        return True

    # =========================================================================
    # ON / OFF
    # =========================================================================

    def _on_toggled(self, enabled: bool) -> None:
        if enabled:
            self.turn_on()
        else:
            self.turn_off()

    def restore(self) -> None:
        """Resume the focus if it was on when the last session ended."""
        if self.panel.is_enabled(FOCUS_ENABLED):
            self.turn_on()

    def turn_on(self) -> None:
        """Start the selected strategy. No-op if a strategy is already running."""
        with self._lock:
            if self._active is not None or self._selected_id is None:
                return

            strategy = self.get(self._selected_id)
            self._active = strategy
            logger.info("Focus on %s", strategy.name)

            # First run right away, a long cadence would otherwise delay it
            self._run(strategy)

            # The action may have turned the focus off itself
            if self._active is not strategy:
                return

            if not strategy.is_one_shot:
                self._loop = self.timers.set_interval(
                    lambda: self._run(strategy), strategy.cadence_ms, name=f"focus-{strategy.id}"
                )

    def turn_off(self) -> None:
        """Stop the running strategy. No-op if none is running."""
        with self._lock:
            strategy = self._active
            if strategy is None:
                return

            self.timers.clear_interval(self._loop)
            self._loop = None
            self._active = None

            try:
                if strategy.on_deactivate is not None:
                    strategy.on_deactivate()
            except Exception:
                logger.exception("Focus strategy %s cleanup raised", strategy.id)
            finally:
                self.focus_data.clear()
            logger.info("Focus on %s stopped", strategy.name)

    def _run(self, strategy: Strategy) -> None:
        if self._active is not strategy or strategy.action is None:
            return
        try:
            strategy.action()
        except Exception:
            logger.exception("Focus strategy %s raised", strategy.id)

    def shutdown(self) -> None:
        self.turn_off()
        self.timers.clear_interval(self._watcher)
        self._watcher = None
