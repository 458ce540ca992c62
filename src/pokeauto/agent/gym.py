"""
Gym auto-fight loop for PokeAuto.

Repeatedly challenges the selected gym while the player stands in the gym's
town. The money and gem focus strategies select a gym and switch this loop
on; stopping those strategies switches it back off.

Architecture Role:
    FocusCatalog → select(gym) + force GYM_ENABLED on → GymFighter ticks
    GymFighter tick → GameFacade.start_gym_fight()

Dependencies:
    - pokeauto.panel: On/off switch
    - pokeauto.timers: Tick loop
"""

from __future__ import annotations

import logging
import threading

from pokeauto.config import AutomationConfig
from pokeauto.game import GameFacade, GameState, GymInfo
from pokeauto.panel import ControlPanel
from pokeauto.settings import GYM_ENABLED, GYM_SELECTED
from pokeauto.timers import TimerHandle, TimerService

logger = logging.getLogger(__name__)


class GymFighter:
    """
    Gym auto-fight automation.

    Attributes:
        game: Facade to observe and command.
        panel: Control panel owning the on/off switch.
        timers: Timer service running the loop.
    """

    def __init__(
        self,
        game: GameFacade,
        panel: ControlPanel,
        timers: TimerService,
        config: AutomationConfig,
    ) -> None:
        self.game = game
        self.panel = panel
        self.timers = timers
        self.config = config
        self._loop: TimerHandle | None = None
        self._lock = threading.Lock()

    def build(self) -> None:
        self.panel.register_feature(GYM_ENABLED, self._on_toggled)
        # Never resume a gym loop from a previous session
        self.panel.force_state(GYM_ENABLED, False)

    def shutdown(self) -> None:
        with self._lock:
            self.timers.clear_interval(self._loop)
            self._loop = None

    @property
    def is_running(self) -> bool:
        return self._loop is not None

    def select(self, gym_name: str) -> None:
        self.panel.settings.set_value(GYM_SELECTED, gym_name)

    def selected_gym(self) -> GymInfo | None:
        name = self.panel.settings.get_value(GYM_SELECTED)
        if not name:
            return None
        for gym in self.game.gyms():
            if gym.name == name:
                return gym
        return None

    def _on_toggled(self, enabled: bool) -> None:
        if not enabled:
            self.shutdown()
            return
        with self._lock:
            if self._loop is None:
                self._loop = self.timers.set_interval(
                    self.tick, self.config.gym_tick_ms, name="gym-fight"
                )

    def tick(self) -> None:
        """Start the next gym fight if the player is at the selected gym."""
        state = self.game.game_state()
        if state == GameState.GYM:
            return

        gym = self.selected_gym()
        town = self.game.player_town()
        if (
            gym is None
            or state != GameState.TOWN
            or town is None
            or town.name != gym.town
        ):
            self.panel.force_state(GYM_ENABLED, False)
            return

        self.game.start_gym_fight(gym)
