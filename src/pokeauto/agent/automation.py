"""
Automation: main integration point of the PokeAuto engine.

Constructs every component once, wires them together, and owns their
lifecycle. Nothing in the engine reaches for a global: each component gets
the instances it needs from here.

Architecture Role:
    Automation
    ├── SettingsStore   (persisted switches and policies)
    ├── ControlPanel    (switches, disabled reasons, notifications)
    ├── TimerService    (every polling loop)
    ├── AutomationMutex (dungeon ↔ focus yield requests)
    ├── LocationScorer  (route/gym ranking)
    ├── GymFighter      (gym auto-fight loop)
    ├── DungeonExplorer (dungeon auto-fight loop)
    └── StrategyScheduler + FocusCatalog (focus strategies)

Startup:
    start() runs two init steps:
    1. build: declare every switch, register the strategies
    2. finalize: freeze the catalog and restore the previous session's
       focus state

Dependencies:
    - All agent submodules
"""

from __future__ import annotations

import logging

from pokeauto.agent.dungeon import DungeonExplorer
from pokeauto.agent.focus import FocusCatalog
from pokeauto.agent.gym import GymFighter
from pokeauto.agent.mutex import AutomationMutex
from pokeauto.agent.scheduler import StrategyScheduler
from pokeauto.agent.scorer import LocationScorer
from pokeauto.config import AutomationConfig
from pokeauto.game import GameFacade
from pokeauto.panel import ControlPanel
from pokeauto.settings import SettingsStore
from pokeauto.timers import ManualTimerService, ThreadedTimerService, TimerService

logger = logging.getLogger(__name__)


class Automation:
    """
    The assembled automation engine.

    Attributes:
        game: Facade over the host game.
        config: Engine configuration.
        settings: Persisted key/value settings.
        panel: Control panel.
        timers: Timer service shared by every loop.
        mutex: Yield requests between automations.
        scorer: Location ranking.
        gym: Gym auto-fight automation.
        dungeon: Dungeon auto-fight automation.
        focus: Focus strategy scheduler.
        catalog: Focus strategy implementations.
    """

    def __init__(
        self,
        game: GameFacade,
        config: AutomationConfig | None = None,
        timers: TimerService | None = None,
        settings: SettingsStore | None = None,
    ) -> None:
        self.game = game
        self.config = config or AutomationConfig()
        self.settings = settings or SettingsStore(self.config.settings_path)
        self.timers = timers if timers is not None else ThreadedTimerService()
        self.panel = ControlPanel(self.settings, self.config.notifications_enabled)
        self.mutex = AutomationMutex()
        self.scorer = LocationScorer(game)

        self.gym = GymFighter(game, self.panel, self.timers, self.config)
        self.dungeon = DungeonExplorer(game, self.panel, self.timers, self.mutex, self.config)
        self.focus = StrategyScheduler(self.panel, self.timers, self.config.unlock_watch_ms)
        self.catalog = FocusCatalog(
            game, self.focus, self.scorer, self.gym, self.mutex, self.panel, self.config
        )
        self._started = False

    def start(self) -> None:
        """
        Build every component, then restore the previous session.

        An engine is started at most once; build a new one to restart.
        """
        if self._started:
            return
        self._started = True

        # Build step
        self.gym.build()
        self.dungeon.build()
        self.catalog.register_all()

        # Finalize step
        self.focus.finalize()
        self.focus.restore()
        logger.info(
            "Automation started with %d focus strategies", len(self.focus.selectable_ids())
        )

    def stop(self) -> None:
        """Stop every loop. The focus switch keeps its persisted value."""
        if not self._started:
            return

        self.focus.shutdown()
        self.dungeon.shutdown()
        self.gym.shutdown()
        if isinstance(self.timers, (ManualTimerService, ThreadedTimerService)):
            self.timers.shutdown()
        logger.info("Automation stopped")
