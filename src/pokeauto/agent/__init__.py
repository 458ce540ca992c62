"""
Automation agents for PokeAuto.

This package holds the decision logic. Everything here talks to the game
through the GameFacade protocol and to the player through the ControlPanel,
so it runs the same against the live game or the simulator.

Architecture:
    ┌──────────────────────────────────────────────┐
    │      STRATEGY SCHEDULER (Focus engine)        │
    │  One strategy at a time, periodic action,     │
    │  unlock watcher, session restore              │
    ├───────────────┬──────────────┬───────────────┤
    │ FOCUS CATALOG │ GYM FIGHTER  │ DUNGEON       │
    │ XP / Money /  │ Gym auto-    │ EXPLORER      │
    │ Tokens / Gems │ fight loop   │ Stateless     │
    │               │              │ phase machine │
    ├───────────────┴──────────────┴───────────────┤
    │ LOCATION SCORER + NAVIGATION                  │
    │ Route HP ranking, gym income, region moves    │
    ├──────────────────────────────────────────────┤
    │ AUTOMATION MUTEX                              │
    │ Yield requests between automations            │
    └──────────────────────────────────────────────┘

Modules:
    - scheduler: StrategyScheduler and the Strategy record
    - focus: FocusCatalog, the built-in focus strategies
    - dungeon: DungeonExplorer state machine
    - gym: GymFighter loop
    - scorer: LocationScorer and route max-HP table
    - navigation: Instance detection and region-aware moves
    - mutex: AutomationMutex and YieldMode
    - automation: Automation, wires everything together

Usage:
    from pokeauto.agent import Automation
    engine = Automation(game)
    engine.start()

Dependencies:
    - numpy: Route ranking and board scans
    - pokeauto.game: Facade protocol and game records
    - pokeauto.panel / pokeauto.settings / pokeauto.timers: Host services
"""

from pokeauto.agent.automation import Automation
from pokeauto.agent.dungeon import DungeonExplorer
from pokeauto.agent.mutex import AutomationMutex, YieldMode
from pokeauto.agent.scheduler import Strategy, StrategyScheduler
from pokeauto.agent.scorer import LocationScorer

__all__ = [
    "Automation",
    "AutomationMutex",
    "DungeonExplorer",
    "LocationScorer",
    "Strategy",
    "StrategyScheduler",
    "YieldMode",
]
