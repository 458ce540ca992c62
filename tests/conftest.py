"""
Shared pytest fixtures for PokeAuto test suite.

This module provides common test fixtures used across all test modules,
including a simulated game, a virtual-clock timer service, default
configurations, and a fully started automation engine.

Fixtures:
    config: Default AutomationConfig instance
    settings: In-memory SettingsStore
    panel: ControlPanel over the settings fixture
    timers: ManualTimerService (virtual clock)
    slow_timers: ManualTimerService pausing inside every arm and clear
    concurrently: Function calling a callback from several threads at once
    mutex: Fresh AutomationMutex
    game: SimulatedGame standing in Pallet Town
    dungeon_game: SimulatedGame standing in the dungeon town with tokens
    automation: Started Automation wired to the fixtures above
    step: Function advancing the engine and the game by game ticks
"""
import threading
import time
from typing import Callable

import pytest

from pokeauto.agent.automation import Automation
from pokeauto.agent.mutex import AutomationMutex
from pokeauto.config import AutomationConfig
from pokeauto.panel import ControlPanel
from pokeauto.settings import SettingsStore
from pokeauto.simulator import SimulatedGame
from pokeauto.timers import ManualTimerService

# Town holding the simulator's dungeon, entry cost 50 tokens
DUNGEON_TOWN = "Viridian Forest"


# =============================================================================
# HOST SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def config() -> AutomationConfig:
    """
    Create a default AutomationConfig instance for testing.

    Example:
        >>> def test_tick(config):
        ...     assert config.dungeon_tick_ms == 50
    """
    return AutomationConfig()


@pytest.fixture
def settings() -> SettingsStore:
    """Create a memory-only settings store."""
    return SettingsStore()


@pytest.fixture
def panel(settings: SettingsStore) -> ControlPanel:
    return ControlPanel(settings)


@pytest.fixture
def timers() -> ManualTimerService:
    """
    Create a timer service on a virtual clock.

    Nothing fires until the test calls ``timers.advance(ms)``.
    """
    return ManualTimerService()


class SlowTimerService(ManualTimerService):
    """Virtual clock that pauses while arming or clearing a timer."""

    def set_interval(self, callback, interval_ms, name=""):
        time.sleep(0.01)
        return super().set_interval(callback, interval_ms, name)

    def clear_interval(self, handle):
        time.sleep(0.01)
        super().clear_interval(handle)


@pytest.fixture
def slow_timers() -> ManualTimerService:
    """
    Create a virtual clock that holds every arm and clear for 10ms.

    Widens the window between checking and updating a loop handle, so
    unguarded on/off transitions show up in concurrent tests.
    """
    return SlowTimerService()


@pytest.fixture
def concurrently() -> Callable[..., None]:
    """
    Provide a function calling ``callback`` from ``n`` threads released together.

    Example:
        >>> def test_toggle(concurrently, panel):
        ...     concurrently(lambda: panel.force_state("Focus-Enabled", True))
    """
    def run(callback: Callable[[], None], n: int = 8) -> None:
        barrier = threading.Barrier(n)

        def worker() -> None:
            barrier.wait()
            callback()

        threads = [threading.Thread(target=worker) for _ in range(n)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5.0)

    return run


@pytest.fixture
def mutex() -> AutomationMutex:
    return AutomationMutex()


# =============================================================================
# GAME FIXTURES
# =============================================================================

@pytest.fixture
def game() -> SimulatedGame:
    """
    Create a simulated game in its default world.

    Returns:
        SimulatedGame with:
        - Player in Pallet Town (region 0), click attack 100
        - Routes 1-5 in region 0, routes 21-25 in region 1 (locked)
        - No money, no dungeon ticket
    """
    return SimulatedGame(seed=42)


@pytest.fixture
def dungeon_game(game: SimulatedGame) -> SimulatedGame:
    """
    Extend the base game with a player ready to enter the dungeon.

    Returns:
        SimulatedGame with the player in the dungeon town, the dungeon
        ticket, and tokens for exactly one run.
    """
    game.grant_dungeon_access(50)
    game.move_to_town(DUNGEON_TOWN)
    game.commands.clear()
    return game


# =============================================================================
# ENGINE FIXTURES
# =============================================================================

@pytest.fixture
def automation(game: SimulatedGame, config: AutomationConfig, timers: ManualTimerService, settings: SettingsStore):
    """
    Create and start an Automation engine over the fixtures.

    Yields:
        Started Automation; stopped after the test completes.
    """
    engine = Automation(game, config, timers=timers, settings=settings)
    engine.start()
    yield engine
    engine.stop()


@pytest.fixture
def step(timers: ManualTimerService, config: AutomationConfig) -> Callable[..., None]:
    """
    Provide a function running ``n`` game ticks.

    Each tick advances the virtual clock by one dungeon tick, then lets the
    simulated game resolve its fights.

    Example:
        >>> def test_runs(step, dungeon_game):
        ...     step(dungeon_game, 10)
    """
    def run(game: SimulatedGame, n: int = 1) -> None:
        for _ in range(n):
            timers.advance(config.dungeon_tick_ms)
            game.advance_tick()

    return run
