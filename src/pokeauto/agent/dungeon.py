"""
Dungeon auto-fight state machine for PokeAuto.

Enters the dungeon of the current town and completes it: every tile is
explored first, chests are picked right before the boss, and the boss is
fought last. Runs chain automatically for as long as the switch stays on
and the player can afford the entry.

Architecture Role:
    The explorer runs on its own one-game-tick loop, independently of the
    focused strategy. It only yields through the AutomationMutex:

    ControlPanel (Dungeon-FightEnabled) → explorer loop (every 50ms)
    Focus strategy → mutex.request_yield("dungeon") → explorer stops

Stateless Phases:
    No phase is stored. Every tick re-derives what to do from the revealed
    board, so the machine can be (re)started at any point of a run:

    1. WAIT:    a fight or capture is resolving, do nothing
    2. SWEEP:   visit every revealed empty cell, re-scanning after each batch
                since a visit can reveal new neighbours
    3. RUSH:    boss-rush policy and boss revealed → fight the boss now
    4. REVEAL:  visit the first other unvisited cell (enemies, chests), and
                the boss tile once nothing else is left, without fighting
    5. CLEANUP: open every revealed chest, then fight the boss

Chest Ordering:
    Each opened chest raises the HP of every upcoming encounter, so chests
    are only picked once nothing but the boss is left.

Chest Encounters:
    Opening a chest may start an encounter instead. The tick stops there and
    the chest is simply picked again on a later tick.

Dependencies:
    - pokeauto.agent.mutex: Yield requests from other automations
    - pokeauto.panel: On/off switch, disabled reasons, menu visibility
    - pokeauto.settings: Policy flags, re-read every tick
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from pokeauto.agent.mutex import AutomationMutex, YieldMode
from pokeauto.config import AutomationConfig
from pokeauto.game import (
    DUNGEON_TICKET,
    Currency,
    DungeonInfo,
    GameFacade,
    GameState,
    TileKind,
)
from pokeauto.panel import ControlPanel
from pokeauto.settings import (
    DUNGEON_BOSS_RUSH,
    DUNGEON_ENABLED,
    DUNGEON_SHINY_STOP_MODE,
    DUNGEON_SKIP_CHESTS,
    DUNGEON_STOP_ON_POKEDEX,
)
from pokeauto.timers import TimerHandle, TimerService

logger = logging.getLogger(__name__)

# Mutex slot of the dungeon automation
DUNGEON_OWNER = "dungeon"

# Menu category holding the dungeon switches
DUNGEON_CATEGORY = "dungeonFightButtons"


class Phase(Enum):
    """What the last tick did, for logging and tests."""

    IDLE = "idle"
    ENTER = "enter"
    WAIT = "wait"
    SWEEP = "sweep"
    BOSS_RUSH = "boss_rush"
    REVEAL = "reveal"
    CLEANUP = "cleanup"
    STOPPED = "stopped"


@dataclass(frozen=True)
class DungeonRunPolicy:
    """Policy flags read from the settings at the start of a tick."""

    boss_rush: bool
    skip_chests: bool
    stop_on_pokedex: bool
    shiny_stop_mode: bool


class DungeonExplorer:
    """
    Dungeon auto-fight automation.

    Attributes:
        game: Facade to observe and command.
        panel: Control panel owning the dungeon switches.
        timers: Timer service running the loops.
        mutex: Mutex carrying yield requests for DUNGEON_OWNER.
        last_phase: Phase executed by the most recent tick.
    """

    def __init__(
        self,
        game: GameFacade,
        panel: ControlPanel,
        timers: TimerService,
        mutex: AutomationMutex,
        config: AutomationConfig,
    ) -> None:
        self.game = game
        self.panel = panel
        self.timers = timers
        self.mutex = mutex
        self.config = config
        self.last_phase = Phase.IDLE

        self._loop: TimerHandle | None = None
        self._panel_refresh: TimerHandle | None = None
        self._lock = threading.Lock()

    # =========================================================================
    # SETUP
    # =========================================================================

    def build(self) -> None:
        """Declare the switches and start the panel refresh loop."""
        settings = self.panel.settings
        self.panel.register_feature(DUNGEON_ENABLED, self._on_toggled)
        self.panel.register_feature(DUNGEON_STOP_ON_POKEDEX)
        self.panel.register_feature(DUNGEON_BOSS_RUSH)
        self.panel.register_feature(DUNGEON_SKIP_CHESTS)
        settings.set_default_value(DUNGEON_SHINY_STOP_MODE, False)

        # Never resume a dungeon loop from a previous session
        self.panel.force_state(DUNGEON_ENABLED, False)

        self._panel_refresh = self.timers.set_interval(
            self.refresh_panel, self.config.panel_refresh_ms, name="dungeon-panel"
        )

    def shutdown(self) -> None:
        with self._lock:
            self.timers.clear_interval(self._loop)
            self.timers.clear_interval(self._panel_refresh)
            self._loop = None
            self._panel_refresh = None

    @property
    def is_running(self) -> bool:
        return self._loop is not None

    def toggle_catch_stop_mode(self) -> bool:
        """
        Switch between pokedex and shiny pokedex completion as stop condition.

        Returns:
            True if the shiny mode is now selected.
        """
        settings = self.panel.settings
        shiny = not settings.get_bool(DUNGEON_SHINY_STOP_MODE)
        settings.set_value(DUNGEON_SHINY_STOP_MODE, shiny)
        return shiny

    def _on_toggled(self, enabled: bool) -> None:
        with self._lock:
            if not enabled:
                self.timers.clear_interval(self._loop)
                self._loop = None
            elif self._loop is None:
                self._loop = self.timers.set_interval(
                    self.tick, self.config.dungeon_tick_ms, name="dungeon-fight"
                )

    def _read_policy(self) -> DungeonRunPolicy:
        settings = self.panel.settings
        return DungeonRunPolicy(
            boss_rush=settings.get_bool(DUNGEON_BOSS_RUSH),
            skip_chests=settings.get_bool(DUNGEON_SKIP_CHESTS),
            stop_on_pokedex=settings.get_bool(DUNGEON_STOP_ON_POKEDEX),
            shiny_stop_mode=settings.get_bool(DUNGEON_SHINY_STOP_MODE),
        )

    def _stop(self) -> None:
        self.last_phase = Phase.STOPPED
        self.panel.force_state(DUNGEON_ENABLED, False)

    # =========================================================================
    # TICK
    # =========================================================================

    def _town_dungeon(self) -> DungeonInfo | None:
        """Get the dungeon of the town the player stands in, if any."""
        if self.game.game_state() != GameState.TOWN:
            return None
        town = self.game.player_town()
        if town is None:
            return None
        return town.dungeon

    def tick(self) -> None:
        """Run one bounded step of the dungeon automation."""
        policy = self._read_policy()
        state = self.game.game_state()

        if state == GameState.DUNGEON:
            if self.mutex.mode(DUNGEON_OWNER) == YieldMode.STOP_IMMEDIATELY:
                self.mutex.clear(DUNGEON_OWNER)
                logger.info("Dungeon auto-fight stopped on request")
                self._stop()
                return
            self._explore(policy)
            return

        dungeon = self._town_dungeon()
        if dungeon is None:
            # Left the dungeon context
            self._stop()
            return

        self._enter(dungeon, policy)

    def _can_enter(self, dungeon: DungeonInfo) -> bool:
        return (
            self.game.has_key_item(DUNGEON_TICKET)
            and self.game.currency(Currency.DUNGEON_TOKEN) >= dungeon.token_cost
        )

    def _enter(self, dungeon: DungeonInfo, policy: DungeonRunPolicy) -> None:
        if not self._can_enter(dungeon):
            self._stop()
            return

        mode = self.mutex.mode(DUNGEON_OWNER)
        if mode != YieldMode.BYPASS_USER_SETTINGS:
            requested_stop = mode in (YieldMode.STOP_AFTER_THIS_RUN, YieldMode.STOP_IMMEDIATELY)
            pokedex_done = policy.stop_on_pokedex and self.game.dungeon_completed(
                dungeon, policy.shiny_stop_mode
            )
            if requested_stop or pokedex_done:
                logger.info(
                    "Not entering %s: %s",
                    dungeon.name,
                    "stop requested" if requested_stop else "pokedex complete",
                )
                self.mutex.clear(DUNGEON_OWNER)
                self._stop()
                return

        else:
            # A bypass covers a single run
            self.mutex.clear(DUNGEON_OWNER)

        logger.info("Entering dungeon %s", dungeon.name)
        self.last_phase = Phase.ENTER
        self.game.initialize_dungeon(dungeon)

    def _sweep(self) -> bool:
        """
        Visit every revealed empty cell until none is left.

        Returns:
            True if at least one cell was visited.
        """
        visited_any = False
        pending = self.game.dungeon_board().cells(TileKind.EMPTY, unvisited=True)
        while pending:
            for x, y in pending:
                self.game.move_to_coordinates(x, y)
            visited_any = True
            if self.game.is_fight_resolving():
                break
            remaining = self.game.dungeon_board().cells(TileKind.EMPTY, unvisited=True)
            # The game refused every move, retry next tick
            if set(remaining) >= set(pending):
                break
            pending = remaining
        return visited_any

    def _explore(self, policy: DungeonRunPolicy) -> None:
        game = self.game

        # Let any fight or catch finish before moving
        if game.is_fight_resolving():
            self.last_phase = Phase.WAIT
            return

        swept = self._sweep()
        if game.is_fight_resolving():
            self.last_phase = Phase.SWEEP
            return

        board = game.dungeon_board()
        bosses = board.cells(TileKind.BOSS)
        if policy.boss_rush and bosses:
            self.last_phase = Phase.BOSS_RUSH
            x, y = bosses[0]
            game.move_to_coordinates(x, y)
            game.start_boss_fight()
            return

        # Standing on the boss tile reveals what lies behind it, only
        # start_boss_fight() starts the fight
        others = board.unvisited_cells(exclude=(TileKind.BOSS,))
        if not others:
            others = board.cells(TileKind.BOSS, unvisited=True)
        if others:
            self.last_phase = Phase.REVEAL
            x, y = others[0]
            game.move_to_coordinates(x, y)
            return

        # The whole dungeon is explored
        self.last_phase = Phase.CLEANUP
        if not policy.skip_chests:
            for x, y in board.cells(TileKind.CHEST):
                game.move_to_coordinates(x, y)
                game.open_chest()
                if game.is_fight_resolving():
                    # The chest turned into an encounter, pick it next time
                    return

        bosses = game.dungeon_board().cells(TileKind.BOSS)
        if not bosses:
            if not swept:
                logger.debug("No reachable boss tile yet")
            return
        x, y = bosses[0]
        game.move_to_coordinates(x, y)
        game.start_boss_fight()

    # =========================================================================
    # PANEL REFRESH
    # =========================================================================

    def refresh_panel(self) -> None:
        """
        Show the dungeon menu only at a dungeon town or inside a dungeon, and
        grey out the switch when the dungeon cannot be entered.
        """
        state = self.game.game_state()
        dungeon = self._town_dungeon()
        in_dungeon = state == GameState.DUNGEON
        self.panel.set_category_visible(DUNGEON_CATEGORY, in_dungeon or dungeon is not None)

        # Never disable the switch while a run is in progress
        if in_dungeon or dungeon is None:
            return

        reasons: list[str] = []
        if not self.game.has_key_item(DUNGEON_TICKET):
            reasons.append("You need to buy the Dungeon Ticket first")

        policy = self._read_policy()
        if (
            not self.mutex.is_bypassed(DUNGEON_OWNER)
            and policy.stop_on_pokedex
            and self.game.dungeon_completed(dungeon, policy.shiny_stop_mode)
        ):
            kind = "shiny pokemons" if policy.shiny_stop_mode else "pokemons"
            reasons.append(
                f"All {kind} are already caught,\nand the option to stop in this case is enabled"
            )

        if self.game.currency(Currency.DUNGEON_TOKEN) < dungeon.token_cost:
            reasons.append("You do not have enough Dungeon Token to enter")

        if reasons:
            self.panel.set_disabled_state(DUNGEON_ENABLED, True, "\n".join(reasons))
        else:
            self.panel.set_disabled_state(DUNGEON_ENABLED, False)
