"""
Focus strategy catalog for PokeAuto.

This module builds the list of strategies the player can focus on and
implements their actions. Every action is a cheap, idempotent poll: it
checks that it may run, then moves the player (and switches equipment)
towards the best location for its objective.

Catalog:
    - XP:            best route for experience
    - Gold:          best gym for money (fallback: XP route)
    - DungeonTokens: best route for dungeon tokens, restocking Ultra Balls
    - ==== Gems ==== separator
    - <Type>Gems:    best gym for the gem type (fallback: best route, then XP route)

Instance Guard:
    No focus action may move the player while an instance is in progress.
    If the dungeon automation is on, it is asked to stop after its current
    run and the action waits; if the player is in any other instance, the
    focus is switched off and the player notified.

Dependencies:
    - pokeauto.agent.scheduler: Strategy registration and focus_data cache
    - pokeauto.agent.scorer: Location ranking
    - pokeauto.agent.gym: Gym auto-fight
    - pokeauto.agent.mutex: Dungeon yield requests
"""

from __future__ import annotations

import logging
from typing import Callable

from pokeauto.agent import navigation
from pokeauto.agent.dungeon import DUNGEON_OWNER
from pokeauto.agent.gym import GymFighter
from pokeauto.agent.mutex import AutomationMutex, YieldMode
from pokeauto.agent.scheduler import Strategy, StrategyScheduler
from pokeauto.agent.scorer import GymChoice, LocationScorer
from pokeauto.config import AutomationConfig
from pokeauto.game import (
    DUNGEON_TICKET,
    POKEMON_TYPES,
    ULTRABALL_ITEM,
    Currency,
    GameFacade,
    OakLoadout,
    Pokeball,
)
from pokeauto.panel import ControlPanel
from pokeauto.settings import DUNGEON_ENABLED, FOCUS_ENABLED, GYM_ENABLED

logger = logging.getLogger(__name__)

_TOOLTIP_SEPARATOR = "\n" + "-" * 20 + "\n"

# focus_data keys of the locations cached per activation
_MONEY_GYM = "money_gym"
_TOKEN_ROUTE = "dungeon_token_route"
_GEM_LOCATION = "gem_location_{}"


class FocusCatalog:
    """
    Builds and runs the focus strategies.

    Attributes:
        game: Facade to observe and command.
        scheduler: Scheduler the strategies are registered into.
        scorer: Location ranking shared by every strategy.
        gym_fighter: Gym auto-fight loop driven by the gym strategies.
        mutex: Yield requests towards the dungeon automation.
        panel: Control panel for forced switches and notifications.
    """

    def __init__(
        self,
        game: GameFacade,
        scheduler: StrategyScheduler,
        scorer: LocationScorer,
        gym_fighter: GymFighter,
        mutex: AutomationMutex,
        panel: ControlPanel,
        config: AutomationConfig,
    ) -> None:
        self.game = game
        self.scheduler = scheduler
        self.scorer = scorer
        self.gym_fighter = gym_fighter
        self.mutex = mutex
        self.panel = panel
        self.config = config

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register_all(self) -> None:
        register = self.scheduler.register

        register(Strategy(
            id="XP",
            name="Experience",
            tooltip="Automatically moves to the best route for EXP"
                    + _TOOLTIP_SEPARATOR
                    + "Such route is the highest unlocked one\n"
                    + "with HP lower than Click Attack",
            action=self.go_to_best_route_for_exp,
            cadence_ms=self.config.exp_refresh_ms,
            on_deactivate=self.scorer.reset,
        ))

        register(Strategy(
            id="Gold",
            name="Money",
            tooltip="Automatically moves to the best gym for money"
                    + _TOOLTIP_SEPARATOR
                    + "Gyms gives way more money than routes\n"
                    + "The best gym is the one that gives the most money per game tick",
            action=self.go_to_best_gym_for_money,
            cadence_ms=self.config.money_refresh_ms,
            on_deactivate=self._stop_gym_fight,
        ))

        register(Strategy(
            id="DungeonTokens",
            name="Dungeon Tokens",
            tooltip="Moves to the best route to earn dungeon tokens"
                    + _TOOLTIP_SEPARATOR
                    + "The most efficient route is the one giving\n"
                    + "the most token per game tick.\n"
                    + "The most efficient Oak items loadout will be equipped.\n"
                    + "Ultraballs will automatically be used and bought if needed.",
            action=self.go_to_best_route_for_dungeon_token,
            cadence_ms=self.config.dungeon_token_refresh_ms,
            on_deactivate=self._stop_dungeon_token_farming,
            is_available=lambda: self.game.has_key_item(DUNGEON_TICKET),
        ))

        register(Strategy.separator("==== Gems ===="))
        for gem_type, type_name in enumerate(POKEMON_TYPES):
            register(Strategy(
                id=f"{type_name}Gems",
                name=f"{type_name} Gems",
                tooltip=f"Moves to the best gym or route to earn {type_name} gems"
                        + _TOOLTIP_SEPARATOR
                        + "The best location is the one that will give the most\n"
                        + f"{type_name} gems per game tick.\n"
                        + "Gyms are considered in priority, if none is found\n"
                        + "the routes will be considered.",
                action=self._gem_action(gem_type),
                cadence_ms=self.config.gem_refresh_ms,
                on_deactivate=self._stop_gym_fight,
            ))

    def _gem_action(self, gem_type: int) -> Callable[[], None]:
        return lambda: self.go_to_best_gym_or_route_for_gem(gem_type)

    # =========================================================================
    # GUARDS AND CLEANUP
    # =========================================================================

    def ensure_no_instance_in_progress(self) -> bool:
        """
        Make sure the player may be moved.

        Returns:
            True if no instance is in progress, False otherwise.
        """
        if self.panel.is_enabled(DUNGEON_ENABLED):
            self.mutex.request_yield(DUNGEON_OWNER, YieldMode.STOP_AFTER_THIS_RUN)
            return False

        if navigation.is_in_instance_state(self.game):
            self.panel.force_state(FOCUS_ENABLED, False)
            self.panel.notify("Can't run while in an instance\nTurning the feature off", "Focus")
            return False

        return True

    def _stop_gym_fight(self) -> None:
        self.scorer.reset()
        self.panel.force_state(GYM_ENABLED, False)

    def _stop_dungeon_token_farming(self) -> None:
        self._stop_gym_fight()
        self.game.set_already_caught_ball(Pokeball.NONE)

    def _enable_gym_fight(self, gym_name: str) -> None:
        self.gym_fighter.select(gym_name)
        self.panel.force_state(GYM_ENABLED, True)

    # =========================================================================
    # ACTIONS
    # =========================================================================

    def go_to_best_route_for_exp(self) -> None:
        if not self.ensure_no_instance_in_progress():
            return

        self.game.equip_loadout(OakLoadout.POKEMON_EXP)
        self.scorer.move_to_best_route_for_exp()

    def go_to_best_gym_for_money(self) -> None:
        if not self.ensure_no_instance_in_progress():
            return

        # Computed once per activation, the best gym almost never changes meanwhile
        data = self.scheduler.focus_data
        if _MONEY_GYM not in data:
            data[_MONEY_GYM] = self.scorer.best_gym_for_money()

        self.game.equip_loadout(OakLoadout.MONEY)

        choice = data[_MONEY_GYM]
        if choice is None:
            self.scorer.move_to_best_route_for_exp()
            return

        navigation.move_to_town(self.game, choice.town)
        self._enable_gym_fight(choice.gym.name)

    def go_to_best_route_for_dungeon_token(self) -> None:
        if not self.ensure_no_instance_in_progress():
            return

        if self.game.ball_quantity(Pokeball.ULTRABALL) == 0:
            batch = self.config.ball_purchase_batch
            too_poor = self.game.currency(Currency.MONEY) < self.game.item_price(ULTRABALL_ITEM, batch)
            # The shop price inflates with every purchase, wait for it to go back down
            inflated = self.game.item_price(ULTRABALL_ITEM, 1) != self.game.item_base_price(ULTRABALL_ITEM)
            if too_poor or inflated:
                self.go_to_best_gym_for_money()
                return

            self.game.buy_item(ULTRABALL_ITEM, batch)

        self.game.equip_loadout(OakLoadout.POKEMON_CATCH)
        self.game.set_already_caught_ball(Pokeball.ULTRABALL)

        data = self.scheduler.focus_data
        if _TOKEN_ROUTE not in data:
            data[_TOKEN_ROUTE] = self.scorer.best_route_for_dungeon_token(Pokeball.ULTRABALL)
        self.scorer.move_to_route(data[_TOKEN_ROUTE])

    def go_to_best_gym_or_route_for_gem(self, gem_type: int) -> None:
        """
        Farm ``gem_type`` gems at the best gym, else at the best route, else
        fall back to the experience route.
        """
        if not self.ensure_no_instance_in_progress():
            return

        data = self.scheduler.focus_data
        key = _GEM_LOCATION.format(gem_type)
        if key not in data:
            data[key] = (
                self.scorer.best_gym_for_gem(gem_type)
                or self.scorer.best_route_for_gem(gem_type)
            )

        choice = data[key]
        if isinstance(choice, GymChoice):
            navigation.move_to_town(self.game, choice.town)
            self._enable_gym_fight(choice.gym.name)
            return

        self.scorer.move_to_route(choice)
