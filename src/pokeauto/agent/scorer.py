"""
Location ranking for PokeAuto focus strategies.

This module answers "where should the player farm?" for each focus
objective: experience, money, dungeon tokens, and each gem type.

Architecture Role:
    Focus strategies call the scorer every tick. The scorer keeps the
    previous answer and only recomputes it when something that could change
    the answer happened, then issues the movement through navigation.py.

    FocusCatalog → LocationScorer → navigation → GameFacade

Experience Route Selection:
    The best route is the hardest accessible route on which every species
    can be defeated by a single click: the last route, in increasing
    (region, number) order, whose max HP is strictly below click attack.

    The ranking is recomputed only when:
    - the highest unlocked region changed,
    - the chosen route's max HP now exceeds click attack (regression, e.g.
      an attack item was unequipped),
    - the next harder route became beatable (progression).

Route Max HP:
    Precomputed once, at construction, from static game data:
        hp = round((H - H/10) + H/10 / avg_base_hp * base_hp)
    where H is the route health and avg_base_hp the average base HP of the
    route's distinct species. The table is never refreshed at runtime.

Resource Objectives:
    Gyms are ranked by reward per game tick and preferred over routes.
    Those answers are cached by the calling strategy for its lifetime.

Dependencies:
    - numpy: Vectorized route threshold lookups
    - pokeauto.agent.navigation: Region accessibility and movement
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np

from pokeauto.agent import navigation
from pokeauto.game import GameFacade, GymInfo, Pokeball, RouteInfo, RouteRef

logger = logging.getLogger(__name__)


# =============================================================================
# ROUTE MAX HP TABLE
# =============================================================================


def pokemon_max_health(route_health: int, route_average_hp: float, base_hp: int) -> int:
    """Max HP of a species with ``base_hp`` on a route of ``route_health``."""
    tenth = route_health / 10
    return int(round((route_health - tenth) + (tenth / route_average_hp * base_hp)))


class RouteHealthTable:
    """
    Precomputed (region, route) → max HP lookup.

    Routes are stored in the facade's order, which is increasing by
    (region, number).

    Attributes:
        routes: Route records in table order.
        max_hp: int64 array aligned with ``routes``.
    """

    __slots__ = ("routes", "max_hp", "_index")

    def __init__(self, routes: list[RouteInfo], max_hp: list[int]) -> None:
        self.routes = routes
        self.max_hp: np.ndarray[Any, np.dtype[np.int64]] = np.asarray(max_hp, dtype=np.int64)
        self._index = {route.ref: i for i, route in enumerate(routes)}

    @classmethod
    def build(cls, game: GameFacade) -> "RouteHealthTable":
        routes = sorted(game.routes(), key=lambda r: (r.region, r.number))
        values = [cls._route_max_health(game, route) for route in routes]
        logger.debug("Built route max HP table for %d routes", len(routes))
        return cls(routes, values)

    @staticmethod
    def _route_max_health(game: GameFacade, route: RouteInfo) -> int:
        species = list(dict.fromkeys(route.pokemon))
        if not species:
            return 0
        route_health = game.route_health(route)
        base_hps = [game.base_hitpoints(name) for name in species]
        average = sum(base_hps) / len(base_hps)
        if average <= 0:
            return route_health
        return max(pokemon_max_health(route_health, average, hp) for hp in base_hps)

    def get(self, ref: RouteRef) -> int:
        return int(self.max_hp[self._index[ref]])

    def index_of(self, ref: RouteRef) -> int:
        return self._index[ref]

    def __len__(self) -> int:
        return len(self.routes)


# =============================================================================
# CACHES AND RESULTS
# =============================================================================


@dataclass
class ExpRouteCache:
    """
    Last experience-route ranking and the signals that invalidate it.

    Attributes:
        highest_region: Highest region when the ranking was computed.
        best: Chosen route, None if no route could be one-shot.
        next_best: First route after ``best``, None if ``best`` is the last.
        computed: Whether a ranking has been made since the last clear().
    """

    highest_region: int | None = None
    best: RouteRef | None = None
    next_best: RouteRef | None = None
    computed: bool = False

    def clear(self) -> None:
        self.highest_region = None
        self.best = None
        self.next_best = None
        self.computed = False


@dataclass(frozen=True)
class GymChoice:
    """A gym selected for a resource objective."""

    gym: GymInfo
    income_per_tick: float

    @property
    def town(self) -> str:
        return self.gym.town


# =============================================================================
# LOCATION SCORER
# =============================================================================


class LocationScorer:
    """
    Ranks routes and gyms for the focus objectives.

    Attributes:
        game: Facade queried for the current state.
        table: Precomputed route max HP table.
        exp_cache: Memoized experience-route ranking.
    """

    def __init__(self, game: GameFacade, table: RouteHealthTable | None = None) -> None:
        self.game = game
        self.table = table if table is not None else RouteHealthTable.build(game)
        self.exp_cache = ExpRouteCache()

    def reset(self) -> None:
        """Forget every memoized ranking. Called when a focus stops."""
        self.exp_cache.clear()

    # =========================================================================
    # EXPERIENCE
    # =========================================================================

    def _accessible_mask(self) -> np.ndarray[Any, np.dtype[np.bool_]]:
        regions = {route.region for route in self.table.routes}
        allowed = {r for r in regions if navigation.can_move_to_region(self.game, r)}
        return np.array([route.region in allowed for route in self.table.routes], dtype=bool)

    def _needs_new_exp_route(self, attack: int) -> bool:
        cache = self.exp_cache
        if not cache.computed or cache.highest_region != self.game.highest_region():
            return True
        if cache.best is not None and self.table.get(cache.best) > attack:
            return True
        if cache.next_best is not None and self.table.get(cache.next_best) < attack:
            return True
        # Nothing was beatable last time: any improvement shows as progression
        return cache.best is None and cache.next_best is None

    def _rank_exp_routes(self, attack: int) -> None:
        cache = self.exp_cache
        cache.highest_region = self.game.highest_region()
        cache.computed = True
        cache.best = None
        cache.next_best = None

        accessible = self._accessible_mask()
        candidates = np.flatnonzero(accessible)
        if candidates.size == 0:
            return

        beatable = np.flatnonzero(accessible & (self.table.max_hp < attack))
        if beatable.size == 0:
            cache.next_best = self.table.routes[int(candidates[0])].ref
            return

        best_index = int(beatable[-1])
        cache.best = self.table.routes[best_index].ref
        harder = candidates[candidates > best_index]
        if harder.size:
            cache.next_best = self.table.routes[int(harder[0])].ref

        logger.info(
            "Best route for EXP: route %d (region %d), max HP %d < attack %d",
            cache.best.number, cache.best.region, self.table.get(cache.best), attack,
        )

    def best_route_for_exp(self, attack: int | None = None) -> RouteRef | None:
        """
        Get the hardest accessible route that can be one-shot.

        Args:
            attack: Click attack to rank against; read from the game if None.

        Returns:
            The route, or None if no accessible route has a max HP below
            attack.
        """
        if attack is None:
            attack = self.game.click_attack()
        if self._needs_new_exp_route(attack):
            self._rank_exp_routes(attack)
        return self.exp_cache.best

    def _fallback_exp_route(self) -> RouteRef | None:
        # Happens in a new region whose docks are still locked
        region = self.game.player_region()
        for route in self.table.routes:
            if route.region == region:
                return route.ref
        return None

    def move_to_best_route_for_exp(self) -> None:
        """Move the player to the best experience route, if not there yet."""
        if navigation.is_in_instance_state(self.game):
            return

        target = self.best_route_for_exp()
        if target is None:
            target = self._fallback_exp_route()
            if target is None:
                return

        if (
            self.game.player_route() == target.number
            and self.game.player_region() == target.region
        ):
            return

        navigation.move_to_route(self.game, target.number, target.region)

    # =========================================================================
    # GYMS
    # =========================================================================

    def _reachable_gyms(self) -> list[tuple[GymInfo, int]]:
        gyms = []
        for gym in self.game.gyms():
            if not navigation.can_move_to_region(self.game, gym.region):
                continue
            if not self.game.is_gym_unlocked(gym):
                continue
            ticks = self.game.gym_clear_ticks(gym)
            if ticks is None or ticks <= 0:
                continue
            gyms.append((gym, ticks))
        return gyms

    def best_gym_for_money(self) -> GymChoice | None:
        """Get the beatable gym giving the most money per game tick."""
        best: GymChoice | None = None
        for gym, ticks in self._reachable_gyms():
            income = gym.money_reward / ticks
            if income > 0 and (best is None or income > best.income_per_tick):
                best = GymChoice(gym, income)
        if best is not None:
            logger.info("Best gym for money: %s (%.1f/tick)", best.gym.name, best.income_per_tick)
        return best

    def best_gym_for_gem(self, gem_type: int) -> GymChoice | None:
        """Get the beatable gym giving the most ``gem_type`` gems per game tick."""
        best: GymChoice | None = None
        for gym, ticks in self._reachable_gyms():
            income = gym.gem_rewards.get(gem_type, 0.0) / ticks
            if income > 0 and (best is None or income > best.income_per_tick):
                best = GymChoice(gym, income)
        return best

    # =========================================================================
    # ROUTES FOR RESOURCES
    # =========================================================================

    def _one_shot_routes(self) -> list[RouteInfo]:
        attack = self.game.click_attack()
        mask = self._accessible_mask() & (self.table.max_hp < attack)
        return [self.table.routes[int(i)] for i in np.flatnonzero(mask)]

    def best_route_for_gem(self, gem_type: int) -> RouteRef | None:
        """Get the one-shot route giving the most ``gem_type`` gems per tick."""
        best: RouteRef | None = None
        best_income = 0.0
        for route in self._one_shot_routes():
            income = self.game.route_gem_income(route, gem_type)
            if income > best_income:
                best, best_income = route.ref, income
        return best

    def best_route_for_dungeon_token(self, ball: Pokeball) -> RouteRef | None:
        """
        Get the one-shot route giving the most dungeon tokens per tick when
        catching with ``ball``. Falls back to the experience route.
        """
        best: RouteRef | None = None
        best_income = 0.0
        for route in self._one_shot_routes():
            income = self.game.route_dungeon_token_income(route, ball)
            if income > best_income:
                best, best_income = route.ref, income
        if best is None:
            return self.best_route_for_exp()
        return best

    def move_to_route(self, target: RouteRef | None) -> None:
        """Move the player to ``target``, or to the experience route if None."""
        if target is None:
            self.move_to_best_route_for_exp()
            return
        if (
            self.game.player_route() == target.number
            and self.game.player_region() == target.region
        ):
            return
        navigation.move_to_route(self.game, target.number, target.region)
