"""Tests for LocationScorer and the navigation helpers."""

import pytest

from pokeauto.agent import navigation
from pokeauto.agent.scorer import LocationScorer, RouteHealthTable, pokemon_max_health
from pokeauto.game import GameState, Pokeball, RouteInfo, RouteRef
from pokeauto.simulator import SimulatedGame, SimulatedWorld


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def threshold_game() -> SimulatedGame:
    """
    Game with four region-0 routes whose max HP is exactly 100, 300, 600, 900.

    Each route holds a single species, so the route max HP equals the
    route health.
    """
    world = SimulatedWorld.default()
    world.routes = [RouteInfo(0, n, ("Pidgey",)) for n in (1, 2, 3, 4)]
    world.route_health = {(0, 1): 100, (0, 2): 300, (0, 3): 600, (0, 4): 900}
    return SimulatedGame(world=world)


@pytest.fixture
def scorer(threshold_game) -> LocationScorer:
    return LocationScorer(threshold_game)


# =============================================================================
# ROUTE MAX HP
# =============================================================================

class TestRouteMaxHealth:

    def test_formula(self):
        # 0.9 * 200 + 20 / 35 * 40
        assert pokemon_max_health(200, 35.0, 40) == 203

    def test_single_species_equals_route_health(self, threshold_game):
        table = RouteHealthTable.build(threshold_game)
        assert list(table.max_hp) == [100, 300, 600, 900]

    def test_default_world_uses_strongest_species(self, game):
        table = RouteHealthTable.build(game)
        # Route 5: health 100, Pidgey (40) above the 35 average
        assert table.get(RouteRef(0, 5)) == 101

    def test_table_sorted_by_region_then_number(self):
        world = SimulatedWorld.default()
        world.routes = list(reversed(world.routes))
        table = RouteHealthTable.build(SimulatedGame(world=world))
        refs = [route.ref for route in table.routes]
        assert refs == sorted(refs)


# =============================================================================
# EXPERIENCE ROUTE
# =============================================================================

class TestBestRouteForExp:

    def test_last_route_strictly_below_attack(self, scorer):
        assert scorer.best_route_for_exp(500) == RouteRef(0, 2)

    def test_equal_threshold_not_beatable(self, scorer):
        assert scorer.best_route_for_exp(300) == RouteRef(0, 1)

    def test_nothing_beatable(self, scorer):
        assert scorer.best_route_for_exp(50) is None

    def test_monotonic_in_attack(self, threshold_game):
        previous = -1
        for attack in range(0, 1_200, 50):
            scorer = LocationScorer(threshold_game)
            route = scorer.best_route_for_exp(attack)
            index = -1 if route is None else scorer.table.index_of(route)
            assert index >= previous
            previous = index

    def test_locked_region_excluded(self, game):
        scorer = LocationScorer(game)
        # Region 1 routes are beatable but region 1 is not unlocked
        assert scorer.best_route_for_exp(10_000) == RouteRef(0, 5)

    def test_unlocked_region_included(self, game):
        game.highest = 1
        scorer = LocationScorer(game)
        assert scorer.best_route_for_exp(10_000) == RouteRef(1, 25)


class TestExpCacheInvalidation:

    def test_kept_while_attack_between_thresholds(self, scorer):
        scorer.best_route_for_exp(500)
        cache = scorer.exp_cache
        assert (cache.best, cache.next_best) == (RouteRef(0, 2), RouteRef(0, 3))

        cache.best = RouteRef(0, 1)  # tampered: a recompute would restore route 2
        assert scorer.best_route_for_exp(550) == RouteRef(0, 1)

    def test_progression(self, scorer):
        scorer.best_route_for_exp(500)
        assert scorer.best_route_for_exp(700) == RouteRef(0, 3)

    def test_regression(self, scorer):
        scorer.best_route_for_exp(500)
        assert scorer.best_route_for_exp(200) == RouteRef(0, 1)

    def test_new_region(self, game):
        scorer = LocationScorer(game)
        assert scorer.best_route_for_exp(10_000) == RouteRef(0, 5)
        game.highest = 1
        assert scorer.best_route_for_exp(10_000) == RouteRef(1, 25)

    def test_recovers_from_nothing_beatable(self, scorer):
        assert scorer.best_route_for_exp(50) is None
        assert scorer.best_route_for_exp(150) == RouteRef(0, 1)

    def test_reset(self, scorer):
        scorer.best_route_for_exp(500)
        scorer.reset()
        assert not scorer.exp_cache.computed


class TestMoveToBestRouteForExp:

    def test_moves_once(self, threshold_game, scorer):
        threshold_game.attack = 500
        scorer.move_to_best_route_for_exp()
        scorer.move_to_best_route_for_exp()

        moves = [c for c in threshold_game.commands if c[0] == "move_to_route"]
        assert moves == [("move_to_route", 2, 0)]
        assert threshold_game.player_route() == 2

    def test_fallback_to_first_route_of_region(self, threshold_game, scorer):
        threshold_game.attack = 10
        scorer.move_to_best_route_for_exp()
        assert threshold_game.player_route() == 1

    def test_no_move_in_instance(self, threshold_game, scorer):
        threshold_game.state = GameState.DUNGEON
        scorer.move_to_best_route_for_exp()
        assert threshold_game.commands == []

    def test_move_to_given_route(self, threshold_game, scorer):
        threshold_game.attack = 500
        scorer.move_to_route(RouteRef(0, 1))
        scorer.move_to_route(RouteRef(0, 1))
        assert threshold_game.commands == [("move_to_route", 1, 0)]

    def test_move_to_no_route_uses_exp_route(self, threshold_game, scorer):
        threshold_game.attack = 500
        scorer.move_to_route(None)
        assert threshold_game.player_route() == 2


# =============================================================================
# GYMS AND RESOURCE ROUTES
# =============================================================================

class TestResourceObjectives:

    def test_best_gym_for_money(self, game):
        # Brock 800/40 = 20 per tick, Lt. Surge 1600/60 = 26.7 per tick
        choice = LocationScorer(game).best_gym_for_money()
        assert choice is not None
        assert choice.gym.name == "Lt. Surge"
        assert choice.town == "Vermilion City"

    def test_locked_gym_ignored(self, game):
        game.unlocked_towns.discard("Vermilion City")
        choice = LocationScorer(game).best_gym_for_money()
        assert choice is not None and choice.gym.name == "Brock"

    def test_unbeatable_gym_ignored(self, game):
        del game.world.gym_clear_ticks["Lt. Surge"]
        del game.world.gym_clear_ticks["Brock"]
        assert LocationScorer(game).best_gym_for_money() is None

    def test_best_gym_for_gem(self, game):
        scorer = LocationScorer(game)
        assert scorer.best_gym_for_gem(12).gym.name == "Brock"
        assert scorer.best_gym_for_gem(3).gym.name == "Lt. Surge"
        assert scorer.best_gym_for_gem(5) is None

    def test_best_route_for_gem(self, game):
        game.attack = 500
        scorer = LocationScorer(game)
        assert scorer.best_route_for_gem(0) == RouteRef(0, 3)
        assert scorer.best_route_for_gem(5) is None

    def test_gem_route_must_be_one_shot(self, game):
        game.attack = 50
        assert LocationScorer(game).best_route_for_gem(0) is None

    def test_best_route_for_dungeon_token(self, game):
        game.attack = 500
        scorer = LocationScorer(game)
        assert scorer.best_route_for_dungeon_token(Pokeball.ULTRABALL) == RouteRef(0, 5)

    def test_dungeon_token_falls_back_to_exp(self, game):
        game.attack = 70
        scorer = LocationScorer(game)
        # No ball means no catches and no token income
        assert scorer.best_route_for_dungeon_token(Pokeball.NONE) == RouteRef(0, 3)


# =============================================================================
# NAVIGATION
# =============================================================================

class TestNavigation:

    def test_instance_states(self, game):
        for state in (GameState.DUNGEON, GameState.SAFARI, GameState.BATTLE_FRONTIER):
            game.state = state
            assert navigation.is_in_instance_state(game)
        game.state = GameState.GYM
        assert not navigation.is_in_instance_state(game)

    def test_region_bounds(self, game):
        assert navigation.can_move_to_region(game, 0)
        assert not navigation.can_move_to_region(game, 1)
        assert not navigation.can_move_to_region(game, -1)

    def test_leaving_highest_region_needs_dock(self, game):
        game.highest = 1
        game.region = 1
        game.unlocked_towns.discard("Olivine City")
        assert not navigation.can_move_to_region(game, 0)
        assert navigation.can_move_to_region(game, 1)

    def test_move_to_locked_route_refused(self, game):
        assert not navigation.move_to_route(game, 21, 1)
        assert game.commands == []

    def test_move_to_town_in_other_region_uses_dock(self, game):
        game.highest = 1
        assert navigation.move_to_town(game, "Violet City")
        assert game.commands == [
            ("move_to_town", "Olivine City"),
            ("set_region", 1),
            ("move_to_town", "Violet City"),
        ]
        assert game.player_town().name == "Violet City"
