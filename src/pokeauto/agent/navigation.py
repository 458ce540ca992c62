"""
Map movement helpers for PokeAuto.

Thin guards around the facade's movement commands. The game itself refuses
illegal moves, but asking for one while in an instance, or towards a region
the player cannot reach, is never useful, so every movement goes through
these checks first.

Architecture Role:
    LocationScorer and the focus strategies decide WHERE to go; this module
    decides whether the move is allowed and performs the region hop needed
    to get there.

Region Rules:
    - Regions above the player's highest region are locked.
    - While the player stands in their highest region, leaving it requires
      that region's dock town to be unlocked.

Dependencies:
    - pokeauto.game: GameFacade and GameState
"""

from __future__ import annotations

import logging

from pokeauto.game import GameFacade, GameState

logger = logging.getLogger(__name__)

# States in which the player has no access to the map
INSTANCE_STATES: frozenset[GameState] = frozenset({
    GameState.DUNGEON,
    GameState.BATTLE_FRONTIER,
    GameState.TEMPORARY_BATTLE,
    GameState.SAFARI,
})


def is_in_instance_state(game: GameFacade) -> bool:
    """True when the player is inside an instance and cannot travel."""
    return game.game_state() in INSTANCE_STATES


def can_move_to_region(game: GameFacade, region: int) -> bool:
    """Check if the player is allowed to travel to ``region``."""
    if is_in_instance_state(game) or region < 0 or region > game.highest_region():
        return False

    current = game.player_region()
    if current == game.highest_region() and region != current:
        return game.is_town_unlocked(game.dock_town(current))

    return True


def move_to_route(game: GameFacade, number: int, region: int) -> bool:
    """
    Move the player to a route.

    Returns:
        True if the move was issued, False if it is not allowed.
    """
    if not can_move_to_region(game, region) or not game.can_access_route(number, region):
        return False

    logger.debug("Moving to route %d (region %d)", number, region)
    game.move_to_route(number, region)
    return True


def move_to_town(game: GameFacade, name: str) -> bool:
    """
    Move the player to a town, hopping through the docks when the town is
    in another region.

    Returns:
        True if the move was issued, False if it is not allowed.
    """
    town = game.town(name)
    if not can_move_to_region(game, town.region) or not game.is_town_unlocked(name):
        return False

    if town.region != game.player_region():
        game.move_to_town(game.dock_town(town.region))
        game.set_region(town.region)

    logger.debug("Moving to town %s", name)
    game.move_to_town(name)
    return True
