"""
Game facade contract and shared game data types for PokeAuto.

This module defines everything the automation core knows about the game:
the coarse game-state enum, dungeon tile kinds, currencies, balls, Oak item
loadouts, static location records, and the GameFacade protocol through
which every automation observes and commands the game.

Architecture Role:
    GameFacade is the single source of truth for game state. Automations
    never cache game state across ticks; they query the facade at the top of
    every tick and issue fire-and-forget commands through it.

    Host game → GameFacade → {StrategyScheduler, DungeonExplorer, GymFighter}

    The core ships one facade implementation, SimulatedGame (simulator.py),
    used by the CLI and the tests. A real host adapter implements the same
    protocol against the live game.

Key Concepts:
    - Board coordinates: Cells are addressed as (x, y) where x is the column
      and y the row, matching the game's moveToCoordinates convention.
    - Reachable: A cell the player may move to right now (adjacent to a
      visited cell, or already visited).
    - Visible: A cell whose kind has been revealed to the player.

Dependencies:
    - numpy: For the dungeon board arrays
    - typing.Protocol: For the structural GameFacade contract
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, NamedTuple, Protocol, Sequence

import numpy as np

# =============================================================================
# GAME ENUMS
# =============================================================================


class GameState(Enum):
    """Coarse game state reported by the host."""

    PAUSED = "paused"
    FIGHTING = "fighting"
    GYM = "gym"
    DUNGEON = "dungeon"
    TOWN = "town"
    SHOP = "shop"
    BATTLE_FRONTIER = "battle_frontier"
    TEMPORARY_BATTLE = "temporary_battle"
    SAFARI = "safari"


class TileKind(IntEnum):
    """
    Dungeon cell kinds.

    EMPTY cells hold nothing, ENEMY cells start an encounter when first
    entered, CHEST cells hold a chest until opened (they turn EMPTY once
    opened), BOSS is the cell the boss fight starts from.
    """

    EMPTY = 0
    ENTRANCE = 1
    ENEMY = 2
    CHEST = 3
    BOSS = 4


class Currency(Enum):
    MONEY = "money"
    DUNGEON_TOKEN = "dungeon_token"
    QUEST_POINT = "quest_point"
    DIAMOND = "diamond"
    FARM_POINT = "farm_point"


class Pokeball(IntEnum):
    NONE = -1
    POKEBALL = 0
    GREATBALL = 1
    ULTRABALL = 2
    MASTERBALL = 3


class OakLoadout(Enum):
    """Oak item setups the focus strategies switch between."""

    POKEMON_EXP = "pokemon_exp"
    MONEY = "money"
    POKEMON_CATCH = "pokemon_catch"


# Gem types follow the game's PokemonType ordering
POKEMON_TYPES: tuple[str, ...] = (
    "Normal", "Fire", "Water", "Electric", "Grass", "Ice",
    "Fighting", "Poison", "Ground", "Flying", "Psychic", "Bug",
    "Rock", "Ghost", "Dragon", "Dark", "Steel", "Fairy",
)

DUNGEON_TICKET = "Dungeon_ticket"
ULTRABALL_ITEM = "Ultraball"


# =============================================================================
# STATIC LOCATION RECORDS
# =============================================================================


class RouteRef(NamedTuple):
    """A route identified by its region and number."""

    region: int
    number: int


@dataclass(frozen=True)
class RouteInfo:
    """
    Static route data.

    Attributes:
        region: Region index the route belongs to.
        number: Route number, unique inside the region.
        pokemon: Names of every species that can appear on the route.
    """

    region: int
    number: int
    pokemon: tuple[str, ...] = ()

    @property
    def ref(self) -> RouteRef:
        return RouteRef(self.region, self.number)


@dataclass(frozen=True)
class DungeonInfo:
    name: str
    token_cost: int


@dataclass(frozen=True)
class TownInfo:
    """
    Static town data.

    Attributes:
        name: Unique town name.
        region: Region index of the town.
        dungeon: The dungeon entered from this town, if any.
    """

    name: str
    region: int
    dungeon: DungeonInfo | None = None


@dataclass(frozen=True)
class GymInfo:
    """
    Static gym data.

    Attributes:
        name: Gym (leader) name, unique across regions.
        town: Name of the town hosting the gym.
        region: Region index of the hosting town.
        money_reward: Money earned per clear.
        gem_rewards: Gem type index → gems earned per clear.
    """

    name: str
    town: str
    region: int
    money_reward: int = 0
    gem_rewards: dict[int, float] = field(default_factory=dict)


# =============================================================================
# DUNGEON BOARD SNAPSHOT
# =============================================================================


@dataclass
class DungeonBoard:
    """
    Snapshot of a dungeon grid.

    All arrays share the (rows, columns) shape. The snapshot is a copy: it
    never changes after the facade returns it.

    Attributes:
        kinds: int8 array of TileKind values.
        visible: True where the cell kind has been revealed.
        visited: True where the player has already stood.
        reachable: True where the player may move right now.
    """

    kinds: np.ndarray[Any, np.dtype[np.int8]]
    visible: np.ndarray[Any, np.dtype[np.bool_]]
    visited: np.ndarray[Any, np.dtype[np.bool_]]
    reachable: np.ndarray[Any, np.dtype[np.bool_]]

    def cells(
        self,
        kind: TileKind | None = None,
        unvisited: bool = False,
    ) -> list[tuple[int, int]]:
        """
        List reachable cells as (x, y), in row-major order.

        Args:
            kind: Only keep visible cells of this kind. When None, every
                reachable cell is kept regardless of visibility.
            unvisited: Only keep cells the player has not visited yet.
        """
        mask = self.reachable.copy()
        if kind is not None:
            mask &= (self.kinds == int(kind)) & self.visible
        if unvisited:
            mask &= ~self.visited
        rows, cols = np.nonzero(mask)
        return [(int(x), int(y)) for y, x in zip(rows, cols)]

    def unvisited_cells(self, exclude: tuple[TileKind, ...] = ()) -> list[tuple[int, int]]:
        """List reachable unvisited cells whose kind is not in ``exclude``."""
        mask = self.reachable & ~self.visited
        for kind in exclude:
            mask &= ~(self.visible & (self.kinds == int(kind)))
        rows, cols = np.nonzero(mask)
        return [(int(x), int(y)) for y, x in zip(rows, cols)]


# =============================================================================
# GAME FACADE PROTOCOL
# =============================================================================


class GameFacade(Protocol):
    """
    Read and command oracle over the host game.

    Queries are cheap and side-effect free. Commands are fire-and-forget and
    applied synchronously: the next query observes their effect. A command
    the game refuses (locked destination, fight in progress) is silently
    ignored by the host.
    """

    # --- Queries -------------------------------------------------------------

    def game_state(self) -> GameState: ...

    def player_region(self) -> int: ...

    def highest_region(self) -> int: ...

    def player_route(self) -> int | None: ...

    def player_town(self) -> TownInfo | None: ...

    def has_key_item(self, item: str) -> bool: ...

    def currency(self, currency: Currency) -> int: ...

    def is_fight_resolving(self) -> bool: ...

    def dungeon_board(self) -> DungeonBoard: ...

    def dungeon_completed(self, dungeon: DungeonInfo, shiny: bool) -> bool: ...

    def click_attack(self) -> int: ...

    def routes(self) -> Sequence[RouteInfo]: ...

    def route_health(self, route: RouteInfo) -> int: ...

    def base_hitpoints(self, species: str) -> int: ...

    def can_access_route(self, number: int, region: int) -> bool: ...

    def town(self, name: str) -> TownInfo: ...

    def is_town_unlocked(self, name: str) -> bool: ...

    def dock_town(self, region: int) -> str: ...

    def gyms(self) -> Sequence[GymInfo]: ...

    def is_gym_unlocked(self, gym: GymInfo) -> bool: ...

    def gym_clear_ticks(self, gym: GymInfo) -> int | None: ...

    def route_gem_income(self, route: RouteInfo, gem_type: int) -> float: ...

    def route_dungeon_token_income(self, route: RouteInfo, ball: Pokeball) -> float: ...

    def ball_quantity(self, ball: Pokeball) -> int: ...

    def item_price(self, item: str, amount: int) -> int: ...

    def item_base_price(self, item: str) -> int: ...

    # --- Commands ------------------------------------------------------------

    def move_to_coordinates(self, x: int, y: int) -> None: ...

    def move_to_route(self, number: int, region: int) -> None: ...

    def move_to_town(self, name: str) -> None: ...

    def set_region(self, region: int) -> None: ...

    def initialize_dungeon(self, dungeon: DungeonInfo) -> None: ...

    def start_boss_fight(self) -> None: ...

    def open_chest(self) -> None: ...

    def start_gym_fight(self, gym: GymInfo) -> None: ...

    def buy_item(self, item: str, amount: int) -> None: ...

    def equip_loadout(self, loadout: OakLoadout) -> None: ...

    def set_already_caught_ball(self, ball: Pokeball) -> None: ...
