"""
In-memory game simulator for PokeAuto.

SimulatedGame implements the GameFacade protocol with just enough game
behaviour to exercise every automation end to end: a small world of
regions, routes, towns and gyms, a wallet and a bag, and dungeon runs on
randomly generated (or hand-drawn) boards.

Architecture Role:
    Used by the CLI (`pokeauto dungeon`, `pokeauto focus`) and by the test
    suite in place of the live game.

Dungeon Model:
    - The player starts on the entrance cell, which is visited.
    - Visiting a cell reveals its four neighbours.
    - A cell is reachable when it is visited or next to a visited cell.
    - Entering an unvisited ENEMY cell starts an encounter lasting
      ``encounter_ticks`` calls to advance_tick().
    - Opening a chest may start an encounter instead (``chest_encounter_chance``);
      an opened chest cell becomes EMPTY.
    - Starting the boss fight on the BOSS cell ends the run after
      ``boss_ticks``; the player is then back in the dungeon's town.
    - Moves are refused while a fight is resolving.

Layouts:
    Boards can be drawn as text for tests, one character per cell:
        "." empty, "S" entrance, "E" enemy, "C" chest, "B" boss, "#" wall

Dependencies:
    - numpy: Board arrays and seeded random generation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np

from pokeauto.game import (
    DUNGEON_TICKET,
    ULTRABALL_ITEM,
    Currency,
    DungeonBoard,
    DungeonInfo,
    GameState,
    GymInfo,
    OakLoadout,
    Pokeball,
    RouteInfo,
    TileKind,
    TownInfo,
)

logger = logging.getLogger(__name__)

# Wall cells are never reachable
WALL = -1

_LAYOUT_KINDS = {
    ".": int(TileKind.EMPTY),
    "S": int(TileKind.ENTRANCE),
    "E": int(TileKind.ENEMY),
    "C": int(TileKind.CHEST),
    "B": int(TileKind.BOSS),
    "#": WALL,
}

_NEIGHBOURS = ((0, -1), (0, 1), (-1, 0), (1, 0))


# =============================================================================
# DUNGEON BOARD STATE
# =============================================================================


class SimulatedBoard:
    """
    Mutable dungeon board.

    Attributes:
        kinds: int8 array of TileKind values (WALL for walls).
        visible: Revealed cells.
        visited: Cells the player stood on.
        position: Player (x, y).
    """

    def __init__(self, kinds: np.ndarray[Any, np.dtype[np.int8]], entrance: tuple[int, int]) -> None:
        self.kinds = kinds.astype(np.int8)
        self.visible = np.zeros(kinds.shape, dtype=bool)
        self.visited = np.zeros(kinds.shape, dtype=bool)
        self.position = entrance
        self.visit(*entrance)

    @classmethod
    def from_layout(cls, rows: Sequence[str]) -> "SimulatedBoard":
        """Build a board from a text drawing with exactly one "S" entrance."""
        if not rows or len({len(r) for r in rows}) != 1:
            raise ValueError("Layout rows must be non-empty and of equal width")
        kinds = np.array([[_LAYOUT_KINDS[c] for c in row] for row in rows], dtype=np.int8)
        starts = np.argwhere(kinds == int(TileKind.ENTRANCE))
        if len(starts) != 1:
            raise ValueError("Layout needs exactly one entrance 'S'")
        y, x = starts[0]
        return cls(kinds, (int(x), int(y)))

    @classmethod
    def generate(
        cls,
        size: int,
        chests: int,
        enemies: int,
        rng: np.random.Generator,
    ) -> "SimulatedBoard":
        """Generate a square board with the entrance at the bottom centre."""
        cells = size * size
        if size < 2 or chests + enemies + 2 > cells:
            raise ValueError(f"Cannot fit {chests} chests and {enemies} enemies in a {size}x{size} board")

        kinds = np.full((size, size), int(TileKind.EMPTY), dtype=np.int8)
        entrance = (size // 2, size - 1)
        kinds[entrance[1], entrance[0]] = int(TileKind.ENTRANCE)

        free = [i for i in range(cells) if i != entrance[1] * size + entrance[0]]
        picks = rng.choice(free, size=chests + enemies + 1, replace=False)
        flat = kinds.reshape(-1)
        flat[picks[0]] = int(TileKind.BOSS)
        flat[picks[1:1 + chests]] = int(TileKind.CHEST)
        flat[picks[1 + chests:]] = int(TileKind.ENEMY)
        return cls(kinds, entrance)

    def in_bounds(self, x: int, y: int) -> bool:
        rows, cols = self.kinds.shape
        return 0 <= x < cols and 0 <= y < rows

    def reachable(self) -> np.ndarray[Any, np.dtype[np.bool_]]:
        near = self.visited.copy()
        near[1:, :] |= self.visited[:-1, :]
        near[:-1, :] |= self.visited[1:, :]
        near[:, 1:] |= self.visited[:, :-1]
        near[:, :-1] |= self.visited[:, 1:]
        return near & (self.kinds != WALL)

    def is_reachable(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and bool(self.reachable()[y, x])

    def kind_at(self, x: int, y: int) -> int:
        return int(self.kinds[y, x])

    def visit(self, x: int, y: int) -> None:
        """Stand on (x, y) and reveal its four neighbours."""
        self.position = (x, y)
        self.visited[y, x] = True
        self.visible[y, x] = True
        for dx, dy in _NEIGHBOURS:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny) and self.kinds[ny, nx] != WALL:
                self.visible[ny, nx] = True

    def snapshot(self) -> DungeonBoard:
        # Walls are reported as visited empty cells so they are never targeted
        walls = self.kinds == WALL
        kinds = np.where(walls, int(TileKind.EMPTY), self.kinds).astype(np.int8)
        return DungeonBoard(
            kinds=kinds,
            visible=self.visible | walls,
            visited=self.visited | walls,
            reachable=self.reachable(),
        )


# =============================================================================
# SIMULATED WORLD
# =============================================================================


@dataclass
class SimulatedWorld:
    """
    Static world data.

    Attributes:
        routes: Routes in increasing (region, number) order.
        route_health: Route ref (region, number) → route health.
        base_hp: Species → base hit points.
        towns: Town name → TownInfo.
        gyms: Every gym of the world.
        gym_clear_ticks: Gym name → ticks to clear it (absent: unbeatable).
        dock_towns: Region → dock town name.
        gem_income: (region, number, gem type) → gems per tick.
        token_income: (region, number) → dungeon tokens per tick.
    """

    routes: list[RouteInfo] = field(default_factory=list)
    route_health: dict[tuple[int, int], int] = field(default_factory=dict)
    base_hp: dict[str, int] = field(default_factory=dict)
    towns: dict[str, TownInfo] = field(default_factory=dict)
    gyms: list[GymInfo] = field(default_factory=list)
    gym_clear_ticks: dict[str, int] = field(default_factory=dict)
    dock_towns: dict[int, str] = field(default_factory=dict)
    gem_income: dict[tuple[int, int, int], float] = field(default_factory=dict)
    token_income: dict[tuple[int, int], float] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "SimulatedWorld":
        """A two-region world with a dungeon town and two gyms per region."""
        world = cls()
        world.base_hp = {"Pidgey": 40, "Rattata": 30, "Geodude": 40, "Onix": 35, "Zubat": 40}
        species = ("Pidgey", "Rattata")
        for region in (0, 1):
            for number in range(1, 6):
                number += region * 20
                world.routes.append(RouteInfo(region, number, species))
                world.route_health[(region, number)] = 20 * number + 100 * region
                world.token_income[(region, number)] = 0.5 + number * 0.1
            dock = "Vermilion City" if region == 0 else "Olivine City"
            world.dock_towns[region] = dock
            world.towns[dock] = TownInfo(dock, region)

        world.towns["Pallet Town"] = TownInfo("Pallet Town", 0)
        world.towns["Pewter City"] = TownInfo("Pewter City", 0)
        world.towns["Viridian Forest"] = TownInfo(
            "Viridian Forest", 0, DungeonInfo("Viridian Forest", token_cost=50)
        )
        world.towns["Violet City"] = TownInfo("Violet City", 1)

        world.gyms = [
            GymInfo("Brock", "Pewter City", 0, money_reward=800, gem_rewards={12: 3.0, 8: 1.0}),
            GymInfo("Lt. Surge", "Vermilion City", 0, money_reward=1600, gem_rewards={3: 3.0}),
            GymInfo("Falkner", "Violet City", 1, money_reward=4000, gem_rewards={9: 3.0}),
        ]
        world.gym_clear_ticks = {"Brock": 40, "Lt. Surge": 60, "Falkner": 80}
        world.gem_income[(0, 3, 0)] = 0.2
        return world


# =============================================================================
# SIMULATED GAME
# =============================================================================


class SimulatedGame:
    """
    GameFacade implementation backed by in-memory state.

    Attributes:
        world: Static world data.
        state: Current coarse game state.
        region: Current player region.
        highest: Highest unlocked region.
        route: Current route number, None when not on a route.
        town_name: Current town name, None when not in a town.
        attack: Click attack.
        wallet: Currency balances.
        key_items: Owned key items.
        balls: Ball quantities.
        board: Current dungeon board, None outside dungeons.
        commands: Every command issued, as (name, *args) tuples.
        runs_completed: Dungeon runs finished.
        chests_opened: Chests opened over every run.
    """

    def __init__(
        self,
        world: SimulatedWorld | None = None,
        seed: int = 0,
        board_size: int = 5,
        chests: int = 3,
        enemies: int = 4,
        encounter_ticks: int = 2,
        boss_ticks: int = 3,
        chest_encounter_chance: float = 0.0,
    ) -> None:
        self.world = world or SimulatedWorld.default()
        self.rng = np.random.default_rng(seed)
        self.board_size = board_size
        self.chest_count = chests
        self.enemy_count = enemies
        self.encounter_ticks = encounter_ticks
        self.boss_ticks = boss_ticks
        self.chest_encounter_chance = chest_encounter_chance

        self.state = GameState.TOWN
        self.region = 0
        self.highest = 0
        self.route: int | None = None
        self.town_name: str | None = "Pallet Town"
        self.attack = 100
        self.wallet: dict[Currency, int] = {c: 0 for c in Currency}
        self.key_items: set[str] = set()
        self.balls: dict[Pokeball, int] = {b: 0 for b in Pokeball}
        self.unlocked_towns: set[str] = set(self.world.towns)
        self.completed_dungeons: set[str] = set()
        self.shiny_completed_dungeons: set[str] = set()
        self.loadout: OakLoadout | None = None
        self.already_caught_ball = Pokeball.NONE
        self.ultraball_price_multiplier = 1.0

        self.board: SimulatedBoard | None = None
        self.next_layout: Sequence[str] | None = None
        self.dungeon: DungeonInfo | None = None
        self.commands: list[tuple[Any, ...]] = []
        self.runs_completed = 0
        self.chests_opened = 0
        self.gym_fights = 0

        self._fight_ticks = 0
        self._boss_fight = False
        self._gym_fight = False

    # =========================================================================
    # QUERIES
    # =========================================================================

    def game_state(self) -> GameState:
        return self.state

    def player_region(self) -> int:
        return self.region

    def highest_region(self) -> int:
        return self.highest

    def player_route(self) -> int | None:
        return self.route

    def player_town(self) -> TownInfo | None:
        if self.town_name is None:
            return None
        return self.world.towns[self.town_name]

    def has_key_item(self, item: str) -> bool:
        return item in self.key_items

    def currency(self, currency: Currency) -> int:
        return self.wallet[currency]

    def is_fight_resolving(self) -> bool:
        return self._fight_ticks > 0

    def dungeon_board(self) -> DungeonBoard:
        if self.board is None:
            empty = np.zeros((0, 0), dtype=bool)
            return DungeonBoard(np.zeros((0, 0), dtype=np.int8), empty, empty.copy(), empty.copy())
        return self.board.snapshot()

    def dungeon_completed(self, dungeon: DungeonInfo, shiny: bool) -> bool:
        done = self.shiny_completed_dungeons if shiny else self.completed_dungeons
        return dungeon.name in done

    def click_attack(self) -> int:
        return self.attack

    def routes(self) -> Sequence[RouteInfo]:
        return list(self.world.routes)

    def route_health(self, route: RouteInfo) -> int:
        return self.world.route_health[(route.region, route.number)]

    def base_hitpoints(self, species: str) -> int:
        return self.world.base_hp[species]

    def can_access_route(self, number: int, region: int) -> bool:
        return region <= self.highest and any(
            r.region == region and r.number == number for r in self.world.routes
        )

    def town(self, name: str) -> TownInfo:
        return self.world.towns[name]

    def is_town_unlocked(self, name: str) -> bool:
        return name in self.unlocked_towns

    def dock_town(self, region: int) -> str:
        return self.world.dock_towns[region]

    def gyms(self) -> Sequence[GymInfo]:
        return list(self.world.gyms)

    def is_gym_unlocked(self, gym: GymInfo) -> bool:
        return gym.town in self.unlocked_towns

    def gym_clear_ticks(self, gym: GymInfo) -> int | None:
        return self.world.gym_clear_ticks.get(gym.name)

    def route_gem_income(self, route: RouteInfo, gem_type: int) -> float:
        return self.world.gem_income.get((route.region, route.number, gem_type), 0.0)

    def route_dungeon_token_income(self, route: RouteInfo, ball: Pokeball) -> float:
        if ball == Pokeball.NONE:
            return 0.0
        return self.world.token_income.get((route.region, route.number), 0.0)

    def ball_quantity(self, ball: Pokeball) -> int:
        return self.balls[ball]

    def item_price(self, item: str, amount: int) -> int:
        base = self.item_base_price(item)
        multiplier = self.ultraball_price_multiplier if item == ULTRABALL_ITEM else 1.0
        return int(round(base * multiplier)) * amount

    def item_base_price(self, item: str) -> int:
        return 2000 if item == ULTRABALL_ITEM else 100

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def move_to_coordinates(self, x: int, y: int) -> None:
        self.commands.append(("move_to_coordinates", x, y))
        board = self.board
        if self.state != GameState.DUNGEON or board is None or self.is_fight_resolving():
            return
        if not board.is_reachable(x, y):
            return
        first_visit = not board.visited[y, x]
        board.visit(x, y)
        if first_visit and board.kind_at(x, y) == int(TileKind.ENEMY):
            self._fight_ticks = self.encounter_ticks

    def move_to_route(self, number: int, region: int) -> None:
        self.commands.append(("move_to_route", number, region))
        if self.state in (GameState.DUNGEON, GameState.GYM) or not self.can_access_route(number, region):
            return
        self.state = GameState.FIGHTING
        self.region = region
        self.route = number
        self.town_name = None

    def move_to_town(self, name: str) -> None:
        self.commands.append(("move_to_town", name))
        if self.state in (GameState.DUNGEON, GameState.GYM) or name not in self.unlocked_towns:
            return
        self.state = GameState.TOWN
        self.town_name = name
        self.region = self.world.towns[name].region
        self.route = None

    def set_region(self, region: int) -> None:
        self.commands.append(("set_region", region))
        self.region = region

    def initialize_dungeon(self, dungeon: DungeonInfo) -> None:
        self.commands.append(("initialize_dungeon", dungeon.name))
        if self.state != GameState.TOWN or self.wallet[Currency.DUNGEON_TOKEN] < dungeon.token_cost:
            return
        self.wallet[Currency.DUNGEON_TOKEN] -= dungeon.token_cost
        if self.next_layout is not None:
            self.board = SimulatedBoard.from_layout(self.next_layout)
        else:
            self.board = SimulatedBoard.generate(
                self.board_size, self.chest_count, self.enemy_count, self.rng
            )
        self.dungeon = dungeon
        self.state = GameState.DUNGEON
        logger.debug("Entered %s", dungeon.name)

    def start_boss_fight(self) -> None:
        self.commands.append(("start_boss_fight",))
        board = self.board
        if board is None or self.is_fight_resolving():
            return
        if board.kind_at(*board.position) != int(TileKind.BOSS):
            return
        self._boss_fight = True
        self._fight_ticks = max(self.boss_ticks, 1)

    def open_chest(self) -> None:
        self.commands.append(("open_chest",))
        board = self.board
        if board is None or self.is_fight_resolving():
            return
        x, y = board.position
        if board.kind_at(x, y) != int(TileKind.CHEST):
            return
        if self.rng.random() < self.chest_encounter_chance:
            self._fight_ticks = max(self.encounter_ticks, 1)
            return
        board.kinds[y, x] = int(TileKind.EMPTY)
        self.chests_opened += 1

    def start_gym_fight(self, gym: GymInfo) -> None:
        self.commands.append(("start_gym_fight", gym.name))
        if self.state != GameState.TOWN or self.town_name != gym.town:
            return
        self.state = GameState.GYM
        self._gym_fight = True
        self._fight_ticks = self.world.gym_clear_ticks.get(gym.name, 1)
        self.gym_fights += 1

    def buy_item(self, item: str, amount: int) -> None:
        self.commands.append(("buy_item", item, amount))
        price = self.item_price(item, amount)
        if self.wallet[Currency.MONEY] < price:
            return
        self.wallet[Currency.MONEY] -= price
        if item == ULTRABALL_ITEM:
            self.balls[Pokeball.ULTRABALL] += amount

    def equip_loadout(self, loadout: OakLoadout) -> None:
        self.commands.append(("equip_loadout", loadout))
        self.loadout = loadout

    def set_already_caught_ball(self, ball: Pokeball) -> None:
        self.commands.append(("set_already_caught_ball", ball))
        self.already_caught_ball = ball

    # =========================================================================
    # TIME
    # =========================================================================

    def advance_tick(self) -> None:
        """Let one game tick pass, resolving any running fight."""
        if self._fight_ticks <= 0:
            return
        self._fight_ticks -= 1
        if self._fight_ticks > 0:
            return

        if self._boss_fight:
            self._boss_fight = False
            self.runs_completed += 1
            logger.debug("Cleared %s", self.dungeon.name if self.dungeon else "dungeon")
            self.board = None
            self.dungeon = None
            self.state = GameState.TOWN
        elif self._gym_fight:
            self._gym_fight = False
            self.state = GameState.TOWN

    # =========================================================================
    # HELPERS
    # =========================================================================

    def grant_dungeon_access(self, tokens: int) -> None:
        """Give the player the dungeon ticket and ``tokens`` dungeon tokens."""
        self.key_items.add(DUNGEON_TICKET)
        self.wallet[Currency.DUNGEON_TOKEN] += tokens

    def visited_cells(self) -> list[tuple[int, int]]:
        """Distinct cells targeted by move commands, in first-move order."""
        seen: dict[tuple[int, int], None] = {}
        for command in self.commands:
            if command[0] == "move_to_coordinates":
                seen.setdefault((command[1], command[2]), None)
        return list(seen)

    def command_names(self) -> list[str]:
        return [command[0] for command in self.commands]
