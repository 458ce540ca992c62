"""
CLI entry point for PokeAuto.

This module provides the command-line interface for the PokeAuto package.
It serves as the entry point when the package is invoked via:
- `pokeauto <command>` (installed script)
- `python -m pokeauto <command>` (module execution)

Architecture Role:
    The CLI drives the automation engine against the in-memory simulator on
    a virtual clock, so strategies and dungeon runs can be watched without
    the live game.

    User Input → __main__.py → Automation + SimulatedGame → ManualTimerService

Available Commands:
    info: Display configuration defaults and the focus strategy catalog
    dungeon: Simulate dungeon auto-fight runs
    focus: Simulate a focus strategy for a while

Command Structure:
    pokeauto <command> [options]

    Examples:
        pokeauto info
        pokeauto dungeon --runs 3 --size 7 --chests 4 --enemies 6
        pokeauto dungeon --boss-rush --seed 7
        pokeauto focus XP --seconds 60 --attack 450

Design Decisions:
    - Uses argparse subparsers for clean command separation
    - Every simulation runs on ManualTimerService, one game tick per
      dungeon_tick_ms, so output is deterministic for a given seed
    - Returns exit codes (0=success, 1=error) for shell scripting

Dependencies:
    - argparse: Command-line argument parsing
    - pokeauto.agent.automation: The assembled engine
    - pokeauto.simulator: The simulated game
"""

import argparse
import logging
import sys

from pokeauto.agent.automation import Automation
from pokeauto.config import AutomationConfig
from pokeauto.game import Currency
from pokeauto.settings import (
    DUNGEON_BOSS_RUSH,
    DUNGEON_ENABLED,
    DUNGEON_SKIP_CHESTS,
    FOCUS_ENABLED,
    SettingsStore,
)
from pokeauto.simulator import SimulatedGame
from pokeauto.timers import ManualTimerService

# Town holding the simulator's dungeon
_DUNGEON_TOWN = "Viridian Forest"


# =============================================================================
# SIMULATION HELPERS
# =============================================================================


def _build_engine(game: SimulatedGame) -> tuple[Automation, ManualTimerService]:
    timers = ManualTimerService()
    engine = Automation(game, AutomationConfig(), timers=timers, settings=SettingsStore())
    engine.start()
    return engine, timers


def _step(engine: Automation, timers: ManualTimerService, game: SimulatedGame) -> None:
    """Advance the virtual clock by one game tick."""
    timers.advance(engine.config.dungeon_tick_ms)
    game.advance_tick()


def run_dungeon(args: argparse.Namespace) -> int:
    """Simulate ``args.runs`` dungeon runs and print a summary."""
    try:
        game = SimulatedGame(
            seed=args.seed,
            board_size=args.size,
            chests=args.chests,
            enemies=args.enemies,
        )
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    dungeon = game.town(_DUNGEON_TOWN).dungeon
    if dungeon is None:
        print(f"Error: {_DUNGEON_TOWN} has no dungeon")
        return 1
    game.grant_dungeon_access(dungeon.token_cost * args.runs)
    game.move_to_town(_DUNGEON_TOWN)

    engine, timers = _build_engine(game)
    engine.settings.set_value(DUNGEON_BOSS_RUSH, args.boss_rush)
    engine.settings.set_value(DUNGEON_SKIP_CHESTS, args.skip_chests)

    try:
        engine.panel.toggle(DUNGEON_ENABLED)
        ticks = 0
        while engine.dungeon.is_running and ticks < args.max_ticks:
            _step(engine, timers, game)
            ticks += 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    finally:
        engine.stop()

    print(f"Dungeon: {dungeon.name} ({args.size}x{args.size}, seed {args.seed})")
    print(f"  runs completed: {game.runs_completed}/{args.runs}")
    print(f"  chests opened:  {game.chests_opened}")
    print(f"  moves issued:   {game.command_names().count('move_to_coordinates')}")
    print(f"  game ticks:     {ticks}")
    if ticks >= args.max_ticks:
        print("  stopped: tick limit reached")
    return 0


def run_focus(args: argparse.Namespace) -> int:
    """Simulate one focus strategy for ``args.seconds`` virtual seconds."""
    game = SimulatedGame(seed=args.seed)
    game.attack = args.attack
    game.wallet[Currency.MONEY] = args.money
    if args.ticket:
        game.grant_dungeon_access(0)

    engine, timers = _build_engine(game)
    try:
        if not engine.focus.set_active(args.strategy):
            print(f"Strategy {args.strategy} is locked")
            return 1
        engine.panel.toggle(FOCUS_ENABLED)

        total_ticks = args.seconds * 1000 // engine.config.dungeon_tick_ms
        for _ in range(total_ticks):
            _step(engine, timers, game)
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    finally:
        engine.stop()

    print(f"Focus: {args.strategy} for {args.seconds}s")
    town = game.player_town()
    if game.player_route() is not None:
        print(f"  location: route {game.player_route()} (region {game.player_region()})")
    elif town is not None:
        print(f"  location: {town.name}")
    print(f"  loadout:  {game.loadout.name if game.loadout else '-'}")
    print(f"  gym fights started: {game.gym_fights}")
    for notification in engine.panel.notifications:
        print(f"  [{notification.title}] {notification.message}")
    return 0


def show_info() -> int:
    from pokeauto import __version__

    print(f"PokeAuto v{__version__}")
    print()

    print("Default Configuration:")
    config = AutomationConfig()
    for field_name in [
        "exp_refresh_ms",
        "money_refresh_ms",
        "dungeon_token_refresh_ms",
        "gem_refresh_ms",
        "unlock_watch_ms",
        "dungeon_tick_ms",
        "ball_purchase_batch",
    ]:
        print(f"  {field_name}: {getattr(config, field_name)}")
    print()

    # A throwaway engine lists the catalog exactly as a player would see it
    game = SimulatedGame()
    engine, _ = _build_engine(game)
    print("Focus Strategies:")
    for strategy in engine.focus.strategies:
        if strategy.is_separator:
            print(f"  {strategy.name}")
            continue
        locked = " (locked)" if engine.focus.is_locked(strategy.id) else ""
        print(f"  {strategy.id:<16} every {strategy.cadence_ms}ms{locked}")
    engine.stop()
    return 0


# =============================================================================
# MAIN CLI FUNCTION
# =============================================================================


def main() -> int:
    """
    Main CLI entry point for PokeAuto.

    Returns:
        Exit code: 0 for success, 1 for errors or unknown commands.

    Example:
        >>> sys.exit(main())
    """
    parser = argparse.ArgumentParser(
        prog="pokeauto",
        description="PokeAuto - Automation decision engine for a Pokémon clicker game",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every engine decision",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # -------------------------------------------------------------------------
    # Info Command
    # -------------------------------------------------------------------------
    subparsers.add_parser(
        "info",
        help="Show configuration defaults and focus strategies",
    )

    # -------------------------------------------------------------------------
    # Dungeon Command
    # -------------------------------------------------------------------------
    dungeon_parser = subparsers.add_parser(
        "dungeon",
        help="Simulate dungeon auto-fight runs",
    )
    dungeon_parser.add_argument(
        "--size",
        type=int,
        default=5,
        help="Board width and height (default: 5)",
    )
    dungeon_parser.add_argument(
        "--chests",
        type=int,
        default=3,
        help="Chests per board (default: 3)",
    )
    dungeon_parser.add_argument(
        "--enemies",
        type=int,
        default=4,
        help="Enemies per board (default: 4)",
    )
    dungeon_parser.add_argument(
        "--runs", "-r",
        type=int,
        default=1,
        help="Runs to pay for (default: 1)",
    )
    dungeon_parser.add_argument(
        "--boss-rush",
        action="store_true",
        help="Fight the boss as soon as it is revealed",
    )
    dungeon_parser.add_argument(
        "--skip-chests",
        action="store_true",
        help="Never open chests",
    )
    dungeon_parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for board generation (default: 42)",
    )
    dungeon_parser.add_argument(
        "--max-ticks",
        type=int,
        default=10_000,
        help="Stop after this many game ticks (default: 10,000)",
    )

    # -------------------------------------------------------------------------
    # Focus Command
    # -------------------------------------------------------------------------
    focus_parser = subparsers.add_parser(
        "focus",
        help="Simulate a focus strategy",
    )
    focus_parser.add_argument(
        "strategy",
        help="Strategy id, e.g. XP, Gold, DungeonTokens, FireGems",
    )
    focus_parser.add_argument(
        "--seconds", "-s",
        type=int,
        default=30,
        help="Virtual seconds to simulate (default: 30)",
    )
    focus_parser.add_argument(
        "--attack",
        type=int,
        default=100,
        help="Player click attack (default: 100)",
    )
    focus_parser.add_argument(
        "--money",
        type=int,
        default=0,
        help="Starting money (default: 0)",
    )
    focus_parser.add_argument(
        "--ticket",
        action="store_true",
        help="Start with the dungeon ticket",
    )
    focus_parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # -------------------------------------------------------------------------
    # Command Dispatch
    # -------------------------------------------------------------------------
    if args.command == "info":
        return show_info()
    elif args.command == "dungeon":
        return run_dungeon(args)
    elif args.command == "focus":
        return run_focus(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
