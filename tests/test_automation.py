"""Tests for the assembled Automation engine running on the simulator."""

from pokeauto.agent.automation import Automation
from pokeauto.agent.dungeon import DUNGEON_OWNER
from pokeauto.agent.mutex import YieldMode
from pokeauto.game import Currency, GameState
from pokeauto.settings import (
    DUNGEON_ENABLED,
    FOCUS_ENABLED,
    FOCUS_SELECTED_TOPIC,
    GYM_ENABLED,
    SettingsStore,
)
from pokeauto.simulator import SimulatedGame
from pokeauto.timers import ManualTimerService, ThreadedTimerService


class TestLifecycle:

    def test_start_is_idempotent(self, automation):
        count = len(automation.focus.strategies)
        automation.start()
        assert len(automation.focus.strategies) == count

    def test_fight_loops_never_resume(self, game, config, timers):
        settings = SettingsStore()
        settings.set_value(DUNGEON_ENABLED, True)
        settings.set_value(GYM_ENABLED, True)

        engine = Automation(game, config, timers=timers, settings=settings)
        engine.start()
        assert not engine.panel.is_enabled(DUNGEON_ENABLED)
        assert not engine.panel.is_enabled(GYM_ENABLED)
        engine.stop()

    def test_focus_restored_from_previous_session(self, game, config, timers, tmp_path):
        path = tmp_path / "settings.json"
        previous = SettingsStore(path)
        previous.set_value(FOCUS_ENABLED, True)
        previous.set_value(FOCUS_SELECTED_TOPIC, "Gold")

        engine = Automation(game, config, timers=timers, settings=SettingsStore(path))
        engine.start()
        assert engine.focus.active is not None
        assert engine.focus.active.id == "Gold"
        assert game.player_town().name == "Vermilion City"
        engine.stop()

    def test_stop_cancels_every_timer(self, automation, timers):
        automation.focus.set_active("XP")
        automation.panel.toggle(FOCUS_ENABLED)
        automation.stop()
        assert timers.active_handles == []

    def test_default_timer_service_is_threaded(self, game):
        engine = Automation(game, settings=SettingsStore())
        assert isinstance(engine.timers, ThreadedTimerService)
        engine.start()
        engine.stop()


class TestEndToEnd:

    def test_focus_waits_for_dungeon_run(self, automation, game, step):
        game.grant_dungeon_access(100)
        game.move_to_town("Viridian Forest")
        game.next_layout = ["B.S..C"]
        automation.panel.toggle(DUNGEON_ENABLED)
        step(game, 1)
        assert game.game_state() == GameState.DUNGEON

        automation.focus.set_active("XP")
        automation.panel.toggle(FOCUS_ENABLED)
        assert automation.mutex.mode(DUNGEON_OWNER) == YieldMode.STOP_AFTER_THIS_RUN

        step(game, 6)
        assert game.runs_completed == 1
        assert not automation.dungeon.is_running
        assert game.currency(Currency.DUNGEON_TOKEN) == 50

        # Next XP refresh, 10s after the focus started
        step(game, 200)
        assert game.player_route() == 4

    def test_simulated_session(self, config):
        game = SimulatedGame(seed=3, board_size=6, chests=4, enemies=5)
        timers = ManualTimerService()
        engine = Automation(game, config, timers=timers, settings=SettingsStore())
        engine.start()

        game.grant_dungeon_access(100)
        game.move_to_town("Viridian Forest")
        engine.panel.toggle(DUNGEON_ENABLED)
        for _ in range(1_000):
            timers.advance(config.dungeon_tick_ms)
            game.advance_tick()
            if not engine.dungeon.is_running:
                break

        assert game.runs_completed == 2
        assert game.chests_opened == 8
        engine.stop()
