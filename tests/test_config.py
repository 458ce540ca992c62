"""Tests for AutomationConfig."""

from pathlib import Path

import pytest

from pokeauto.config import AutomationConfig


class TestDefaults:
    """Default values match the in-game refresh rates."""

    def test_focus_cadences(self, config):
        assert config.exp_refresh_ms == 10_000
        assert config.money_refresh_ms == 10_000
        assert config.dungeon_token_refresh_ms == 3_000
        assert config.gem_refresh_ms == 10_000
        assert config.unlock_watch_ms == 5_000

    def test_fight_loop_cadences(self, config):
        assert config.dungeon_tick_ms == 50
        assert config.panel_refresh_ms == 200
        assert config.gym_tick_ms == 50

    def test_misc(self, config):
        assert config.ball_purchase_batch == 10
        assert config.notifications_enabled is True
        assert config.settings_path is None


class TestValidation:

    @pytest.mark.parametrize("field_name", ["dungeon_tick_ms", "exp_refresh_ms", "unlock_watch_ms"])
    def test_non_positive_cadence_rejected(self, field_name):
        with pytest.raises(ValueError, match=field_name):
            AutomationConfig(**{field_name: 0})

    def test_batch_rejected(self):
        with pytest.raises(ValueError, match="ball_purchase_batch"):
            AutomationConfig(ball_purchase_batch=0)

    def test_string_path_converted(self):
        config = AutomationConfig(settings_path="settings.json")
        assert config.settings_path == Path("settings.json")


def test_from_dict_ignores_unknown_keys():
    config = AutomationConfig.from_dict({"gem_refresh_ms": 5_000, "not_a_field": 1})
    assert config.gem_refresh_ms == 5_000
    assert config.exp_refresh_ms == 10_000
