"""Tests for SettingsStore and ControlPanel."""

import json
from unittest.mock import Mock

from pokeauto.panel import ControlPanel
from pokeauto.settings import (
    DUNGEON_ENABLED,
    NOTIFICATIONS_ENABLED,
    SettingsStore,
)


# =============================================================================
# SETTINGS STORE
# =============================================================================

class TestSettingsStore:

    def test_booleans_stored_as_strings(self, settings):
        settings.set_value(DUNGEON_ENABLED, True)
        assert settings.get_value(DUNGEON_ENABLED) == "true"
        assert settings.get_bool(DUNGEON_ENABLED) is True

    def test_missing_key_reads_default(self, settings):
        assert settings.get_bool("missing") is False
        assert settings.get_bool("missing", default=True) is True

    def test_default_does_not_overwrite(self, settings):
        settings.set_value("Gym-SelectedGym", "Brock")
        settings.set_default_value("Gym-SelectedGym", "Misty")
        assert settings.get_value("Gym-SelectedGym") == "Brock"

    def test_persists_to_json(self, tmp_path):
        path = tmp_path / "settings.json"
        store = SettingsStore(path)
        store.set_value(DUNGEON_ENABLED, True)
        store.set_value("Focus-SelectedTopic", "XP")

        assert json.loads(path.read_text()) == {
            DUNGEON_ENABLED: "true",
            "Focus-SelectedTopic": "XP",
        }
        reloaded = SettingsStore(path)
        assert reloaded.get_bool(DUNGEON_ENABLED) is True
        assert reloaded.get_value("Focus-SelectedTopic") == "XP"


# =============================================================================
# CONTROL PANEL
# =============================================================================

class TestControlPanel:

    def test_register_sets_default_once(self, settings):
        settings.set_value("feature", True)
        panel = ControlPanel(settings)
        panel.register_feature("feature", default=False)
        assert panel.is_enabled("feature")

    def test_toggle_dispatches(self, panel):
        listener = Mock()
        panel.register_feature("feature", listener)

        assert panel.toggle("feature") is True
        assert panel.toggle("feature") is False
        assert [c.args for c in listener.call_args_list] == [(True,), (False,)]

    def test_disabled_switch_ignores_clicks(self, panel):
        listener = Mock()
        panel.register_feature("feature", listener)
        panel.set_disabled_state("feature", True, "nope")

        assert panel.toggle("feature") is False
        listener.assert_not_called()
        assert panel.disabled_reason("feature") == "nope"

        panel.set_disabled_state("feature", False)
        assert not panel.is_disabled("feature")
        assert panel.disabled_reason("feature") is None

    def test_force_state_always_dispatches(self, panel):
        listener = Mock()
        panel.register_feature("feature", listener)
        panel.force_state("feature", False)
        listener.assert_called_once_with(False)

    def test_category_visibility(self, panel):
        assert panel.is_category_visible("menu")
        panel.set_category_visible("menu", False)
        assert not panel.is_category_visible("menu")
        panel.set_category_visible("menu", True)
        assert panel.is_category_visible("menu")

    def test_notifications_recorded(self, panel):
        panel.notify("Hello", "Focus")
        assert panel.notifications[-1].title == "Focus"
        assert panel.notifications[-1].message == "Hello"

    def test_notifications_suppressed_by_setting(self, panel, settings):
        settings.set_value(NOTIFICATIONS_ENABLED, False)
        panel.notify("Hello")
        assert len(panel.notifications) == 0

    def test_notification_default_from_config(self):
        store = SettingsStore()
        ControlPanel(store, notifications_enabled=False)
        assert store.get_bool(NOTIFICATIONS_ENABLED, default=True) is False
