"""
PokeAuto Test Suite.

This package contains pytest tests for the PokeAuto automation engine.
Tests are organized by module:

    test_config.py      - AutomationConfig dataclass tests
    test_settings.py    - SettingsStore and ControlPanel tests
    test_timers.py      - Timer service tests
    test_mutex.py       - AutomationMutex tests
    test_scheduler.py   - StrategyScheduler (focus engine) tests
    test_scorer.py      - LocationScorer and navigation tests
    test_dungeon.py     - DungeonExplorer state machine tests
    test_focus.py       - Focus catalog and gym fighter tests
    test_automation.py  - Engine wiring and simulator end-to-end tests

Fixtures are defined in conftest.py and shared across all test modules.
"""
