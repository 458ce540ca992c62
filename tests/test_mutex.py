"""Tests for AutomationMutex."""

import pytest

from pokeauto.agent.mutex import YieldMode


def test_default_mode_is_none(mutex):
    assert mutex.mode("dungeon") == YieldMode.NONE
    assert not mutex.is_bypassed("dungeon")


def test_request_and_clear(mutex):
    mutex.request_yield("dungeon")
    assert mutex.mode("dungeon") == YieldMode.STOP_AFTER_THIS_RUN

    mutex.request_yield("dungeon", YieldMode.STOP_IMMEDIATELY)
    assert mutex.mode("dungeon") == YieldMode.STOP_IMMEDIATELY

    mutex.clear("dungeon")
    assert mutex.mode("dungeon") == YieldMode.NONE


def test_bypass(mutex):
    mutex.request_bypass("dungeon")
    assert mutex.is_bypassed("dungeon")
    assert mutex.mode("other") == YieldMode.NONE


@pytest.mark.parametrize("mode", [YieldMode.NONE, YieldMode.BYPASS_USER_SETTINGS])
def test_request_yield_rejects_non_stop_modes(mutex, mode):
    with pytest.raises(ValueError):
        mutex.request_yield("dungeon", mode)
