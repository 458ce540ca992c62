"""Tests for the timer services."""

import threading

from pokeauto.timers import ManualTimerService, ThreadedTimerService


class TestManualTimerService:

    def test_fires_once_per_period(self, timers):
        ticks = []
        timers.set_interval(lambda: ticks.append(timers.now_ms), 50)
        timers.advance(120)
        assert ticks == [50, 100]
        assert timers.now_ms == 120

    def test_chronological_order(self, timers):
        order = []
        timers.set_interval(lambda: order.append(("slow", timers.now_ms)), 30)
        timers.set_interval(lambda: order.append(("fast", timers.now_ms)), 20)
        timers.advance(60)
        assert order == [("fast", 20), ("slow", 30), ("fast", 40), ("slow", 60), ("fast", 60)]

    def test_clear_is_idempotent(self, timers):
        ticks = []
        handle = timers.set_interval(lambda: ticks.append(1), 10)
        timers.clear_interval(handle)
        timers.clear_interval(handle)
        timers.clear_interval(None)
        timers.advance(100)
        assert ticks == []
        assert handle.cancelled

    def test_callback_can_clear_itself(self, timers):
        ticks = []
        holder = {}

        def callback():
            ticks.append(timers.now_ms)
            timers.clear_interval(holder["handle"])

        holder["handle"] = timers.set_interval(callback, 10)
        timers.advance(100)
        assert ticks == [10]

    def test_exception_logged_not_raised(self, timers, caplog):
        def boom():
            raise RuntimeError("boom")

        handle = timers.set_interval(boom, 10, name="boom")
        timers.advance(25)
        assert handle.fire_count == 2
        assert "boom" in caplog.text

    def test_shutdown_cancels_everything(self):
        timers = ManualTimerService()
        timers.set_interval(lambda: None, 10)
        timers.set_interval(lambda: None, 20)
        timers.shutdown()
        assert timers.active_handles == []


class TestThreadedTimerService:

    def test_fires_and_stops(self):
        timers = ThreadedTimerService()
        fired = threading.Event()
        handle = timers.set_interval(fired.set, 5)
        try:
            assert fired.wait(2.0)
        finally:
            timers.shutdown()
        assert handle.cancelled
