"""
Cancellable interval timers for PokeAuto.

Every automation in PokeAuto is a polling loop: a tick handler invoked on a
fixed wall-clock cadence. This module owns those loops. A component asks for
an interval, keeps the returned handle, and clears it to stop.

Architecture Role:
    StrategyScheduler, DungeonExplorer and GymFighter each own their timer
    handles. They never sleep or wait: the timer service calls them, they run
    to completion, and control returns to the service.

    TimerService → tick handler → GameFacade commands

Threading Model:
    ManualTimerService (virtual clock, single thread):
        host/test calls advance(ms) → due callbacks fire in time order

    ThreadedTimerService (one daemon thread per handle):
        thread: while not cancelled.wait(interval): callback()

    In both services a handle's callback never overlaps itself: the next
    firing starts only after the previous one returned. Different handles
    have no ordering guarantee relative to each other.

Failure Semantics:
    A callback that raises is logged and the timer keeps its cadence. There
    is no retry and no queueing of missed firings (fire-and-forget).

Dependencies:
    - threading: For the threaded service
    - itertools: For handle ids
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]

_handle_ids = itertools.count(1)


# =============================================================================
# TIMER HANDLE
# =============================================================================


class TimerHandle:
    """
    A repeating timer registration.

    Attributes:
        id: Process-unique handle id.
        name: Label used in log messages.
        interval_ms: Period between two firings.
        callback: Tick handler.
        fire_count: Number of times the callback has been invoked.
    """

    __slots__ = ("id", "name", "interval_ms", "callback", "fire_count", "_cancelled")

    def __init__(self, callback: TickCallback, interval_ms: int, name: str = "") -> None:
        self.id = next(_handle_ids)
        self.name = name or f"timer-{self.id}"
        self.interval_ms = interval_ms
        self.callback = callback
        self.fire_count = 0
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def fire(self) -> None:
        """Invoke the callback, logging instead of propagating any error."""
        if self.cancelled:
            return
        self.fire_count += 1
        try:
            self.callback()
        except Exception:
            logger.exception("Tick handler %s raised", self.name)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "armed"
        return f"TimerHandle({self.name!r}, {self.interval_ms}ms, {state})"


# =============================================================================
# TIMER SERVICE PROTOCOL
# =============================================================================


class TimerService(Protocol):
    """Owner of repeating timers."""

    def set_interval(self, callback: TickCallback, interval_ms: int, name: str = "") -> TimerHandle: ...

    def clear_interval(self, handle: TimerHandle | None) -> None: ...


# =============================================================================
# MANUAL TIMER SERVICE
# =============================================================================


class ManualTimerService:
    """
    Timer service driven by a virtual clock.

    Nothing happens until advance() is called. Used by hosts that already
    poll on their own schedule, by the simulator CLI, and by the tests.

    Attributes:
        now_ms: Current virtual time.

    Example:
        >>> timers = ManualTimerService()
        >>> ticks = []
        >>> handle = timers.set_interval(lambda: ticks.append(timers.now_ms), 50)
        >>> timers.advance(120)
        >>> ticks
        [50, 100]
    """

    def __init__(self) -> None:
        self.now_ms = 0
        self._due: dict[int, int] = {}
        self._handles: dict[int, TimerHandle] = {}

    def set_interval(self, callback: TickCallback, interval_ms: int, name: str = "") -> TimerHandle:
        handle = TimerHandle(callback, interval_ms, name)
        self._handles[handle.id] = handle
        self._due[handle.id] = self.now_ms + interval_ms
        logger.debug("Armed %r", handle)
        return handle

    def clear_interval(self, handle: TimerHandle | None) -> None:
        if handle is None:
            return
        handle.cancel()
        self._handles.pop(handle.id, None)
        self._due.pop(handle.id, None)

    @property
    def active_handles(self) -> list[TimerHandle]:
        return list(self._handles.values())

    def advance(self, ms: int) -> None:
        """
        Move the clock forward by ``ms``, firing every due timer in order.

        Timers armed or cleared by a callback take effect immediately: a
        timer armed during advance() fires once its own first period elapses
        within the advanced window.
        """
        target = self.now_ms + ms
        while True:
            due = [(when, hid) for hid, when in self._due.items() if when <= target]
            if not due:
                break
            when, hid = min(due)
            handle = self._handles[hid]
            self.now_ms = when
            self._due[hid] = when + handle.interval_ms
            handle.fire()
        self.now_ms = target

    def shutdown(self) -> None:
        for handle in list(self._handles.values()):
            self.clear_interval(handle)


# =============================================================================
# THREADED TIMER SERVICE
# =============================================================================


class ThreadedTimerService:
    """
    Timer service backed by one daemon thread per handle.

    Each thread waits on the handle's cancel event with the interval as
    timeout, so clearing a handle wakes and ends its thread immediately.
    """

    def __init__(self) -> None:
        self._threads: dict[int, threading.Thread] = {}
        self._handles: dict[int, TimerHandle] = {}
        self._lock = threading.Lock()

    def set_interval(self, callback: TickCallback, interval_ms: int, name: str = "") -> TimerHandle:
        handle = TimerHandle(callback, interval_ms, name)
        thread = threading.Thread(
            target=self._run,
            args=(handle,),
            name=f"pokeauto-{handle.name}",
            daemon=True,
        )
        with self._lock:
            self._handles[handle.id] = handle
            self._threads[handle.id] = thread
        thread.start()
        logger.debug("Armed %r", handle)
        return handle

    def clear_interval(self, handle: TimerHandle | None) -> None:
        if handle is None:
            return
        handle.cancel()
        with self._lock:
            self._handles.pop(handle.id, None)
            self._threads.pop(handle.id, None)

    def shutdown(self, timeout: float = 1.0) -> None:
        """Cancel every handle and wait briefly for the threads to exit."""
        with self._lock:
            handles = list(self._handles.values())
            threads = list(self._threads.values())
        for handle in handles:
            self.clear_interval(handle)
        for thread in threads:
            if thread is not threading.current_thread():
                thread.join(timeout)

    @staticmethod
    def _run(handle: TimerHandle) -> None:
        interval_s = handle.interval_ms / 1000.0
        # wait() returns True once cancelled
        while not handle._cancelled.wait(interval_s):
            handle.fire()
