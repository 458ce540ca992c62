"""
Advisory mutual exclusion between PokeAuto automations.

Two automations may want control of the player's position at the same time:
the dungeon auto-fight loop and the focus strategies that move the player
around the map. Neither may simply stop the other (the other might be in
the middle of a run), so they cooperate: the requester leaves a request on
the owner's slot, and the owner honours it on its own next tick.

Architecture Role:
    Focus strategy → mutex.request_yield("dungeon", STOP_AFTER_THIS_RUN)
    DungeonExplorer tick → mutex.mode("dungeon") → stops at the next gate

Modes:
    - NONE: No request pending.
    - STOP_AFTER_THIS_RUN: Finish the current run, then turn off instead of
      starting another one.
    - STOP_IMMEDIATELY: Turn off on the next tick, even mid-run.
    - BYPASS_USER_SETTINGS: Proceed even where a user policy would stop the
      owner (one-shot administrative runs).

Dependencies:
    - threading: Requests may arrive from another timer thread
"""

from __future__ import annotations

import logging
import threading
from enum import IntEnum

logger = logging.getLogger(__name__)


class YieldMode(IntEnum):
    """Request left on an automation's mutex slot."""

    NONE = 0
    STOP_AFTER_THIS_RUN = 1
    BYPASS_USER_SETTINGS = 2
    STOP_IMMEDIATELY = 3


class AutomationMutex:
    """
    Per-owner request slots.

    Requests never block and never expire on their own: the owner clears its
    slot once the request has been honoured.
    """

    def __init__(self) -> None:
        self._modes: dict[str, YieldMode] = {}
        self._lock = threading.Lock()

    def request_yield(
        self,
        owner_id: str,
        mode: YieldMode = YieldMode.STOP_AFTER_THIS_RUN,
    ) -> None:
        if mode not in (YieldMode.STOP_AFTER_THIS_RUN, YieldMode.STOP_IMMEDIATELY):
            raise ValueError(f"{mode!r} is not a yield mode")
        with self._lock:
            previous = self._modes.get(owner_id, YieldMode.NONE)
            self._modes[owner_id] = mode
        if previous != mode:
            logger.info("Requested %s to %s", owner_id, mode.name.lower())

    def request_bypass(self, owner_id: str) -> None:
        with self._lock:
            self._modes[owner_id] = YieldMode.BYPASS_USER_SETTINGS
        logger.info("Requested %s to bypass user settings", owner_id)

    def mode(self, owner_id: str) -> YieldMode:
        with self._lock:
            return self._modes.get(owner_id, YieldMode.NONE)

    def is_bypassed(self, owner_id: str) -> bool:
        return self.mode(owner_id) == YieldMode.BYPASS_USER_SETTINGS

    def clear(self, owner_id: str) -> None:
        with self._lock:
            self._modes.pop(owner_id, None)
