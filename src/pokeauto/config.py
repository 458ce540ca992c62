"""
Configuration dataclass for PokeAuto.

This module provides the central configuration for the automation engine.
Every cadence, batch size, and storage path is defined in a single
AutomationConfig dataclass, so tuning the engine never requires touching
the automation modules themselves.

Key Features:
    - Type-safe configuration using Python dataclasses
    - Automatic validation of parameters in __post_init__
    - Defaults matching the in-game automation script's refresh rates
    - Easy construction from JSON via from_dict()

Architecture Role:
    AutomationConfig is used by:
    - agent/automation.py: Wiring of every component
    - agent/focus.py: Focus strategy cadences and ball restocking
    - agent/dungeon.py: Dungeon loop and panel refresh cadences
    - agent/gym.py: Gym auto-fight cadence
    - settings.py: Optional JSON persistence path

Example Usage:
    >>> config = AutomationConfig(dungeon_tick_ms=100)
    >>> config.exp_refresh_ms
    10000
    >>> config = AutomationConfig.from_dict({"gem_refresh_ms": 5000})

Dependencies:
    - dataclasses: For the dataclass decorator
    - pathlib: For the settings file path
"""

from dataclasses import dataclass, fields
from pathlib import Path


@dataclass
class AutomationConfig:
    """
    Configuration for the PokeAuto automation engine.

    Attributes:
        settings_path (Path | None): JSON file the persisted settings are
            stored in. None keeps the settings in memory only.

        exp_refresh_ms (int): Cadence of the "Experience" focus.
        money_refresh_ms (int): Cadence of the "Money" focus.
        dungeon_token_refresh_ms (int): Cadence of the "Dungeon Tokens" focus.
        gem_refresh_ms (int): Cadence of every "<Type> Gems" focus.
        unlock_watch_ms (int): Cadence of the locked-strategy watcher.

        dungeon_tick_ms (int): Cadence of the dungeon auto-fight loop.
        panel_refresh_ms (int): Cadence of the dungeon panel refresh.
        gym_tick_ms (int): Cadence of the gym auto-fight loop.

        ball_purchase_batch (int): Ultra Balls bought per restock.
        notifications_enabled (bool): Default of the notification setting.

    Notes:
        - One game tick lasts 50ms; the fight loops run once per game tick
        - The config is validated in __post_init__ to catch invalid values early
    """

    # =============================================================================
    # STORAGE
    # =============================================================================

    # Where the key/value settings survive between sessions
    settings_path: Path | None = None

    # =============================================================================
    # FOCUS CADENCES
    # =============================================================================

    # Best route changes rarely, 10s is responsive enough
    exp_refresh_ms: int = 10_000

    money_refresh_ms: int = 10_000

    # Balls run out fast on token routes, so restock checks are more frequent
    dungeon_token_refresh_ms: int = 3_000

    gem_refresh_ms: int = 10_000

    # Unlocks are coarse game events
    unlock_watch_ms: int = 5_000

    # =============================================================================
    # FIGHT LOOP CADENCES
    # =============================================================================

    # One game tick
    dungeon_tick_ms: int = 50

    panel_refresh_ms: int = 200

    gym_tick_ms: int = 50

    # =============================================================================
    # MISC
    # =============================================================================

    ball_purchase_batch: int = 10

    notifications_enabled: bool = True

    def __post_init__(self) -> None:
        """
        Validate configuration after initialization.

        Raises:
            ValueError: If any cadence is < 1ms
            ValueError: If ball_purchase_batch < 1
        """
        if isinstance(self.settings_path, str):
            self.settings_path = Path(self.settings_path)

        for name in (
            "exp_refresh_ms",
            "money_refresh_ms",
            "dungeon_token_refresh_ms",
            "gem_refresh_ms",
            "unlock_watch_ms",
            "dungeon_tick_ms",
            "panel_refresh_ms",
            "gym_tick_ms",
        ):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(
                    f"{name} must be >= 1, got {value}. "
                    "A timer needs a positive interval."
                )

        if self.ball_purchase_batch < 1:
            raise ValueError(
                f"ball_purchase_batch must be >= 1, got {self.ball_purchase_batch}."
            )

    @classmethod
    def from_dict(cls, d: dict) -> "AutomationConfig":
        """
        Create an AutomationConfig from a dictionary, ignoring unknown keys.

        Args:
            d: Dictionary containing configuration values. Unknown keys are ignored.

        Returns:
            A new AutomationConfig. Missing keys use their default values.
        """
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in valid_keys})
