"""PokeAuto - Automation decision engine for a Pokémon clicker game.

Picks the best location for the player's current objective and fully
automates dungeon runs.
"""

__version__ = "0.1.0"

from pokeauto.agent.automation import Automation
from pokeauto.config import AutomationConfig
from pokeauto.simulator import SimulatedGame

__all__ = ["Automation", "AutomationConfig", "SimulatedGame", "__version__"]
