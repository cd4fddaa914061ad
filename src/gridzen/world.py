import random

from esper import World

from gridzen.components.game_state import GameMode, GameState
from gridzen.factories.power_ups import ensure_default_power_ups_registered


def create_world(
    initial_mode: GameMode = GameMode.MENU,
    *,
    rng: random.Random | None = None,
) -> World:
    world = World()
    setattr(world, "random", rng or random.Random())

    # Register the global game state resource.
    world.create_entity(GameState(mode=initial_mode))

    # Register the power-up catalog if not already present.
    ensure_default_power_ups_registered()
    return world
