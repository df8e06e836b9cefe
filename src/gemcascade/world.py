import random

from esper import World

from gemcascade.config import EngineConfig
from gemcascade.components.cell import CellIdAllocator
from gemcascade.components.game_state import GameState
from gemcascade.components.gem_types import GemTypeRegistry, GemTypes
from gemcascade.components.inventory import Inventory
from gemcascade.components.turn_state import TurnState
from gemcascade.factories.levels import get_gem_types_for_level


def create_world(
    config: EngineConfig | None = None,
    *,
    rng: random.Random | None = None,
) -> World:
    config = (config or EngineConfig()).validate()
    world = World()
    setattr(world, "random", rng or random.Random())
    setattr(world, "next_cell_id", CellIdAllocator())
    setattr(world, "config", config)

    inventory = Inventory()
    inventory.reset(bombs=config.bomb_charges, reshuffles=config.reshuffle_charges)
    # Single session entity: level/score/combo context, tools and turn bookkeeping.
    world.create_entity(GameState(), inventory, TurnState())

    # Single registry entity with the ordinary kinds; spawning starts with the level-1 pool.
    world.create_entity(
        GemTypeRegistry(),
        GemTypes(spawnable=get_gem_types_for_level(1, config.level_one_gem_count)),
    )
    return world
