import logging

from esper import World

from gemcascade.components.board import Board
from gemcascade.config import EngineConfig
from gemcascade.events.bus import EVENT_BOARD_RESET, EVENT_BOARD_RESET_REQUEST, EventBus
from gemcascade.systems.board_ops import (
    create_initial_board,
    get_board_entity,
    get_gem_registry,
    set_board,
    world_id_source,
)

logger = logging.getLogger(__name__)


class BoardSystem:
    """Owns the board entity and regenerates the whole board on request."""

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_BOARD_RESET_REQUEST, self.on_board_reset_request)
        if get_board_entity(self.world) is None:
            set_board(self.world, self._generate())
        self.board_entity = get_board_entity(self.world)

    def _generate(self) -> Board:
        config: EngineConfig = getattr(self.world, "config", None) or EngineConfig()
        allowed = get_gem_registry(self.world).spawnable_types()
        return create_initial_board(
            allowed,
            rows=config.rows,
            cols=config.cols,
            rng=getattr(self.world, "random", None),
            next_id=world_id_source(self.world),
        )

    def regenerate(self, reason: str = "reset") -> Board:
        board = self._generate()
        set_board(self.world, board)
        logger.debug("Board regenerated (%s)", reason)
        self.event_bus.emit(EVENT_BOARD_RESET, reason=reason, board=board)
        return board

    def on_board_reset_request(self, sender, **kwargs):
        self.regenerate(kwargs.get("reason", "reset"))
