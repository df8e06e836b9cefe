import logging
from typing import Tuple

from esper import World

from gemcascade.components.game_state import GamePhase
from gemcascade.events.bus import (
    EventBus,
    EVENT_TILE_SWAP_FINALIZE,
    EVENT_TILE_SWAP_INVALID,
    EVENT_TILE_SWAP_REQUEST,
    EVENT_TILE_SWAP_VALID,
)
from gemcascade.systems.board_ops import get_board, set_board
from gemcascade.systems.swap_rules import SwapOutcome, plan_swap
from gemcascade.utils.game_state import get_game_state, get_or_create_turn_state

logger = logging.getLogger(__name__)


class MatchSystem:
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        event_bus.subscribe(EVENT_TILE_SWAP_REQUEST, self.on_swap_request)

    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if not src or not dst:
            return
        src, dst = tuple(src), tuple(dst)
        state = get_game_state(self.world)
        if state.phase is not GamePhase.PLAYING:
            logger.debug("Ignoring swap %s -> %s during %s", src, dst, state.phase.name)
            return
        if get_or_create_turn_state(self.world).cascade_active:
            logger.debug("Ignoring swap %s -> %s while a cascade is resolving", src, dst)
            return
        outcome = self.plan(src, dst)
        if not outcome.is_valid:
            # A fresh action that cleared nothing breaks the chain.
            state.combo = 0
            self.event_bus.emit(EVENT_TILE_SWAP_INVALID, src=src, dst=dst)
            return
        set_board(self.world, outcome.board)
        self.event_bus.emit(EVENT_TILE_SWAP_VALID, src=src, dst=dst, kind=outcome.kind)
        self.event_bus.emit(
            EVENT_TILE_SWAP_FINALIZE,
            src=src,
            dst=dst,
            kind=outcome.kind,
            anchor=outcome.anchor,
            detonated=outcome.detonated,
        )

    def plan(self, a: Tuple[int, int], b: Tuple[int, int]) -> SwapOutcome:
        return plan_swap(get_board(self.world), a, b)
