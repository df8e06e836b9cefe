import logging

from esper import World

from gemcascade.components.game_state import GamePhase
from gemcascade.components.inventory import ToolKind
from gemcascade.events.bus import (
    EventBus,
    EVENT_BOARD_CHANGED,
    EVENT_BOARD_RESET_REQUEST,
    EVENT_INVENTORY_CHANGED,
    EVENT_TOOL_ACTIVATE_REQUEST,
    EVENT_TOOL_UNAVAILABLE,
    EVENT_TOOL_USED,
)
from gemcascade.systems.board_ops import get_board, mark_cleared, set_board
from gemcascade.systems.specials import get_bomb_affected_cells
from gemcascade.utils.game_state import get_game_state, get_inventory, get_or_create_turn_state

logger = logging.getLogger(__name__)


class ToolSystem:
    """Spends inventory charges on the bomb and reshuffle tools."""

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_TOOL_ACTIVATE_REQUEST, self.on_tool_activate_request)

    def on_tool_activate_request(self, sender, **kwargs):
        tool = kwargs.get("tool")
        if tool is None:
            return
        try:
            tool = ToolKind(tool)
        except ValueError:
            logger.warning("Unknown tool %r requested", tool)
            return
        if get_game_state(self.world).phase is not GamePhase.PLAYING:
            return
        if get_or_create_turn_state(self.world).cascade_active:
            return
        if tool is ToolKind.BOMB:
            self._use_bomb(kwargs.get("row"), kwargs.get("col"))
        else:
            self._use_reshuffle()

    def _refuse(self, tool: ToolKind, reason: str) -> None:
        logger.warning("Tool %s refused: %s", tool.value, reason)
        self.event_bus.emit(EVENT_TOOL_UNAVAILABLE, tool=tool, reason=reason)

    def _spend(self, tool: ToolKind) -> bool:
        inventory = get_inventory(self.world)
        if not inventory.consume(tool):
            self._refuse(tool, "no_charges")
            return False
        self.event_bus.emit(EVENT_INVENTORY_CHANGED, counts=dict(inventory.counts))
        return True

    def _use_bomb(self, row, col) -> None:
        if row is None or col is None:
            self._refuse(ToolKind.BOMB, "no_target")
            return
        board = get_board(self.world)
        affected = get_bomb_affected_cells(board, (row, col))
        if not affected:
            self._refuse(ToolKind.BOMB, "no_target")
            return
        if not self._spend(ToolKind.BOMB):
            return
        cleared = mark_cleared(board, affected)
        set_board(self.world, cleared)
        positions = sorted(cleared.positions_of(affected))
        self.event_bus.emit(
            EVENT_TOOL_USED,
            tool=ToolKind.BOMB,
            remaining=get_inventory(self.world).remaining(ToolKind.BOMB),
            positions=positions,
        )
        self.event_bus.emit(EVENT_BOARD_CHANGED, reason="bomb", positions=positions)

    def _use_reshuffle(self) -> None:
        if not self._spend(ToolKind.RESHUFFLE):
            return
        self.event_bus.emit(
            EVENT_TOOL_USED,
            tool=ToolKind.RESHUFFLE,
            remaining=get_inventory(self.world).remaining(ToolKind.RESHUFFLE),
            positions=[],
        )
        self.event_bus.emit(EVENT_BOARD_RESET_REQUEST, reason="reshuffle")
