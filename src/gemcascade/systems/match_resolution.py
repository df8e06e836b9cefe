import logging
from typing import FrozenSet, Optional, Tuple

from esper import World

from gemcascade.components.cell import CellStatus
from gemcascade.config import EngineConfig
from gemcascade.events.bus import (
    EventBus,
    EVENT_BOARD_CHANGED,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_GRAVITY_APPLIED,
    EVENT_MATCH_CLEARED,
    EVENT_MATCH_FOUND,
    EVENT_REFILL_COMPLETED,
    EVENT_SCORE_CHANGED,
    EVENT_SPECIAL_CREATED,
    EVENT_SPECIAL_TRIGGERED,
    EVENT_TILE_SWAP_FINALIZE,
    EVENT_TURN_ACTION_STARTED,
)
from gemcascade.presentation import gravity_moves
from gemcascade.systems.board_ops import get_board, get_gem_registry, set_board, world_id_source
from gemcascade.systems.resolution import PassReport, ResolutionEngine, TurnContext, TurnResult
from gemcascade.utils.game_state import get_game_state, get_or_create_turn_state

logger = logging.getLogger(__name__)


class MatchResolutionSystem:
    """Runs the resolution loop for swaps and board-altering effects and publishes every pass."""

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_TILE_SWAP_FINALIZE, self.on_swap_finalize)
        self.event_bus.subscribe(EVENT_BOARD_CHANGED, self.on_board_changed)
        self._reason = "swap"

    def on_swap_finalize(self, sender, **kwargs):
        self.resolve(
            source="swap",
            anchor=kwargs.get("anchor"),
            detonated=kwargs.get("detonated") or frozenset(),
        )

    def on_board_changed(self, sender, **kwargs):
        # Triggered after tool effects (or other board-altering events). Run same pipeline.
        state = get_or_create_turn_state(self.world)
        if state.cascade_active:
            return
        self.resolve(source=kwargs.get("reason", "board_changed"))

    def resolve(
        self,
        *,
        source: str,
        anchor: Optional[Tuple[int, int]] = None,
        detonated: FrozenSet[int] = frozenset(),
    ) -> TurnResult:
        game_state = get_game_state(self.world)
        turn = get_or_create_turn_state(self.world)
        turn.action_source = source
        turn.cascade_active = True
        turn.cascade_depth = 0
        self._reason = source
        self.event_bus.emit(EVENT_TURN_ACTION_STARTED, source=source)
        context = TurnContext(
            level=game_state.level,
            combo=game_state.combo,
            anchor=anchor,
            detonated=frozenset(detonated),
        )
        try:
            result = self._engine().resolve(get_board(self.world), context)
        finally:
            turn.cascade_active = False
        set_board(self.world, result.board)
        game_state.combo = result.combo
        if result.points:
            game_state.score += result.points
            self.event_bus.emit(
                EVENT_SCORE_CHANGED,
                score=game_state.score,
                delta=result.points,
                combo=game_state.combo,
            )
        turn.action_source = None
        logger.debug(
            "Turn from %s settled after %d passes: +%d points, combo %d",
            source, result.depth, result.points, result.combo,
        )
        self.event_bus.emit(
            EVENT_CASCADE_COMPLETE,
            depth=result.depth,
            points=result.points,
            combo=result.combo,
        )
        return result

    def _engine(self) -> ResolutionEngine:
        config: EngineConfig = getattr(self.world, "config", None) or EngineConfig()
        return ResolutionEngine(
            get_gem_registry(self.world).spawnable_types(),
            base_points=config.base_points,
            rng=getattr(self.world, "random", None),
            next_id=world_id_source(self.world),
            wildcard_fallback_targets=config.wildcard_fallback_targets,
            max_passes=config.max_cascade_passes,
            observer=self._publish_pass,
        )

    def _publish_pass(self, report: PassReport) -> None:
        turn = get_or_create_turn_state(self.world)
        turn.cascade_depth = report.depth
        cleared = report.cleared_board
        # Deterministic ordering for events/tests
        positions = sorted(cleared.positions_of(report.matched_ids))
        natural = sorted(cleared.positions_of(report.natural_ids))
        self.event_bus.emit(EVENT_CASCADE_STEP, depth=report.depth, positions=positions)
        self.event_bus.emit(
            EVENT_MATCH_FOUND,
            positions=natural,
            ids=report.natural_ids,
            size=len(natural),
            reason=self._reason,
        )
        if report.special_triggered:
            self.event_bus.emit(EVENT_SPECIAL_TRIGGERED, depth=report.depth, positions=positions)
        for cell_id, special in report.created.items():
            cell = cleared.find(cell_id)
            self.event_bus.emit(
                EVENT_SPECIAL_CREATED,
                position=cell.position,
                cell_id=cell_id,
                special=special,
            )
        removed = [cell for cell in cleared if cell.status is CellStatus.MATCHED]
        self.event_bus.emit(
            EVENT_MATCH_CLEARED,
            positions=[cell.position for cell in removed],
            types=[(cell.row, cell.col, cell.gem_type) for cell in removed],
            points=report.points,
            combo=report.combo,
            board=cleared,
        )
        self.event_bus.emit(
            EVENT_GRAVITY_APPLIED,
            moves=gravity_moves(cleared, report.collapsed_board),
            board=report.collapsed_board,
        )
        if report.spawned:
            self.event_bus.emit(
                EVENT_REFILL_COMPLETED,
                new_tiles=report.spawned,
                board=report.refilled_board,
            )
        set_board(self.world, report.settled_board)
