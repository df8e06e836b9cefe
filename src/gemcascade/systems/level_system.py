import logging

from esper import World

from gemcascade.components.game_state import GamePhase
from gemcascade.components.level_config import LevelConfig
from gemcascade.config import EngineConfig
from gemcascade.events.bus import (
    EventBus,
    EVENT_BOARD_RESET_REQUEST,
    EVENT_CASCADE_COMPLETE,
    EVENT_GAME_OVER,
    EVENT_INVENTORY_CHANGED,
    EVENT_LEVEL_COMPLETE,
    EVENT_LEVEL_START_REQUEST,
    EVENT_LEVEL_STARTED,
    EVENT_MOVES_CHANGED,
    EVENT_TILE_SWAP_VALID,
)
from gemcascade.factories.levels import get_gem_types_for_level, get_level_config
from gemcascade.systems.board_ops import set_spawnable_gem_types
from gemcascade.utils.game_state import get_game_state, get_inventory, get_or_create_turn_state, set_game_phase

logger = logging.getLogger(__name__)


class LevelSystem:
    """Level lifecycle: setup, move accounting and the win/loss check after every settled turn."""

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_LEVEL_START_REQUEST, self.on_level_start_request)
        self.event_bus.subscribe(EVENT_TILE_SWAP_VALID, self.on_swap_valid)
        self.event_bus.subscribe(EVENT_CASCADE_COMPLETE, self.on_cascade_complete)

    def on_level_start_request(self, sender, **kwargs):
        self.start_level(kwargs.get("level", 1))

    def start_level(self, level: int) -> LevelConfig:
        level_config = get_level_config(level)
        config: EngineConfig = getattr(self.world, "config", None) or EngineConfig()
        set_spawnable_gem_types(
            self.world, get_gem_types_for_level(level, config.level_one_gem_count)
        )

        state = get_game_state(self.world)
        state.level = level_config.level
        state.score = 0
        state.combo = 0
        state.moves_left = level_config.moves
        state.target_score = level_config.target_score
        state.time_limit = level_config.time_limit

        turn = get_or_create_turn_state(self.world)
        turn.action_source = None
        turn.cascade_active = False
        turn.cascade_depth = 0

        inventory = get_inventory(self.world)
        inventory.reset(bombs=config.bomb_charges, reshuffles=config.reshuffle_charges)
        self.event_bus.emit(EVENT_INVENTORY_CHANGED, counts=dict(inventory.counts))

        self.event_bus.emit(EVENT_BOARD_RESET_REQUEST, reason="level_start")
        set_game_phase(self.world, self.event_bus, GamePhase.PLAYING)
        logger.info(
            "Level %d started: %d points in %d moves",
            level_config.level, level_config.target_score, level_config.moves,
        )
        self.event_bus.emit(
            EVENT_LEVEL_STARTED,
            level=level_config.level,
            target_score=level_config.target_score,
            moves=level_config.moves,
            time_limit=level_config.time_limit,
        )
        self.event_bus.emit(EVENT_MOVES_CHANGED, moves_left=state.moves_left)
        return level_config

    def on_swap_valid(self, sender, **kwargs):
        state = get_game_state(self.world)
        if state.phase is not GamePhase.PLAYING:
            return
        state.moves_left = max(0, state.moves_left - 1)
        self.event_bus.emit(EVENT_MOVES_CHANGED, moves_left=state.moves_left)

    def on_cascade_complete(self, sender, **kwargs):
        state = get_game_state(self.world)
        if state.phase is not GamePhase.PLAYING:
            return
        if state.score >= state.target_score:
            set_game_phase(self.world, self.event_bus, GamePhase.LEVEL_COMPLETE)
            logger.info("Level %d complete with %d points", state.level, state.score)
            self.event_bus.emit(EVENT_LEVEL_COMPLETE, level=state.level, score=state.score)
        elif state.moves_left <= 0:
            set_game_phase(self.world, self.event_bus, GamePhase.GAME_OVER)
            logger.info("Game over on level %d with %d/%d points", state.level, state.score, state.target_score)
            self.event_bus.emit(EVENT_GAME_OVER, level=state.level, score=state.score)
