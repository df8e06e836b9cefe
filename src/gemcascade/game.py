"""Headless session: one world, one bus and every system wired together."""
from __future__ import annotations

import random
from typing import Tuple

from esper import World

from gemcascade.components.board import Board
from gemcascade.components.game_state import GamePhase, GameState
from gemcascade.components.inventory import Inventory, ToolKind
from gemcascade.config import EngineConfig
from gemcascade.events.bus import (
    EventBus,
    EVENT_LEVEL_START_REQUEST,
    EVENT_TILE_SWAP_REQUEST,
    EVENT_TOOL_ACTIVATE_REQUEST,
)
from gemcascade.presentation import project_visuals
from gemcascade.systems.board import BoardSystem
from gemcascade.systems.board_ops import get_board
from gemcascade.systems.level_system import LevelSystem
from gemcascade.systems.match import MatchSystem
from gemcascade.systems.match_resolution import MatchResolutionSystem
from gemcascade.systems.swap_rules import find_valid_swaps
from gemcascade.systems.tool_system import ToolSystem
from gemcascade.utils.game_state import get_game_state, get_inventory
from gemcascade.world import create_world

Position = Tuple[int, int]


class Match3Game:
    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
    ):
        self.event_bus = event_bus or EventBus()
        self.world: World = create_world(config, rng=rng)
        self.board_system = BoardSystem(self.world, self.event_bus)
        self.match_system = MatchSystem(self.world, self.event_bus)
        self.match_resolution_system = MatchResolutionSystem(self.world, self.event_bus)
        self.tool_system = ToolSystem(self.world, self.event_bus)
        self.level_system = LevelSystem(self.world, self.event_bus)

    # -- intents --------------------------------------------------------------

    def start_level(self, level: int = 1) -> None:
        self.event_bus.emit(EVENT_LEVEL_START_REQUEST, level=level)

    def advance_level(self) -> None:
        """Start the level after the one just completed."""
        if self.phase is not GamePhase.LEVEL_COMPLETE:
            raise RuntimeError(f"Cannot advance from phase {self.phase.name}")
        self.start_level(self.state.level + 1)

    def swap(self, src: Position, dst: Position) -> None:
        self.event_bus.emit(EVENT_TILE_SWAP_REQUEST, src=src, dst=dst)

    def use_tool(self, tool: ToolKind, row: int | None = None, col: int | None = None) -> None:
        self.event_bus.emit(EVENT_TOOL_ACTIVATE_REQUEST, tool=tool, row=row, col=col)

    # -- read side ------------------------------------------------------------

    @property
    def board(self) -> Board:
        return get_board(self.world)

    @property
    def state(self) -> GameState:
        return get_game_state(self.world)

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    @property
    def inventory(self) -> Inventory:
        return get_inventory(self.world)

    def valid_swaps(self):
        return find_valid_swaps(self.board)

    def visuals(self, previous: Board | None = None):
        return project_visuals(self.board, previous)

