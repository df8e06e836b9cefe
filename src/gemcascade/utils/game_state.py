from __future__ import annotations

import logging

from esper import World

from gemcascade.components.game_state import GamePhase, GameState
from gemcascade.components.inventory import Inventory
from gemcascade.components.turn_state import TurnState
from gemcascade.events.bus import EVENT_GAME_PHASE_CHANGED, EventBus

logger = logging.getLogger(__name__)


def get_game_state(world: World) -> GameState:
    for _, state in world.get_component(GameState):
        return state
    raise RuntimeError("GameState not found")


def get_inventory(world: World) -> Inventory:
    for _, inventory in world.get_component(Inventory):
        return inventory
    raise RuntimeError("Inventory not found")


def get_or_create_turn_state(world: World) -> TurnState:
    """Return the shared TurnState component, creating it if absent."""
    for _, turn_state in world.get_component(TurnState):
        return turn_state
    turn_state = TurnState()
    world.create_entity(turn_state)
    return turn_state


def set_game_phase(world: World, event_bus: EventBus, phase: GamePhase) -> None:
    """Update the session phase and emit a change event when it differs."""

    previous_phase: GamePhase | None = None
    for _, state in world.get_component(GameState):
        previous_phase = state.phase
        if state.phase == phase:
            return
        state.phase = phase
        logger.debug("Game phase %s -> %s", previous_phase.name, phase.name)
        event_bus.emit(EVENT_GAME_PHASE_CHANGED, previous_phase=previous_phase, new_phase=phase)
        return
    # No existing GameState component; create a new one.
    world.create_entity(GameState(phase=phase))
    event_bus.emit(EVENT_GAME_PHASE_CHANGED, previous_phase=previous_phase, new_phase=phase)
