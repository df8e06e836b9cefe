from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods of systems that are not stored anywhere else alive.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SWAP INTENTS
# ============================================================================
EVENT_TILE_SWAP_REQUEST = "tile_swap_request"      # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_VALID = "tile_swap_valid"          # payload: src=(r,c), dst=(r,c), kind=SwapKind
EVENT_TILE_SWAP_INVALID = "tile_swap_invalid"      # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_FINALIZE = "tile_swap_finalize"    # payload: src, dst, kind=SwapKind, anchor=(r,c)|None, detonated=frozenset[int]


# ============================================================================
# RESOLUTION & CASCADES
# ============================================================================
EVENT_TURN_ACTION_STARTED = "turn_action_started"  # payload: source=str
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int, positions=[(r,c),...]
EVENT_MATCH_FOUND = "match_found"                  # payload: positions=[(r,c),...], ids=frozenset[int], size=int, reason=str
EVENT_SPECIAL_TRIGGERED = "special_triggered"      # payload: depth=int, positions=[(r,c),...]
EVENT_SPECIAL_CREATED = "special_created"          # payload: position=(r,c), cell_id=int, special=SpecialKind
EVENT_MATCH_CLEARED = "match_cleared"              # payload: positions=[(r,c),...], types=[(r,c,GemType),...], points=int, combo=int, board=Board
EVENT_GRAVITY_APPLIED = "gravity_applied"          # payload: moves=list[GravityMove], board=Board
EVENT_REFILL_COMPLETED = "refill_completed"        # payload: new_tiles=[(r,c),...], board=Board
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: depth=int, points=int, combo=int
EVENT_SCORE_CHANGED = "score_changed"              # payload: score=int, delta=int, combo=int


# ============================================================================
# BOARD LIFECYCLE
# ============================================================================
EVENT_BOARD_CHANGED = "board_changed"              # payload: reason=str, positions=list[(r,c)]
EVENT_BOARD_RESET_REQUEST = "board_reset_request"  # payload: reason=str
EVENT_BOARD_RESET = "board_reset"                  # payload: reason=str, board=Board


# ============================================================================
# TOOLS & INVENTORY
# ============================================================================
EVENT_TOOL_ACTIVATE_REQUEST = "tool_activate_request"  # payload: tool=ToolKind, row=int|None, col=int|None
EVENT_TOOL_USED = "tool_used"                          # payload: tool=ToolKind, remaining=int, positions=list[(r,c)]
EVENT_TOOL_UNAVAILABLE = "tool_unavailable"            # payload: tool=ToolKind, reason=str
EVENT_INVENTORY_CHANGED = "inventory_changed"          # payload: counts=dict[ToolKind,int]


# ============================================================================
# LEVELS & GAME FLOW
# ============================================================================
EVENT_LEVEL_START_REQUEST = "level_start_request"  # payload: level=int
EVENT_LEVEL_STARTED = "level_started"              # payload: level=int, target_score=int, moves=int, time_limit=int|None
EVENT_MOVES_CHANGED = "moves_changed"              # payload: moves_left=int
EVENT_LEVEL_COMPLETE = "level_complete"            # payload: level=int, score=int
EVENT_GAME_OVER = "game_over"                      # payload: level=int, score=int
EVENT_GAME_PHASE_CHANGED = "game_phase_changed"    # payload: previous_phase=GamePhase|None, new_phase=GamePhase
