"""Session context handed to the engine at every turn."""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class GamePhase(Enum):
    """High-level phases that gate which requests are accepted."""
    START = auto()
    PLAYING = auto()
    LEVEL_COMPLETE = auto()
    GAME_OVER = auto()


@dataclass
class GameState:
    """Singleton component holding the current level and its running counters."""
    phase: GamePhase = GamePhase.START
    level: int = 1
    score: int = 0
    combo: int = 0
    moves_left: int = 0
    target_score: int = 0
    time_limit: Optional[int] = None
