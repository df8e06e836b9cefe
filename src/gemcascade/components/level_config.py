from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class LevelConfig:
    """Immutable per-level parameters, resolved once when the level starts."""
    level: int
    target_score: int
    moves: int
    description: str = ""
    # Seconds; enforced by the session layer, never by the engine.
    time_limit: Optional[int] = None
