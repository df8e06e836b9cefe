from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class TurnState:
    """Tracks the turn currently being resolved."""

    action_source: Optional[str] = None
    cascade_active: bool = False
    cascade_depth: int = 0
