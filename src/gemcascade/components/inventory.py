from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class ToolKind(Enum):
    BOMB = "bomb"
    RESHUFFLE = "reshuffle"


@dataclass(slots=True)
class Inventory:
    """Per-level consumable tool counters.

    counts: mapping of tool kind -> charges left. Counters never go below zero.
    """
    counts: Dict[ToolKind, int] = field(default_factory=dict)

    def reset(self, *, bombs: int, reshuffles: int) -> None:
        self.counts = {ToolKind.BOMB: max(0, bombs), ToolKind.RESHUFFLE: max(0, reshuffles)}

    def remaining(self, tool: ToolKind) -> int:
        return self.counts.get(tool, 0)

    def can_use(self, tool: ToolKind) -> bool:
        return self.remaining(tool) > 0

    def consume(self, tool: ToolKind) -> bool:
        """Spend one charge; returns False and changes nothing when none are left."""
        if not self.can_use(tool):
            return False
        self.counts[tool] -= 1
        return True
