from __future__ import annotations

import itertools
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

Position = Tuple[int, int]


class GemType(Enum):
    """Token kinds. WILDCARD only appears as the product of a 5+ collinear match."""
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"
    ORANGE = "orange"
    DIAMOND = "diamond"
    STAR = "star"
    WILDCARD = "wildcard"


# Ordinary kinds in the order levels unlock them.
ORDINARY_GEM_TYPES = (
    GemType.RED,
    GemType.BLUE,
    GemType.GREEN,
    GemType.YELLOW,
    GemType.PURPLE,
    GemType.ORANGE,
    GemType.DIAMOND,
    GemType.STAR,
)


class SpecialKind(Enum):
    NONE = "none"
    ROW_CLEAR = "row_clear"
    COLUMN_CLEAR = "column_clear"
    AREA_CLEAR = "area_clear"
    WILDCARD = "wildcard"


class CellStatus(Enum):
    IDLE = "idle"
    SWAPPING = "swapping"
    MATCHED = "matched"
    DROPPING = "dropping"
    EMPTY = "empty"
    CREATED = "created"


VACANT_STATUSES = frozenset({CellStatus.MATCHED, CellStatus.EMPTY})


@dataclass(frozen=True, slots=True)
class Cell:
    """One slot's token.

    id follows the physical token: gravity moves the same id to a new row.
    gem_type is None only for EMPTY placeholders left behind by a column collapse.
    """
    id: int
    gem_type: Optional[GemType]
    row: int
    col: int
    special: SpecialKind = SpecialKind.NONE
    status: CellStatus = CellStatus.IDLE

    @property
    def position(self) -> Position:
        return self.row, self.col

    @property
    def is_special(self) -> bool:
        return self.special is not SpecialKind.NONE

    @property
    def is_vacant(self) -> bool:
        return self.status in VACANT_STATUSES

    def with_status(self, status: CellStatus) -> "Cell":
        return replace(self, status=status)

    def moved_to(self, row: int, col: int, status: CellStatus | None = None) -> "Cell":
        return replace(self, row=row, col=col, status=self.status if status is None else status)


class CellIdAllocator:
    """Monotonic identifier source; every spawned token and placeholder takes the next value."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def __call__(self) -> int:
        return next(self._counter)
