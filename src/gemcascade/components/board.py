from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from gemcascade.components.cell import Cell, Position
from gemcascade.config import ConfigurationError


@dataclass(frozen=True, slots=True)
class Board:
    """Immutable rows x cols snapshot; every slot always holds exactly one Cell.

    Transforms never touch an existing Board, they build a new one through
    ``replace_cells`` / ``map_cells``.
    """
    rows: int
    cols: int
    cells: Tuple[Tuple[Cell, ...], ...]

    def __post_init__(self) -> None:
        if self.rows <= 0 or self.cols <= 0:
            raise ConfigurationError("Board dimensions must be positive")
        if len(self.cells) != self.rows:
            raise ConfigurationError(f"Board row count {len(self.cells)} does not match expected {self.rows}")
        for r, row in enumerate(self.cells):
            if len(row) != self.cols:
                raise ConfigurationError("All board rows must match expected number of columns.")
            for c, cell in enumerate(row):
                if cell.row != r or cell.col != c:
                    raise ConfigurationError(
                        f"Cell {cell.id} claims {(cell.row, cell.col)} but sits in slot {(r, c)}"
                    )

    @classmethod
    def from_grid(cls, grid: Sequence[Sequence[Cell]]) -> "Board":
        if not grid:
            raise ConfigurationError("Board needs at least one row")
        return cls(rows=len(grid), cols=len(grid[0]), cells=tuple(tuple(row) for row in grid))

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def get(self, row: int, col: int) -> Optional[Cell]:
        if not self.in_bounds(row, col):
            return None
        return self.cells[row][col]

    def cell_at(self, row: int, col: int) -> Cell:
        if not self.in_bounds(row, col):
            raise IndexError(f"Position {(row, col)} outside {self.rows}x{self.cols} board")
        return self.cells[row][col]

    def __iter__(self) -> Iterator[Cell]:
        for row in self.cells:
            yield from row

    def ids(self) -> List[int]:
        return [cell.id for cell in self]

    def index(self) -> Dict[int, Cell]:
        return {cell.id: cell for cell in self}

    def find(self, cell_id: int) -> Optional[Cell]:
        for cell in self:
            if cell.id == cell_id:
                return cell
        return None

    def positions_of(self, cell_ids) -> List[Position]:
        wanted = set(cell_ids)
        return [cell.position for cell in self if cell.id in wanted]

    def column(self, col: int) -> List[Cell]:
        return [self.cells[r][col] for r in range(self.rows)]

    def to_grid(self) -> List[List[Cell]]:
        return [list(row) for row in self.cells]

    def replace_cells(self, updates: Mapping[Position, Cell]) -> "Board":
        if not updates:
            return self
        grid = self.to_grid()
        for (row, col), cell in updates.items():
            grid[row][col] = cell
        return Board.from_grid(grid)

    def map_cells(self, fn: Callable[[Cell], Cell]) -> "Board":
        return Board.from_grid([[fn(cell) for cell in row] for row in self.cells])
