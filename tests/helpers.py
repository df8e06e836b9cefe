from __future__ import annotations

from typing import Dict, List, Sequence

from esper import World

from gemcascade.components.board import Board
from gemcascade.components.cell import GemType, Position, SpecialKind
from gemcascade.systems.board_ops import board_from_types, set_board, world_id_source

LETTERS: Dict[str, GemType] = {
    'R': GemType.RED,
    'B': GemType.BLUE,
    'G': GemType.GREEN,
    'Y': GemType.YELLOW,
    'P': GemType.PURPLE,
    'O': GemType.ORANGE,
    'D': GemType.DIAMOND,
    'S': GemType.STAR,
    'W': GemType.WILDCARD,
}
NAMES = {gem_type: letter for letter, gem_type in LETTERS.items()}


def quiet_layout(rows: int = 8, cols: int = 8, palette: str = "BGYPO") -> List[str]:
    """Layout where no two neighbours share a type, so it has no matches and no valid swaps."""
    return ["".join(palette[(c + 2 * r) % len(palette)] for c in range(cols)) for r in range(rows)]


def paint(layout: Sequence[str], cells: Dict[Position, str]) -> List[str]:
    grid = [list(row) for row in layout]
    for (row, col), letter in cells.items():
        grid[row][col] = letter
    return ["".join(row) for row in grid]


def board_from_rows(rows: Sequence[str], *, specials: Dict[Position, SpecialKind] | None = None, next_id=None) -> Board:
    return board_from_types([[LETTERS[ch] for ch in row] for row in rows], specials=specials, next_id=next_id)


def rows_of(board: Board) -> List[str]:
    return ["".join(NAMES.get(cell.gem_type, '.') for cell in row) for row in board.cells]


def install_rows(world: World, rows: Sequence[str], *, specials: Dict[Position, SpecialKind] | None = None) -> Board:
    """Replace the world's board with a hand-built one drawing ids from the world allocator."""
    board = board_from_rows(rows, specials=specials, next_id=world_id_source(world))
    set_board(world, board)
    return board
