"""Special-token rules: what a match group creates and what an existing special destroys."""
from __future__ import annotations

import random
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from gemcascade.components.board import Board
from gemcascade.components.cell import Cell, CellStatus, GemType, Position, SpecialKind
from gemcascade.constants import WILDCARD_FALLBACK_TARGETS


def classify_match_group(group: Sequence[Cell]) -> SpecialKind:
    """Map a connected group to the special it creates, purely by size and shape."""
    size = len(group)
    if size < 4:
        return SpecialKind.NONE
    rows = {cell.row for cell in group}
    cols = {cell.col for cell in group}
    if size >= 5:
        if len(rows) == 1 or len(cols) == 1:
            return SpecialKind.WILDCARD
        # T, L and plus shapes
        return SpecialKind.AREA_CLEAR
    # A horizontal four clears its column, a vertical four clears its row.
    if len(rows) == 1:
        return SpecialKind.COLUMN_CLEAR
    if len(cols) == 1:
        return SpecialKind.ROW_CLEAR
    return SpecialKind.NONE


def choose_special_cell(group: Sequence[Cell], anchor: Optional[Position] = None) -> Cell:
    """Pick the surviving cell: the swap destination when it belongs to the group, else the midpoint."""
    if anchor is not None:
        for cell in group:
            if cell.position == anchor:
                return cell
    return group[len(group) // 2]


def special_gem_type(cell: Cell, special: SpecialKind) -> Optional[GemType]:
    if special is SpecialKind.WILDCARD:
        return GemType.WILDCARD
    return cell.gem_type


def square_area(board: Board, center: Position, radius: int) -> List[Cell]:
    """Cells within a (2r+1)^2 square around center, clamped to the board."""
    row, col = center
    cells: List[Cell] = []
    for r in range(row - radius, row + radius + 1):
        for c in range(col - radius, col + radius + 1):
            cell = board.get(r, c)
            if cell is not None:
                cells.append(cell)
    return cells


def rows_area(board: Board, rows: Iterable[int]) -> List[Cell]:
    return [cell for r in rows if 0 <= r < board.rows for cell in board.cells[r]]


def columns_area(board: Board, cols: Iterable[int]) -> List[Cell]:
    return [board.cells[r][c] for c in cols if 0 <= c < board.cols for r in range(board.rows)]


def get_bomb_affected_cells(board: Board, center: Position) -> List[int]:
    """Ids in the fixed 3x3 area around an arbitrary tool-activation point."""
    return [cell.id for cell in square_area(board, center, 1)]


def get_special_blast_targets(
    board: Board,
    cell: Cell,
    *,
    rng: random.Random | None = None,
    fallback_count: int = WILDCARD_FALLBACK_TARGETS,
) -> List[Cell]:
    """Cells detonated by an already placed special token.

    A wildcard going off without a swap partner hits ``fallback_count`` distinct random
    cells drawn from ``rng``; pass a seeded generator for reproducible results.
    """
    if cell.special is SpecialKind.ROW_CLEAR:
        return rows_area(board, [cell.row])
    if cell.special is SpecialKind.COLUMN_CLEAR:
        return columns_area(board, [cell.col])
    if cell.special is SpecialKind.AREA_CLEAR:
        return square_area(board, cell.position, 1)
    if cell.special is SpecialKind.WILDCARD:
        rng = rng or random.Random()
        all_cells = list(board)
        return rng.sample(all_cells, min(fallback_count, len(all_cells)))
    return []


def combine_specials(
    board: Board,
    first: Cell,
    second: Cell,
    destination: Position,
) -> Board:
    """Pre-mark the cells cleared when two specials are swapped directly into each other.

    ``board`` is the swapped board; ``first`` and ``second`` are the two specials as they
    stood before the swap, and ``destination`` is the swap target slot.
    """
    kinds = {first.special, second.special}
    if kinds == {SpecialKind.WILDCARD}:
        return board.map_cells(lambda cell: cell.with_status(CellStatus.MATCHED))

    if SpecialKind.WILDCARD in kinds:
        wildcard, other = (first, second) if first.special is SpecialKind.WILDCARD else (second, first)

        def convert(cell: Cell) -> Cell:
            if cell.id == wildcard.id:
                return cell.with_status(CellStatus.MATCHED)
            if cell.gem_type == other.gem_type:
                # Upgraded so the expansion pass detonates every one of them.
                return replace(cell, special=other.special, status=CellStatus.MATCHED)
            return cell

        return board.map_cells(convert)

    blast_ids = {first.id, second.id}
    # Each special blasts from the slot it left and from the slot it landed on.
    for gem in (first, second):
        blast_ids.update(target.id for target in get_special_blast_targets(board, gem))
        landed = board.find(gem.id)
        blast_ids.update(target.id for target in get_special_blast_targets(board, landed))
    row, col = destination
    if kinds == {SpecialKind.AREA_CLEAR}:
        blast_ids.update(cell.id for cell in square_area(board, destination, 2))
    elif SpecialKind.AREA_CLEAR in kinds:
        blast_ids.update(cell.id for cell in rows_area(board, range(row - 1, row + 2)))
        blast_ids.update(cell.id for cell in columns_area(board, range(col - 1, col + 2)))
    return board.map_cells(
        lambda cell: cell.with_status(CellStatus.MATCHED) if cell.id in blast_ids else cell
    )


def sweep_wildcard(board: Board, wildcard: Cell, partner: Cell) -> Board:
    """Wildcard swapped with an ordinary gem: clear both and every gem of the partner's type."""
    cleared = {wildcard.id, partner.id}

    def mark(cell: Cell) -> Cell:
        if cell.id in cleared or cell.gem_type == partner.gem_type:
            return cell.with_status(CellStatus.MATCHED)
        return cell

    return board.map_cells(mark)
