"""Presentation projection derived from consecutive logical snapshots.

Visual coordinates live only here; the engine never reads them. A renderer
interpolates each token from its visual position to its logical one.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from gemcascade.components.board import Board
from gemcascade.components.cell import Cell, GemType, Position

VisualPosition = Tuple[int, int]


@dataclass(slots=True)
class GravityMove:
    cell_id: int
    source: Position
    target: Position
    gem_type: Optional[GemType]
    spawned: bool = False


def _spawn_counts(board: Board, previous: Board) -> Dict[int, int]:
    """Fresh tokens per column: ids present in board but not in previous."""
    known = set(previous.ids())
    counts: Dict[int, int] = {}
    for cell in board:
        if cell.gem_type is not None and cell.id not in known:
            counts[cell.col] = counts.get(cell.col, 0) + 1
    return counts


def _spawn_origin(cell: Cell, counts: Dict[int, int]) -> VisualPosition:
    # Fresh tokens start stacked above row 0, as far up as the column's refill count.
    return cell.row - counts.get(cell.col, 0), cell.col


def project_visuals(board: Board, previous: Board | None = None) -> Dict[int, VisualPosition]:
    """Map each cell id to the position a renderer should draw it at before animating."""
    if previous is None:
        return {cell.id: cell.position for cell in board}
    before = previous.index()
    counts = _spawn_counts(board, previous)
    visuals: Dict[int, VisualPosition] = {}
    for cell in board:
        old = before.get(cell.id)
        if old is not None:
            visuals[cell.id] = old.position
        elif cell.gem_type is None:
            visuals[cell.id] = cell.position
        else:
            visuals[cell.id] = _spawn_origin(cell, counts)
    return visuals


def gravity_moves(before: Board, after: Board) -> List[GravityMove]:
    """Tokens that changed slot between two snapshots, plus tokens spawned into after."""
    previous = before.index()
    counts = _spawn_counts(after, before)
    moves: List[GravityMove] = []
    for cell in after:
        if cell.gem_type is None:
            continue
        old = previous.get(cell.id)
        if old is None:
            moves.append(GravityMove(
                cell_id=cell.id,
                source=_spawn_origin(cell, counts),
                target=cell.position,
                gem_type=cell.gem_type,
                spawned=True,
            ))
        elif old.position != cell.position:
            moves.append(GravityMove(
                cell_id=cell.id,
                source=old.position,
                target=cell.position,
                gem_type=cell.gem_type,
            ))
    return moves
