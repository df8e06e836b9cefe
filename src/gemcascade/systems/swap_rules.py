"""Classify a swap intent and prepare the board the resolution loop starts from."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from gemcascade.components.board import Board
from gemcascade.components.cell import Position, SpecialKind
from gemcascade.systems.board_ops import find_matches, is_adjacent, swap_cells
from gemcascade.systems.specials import combine_specials, sweep_wildcard

logger = logging.getLogger(__name__)


class SwapKind(Enum):
    INVALID = "invalid"
    MATCH = "match"
    WILDCARD_SWEEP = "wildcard_sweep"
    SPECIAL_COMBO = "special_combo"


@dataclass(frozen=True, slots=True)
class SwapOutcome:
    """Result of planning a swap.

    board is the original snapshot for an invalid swap, otherwise the swapped snapshot
    with any combination effects pre-marked as MATCHED.
    """
    kind: SwapKind
    board: Board
    anchor: Optional[Position] = None
    detonated: FrozenSet[int] = frozenset()

    @property
    def is_valid(self) -> bool:
        return self.kind is not SwapKind.INVALID

    @property
    def consumes_move(self) -> bool:
        return self.is_valid


def plan_swap(board: Board, src: Position, dst: Position) -> SwapOutcome:
    if not (board.in_bounds(*src) and board.in_bounds(*dst)) or not is_adjacent(src, dst):
        logger.debug("Rejected swap %s -> %s: not two adjacent slots", src, dst)
        return SwapOutcome(SwapKind.INVALID, board)

    first = board.cell_at(*src)
    second = board.cell_at(*dst)
    swapped = swap_cells(board, src, dst)

    if first.is_special and second.is_special:
        combined = combine_specials(swapped, first, second, dst)
        if SpecialKind.WILDCARD in (first.special, second.special) and first.special is not second.special:
            # The converted partner still has to go off during expansion.
            wildcard = first if first.special is SpecialKind.WILDCARD else second
            detonated = frozenset({wildcard.id})
        else:
            detonated = frozenset({first.id, second.id})
        logger.debug("Special combination %s + %s at %s", first.special, second.special, dst)
        return SwapOutcome(SwapKind.SPECIAL_COMBO, combined, anchor=dst, detonated=detonated)

    if SpecialKind.WILDCARD in (first.special, second.special):
        wildcard, partner = (first, second) if first.special is SpecialKind.WILDCARD else (second, first)
        logger.debug("Wildcard sweep of %s", partner.gem_type)
        return SwapOutcome(
            SwapKind.WILDCARD_SWEEP,
            sweep_wildcard(swapped, wildcard, partner),
            anchor=dst,
            detonated=frozenset({wildcard.id}),
        )

    if find_matches(swapped):
        return SwapOutcome(SwapKind.MATCH, swapped, anchor=dst)
    return SwapOutcome(SwapKind.INVALID, board)


def find_valid_swaps(board: Board) -> List[Tuple[Position, Position]]:
    """Enumerate adjacent swaps (right and down neighbours) that plan_swap would accept."""
    swaps: List[Tuple[Position, Position]] = []
    for cell in board:
        pos = cell.position
        for neighbour in ((cell.row, cell.col + 1), (cell.row + 1, cell.col)):
            if not board.in_bounds(*neighbour):
                continue
            if plan_swap(board, pos, neighbour).is_valid:
                swaps.append((pos, neighbour))
    return swaps
