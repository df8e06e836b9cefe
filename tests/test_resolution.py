import random

import pytest

from gemcascade.components.cell import CellStatus, GemType, SpecialKind
from gemcascade.systems.board_ops import find_matches
from gemcascade.systems.resolution import (
    ResolutionEngine,
    ResolutionPhase,
    TurnContext,
    combo_multiplier,
    level_multiplier,
    resolve_board,
    score_debris,
    score_group,
)
from tests.helpers import board_from_rows, paint, quiet_layout

# Refill kinds absent from the quiet palette so refills never line up with the filler.
REFILL = [GemType.DIAMOND, GemType.STAR]


def test_score_formula():
    assert score_group(3, combo=0, level=1) == 60
    assert score_group(4, combo=0, level=1) == 120
    assert score_group(5, combo=0, level=1) == 300
    assert score_group(3, combo=2, level=2) == 198
    assert score_debris(5, combo=1, level=1) == 150
    assert score_debris(0, combo=3, level=4) == 0
    assert combo_multiplier(0, 7) == 1
    assert level_multiplier(3) == 2


def test_four_run_creates_column_clear_and_scores_120():
    board = board_from_rows(paint(quiet_layout(), {(0, c): 'R' for c in range(4)}))
    result = resolve_board(board, REFILL, rng=random.Random(1))
    first = result.passes[0]
    assert len(first.groups) == 1
    assert len(first.groups[0].cells) == 4
    assert first.groups[0].special is SpecialKind.COLUMN_CLEAR
    assert first.points == 120
    # Without an anchor the special lands on the group's midpoint.
    created_id, kind = next(iter(first.created.items()))
    assert kind is SpecialKind.COLUMN_CLEAR
    assert first.cleared_board.find(created_id).position == (0, 2)
    assert first.cleared_board.find(created_id).status is CellStatus.CREATED
    # Refills come from kinds that cannot extend anything, so the turn ends here.
    assert result.depth == 1
    assert result.points == 120
    assert result.combo == 1
    special = result.board.find(created_id)
    assert special.special is SpecialKind.COLUMN_CLEAR
    assert special.gem_type is GemType.RED


def test_cascade_carries_combo_forward():
    cells = {(7, 0): 'R', (7, 1): 'R', (7, 2): 'R', (7, 3): 'D', (6, 1): 'D', (6, 2): 'D'}
    board = board_from_rows(paint(quiet_layout(), cells))
    d_ids = {board.cell_at(6, 1).id, board.cell_at(6, 2).id, board.cell_at(7, 3).id}
    seen = []
    engine = ResolutionEngine(REFILL, rng=random.Random(4), observer=seen.append)
    result = engine.resolve(board, TurnContext(level=1, combo=0))
    assert result.depth >= 2
    assert [report.depth for report in seen] == list(range(1, result.depth + 1))
    first, second = result.passes[0], result.passes[1]
    assert first.points == 60
    assert first.combo == 0
    assert second.combo == 1
    assert d_ids <= second.natural_ids
    d_group = next(g for g in second.groups if g.cells[0].gem_type is GemType.DIAMOND and d_ids <= {c.id for c in g.cells})
    assert d_group.points == 90
    assert result.combo == result.depth


def test_settled_board_is_a_fixpoint():
    board = board_from_rows(paint(quiet_layout(), {(r, 4): 'R' for r in range(2, 7)}))
    result = resolve_board(board, [GemType.RED, GemType.BLUE, GemType.GREEN], rng=random.Random(9))
    assert find_matches(result.board) == set()
    assert all(cell.status is CellStatus.IDLE for cell in result.board)
    assert len(set(result.board.ids())) == 64


def test_blast_debris_scores_flat_points():
    board = board_from_rows(
        paint(quiet_layout(), {(3, 0): 'R', (3, 1): 'R', (3, 2): 'R'}),
        specials={(3, 0): SpecialKind.ROW_CLEAR},
    )
    first = resolve_board(board, REFILL, rng=random.Random(2)).passes[0]
    assert first.special_triggered
    assert len(first.matched_ids) == 8
    assert first.debris == 5
    assert first.points == 60 + 100


def test_specials_chain_within_one_pass():
    board = board_from_rows(
        paint(quiet_layout(), {(3, 0): 'R', (3, 1): 'R', (3, 2): 'R'}),
        specials={(3, 0): SpecialKind.ROW_CLEAR, (3, 6): SpecialKind.COLUMN_CLEAR},
    )
    first = resolve_board(board, REFILL, rng=random.Random(2)).passes[0]
    expected = {cell.id for cell in board if cell.row == 3 or cell.col == 6}
    assert first.matched_ids == expected
    assert len(expected) == 15


def test_pre_marked_cells_are_cleared():
    board = board_from_rows(quiet_layout())
    marked = board.map_cells(
        lambda cell: cell.with_status(CellStatus.MATCHED) if cell.position == (5, 5) else cell
    )
    result = resolve_board(marked, REFILL, rng=random.Random(0))
    first = result.passes[0]
    assert first.matched_ids == {board.cell_at(5, 5).id}
    assert first.groups == []
    assert first.points == 20


def test_turn_without_matches_resets_combo():
    board = board_from_rows(quiet_layout())
    engine = ResolutionEngine(REFILL, rng=random.Random(0))
    result = engine.resolve(board, TurnContext(level=3, combo=4))
    assert not result.cleared
    assert result.combo == 0
    assert result.points == 0
    assert engine.phase is ResolutionPhase.IDLE


def test_runaway_cascade_hits_the_cap():
    board = board_from_rows(["RRR", "BGY", "GYB"])
    engine = ResolutionEngine([GemType.RED], rng=random.Random(0), max_passes=3)
    with pytest.raises(RuntimeError):
        engine.resolve(board)


def test_anchor_places_special_on_swap_destination():
    board = board_from_rows(paint(quiet_layout(), {(0, c): 'R' for c in range(4)}))
    result = resolve_board(board, REFILL, anchor=(0, 0), rng=random.Random(1))
    created_id = next(iter(result.passes[0].created))
    assert result.passes[0].cleared_board.find(created_id).position == (0, 0)
