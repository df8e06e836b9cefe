import random

from gemcascade.components.cell import CellIdAllocator, GemType
from gemcascade.presentation import gravity_moves, project_visuals
from gemcascade.systems.board_ops import collapse_columns, mark_cleared, refill_board
from tests.helpers import board_from_rows


def test_visuals_match_logical_positions_without_history():
    board = board_from_rows(["RG", "BY"])
    assert project_visuals(board) == {cell.id: cell.position for cell in board}


def test_fall_and_refill_moves():
    board = board_from_rows(["BGY", "GYB", "YBG"])
    falling = board.cell_at(0, 1)
    cleared = mark_cleared(board, [board.cell_at(1, 1).id, board.cell_at(2, 1).id])
    ids = CellIdAllocator(50)
    collapsed, _ = collapse_columns(cleared, next_id=ids)
    refilled, spawned = refill_board(collapsed, [GemType.RED], rng=random.Random(0), next_id=ids)
    assert spawned == [(0, 1), (1, 1)]

    moves = {move.cell_id: move for move in gravity_moves(cleared, refilled)}
    assert moves[falling.id].source == (0, 1)
    assert moves[falling.id].target == (2, 1)
    assert not moves[falling.id].spawned
    fresh = [move for move in moves.values() if move.spawned]
    assert len(fresh) == 2
    # Spawned gems start stacked above the board, two rows per two refills.
    assert sorted((m.source, m.target) for m in fresh) == [((-2, 1), (0, 1)), ((-1, 1), (1, 1))]

    visuals = project_visuals(refilled, cleared)
    assert visuals[falling.id] == (0, 1)
    assert visuals[refilled.cell_at(0, 1).id] == (-2, 1)
    assert visuals[board.cell_at(0, 0).id] == (0, 0)
