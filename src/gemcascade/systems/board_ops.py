from __future__ import annotations

import logging
import random
from collections import deque
from typing import Callable, Dict, Iterable, List, Sequence, Set, Tuple

from esper import World

from gemcascade.components.board import Board
from gemcascade.components.cell import Cell, CellIdAllocator, CellStatus, GemType, Position, SpecialKind
from gemcascade.components.gem_types import GemTypeRegistry, GemTypes
from gemcascade.config import ConfigurationError
from gemcascade.constants import GRID_COLS, GRID_ROWS, MIN_RUN_LENGTH

logger = logging.getLogger(__name__)

IdSource = Callable[[], int]
Group = List[Cell]

_NEIGHBOUR_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))


# ---------------------------------------------------------------------------
# World accessors
# ---------------------------------------------------------------------------

def get_gem_registry(world: World) -> GemTypes:
    for entity, _ in world.get_component(GemTypeRegistry):
        return world.component_for_entity(entity, GemTypes)
    raise RuntimeError("GemTypes definitions not found")


def set_spawnable_gem_types(world: World, gem_types: Iterable[GemType]) -> List[GemType]:
    registry = get_gem_registry(world)
    registry.set_spawnable(gem_types)
    return registry.spawnable_types()


def get_board_entity(world: World) -> int | None:
    for entity, _ in world.get_component(Board):
        return entity
    return None


def get_board(world: World) -> Board:
    for _, board in world.get_component(Board):
        return board
    raise RuntimeError("Board not found")


def set_board(world: World, board: Board) -> None:
    """Commit a new snapshot; the previous Board value is left untouched."""
    entity = get_board_entity(world)
    if entity is None:
        world.create_entity(board)
        return
    world.add_component(entity, board)


def world_id_source(world: World) -> IdSource:
    allocator = getattr(world, "next_cell_id", None)
    if allocator is None:
        allocator = CellIdAllocator()
        setattr(world, "next_cell_id", allocator)
    return allocator


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def check_spawn_pool(allowed_types: Sequence[GemType]) -> List[GemType]:
    pool = list(allowed_types)
    if not pool:
        raise ConfigurationError("Allowed gem type set must not be empty")
    if GemType.WILDCARD in pool:
        raise ConfigurationError("The wildcard kind is never part of the spawn pool")
    return pool


def _id_source_for(board: Board | None, next_id: IdSource | None) -> IdSource:
    if next_id is not None:
        return next_id
    start = max(board.ids(), default=0) + 1 if board is not None else 1
    return CellIdAllocator(start)


def create_initial_board(
    allowed_types: Sequence[GemType],
    *,
    rows: int = GRID_ROWS,
    cols: int = GRID_COLS,
    rng: random.Random | None = None,
    next_id: IdSource | None = None,
) -> Board:
    """Fill every slot at random, excluding any type that would finish a run to the left or above."""
    pool = check_spawn_pool(allowed_types)
    if rows <= 0 or cols <= 0:
        raise ConfigurationError("Board dimensions must be positive")
    rng = rng or random.Random()
    next_id = _id_source_for(None, next_id)
    layout: List[List[GemType]] = []
    for row in range(rows):
        row_values: List[GemType] = []
        for col in range(cols):
            available = list(pool)
            if col >= 2:
                left1 = row_values[col - 1]
                left2 = row_values[col - 2]
                if left1 == left2:
                    available = [t for t in available if t != left1]
            if row >= 2:
                up1 = layout[row - 1][col]
                up2 = layout[row - 2][col]
                if up1 == up2:
                    available = [t for t in available if t != up1]
            if not available:
                # Only reachable with pools of one or two kinds.
                logger.debug("No safe gem type at %s; falling back to full pool", (row, col))
                available = pool
            row_values.append(rng.choice(available))
        layout.append(row_values)
    return board_from_types(layout, next_id=next_id)


def board_from_types(
    layout: Sequence[Sequence[GemType]],
    *,
    next_id: IdSource | None = None,
    specials: Dict[Position, SpecialKind] | None = None,
) -> Board:
    """Build an idle board from a grid of gem types, assigning fresh ids row-major."""
    if not layout:
        raise ConfigurationError("Board needs at least one row")
    next_id = _id_source_for(None, next_id)
    specials = specials or {}
    grid: List[List[Cell]] = []
    for r, row_types in enumerate(layout):
        row: List[Cell] = []
        for c, gem_type in enumerate(row_types):
            special = specials.get((r, c), SpecialKind.NONE)
            if gem_type is GemType.WILDCARD:
                special = SpecialKind.WILDCARD
            row.append(Cell(id=next_id(), gem_type=gem_type, row=r, col=c, special=special))
        grid.append(row)
    return Board.from_grid(grid)


# ---------------------------------------------------------------------------
# Match detection and clustering
# ---------------------------------------------------------------------------

def find_matches(board: Board) -> Set[int]:
    """Return ids of every cell inside a straight run of >= 3 identical gem types."""
    matched: Set[int] = set()
    cells = board.cells
    # Horizontal runs
    for r in range(board.rows):
        for c in range(board.cols - (MIN_RUN_LENGTH - 1)):
            gem_type = cells[r][c].gem_type
            if gem_type is None:
                continue
            if cells[r][c + 1].gem_type == gem_type and cells[r][c + 2].gem_type == gem_type:
                matched.update((cells[r][c].id, cells[r][c + 1].id, cells[r][c + 2].id))
                k = c + 3
                while k < board.cols and cells[r][k].gem_type == gem_type:
                    matched.add(cells[r][k].id)
                    k += 1
    # Vertical runs
    for c in range(board.cols):
        for r in range(board.rows - (MIN_RUN_LENGTH - 1)):
            gem_type = cells[r][c].gem_type
            if gem_type is None:
                continue
            if cells[r + 1][c].gem_type == gem_type and cells[r + 2][c].gem_type == gem_type:
                matched.update((cells[r][c].id, cells[r + 1][c].id, cells[r + 2][c].id))
                k = r + 3
                while k < board.rows and cells[k][c].gem_type == gem_type:
                    matched.add(cells[k][c].id)
                    k += 1
    return matched


def get_connected_groups(board: Board, matched_ids: Iterable[int]) -> List[Group]:
    """Partition matched cells into 4-connected components of one exact gem type.

    Seeds are taken row-major; cells inside a group are in breadth-first order.
    """
    matched = set(matched_ids)
    visited: Set[int] = set()
    groups: List[Group] = []
    for seed in board:
        if seed.id not in matched or seed.id in visited:
            continue
        group: Group = []
        queue = deque([seed])
        visited.add(seed.id)
        while queue:
            current = queue.popleft()
            group.append(current)
            for dr, dc in _NEIGHBOUR_OFFSETS:
                neighbour = board.get(current.row + dr, current.col + dc)
                if neighbour is None:
                    continue
                if neighbour.id in visited or neighbour.id not in matched:
                    continue
                if neighbour.gem_type != current.gem_type:
                    continue
                visited.add(neighbour.id)
                queue.append(neighbour)
        groups.append(group)
    return groups


# ---------------------------------------------------------------------------
# Swaps and status transforms
# ---------------------------------------------------------------------------

def is_adjacent(a: Position, b: Position) -> bool:
    ar, ac = a
    br, bc = b
    return (abs(ar - br) == 1 and ac == bc) or (abs(ac - bc) == 1 and ar == br)


def swap_cells(board: Board, a: Position, b: Position, *, status: CellStatus = CellStatus.SWAPPING) -> Board:
    """Exchange the tokens at a and b; both keep their ids and take the given status."""
    cell_a = board.cell_at(*a)
    cell_b = board.cell_at(*b)
    return board.replace_cells({
        a: cell_b.moved_to(a[0], a[1], status),
        b: cell_a.moved_to(b[0], b[1], status),
    })


def mark_cleared(board: Board, cell_ids: Iterable[int]) -> Board:
    """Flag the given cells as MATCHED so the next resolution pass removes them."""
    wanted = set(cell_ids)
    return board.map_cells(
        lambda cell: cell.with_status(CellStatus.MATCHED) if cell.id in wanted else cell
    )


def settle_board(board: Board) -> Board:
    return board.map_cells(
        lambda cell: cell if cell.status is CellStatus.IDLE else cell.with_status(CellStatus.IDLE)
    )


# ---------------------------------------------------------------------------
# Gravity and refill
# ---------------------------------------------------------------------------

def collapse_columns(board: Board, *, next_id: IdSource | None = None) -> Tuple[Board, bool]:
    """Compact surviving tokens to the bottom of each column.

    Moved tokens keep their id and become DROPPING; the vacated top slots hold EMPTY placeholders.
    """
    next_id = _id_source_for(board, next_id)
    grid = board.to_grid()
    moved = False
    for col in range(board.cols):
        survivors = [cell for cell in board.column(col) if not cell.is_vacant]
        empty = board.rows - len(survivors)
        if empty == 0:
            continue
        for row in range(empty):
            grid[row][col] = Cell(id=next_id(), gem_type=None, row=row, col=col, status=CellStatus.EMPTY)
        for offset, cell in enumerate(survivors):
            target = empty + offset
            if target != cell.row:
                grid[target][col] = cell.moved_to(target, col, CellStatus.DROPPING)
                moved = True
            else:
                grid[target][col] = cell
    return Board.from_grid(grid), moved


def refill_board(
    board: Board,
    allowed_types: Sequence[GemType],
    *,
    rng: random.Random | None = None,
    next_id: IdSource | None = None,
) -> Tuple[Board, List[Position]]:
    """Replace every vacant slot with a fresh random token marked DROPPING."""
    pool = check_spawn_pool(allowed_types)
    rng = rng or random.Random()
    next_id = _id_source_for(board, next_id)
    updates: Dict[Position, Cell] = {}
    for cell in board:
        if not cell.is_vacant:
            continue
        updates[cell.position] = Cell(
            id=next_id(),
            gem_type=rng.choice(pool),
            row=cell.row,
            col=cell.col,
            status=CellStatus.DROPPING,
        )
    spawned = sorted(updates.keys())
    return board.replace_cells(updates), spawned


def apply_gravity(
    board: Board,
    allowed_types: Sequence[GemType],
    *,
    rng: random.Random | None = None,
    next_id: IdSource | None = None,
) -> Tuple[Board, bool]:
    """Collapse every column and refill the vacated top slots; reports whether anything moved."""
    next_id = _id_source_for(board, next_id)
    collapsed, moved = collapse_columns(board, next_id=next_id)
    refilled, spawned = refill_board(collapsed, allowed_types, rng=rng, next_id=next_id)
    return refilled, moved or bool(spawned)
