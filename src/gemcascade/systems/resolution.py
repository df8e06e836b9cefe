"""Turn resolution: detect, expand, score, clear, drop and settle until the board is stable.

The cascade runs as a loop carrying the combo counter and the accumulated score;
it stops on the first pass whose detection comes back empty.
"""
from __future__ import annotations

import logging
import math
import random
from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from gemcascade.components.board import Board
from gemcascade.components.cell import CellIdAllocator, CellStatus, GemType, Position, SpecialKind
from gemcascade.constants import BASE_POINTS, MAX_CASCADE_PASSES, WILDCARD_FALLBACK_TARGETS
from gemcascade.systems.board_ops import (
    Group,
    IdSource,
    check_spawn_pool,
    collapse_columns,
    find_matches,
    get_connected_groups,
    refill_board,
    settle_board,
)
from gemcascade.systems.specials import (
    choose_special_cell,
    classify_match_group,
    get_special_blast_targets,
    special_gem_type,
)

logger = logging.getLogger(__name__)


class ResolutionPhase(Enum):
    IDLE = auto()
    DETECTING = auto()
    EXPANDING = auto()
    SCORING = auto()
    CLEARING = auto()
    DROPPING = auto()
    SETTLED = auto()


def size_multiplier(size: int) -> float:
    if size >= 5:
        return 3
    if size == 4:
        return 1.5
    return 1


def combo_multiplier(combo: int, level: int) -> float:
    return 1 + combo * (0.5 + (level - 1) * 0.1)


def level_multiplier(level: int) -> float:
    return 1 + (level - 1) * 0.5


def score_group(size: int, *, combo: int, level: int, base_points: int = BASE_POINTS) -> int:
    return math.floor(
        size * base_points * size_multiplier(size) * combo_multiplier(combo, level) * level_multiplier(level)
    )


def score_debris(count: int, *, combo: int, level: int, base_points: int = BASE_POINTS) -> int:
    """Flat points for cells cleared only by a blast, without the size multiplier."""
    if count <= 0:
        return 0
    return math.floor(count * base_points * level_multiplier(level) * combo_multiplier(combo, level))


@dataclass(frozen=True, slots=True)
class TurnContext:
    """Per-turn inputs from the session.

    anchor: swap destination, preferred as the home of a newly created special.
    detonated: specials whose effect the caller already applied (swap combinations).
    """
    level: int = 1
    combo: int = 0
    anchor: Optional[Position] = None
    detonated: FrozenSet[int] = frozenset()


@dataclass(slots=True)
class ScoredGroup:
    cells: Group
    special: SpecialKind
    points: int


@dataclass(slots=True)
class PassReport:
    depth: int
    combo: int
    matched_ids: FrozenSet[int]
    natural_ids: FrozenSet[int]
    groups: List[ScoredGroup]
    created: Dict[int, SpecialKind]
    special_triggered: bool
    debris: int
    points: int
    cleared_board: Board
    collapsed_board: Board
    refilled_board: Board
    settled_board: Board
    spawned: List[Position] = field(default_factory=list)
    moves_detected: bool = False


@dataclass(slots=True)
class TurnResult:
    board: Board
    passes: List[PassReport]
    combo: int
    points: int

    @property
    def cleared(self) -> bool:
        return bool(self.passes)

    @property
    def depth(self) -> int:
        return len(self.passes)


class ResolutionEngine:
    """Owns the in-flight board for one turn; every phase consumes and returns a snapshot."""

    def __init__(
        self,
        allowed_types: Sequence[GemType],
        *,
        base_points: int = BASE_POINTS,
        rng: random.Random | None = None,
        next_id: IdSource | None = None,
        wildcard_fallback_targets: int = WILDCARD_FALLBACK_TARGETS,
        max_passes: int = MAX_CASCADE_PASSES,
        observer: Callable[[PassReport], None] | None = None,
    ):
        self.allowed_types = check_spawn_pool(allowed_types)
        self.base_points = base_points
        self.rng = rng or random.Random()
        self.next_id = next_id
        self.wildcard_fallback_targets = wildcard_fallback_targets
        self.max_passes = max_passes
        self.observer = observer
        self.phase = ResolutionPhase.IDLE

    # -- phases ---------------------------------------------------------------

    def detect(self, board: Board) -> Set[int]:
        """Natural runs plus any cell a caller already flagged as cleared."""
        self.phase = ResolutionPhase.DETECTING
        matched = find_matches(board)
        matched.update(cell.id for cell in board if cell.status is CellStatus.MATCHED)
        return matched

    def expand(self, board: Board, matched: Set[int], detonated: FrozenSet[int] = frozenset()) -> Tuple[Set[int], bool]:
        """Breadth-first chain reaction: every special reached adds its blast area once."""
        self.phase = ResolutionPhase.EXPANDING
        index = board.index()
        expanded = set(matched)
        processed = set(detonated)
        triggered = False
        queue = deque(cell.id for cell in board if cell.id in expanded)
        while queue:
            cell = index[queue.popleft()]
            if not cell.is_special or cell.id in processed:
                continue
            processed.add(cell.id)
            triggered = True
            targets = get_special_blast_targets(
                board, cell, rng=self.rng, fallback_count=self.wildcard_fallback_targets
            )
            for target in targets:
                if target.id not in expanded:
                    expanded.add(target.id)
                    queue.append(target.id)
        return expanded, triggered

    def score(
        self,
        board: Board,
        matched: Set[int],
        *,
        level: int,
        combo: int,
        anchor: Optional[Position] = None,
    ) -> Tuple[Set[int], List[ScoredGroup], Dict[int, SpecialKind], int, int]:
        """Group the natural runs, pick new specials and total the pass score."""
        self.phase = ResolutionPhase.SCORING
        natural = find_matches(board)
        scored: List[ScoredGroup] = []
        created: Dict[int, SpecialKind] = {}
        points = 0
        for group in get_connected_groups(board, natural):
            special = classify_match_group(group)
            group_points = score_group(len(group), combo=combo, level=level, base_points=self.base_points)
            points += group_points
            scored.append(ScoredGroup(cells=group, special=special, points=group_points))
            if special is not SpecialKind.NONE:
                created[choose_special_cell(group, anchor).id] = special
        debris = len(matched) - sum(len(group.cells) for group in scored)
        points += score_debris(debris, combo=combo, level=level, base_points=self.base_points)
        return natural, scored, created, debris, points

    def clear(self, board: Board, matched: Set[int], created: Dict[int, SpecialKind]) -> Board:
        self.phase = ResolutionPhase.CLEARING

        def transition(cell):
            special = created.get(cell.id)
            if special is not None:
                return replace(
                    cell,
                    special=special,
                    status=CellStatus.CREATED,
                    gem_type=special_gem_type(cell, special),
                )
            if cell.id in matched:
                return cell.with_status(CellStatus.MATCHED)
            return cell

        return board.map_cells(transition)

    def drop(self, board: Board) -> Tuple[Board, Board, List[Position], bool]:
        self.phase = ResolutionPhase.DROPPING
        next_id = self.next_id
        if next_id is None:
            next_id = _continuing_ids(board)
        collapsed, moved = collapse_columns(board, next_id=next_id)
        refilled, spawned = refill_board(collapsed, self.allowed_types, rng=self.rng, next_id=next_id)
        return collapsed, refilled, spawned, moved or bool(spawned)

    def settle(self, board: Board) -> Board:
        self.phase = ResolutionPhase.SETTLED
        return settle_board(board)

    # -- loop -----------------------------------------------------------------

    def resolve(self, board: Board, context: TurnContext | None = None) -> TurnResult:
        context = context or TurnContext()
        combo = context.combo
        anchor = context.anchor
        detonated = context.detonated
        passes: List[PassReport] = []
        total = 0
        while True:
            matched = self.detect(board)
            if not matched:
                break
            depth = len(passes) + 1
            if depth > self.max_passes:
                logger.error("Cascade still clearing after %d passes; aborting turn", self.max_passes)
                self.phase = ResolutionPhase.IDLE
                raise RuntimeError(f"Board did not settle within {self.max_passes} cascade passes")
            expanded, triggered = self.expand(board, matched, detonated)
            natural, groups, created, debris, points = self.score(
                board, expanded, level=context.level, combo=combo, anchor=anchor
            )
            cleared = self.clear(board, expanded, created)
            collapsed, refilled, spawned, moved = self.drop(cleared)
            settled = self.settle(refilled)
            report = PassReport(
                depth=depth,
                combo=combo,
                matched_ids=frozenset(expanded),
                natural_ids=frozenset(natural),
                groups=groups,
                created=created,
                special_triggered=triggered,
                debris=debris,
                points=points,
                cleared_board=cleared,
                collapsed_board=collapsed,
                refilled_board=refilled,
                settled_board=settled,
                spawned=spawned,
                moves_detected=moved,
            )
            logger.debug(
                "Pass %d: %d cleared, %d groups, %d specials created, %d points (combo %d)",
                depth, len(expanded), len(groups), len(created), points, combo,
            )
            passes.append(report)
            if self.observer is not None:
                self.observer(report)
            total += points
            combo += 1
            board = settled
            # Swap-specific inputs only apply to the first pass.
            anchor = None
            detonated = frozenset()
        if not passes:
            combo = 0
            board = settle_board(board)
        self.phase = ResolutionPhase.IDLE
        return TurnResult(board=board, passes=passes, combo=combo, points=total)


def _continuing_ids(board: Board) -> IdSource:
    return CellIdAllocator(max(board.ids(), default=0) + 1)


def resolve_board(
    board: Board,
    allowed_types: Sequence[GemType],
    *,
    level: int = 1,
    combo: int = 0,
    anchor: Optional[Position] = None,
    detonated: FrozenSet[int] = frozenset(),
    rng: random.Random | None = None,
    next_id: IdSource | None = None,
    base_points: int = BASE_POINTS,
) -> TurnResult:
    engine = ResolutionEngine(allowed_types, base_points=base_points, rng=rng, next_id=next_id)
    return engine.resolve(board, TurnContext(level=level, combo=combo, anchor=anchor, detonated=detonated))
