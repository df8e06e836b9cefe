from __future__ import annotations

from typing import List, Mapping

from gemcascade.components.cell import GemType, ORDINARY_GEM_TYPES
from gemcascade.components.level_config import LevelConfig
from gemcascade.config import ConfigurationError
from gemcascade.constants import MAX_GEM_COUNT, MIN_GEM_COUNT

_AUTHORED_LEVELS: Mapping[int, LevelConfig] = {
    1: LevelConfig(level=1, target_score=1000, moves=10, description="Tutorial: Score 1000 pts in 10 moves!"),
    2: LevelConfig(level=2, target_score=3000, moves=15, description="Score 3000 pts in 15 moves."),
    3: LevelConfig(level=3, target_score=6000, moves=20, description="Score 6000 pts in 20 moves."),
    4: LevelConfig(level=4, target_score=12000, moves=25, description="Challenge: 12,000 pts in 25 moves!"),
    5: LevelConfig(level=5, target_score=25000, moves=30, description="Master: 25,000 pts in 30 moves!"),
}

# Pool size per authored difficulty step; level 4 onward uses every ordinary kind.
_GEM_COUNT_BY_LEVEL: Mapping[int, int] = {1: 5, 2: 6, 3: 7}


def get_level_config(level: int) -> LevelConfig:
    authored = _AUTHORED_LEVELS.get(level)
    if authored is not None:
        return authored
    if level < 1:
        raise ConfigurationError(f"Unknown level '{level}'")
    step = level - 4
    return LevelConfig(
        level=level,
        target_score=25000 + 10000 * step,
        moves=30 + 2 * step,
        description=f"Endless Mode: Level {level}",
    )


def get_gem_types_for_level(level: int, count_override: int | None = None) -> List[GemType]:
    """Spawn pool for a level. The override only applies to level 1 and is clamped to 3..8."""
    if level == 1 and count_override:
        count = max(MIN_GEM_COUNT, min(MAX_GEM_COUNT, count_override))
        return list(ORDINARY_GEM_TYPES[:count])
    count = _GEM_COUNT_BY_LEVEL.get(level, len(ORDINARY_GEM_TYPES))
    return list(ORDINARY_GEM_TYPES[:count])
