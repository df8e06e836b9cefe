"""Engine configuration shared by the world factory and the systems."""
from __future__ import annotations

from dataclasses import dataclass

from gemcascade.constants import (
    BASE_POINTS,
    BOMB_CHARGES,
    GRID_COLS,
    GRID_ROWS,
    LEVEL_ONE_GEM_COUNT,
    MAX_CASCADE_PASSES,
    MAX_GEM_COUNT,
    MIN_GEM_COUNT,
    RESHUFFLE_CHARGES,
    WILDCARD_FALLBACK_TARGETS,
)


class ConfigurationError(ValueError):
    """Raised when a board or engine parameter violates a construction precondition."""


@dataclass
class EngineConfig:
    """Startup parameters for a game session.

    level_one_gem_count is the player-selectable number of gem kinds used on level 1
    (3..8); later levels follow the fixed per-level pools.
    """

    rows: int = GRID_ROWS
    cols: int = GRID_COLS
    base_points: int = BASE_POINTS
    level_one_gem_count: int = LEVEL_ONE_GEM_COUNT
    bomb_charges: int = BOMB_CHARGES
    reshuffle_charges: int = RESHUFFLE_CHARGES
    wildcard_fallback_targets: int = WILDCARD_FALLBACK_TARGETS
    max_cascade_passes: int = MAX_CASCADE_PASSES

    @property
    def total_cells(self) -> int:
        return self.rows * self.cols

    def validate(self) -> "EngineConfig":
        if self.rows <= 0 or self.cols <= 0:
            raise ConfigurationError("Board dimensions must be positive")
        if self.base_points <= 0:
            raise ConfigurationError("base_points must be positive")
        if not (MIN_GEM_COUNT <= self.level_one_gem_count <= MAX_GEM_COUNT):
            raise ConfigurationError(
                f"level_one_gem_count must be between {MIN_GEM_COUNT} and {MAX_GEM_COUNT}, "
                f"got {self.level_one_gem_count}"
            )
        if self.bomb_charges < 0 or self.reshuffle_charges < 0:
            raise ConfigurationError("Tool charges cannot be negative")
        if self.wildcard_fallback_targets < 0:
            raise ConfigurationError("wildcard_fallback_targets cannot be negative")
        if self.max_cascade_passes <= 0:
            raise ConfigurationError("max_cascade_passes must be positive")
        return self
