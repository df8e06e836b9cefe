GRID_ROWS = 8
GRID_COLS = 8

# Shortest straight run that counts as a match.
MIN_RUN_LENGTH = 3

# Points per cleared gem before size/combo/level multipliers.
BASE_POINTS = 20

# Default count of gem kinds on level 1; the startup override is clamped to this range.
LEVEL_ONE_GEM_COUNT = 5
MIN_GEM_COUNT = 3
MAX_GEM_COUNT = 8

# Tool charges granted at the start of every level.
BOMB_CHARGES = 2
RESHUFFLE_CHARGES = 2

# Cells hit when a wildcard detonates without a swap partner.
WILDCARD_FALLBACK_TARGETS = 5

# Safety net for the cascade loop; a settled board is normally reached long before this.
MAX_CASCADE_PASSES = 500
