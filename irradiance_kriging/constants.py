"""Constants used by various functions and methods within the library"""

# Principal directions (degrees counter-clockwise from the +x axis) used for
# directional variograms when no explicit set is requested.
PRINCIPAL_DIRECTIONS: tuple[float, ...] = (0.0, 45.0, 90.0, 135.0)
SECTOR_HALF_WIDTH: float = 22.5  # degrees

# Default cutoff is this fraction of the maximum pairwise distance
CUTOFF_FRACTION: float = 1.0 / 3.0

# Relative pivot size below which the Kriging system is treated as singular
PIVOT_RTOL: float = 1e-12

# Two locations closer than this are considered coincident
COINCIDENT_ATOL: float = 1e-12

DEFAULT_FOLDS: int = 10
DEFAULT_SEED: int = 0
