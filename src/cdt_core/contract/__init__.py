"""Constants and result records. Depends on nothing else in cdt_core."""

from .constants import (
    MAX_FOLIATION_FIX_PASSES,
    TIMELIKE_SPAN,
    VERTICES_PER_SIMPLEX,
    INITIAL_RADIUS,
    DEFAULT_SEED,
    QHULL_OPTIONS,
    EPS_VOLUME,
    EPS_INSPHERE,
    EPS_RANK,
    INSPHERE_CHUNK,
    UNCLASSIFIED,
    THREE_ONE,
    TWO_TWO,
    ONE_THREE,
    SIMPLEX_TYPES,
    SIMPLEX_NAMES,
    TOP_VERTICES,
)

from .structures import (
    FoliationCheck,
    EdgeCounts,
    SimplexClassification,
    FoliatedTriangulation,
)
