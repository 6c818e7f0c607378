"""
Global constants for cdt_core
=============================

All tolerances and magic numbers in ONE place.
"""

# Foliation repair
MAX_FOLIATION_FIX_PASSES = 20   # check/fix loop bound, fail-soft afterwards
TIMELIKE_SPAN = 1               # max(label) - min(label) of a correctly foliated cell

# Point generation
VERTICES_PER_SIMPLEX = 4        # points per timeslice = (simplices // timeslices) * 4
INITIAL_RADIUS = 1.0            # timeslice i lives on the sphere of radius INITIAL_RADIUS + i

# Default random seed (for reproducibility)
DEFAULT_SEED = 42

# Qhull options for scipy.spatial.Delaunay
# QJ: joggled input, every input point becomes a vertex and no flat cells are
# emitted even for the cospherical leaves we feed it.
QHULL_OPTIONS = "QJ Qbb"

# Geometry tolerances
EPS_VOLUME = 1e-12     # |6V| / L³ below this → structurally unsound cell (L = longest edge)
EPS_INSPHERE = 1e-4    # in-sphere det / (M · reach⁴) above this → Delaunay violation, M = max |coord|
EPS_RANK = 1e-10       # singular value cutoff (relative) for affine dimension

# Vectorised in-sphere test batch size (facets per np.linalg.det call)
INSPHERE_CHUNK = 200_000

# =============================================================================
# SIMPLEX TYPE TAGS
# =============================================================================
#
# A cell straddles exactly one time boundary t → t+1. The tag reads as
# (vertices on t, vertices on t+1), written as two decimal digits:
#
#   31 = (3,1): 3 vertices below, 1 at the top
#   22 = (2,2): 2 below, 2 at the top
#   13 = (1,3): 1 below, 3 at the top
#
# Tags are cell metadata stored by the engine, separate from vertex labels.
# Any vertex insertion/removal resets every tag to UNCLASSIFIED.

UNCLASSIFIED = 0
THREE_ONE = 31
TWO_TWO = 22
ONE_THREE = 13

SIMPLEX_TYPES = (THREE_ONE, TWO_TWO, ONE_THREE)

SIMPLEX_NAMES = {
    UNCLASSIFIED: "unclassified",
    THREE_ONE: "(3,1)",
    TWO_TWO: "(2,2)",
    ONE_THREE: "(1,3)",
}

# Number of vertices sharing the cell's maximal label, per type
TOP_VERTICES = {
    THREE_ONE: 1,
    TWO_TWO: 2,
    ONE_THREE: 3,
}
