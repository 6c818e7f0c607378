"""Delaunay engine adapter - scipy.spatial.Delaunay with labels, tags and removal."""

from .delaunay import (
    DelaunayTriangulation3,
    TriangulationInvariantError,
    affine_dimension,
    orient3d,
    insphere,
    insphere_tolerance,
    EDGE_PAIRS,
)
