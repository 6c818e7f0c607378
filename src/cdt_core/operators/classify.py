"""
Simplex and Edge Classification
===============================

SIMPLICES:
    Let t_max be the largest of a cell's 4 labels and k the number of
    vertices carrying it.

        k == 3  →  (1,3)   tag 13   1 vertex below, 3 on top
        k == 2  →  (2,2)   tag 22   2 below, 2 on top
        else    →  (3,1)   tag 31   3 below, 1 on top

    "else" also catches k == 4 (all labels equal). Such cells only exist in
    triangulations whose foliation check failed.

EDGES:
    Both endpoints on the same leaf → spacelike, otherwise timelike.
    Only the totals are kept (N1_SL, N1_TL).
"""

import numpy as np

from ..contract.constants import THREE_ONE, TWO_TWO, ONE_THREE, SIMPLEX_NAMES
from ..contract.structures import SimplexClassification, EdgeCounts


def top_multiplicity(cell_labels: np.ndarray) -> np.ndarray:
    """Number of vertices sharing the cell's maximal label, cell_labels is (n, 4)."""
    if len(cell_labels) == 0:
        return np.empty(0, dtype=np.int64)
    t_max = cell_labels.max(axis=1)
    return np.count_nonzero(cell_labels == t_max[:, None], axis=1)


def simplex_tags(cell_labels: np.ndarray) -> np.ndarray:
    """Simplex tag (31, 22 or 13) for every row of cell_labels."""
    k = top_multiplicity(cell_labels)
    tags = np.full(len(k), THREE_ONE, dtype=np.int64)
    tags[k == 2] = TWO_TWO
    tags[k == 3] = ONE_THREE
    return tags


def classify_3_simplices(triangulation,
                         classification: SimplexClassification = None,
                         verbose: bool = False) -> SimplexClassification:
    """
    Tag every finite cell and collect handles by simplex type.

    Handles are APPENDED to the given classification. Pass a fresh one (or
    None) or use reclassify_3_simplices() after any mutation.

    Args:
        triangulation: DelaunayTriangulation3 (cell tags are written)
        classification: collections to append to
        verbose: print the per-type counts

    Returns:
        SimplexClassification for the current engine generation
    """
    if classification is None:
        classification = SimplexClassification()
    print("Classifying simplices....")

    cells = triangulation.finite_cells()
    tags = simplex_tags(triangulation.cell_labels())

    for tag in (THREE_ONE, TWO_TWO, ONE_THREE):
        triangulation.set_tags(cells[tags == tag], tag)

    classification.three_one = np.concatenate([classification.three_one, cells[tags == THREE_ONE]])
    classification.two_two = np.concatenate([classification.two_two, cells[tags == TWO_TWO]])
    classification.one_three = np.concatenate([classification.one_three, cells[tags == ONE_THREE]])
    classification.generation = triangulation.generation

    if verbose:
        for tag, n in classification.counts().items():
            print(f"  {SIMPLEX_NAMES[tag]}: {n}")

    return classification


def reclassify_3_simplices(triangulation,
                           classification: SimplexClassification = None,
                           verbose: bool = False) -> SimplexClassification:
    """Clear the three collections, then classify_3_simplices()."""
    if classification is None:
        classification = SimplexClassification()
    classification.clear()
    triangulation.reset_tags()
    return classify_3_simplices(triangulation, classification, verbose=verbose)


def classify_edges(triangulation, verbose: bool = False) -> EdgeCounts:
    """
    Count timelike and spacelike finite edges.

    Returns:
        EdgeCounts with n_timelike + n_spacelike == number of finite edges
    """
    edges = triangulation.finite_edges()
    ends = triangulation.labels_of(edges)
    n_spacelike = int(np.count_nonzero(ends[:, 0] == ends[:, 1]))
    counts = EdgeCounts(n_timelike=len(edges) - n_spacelike, n_spacelike=n_spacelike)

    if verbose:
        print(f"N1_SL = {counts.n_spacelike}")
        print(f"N1_TL = {counts.n_timelike}")

    return counts
