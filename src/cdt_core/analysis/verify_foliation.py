"""
Foliation Verification Functions
================================

Verify structural properties of a finished build.

These functions are in analysis/ layer because they depend on operators.
They never mutate the triangulation and never raise on a failed property:
every check is reported in the returned dict.
"""

import numpy as np
from typing import Dict

from ..contract.constants import TIMELIKE_SPAN, THREE_ONE, TWO_TWO, ONE_THREE, TOP_VERTICES
from ..operators.foliation import label_span
from ..operators.classify import top_multiplicity, classify_edges


def timeslice_histogram(triangulation) -> Dict[int, int]:
    """
    Number of live vertices on each leaf.

    Returns:
        dict label → vertex count, sorted by label
    """
    labels = triangulation.labels_of(triangulation.finite_vertices())
    values, counts = np.unique(labels, return_counts=True)
    return {int(t): int(n) for t, n in zip(values, counts)}


def verify_foliated_structure(result) -> Dict:
    """
    Verify a FoliatedTriangulation against its structural invariants.

    Args:
        result: FoliatedTriangulation from make_s3_triangulation()

    Returns:
        dict with verification results
    """
    T = result.triangulation
    labels = T.cell_labels()
    sound = T.cell_soundness()
    n_cells = T.number_of_finite_cells

    # Partition: every finite cell in exactly one collection
    all_handles = np.concatenate([result.three_one, result.two_two, result.one_three])
    n_classified = len(all_handles)
    is_partition = (
        n_classified == n_cells
        and len(np.unique(all_handles)) == n_cells
        and (n_cells == 0 or (all_handles.min() >= 0 and all_handles.max() < n_cells))
    )

    # Each collection has the right number of top vertices
    k = top_multiplicity(labels)
    types_consistent = True
    for tag, handles in ((THREE_ONE, result.three_one),
                         (TWO_TWO, result.two_two),
                         (ONE_THREE, result.one_three)):
        if len(handles) == 0:
            continue
        in_range = handles[handles < n_cells]
        if tag == THREE_ONE:
            # (3,1) also receives the all-equal cells
            ok = np.all((k[in_range] == 1) | (k[in_range] == 4))
        else:
            ok = np.all(k[in_range] == TOP_VERTICES[tag])
        ok = ok and np.all(T.tags[in_range] == tag)
        types_consistent = types_consistent and bool(ok)

    spans = label_span(labels)
    foliation_holds = bool(np.all(spans[sound] == TIMELIKE_SPAN)) if n_cells else True

    edges = classify_edges(T)
    n_edges = T.number_of_finite_edges

    is_valid, errors = T.validate(strict=False)

    return {
        'dimension': T.dimension,
        'n_vertices': T.number_of_vertices,
        'n_cells': n_cells,
        'n_edges': n_edges,
        'n_three_one': len(result.three_one),
        'n_two_two': len(result.two_two),
        'n_one_three': len(result.one_three),
        'n_classified': n_classified,
        'classification_is_partition': bool(is_partition),
        'classification_consistent': types_consistent,
        'classification_stale': result.generation != T.generation,
        'n_timelike': edges.n_timelike,
        'n_spacelike': edges.n_spacelike,
        'edge_sum_holds': edges.n_edges == n_edges,
        'is_foliated': result.is_foliated,
        'foliation_holds': foliation_holds,
        'n_unsound': int(np.count_nonzero(~sound)),
        'passes': result.passes,
        'timeslices': timeslice_histogram(T),
        'is_valid': is_valid,
        'errors': errors,
    }
