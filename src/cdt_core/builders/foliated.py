"""
Foliated S3 Triangulation
=========================

Top-level construction of the initial CDT spacetime.

PIPELINE:
    1. Size the leaves           points_per_timeslice()   (fail fast)
    2. Sample nested spheres     make_foliated_spheres()
    3. Bulk insert               insert_into_s3()
    4. Check ⇄ fix               check_timeslices() / fix_timeslices()
                                 at most max_passes repair passes
    5. Classify                  classify_3_simplices(), classify_edges()
    6. Final engine check        assert_valid()            (fatal)

FAIL-SOFT:
    If the foliation is still broken after max_passes the build carries on
    and classifies whatever cells exist. The result says so in is_foliated;
    nothing is raised.
"""

import numpy as np
from typing import Optional

from ..contract.constants import MAX_FOLIATION_FIX_PASSES, QHULL_OPTIONS, SIMPLEX_NAMES
from ..contract.structures import FoliatedTriangulation
from ..engine.delaunay import DelaunayTriangulation3
from ..operators.foliation import check_timeslices, fix_timeslices
from ..operators.classify import classify_3_simplices, classify_edges
from .spheres import make_foliated_spheres


def insert_into_s3(triangulation: DelaunayTriangulation3, points, labels):
    """
    Insert aligned points and time labels in one batch.

    Raises:
        ValueError: len(points) != len(labels)
    """
    points = np.asarray(points, dtype=float)
    labels = np.asarray(labels)
    if len(points) != len(labels):
        raise ValueError(f"Got {len(points)} points but {len(labels)} labels")
    triangulation.insert(points, labels)


def make_s3_triangulation(simplices: int,
                          timeslices: int,
                          verbose: bool = False,
                          seed: Optional[int] = None,
                          max_passes: int = MAX_FOLIATION_FIX_PASSES,
                          qhull_options: str = QHULL_OPTIONS) -> FoliatedTriangulation:
    """
    Build a foliated Delaunay triangulation of nested 2-spheres.

    Args:
        simplices: target number of simplices (estimate)
        timeslices: number of leaves (≥ 1)
        verbose: per-cell / per-vertex output
        seed: random seed for point sampling
        max_passes: repair pass bound
        qhull_options: passed to the Delaunay engine

    Returns:
        FoliatedTriangulation; unpacks as (T, three_one, two_two, one_three)

    Raises:
        ValueError: simplices // timeslices < 1 or timeslices < 1
            (before any point is generated)
        TriangulationInvariantError: engine reports an invalid triangulation
    """
    print("Generating universe ...")
    points, labels = make_foliated_spheres(simplices, timeslices, seed=seed, verbose=verbose)

    T = DelaunayTriangulation3(qhull_options=qhull_options)
    insert_into_s3(T, points, labels)

    passes = 0
    check = check_timeslices(T, verbose)
    while not check.is_foliated and passes < max_passes:
        passes += 1
        print(f"Pass #{passes}")
        removed = fix_timeslices(T, verbose)
        check = check_timeslices(T, verbose)
        if len(removed) == 0:
            # Only unsound cells left: nothing further to repair
            break

    classification = classify_3_simplices(T, verbose=verbose)
    edges = classify_edges(T, verbose=verbose)

    print(f"Valid foliation: {check.is_foliated}")
    print(f"Delaunay triangulation has {T.number_of_finite_cells} cells.")
    counts = classification.counts()
    print("There are " + " and ".join(
        f"{n} {SIMPLEX_NAMES[tag]} simplices" for tag, n in counts.items()) + ".")

    if verbose:
        for v in T.finite_vertices():
            p = T.point(v)
            print(f"Point ({p[0]:.6f}, {p[1]:.6f}, {p[2]:.6f}) has timeslice {T.label(v)}")

    T.assert_valid()

    return FoliatedTriangulation(
        triangulation=T,
        three_one=classification.three_one,
        two_two=classification.two_two,
        one_three=classification.one_three,
        is_foliated=check.is_foliated,
        passes=passes,
        n_timelike=edges.n_timelike,
        n_spacelike=edges.n_spacelike,
        simplices=simplices,
        timeslices=timeslices,
        generation=classification.generation,
    )


# Name used by downstream code
build_foliated_triangulation = make_s3_triangulation
