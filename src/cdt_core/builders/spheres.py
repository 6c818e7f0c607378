"""
Nested Labelled Spheres
=======================

Point sets for the initial foliated triangulation.

CONSTRUCTION:
    Timeslice i (i = 0 .. T-1) is a 2-sphere of radius 1 + i centred at the
    origin. Each point carries the time label int(radius), so leaves are
    labelled 1 .. T and every leaf has the topology of S².

    Points are uniform on each sphere: normalised isotropic Gaussian vectors
    scaled to the radius (Muller 1959).

SIZING:
    simplices_per_timeslice = simplices // timeslices     (must be ≥ 1)
    points_per_timeslice    = simplices_per_timeslice × 4

    An estimate only: the Delaunay construction, not this count, decides how
    many cells come out.
"""

import numpy as np
from typing import Optional, Tuple

from ..contract.constants import VERTICES_PER_SIMPLEX, INITIAL_RADIUS


def make_2_sphere(radius: float,
                  n_points: int,
                  rng: Optional[np.random.Generator] = None,
                  seed: Optional[int] = None,
                  verbose: bool = False) -> Tuple[np.ndarray, np.ndarray]:
    """
    Random points on a sphere of given radius, labelled by the radius.

    Args:
        radius: sphere radius (> 0)
        n_points: number of points (≥ 1)
        rng: generator to draw from (takes precedence over seed)
        seed: seed for a fresh generator if rng is None

    Returns:
        points: (n_points, 3) coordinates, |p| = radius
        labels: (n_points,) int64, all equal to int(radius)

    Raises:
        ValueError: radius ≤ 0 or n_points < 1
    """
    if not radius > 0:
        raise ValueError(f"radius must be > 0, got {radius}")
    if n_points < 1:
        raise ValueError(f"n_points must be >= 1, got {n_points}")

    if rng is None:
        rng = np.random.default_rng(seed)

    g = rng.standard_normal((n_points, 3))
    norms = np.linalg.norm(g, axis=1)
    # Resample the (measure-zero) zero vectors
    while np.any(norms == 0.0):
        zero = norms == 0.0
        g[zero] = rng.standard_normal((int(zero.sum()), 3))
        norms = np.linalg.norm(g, axis=1)

    points = radius * g / norms[:, None]
    labels = np.full(n_points, int(radius), dtype=np.int64)

    if verbose:
        print(f"Generating {n_points} random points on the surface of a sphere "
              f"in 3D of center 0 and radius {radius}.")

    return points, labels


def points_per_timeslice(simplices: int, timeslices: int) -> int:
    """
    Points to sample per leaf for a target number of simplices.

    Raises:
        ValueError: timeslices < 1 or simplices // timeslices == 0
    """
    if timeslices < 1:
        raise ValueError(f"Need timeslices >= 1, got {timeslices}")
    simplices_per_timeslice = simplices // timeslices
    if simplices_per_timeslice < 1:
        raise ValueError(
            f"Need simplices_per_timeslice >= 1, got {simplices} // {timeslices} = "
            f"{simplices_per_timeslice}; increase simplices or reduce timeslices"
        )
    return simplices_per_timeslice * VERTICES_PER_SIMPLEX


def make_foliated_spheres(simplices: int,
                          timeslices: int,
                          seed: Optional[int] = None,
                          verbose: bool = False) -> Tuple[np.ndarray, np.ndarray]:
    """
    All leaves of the initial foliation as aligned point / label arrays.

    Args:
        simplices: target number of simplices
        timeslices: number of leaves T (≥ 1)
        seed: random seed (None = fresh entropy)

    Returns:
        points: (T × n, 3), leaf i occupying rows [i·n, (i+1)·n)
        labels: (T × n,) int64, leaf i labelled int(1 + i)

    Raises:
        ValueError: see points_per_timeslice(); raised before any sampling
    """
    n = points_per_timeslice(simplices, timeslices)
    rng = np.random.default_rng(seed)

    points = np.empty((n * timeslices, 3), dtype=float)
    labels = np.empty(n * timeslices, dtype=np.int64)

    for i in range(timeslices):
        radius = INITIAL_RADIUS + float(i)
        rows = slice(i * n, (i + 1) * n)
        points[rows], labels[rows] = make_2_sphere(radius, n, rng=rng, verbose=verbose)

    return points, labels
