"""
Tests for nested labelled spheres.

Validates:
    - Points lie on the requested sphere, labels are int(radius)
    - Leaf i has radius 1 + i and label 1 + i
    - Storage is sized points_per_timeslice × timeslices
    - Seeding is reproducible

Run with:
    python3 -m pytest tests/core/test_spheres.py -v
"""

import numpy as np

from cdt_core.builders import make_2_sphere, make_foliated_spheres, points_per_timeslice
from cdt_core.contract.constants import DEFAULT_SEED


def test_points_on_sphere():
    points, labels = make_2_sphere(3.0, 500, seed=DEFAULT_SEED)

    assert points.shape == (500, 3)
    assert labels.shape == (500,)
    assert np.allclose(np.linalg.norm(points, axis=1), 3.0)
    assert np.all(labels == 3)


def test_label_truncates_radius():
    _, labels = make_2_sphere(2.7, 10, seed=0)
    assert np.all(labels == 2)
    assert labels.dtype == np.int64


def test_large_count_stays_on_sphere():
    points, _ = make_2_sphere(64.0, 20000, seed=1)
    r = np.linalg.norm(points, axis=1)
    assert np.max(np.abs(r - 64.0)) < 1e-10


def test_sphere_roughly_uniform():
    """Mean of uniform points on a sphere is the centre; each octant gets ~1/8."""
    points, _ = make_2_sphere(1.0, 40000, seed=2)
    assert np.all(np.abs(points.mean(axis=0)) < 0.02)

    octant = (points > 0).astype(int) @ np.array([1, 2, 4])
    fractions = np.bincount(octant, minlength=8) / len(points)
    assert np.all(np.abs(fractions - 1 / 8) < 0.01)


def test_generator_takes_precedence():
    rng_a = np.random.default_rng(7)
    rng_b = np.random.default_rng(7)
    a, _ = make_2_sphere(1.0, 20, rng=rng_a, seed=999)
    b, _ = make_2_sphere(1.0, 20, rng=rng_b)
    assert np.array_equal(a, b)


def test_foliated_spheres_layout():
    simplices, timeslices = 30, 3
    n = points_per_timeslice(simplices, timeslices)
    points, labels = make_foliated_spheres(simplices, timeslices, seed=DEFAULT_SEED)

    assert n == 40
    assert points.shape == (n * timeslices, 3)
    assert labels.shape == (n * timeslices,)

    for i in range(timeslices):
        rows = slice(i * n, (i + 1) * n)
        assert np.all(labels[rows] == 1 + i)
        assert np.allclose(np.linalg.norm(points[rows], axis=1), 1.0 + i)


def test_foliated_spheres_reproducible():
    a, la = make_foliated_spheres(16, 2, seed=5)
    b, lb = make_foliated_spheres(16, 2, seed=5)
    c, _ = make_foliated_spheres(16, 2, seed=6)

    assert np.array_equal(a, b)
    assert np.array_equal(la, lb)
    assert not np.array_equal(a, c)


def test_verbose_sampling(capsys):
    make_2_sphere(2.0, 4, seed=0, verbose=True)
    out = capsys.readouterr().out
    assert "Generating 4 random points" in out
    assert "radius 2.0" in out
