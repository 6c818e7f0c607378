"""
Tests for the full foliated S3 build.

Two timeslices, 2 simplices:
    4 points on the unit sphere, 4 on the radius-2 sphere. The 4 inner
    points always form a Delaunay cell (their circumsphere is the unit
    sphere, every other point is outside) with all labels equal. No cell
    has 4 outer vertices (their circumsphere holds the inner points).
    So exactly one bad cell, one repair pass, 7 vertices left.

Validates:
    - Scenario A: dimension, counts, foliation, partition, validity
    - Fail-soft: max_passes=0 returns an unfoliated but classified result
    - Idempotence of repair after convergence
    - All cells unsound: the repair loop stops after a pass that removes nothing
    - 10 and 20 leaves by default, with real repair passes
    - Scenario B (64000 simplices, 64 timeslices), --runslow only

Run with:
    python3 -m pytest tests/core/test_s3_triangulation.py -v
"""

import pytest
import numpy as np

from cdt_core import make_s3_triangulation, build_foliated_triangulation
from cdt_core.analysis import verify_foliated_structure, timeslice_histogram
from cdt_core.operators import check_timeslices, fix_timeslices, classify_edges
from cdt_core.contract.constants import DEFAULT_SEED, THREE_ONE
from cdt_core.engine import DelaunayTriangulation3


@pytest.fixture(scope="module")
def two_timeslices():
    return make_s3_triangulation(2, 2, seed=DEFAULT_SEED)


# ============================================================================
# Scenario A
# ============================================================================

def test_creates_with_two_timeslices(two_timeslices):
    result = two_timeslices
    T = result.triangulation

    assert T.dimension == 3, "Triangulation has wrong dimensionality."
    assert 1 <= T.number_of_vertices <= 8, "Triangulation has wrong number of vertices."
    assert 1 <= T.number_of_finite_cells <= 12, "Triangulation has wrong number of cells."
    assert check_timeslices(T).is_foliated, "Some cells do not span exactly 1 timeslice."
    assert T.number_of_finite_cells == result.n_cells, \
        "The (3,1), (2,2) and (1,3) simplices do not add up to the total."
    assert T.is_valid(), "Triangulation is not Delaunay."


def test_two_timeslices_one_pass(two_timeslices):
    result = two_timeslices
    assert result.is_foliated
    assert result.passes == 1
    assert result.triangulation.number_of_vertices == 7
    assert timeslice_histogram(result.triangulation) == {1: 3, 2: 4}


def test_two_timeslices_verification(two_timeslices):
    report = verify_foliated_structure(two_timeslices)

    assert report['dimension'] == 3
    assert report['classification_is_partition']
    assert report['classification_consistent']
    assert not report['classification_stale']
    assert report['edge_sum_holds']
    assert report['foliation_holds']
    assert report['is_valid'], report['errors']
    assert report['n_three_one'] + report['n_two_two'] + report['n_one_three'] == report['n_cells']


def test_edge_counts_recorded(two_timeslices):
    result = two_timeslices
    T = result.triangulation
    assert result.n_timelike + result.n_spacelike == T.number_of_finite_edges

    counts = classify_edges(T)
    assert counts.n_timelike == result.n_timelike
    assert counts.n_spacelike == result.n_spacelike


def test_result_unpacks(two_timeslices):
    T, three_one, two_two, one_three = two_timeslices
    assert T is two_timeslices.triangulation
    assert len(three_one) + len(two_two) + len(one_three) == T.number_of_finite_cells
    assert not two_timeslices.classification.is_stale(T)


def test_alias():
    assert build_foliated_triangulation is make_s3_triangulation


# ============================================================================
# Repair loop behaviour
# ============================================================================

def test_repair_idempotent_after_build():
    result = make_s3_triangulation(2, 2, seed=DEFAULT_SEED)
    T = result.triangulation
    g = T.generation

    assert len(fix_timeslices(T)) == 0
    assert T.generation == g
    assert check_timeslices(T).is_foliated


def test_no_passes_degrades_gracefully():
    """Repair disabled: the flat inner cell survives, build still completes."""
    result = make_s3_triangulation(2, 2, seed=DEFAULT_SEED, max_passes=0)
    T = result.triangulation

    assert not result.is_foliated
    assert result.passes == 0
    assert T.number_of_vertices == 8
    assert result.n_cells == T.number_of_finite_cells
    assert T.is_valid()

    # The all-equal inner cell lands in (3,1)
    flat = check_timeslices(T).invalid_cells
    assert len(flat) == 1
    assert flat[0] in result.three_one
    assert T.tag(int(flat[0])) == THREE_ONE

    report = verify_foliated_structure(result)
    assert report['classification_is_partition']
    assert not report['foliation_holds']


def test_unsound_cells_stop_repair_early(monkeypatch):
    """Every cell unsound: pass 1 removes nothing, the loop ends, the build completes."""
    monkeypatch.setattr(
        DelaunayTriangulation3, "cell_soundness",
        lambda self: np.zeros(self.number_of_finite_cells, dtype=bool),
    )
    result = make_s3_triangulation(2, 2, seed=DEFAULT_SEED)
    T = result.triangulation

    assert not result.is_foliated
    assert result.passes == 1
    assert T.number_of_vertices == 8
    assert result.n_cells == T.number_of_finite_cells


def test_pass_messages(capsys):
    make_s3_triangulation(2, 2, seed=DEFAULT_SEED)
    out = capsys.readouterr().out
    assert "Generating universe ..." in out
    assert "Pass #1" in out
    assert "Pass #2" not in out
    assert "Valid foliation: True" in out
    assert "Fixing foliation...." in out
    assert "Classifying simplices...." in out


def test_verbose_lists_vertices(capsys):
    result = make_s3_triangulation(2, 2, seed=DEFAULT_SEED, verbose=True)
    out = capsys.readouterr().out
    lines = [l for l in out.splitlines() if l.startswith("Point (")]
    assert len(lines) == result.triangulation.number_of_vertices


# ============================================================================
# Larger builds
# ============================================================================

def test_four_timeslices_structure():
    result = make_s3_triangulation(400, 4, seed=DEFAULT_SEED)
    report = verify_foliated_structure(result)

    assert report['dimension'] == 3
    assert report['classification_is_partition']
    assert report['classification_consistent']
    assert report['edge_sum_holds']
    assert report['is_valid'], report['errors']
    assert result.passes <= 20
    assert report['foliation_holds'] == result.is_foliated


@pytest.mark.parametrize("simplices, timeslices, seed", [
    (4000, 10, DEFAULT_SEED),
    (20000, 20, 1),
])
def test_many_timeslices_structure(simplices, timeslices, seed):
    result = make_s3_triangulation(simplices, timeslices, seed=seed)
    report = verify_foliated_structure(result)

    assert report['dimension'] == 3
    assert result.passes >= 1
    assert report['classification_is_partition']
    assert report['classification_consistent']
    assert report['edge_sum_holds']
    assert report['is_valid'], report['errors']
    assert report['foliation_holds'] == result.is_foliated
    assert len(report['timeslices']) <= timeslices


@pytest.mark.slow
def test_creates_with_lots_of_simplices():
    result = make_s3_triangulation(64000, 64, seed=DEFAULT_SEED)
    T = result.triangulation

    assert T.dimension == 3, "Triangulation has wrong dimensionality."
    assert T.number_of_finite_cells == result.n_cells, \
        "The (3,1), (2,2) and (1,3) simplices do not add up to the total."
    assert result.n_timelike + result.n_spacelike == T.number_of_finite_edges
    assert result.passes <= 20
    assert T.is_valid(), "Triangulation is not Delaunay."
