"""
Foliation Check and Repair
==========================

A cell is correctly foliated iff its 4 vertex time labels satisfy

    max(t) - min(t) == 1

i.e. the simplex straddles exactly one boundary between adjacent leaves.

check_timeslices():
    Scan every finite cell. Sound cells are judged by label span, unsound
    cells (engine-reported) count as invalid without looking at labels.
    Ends with the engine's own validity check, which is FATAL on failure.

fix_timeslices():
    For every sound, badly foliated cell remove the vertex carrying the
    cell's largest label. Unsound cells are left alone.

    TWO-PHASE: violations are collected from one snapshot of the cells,
    then all offending vertices are removed in a single batch. No cell
    scan ever runs against a triangulation it is mutating.

Reference: Ambjørn, Jurkiewicz, Loll, "Dynamically triangulating Lorentzian
quantum gravity", Nucl. Phys. B 610 (2001)
"""

import numpy as np

from ..contract.constants import TIMELIKE_SPAN
from ..contract.structures import FoliationCheck


def label_span(cell_labels: np.ndarray) -> np.ndarray:
    """max - min label per cell, cell_labels is (n, 4)."""
    if len(cell_labels) == 0:
        return np.empty(0, dtype=np.int64)
    return cell_labels.max(axis=1) - cell_labels.min(axis=1)


def check_timeslices(triangulation, verbose: bool = False) -> FoliationCheck:
    """
    Count correctly and incorrectly foliated cells.

    Args:
        triangulation: DelaunayTriangulation3
        verbose: print every cell with its vertices and verdict

    Returns:
        FoliationCheck; is_foliated is True iff no cell is invalid

    Raises:
        TriangulationInvariantError: engine reports the triangulation invalid
    """
    labels = triangulation.cell_labels()
    sound = triangulation.cell_soundness()
    foliated = sound & (label_span(labels) == TIMELIKE_SPAN)

    if verbose:
        simplices = triangulation.simplices
        for c in triangulation.finite_cells():
            if not sound[c]:
                print(f"Cell {c} is structurally unsound.")
                continue
            print(f"Cell {c} is structurally sound.")
            for i, v in enumerate(simplices[c]):
                p = triangulation.point(v)
                print(f"  Vertex {i} is ({p[0]:.6f}, {p[1]:.6f}, {p[2]:.6f}) "
                      f"with timeslice {labels[c, i]}")
            verdict = "valid" if foliated[c] else "invalid"
            print(f"  Foliation is {verdict} for this cell.")

    invalid_cells = np.flatnonzero(~foliated)
    n_invalid = len(invalid_cells)
    n_valid = len(foliated) - n_invalid
    n_unsound = int(np.count_nonzero(~sound))

    triangulation.assert_valid()

    if verbose:
        print(f"There are {n_invalid} invalid cells and {n_valid} valid cells "
              f"in this triangulation.")

    return FoliationCheck(
        is_foliated=(n_invalid == 0),
        n_valid=n_valid,
        n_invalid=n_invalid,
        n_unsound=n_unsound,
        invalid_cells=invalid_cells,
    )


def fix_timeslices(triangulation, verbose: bool = False) -> np.ndarray:
    """
    One repair pass: remove the top vertex of every badly foliated cell.

    The top vertex is the first of the cell's 4 vertices holding the
    maximal label. A vertex shared by several bad cells is removed once.

    Args:
        triangulation: DelaunayTriangulation3 (mutated)
        verbose: print each scheduled removal

    Returns:
        Removed vertex handles (sorted, possibly empty)
    """
    print("Fixing foliation....")
    labels = triangulation.cell_labels()
    sound = triangulation.cell_soundness()
    bad = np.flatnonzero(sound & (label_span(labels) != TIMELIKE_SPAN))

    if len(bad) == 0:
        return np.empty(0, dtype=np.int64)

    top = np.argmax(labels[bad], axis=1)
    victims = triangulation.simplices[bad, top]

    if verbose:
        for c, i, v in zip(bad, top, victims):
            print(f"Vertex {i} (handle {v}) of cell {c} removed.")

    victims = np.unique(victims)
    triangulation.remove_many(victims)
    return victims
