"""
Result Records
==============

Plain records returned by the operators and builders.
Cell collections are numpy arrays of cell handles (int64 indices into the
engine's current simplex table). They are only meaningful for the engine
generation they were computed at: see SimplexClassification.is_stale().
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Any, Dict

from .constants import THREE_ONE, TWO_TWO, ONE_THREE


def _empty_handles() -> np.ndarray:
    return np.empty(0, dtype=np.int64)


@dataclass
class FoliationCheck:
    """Outcome of one foliation scan over all finite cells."""
    is_foliated: bool
    n_valid: int
    n_invalid: int      # includes the structurally unsound cells
    n_unsound: int
    invalid_cells: np.ndarray = field(default_factory=_empty_handles)

    def __bool__(self) -> bool:
        return self.is_foliated


@dataclass
class EdgeCounts:
    """Timelike / spacelike edge totals (N1_TL, N1_SL)."""
    n_timelike: int
    n_spacelike: int

    @property
    def n_edges(self) -> int:
        return self.n_timelike + self.n_spacelike


@dataclass
class SimplexClassification:
    """
    Partition of the finite cells into (3,1), (2,2) and (1,3) simplices.

    generation: engine generation the handles belong to. Any vertex
    insertion or removal bumps the engine generation, after which the
    handles point at unrelated cells and must be recomputed with
    reclassify_3_simplices().
    """
    three_one: np.ndarray = field(default_factory=_empty_handles)
    two_two: np.ndarray = field(default_factory=_empty_handles)
    one_three: np.ndarray = field(default_factory=_empty_handles)
    generation: int = -1

    def clear(self):
        self.three_one = _empty_handles()
        self.two_two = _empty_handles()
        self.one_three = _empty_handles()
        self.generation = -1

    def is_stale(self, triangulation) -> bool:
        return self.generation != triangulation.generation

    @property
    def n_cells(self) -> int:
        return len(self.three_one) + len(self.two_two) + len(self.one_three)

    def counts(self) -> Dict[int, int]:
        """Number of cells per simplex tag."""
        return {
            THREE_ONE: len(self.three_one),
            TWO_TWO: len(self.two_two),
            ONE_THREE: len(self.one_three),
        }


@dataclass
class FoliatedTriangulation:
    """
    Output of make_s3_triangulation().

    Iterating yields (triangulation, three_one, two_two, one_three), so

        T, three_one, two_two, one_three = make_s3_triangulation(n, t)

    works. Consumers must check is_foliated: the repair loop is bounded and
    may give up with invalid cells left in place.
    """
    triangulation: Any
    three_one: np.ndarray
    two_two: np.ndarray
    one_three: np.ndarray
    is_foliated: bool
    passes: int
    n_timelike: int
    n_spacelike: int
    simplices: int
    timeslices: int
    generation: int = -1

    @property
    def n_cells(self) -> int:
        return len(self.three_one) + len(self.two_two) + len(self.one_three)

    @property
    def classification(self) -> SimplexClassification:
        return SimplexClassification(
            three_one=self.three_one,
            two_two=self.two_two,
            one_three=self.one_three,
            generation=self.generation,
        )

    def __iter__(self):
        return iter((self.triangulation, self.three_one, self.two_two, self.one_three))
