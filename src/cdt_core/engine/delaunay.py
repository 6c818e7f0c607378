"""
Delaunay Engine Adapter
=======================

Thin stateful wrapper around scipy.spatial.Delaunay (Qhull) exposing the
operations the foliation code needs:

    insert(points, labels)     bulk paired insertion
    remove(v), remove_many(vs) vertex removal + retriangulation
    finite vertices / cells / edges
    vertex labels, cell tags   (two separate fields)
    cell_soundness()           per-cell structural check
    validate() / is_valid()    whole-triangulation check (combinatorial + Delaunay)

HANDLES:
    Vertex handle = index into the insertion-ordered point store. Stable for
    the lifetime of the triangulation; removed vertices are marked dead,
    never renumbered.

    Cell handle = row of the current simplex table. Every mutation rebuilds
    the table and bumps `generation`; handles from an older generation are
    stale.

RETRIANGULATION:
    Qhull has no vertex removal. Removing vertices recomputes the Delaunay
    triangulation of the remaining vertex set, which is the triangulation a
    local re-triangulation of the hole would produce (Delaunay is unique for
    points in general position). remove_many() pays for one rebuild per batch.

DEGENERATE INPUT:
    Fewer than 4 affinely independent points → dimension < 3, no cells.
    Exactly 4 → one tetrahedron, built without Qhull (Qhull needs d+2 points).
    Exact duplicate points are merged on insert (first label wins).

DELAUNAY CHECK:
    Qhull triangulates joggled copies of the points (QJ), the check runs on
    the stored, unjoggled ones. Cospherical leaves then show in-sphere
    determinants of the order of the joggle, which is proportional to the
    largest coordinate, so the tolerance is scaled by it (insphere_tolerance).

Date: Oct 2026
"""

import numpy as np
from scipy.spatial import Delaunay
from typing import List, Tuple

from ..contract.constants import (
    QHULL_OPTIONS,
    EPS_VOLUME,
    EPS_INSPHERE,
    EPS_RANK,
    INSPHERE_CHUNK,
    UNCLASSIFIED,
)


# Local vertex positions of the 6 edges of a tetrahedron
EDGE_PAIRS = np.array([(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)])


class TriangulationInvariantError(RuntimeError):
    """The engine reports an invalid triangulation after a completed operation."""


def affine_dimension(points: np.ndarray) -> int:
    """
    Dimension of the affine hull of a point set.

    Returns:
        -1 for no points, 0 for a single point (or all coincident),
        otherwise the numerical rank of the centred coordinates (≤ 3).
    """
    if len(points) == 0:
        return -1
    if len(points) == 1:
        return 0
    centered = points - points[0]
    s = np.linalg.svd(centered, compute_uv=False)
    if s[0] == 0.0:
        return 0
    return int(np.sum(s > EPS_RANK * s[0]))


def orient3d(p: np.ndarray) -> np.ndarray:
    """
    Signed orientation det[a-d, b-d, c-d] for stacked tetrahedra.

    Args:
        p: (n, 4, 3) vertex coordinates

    Returns:
        (n,) array; |value| = 6 × volume
    """
    return np.linalg.det(p[:, :3] - p[:, 3:4])


def longest_edge(p: np.ndarray) -> np.ndarray:
    """Longest edge length per tetrahedron, p is (n, 4, 3)."""
    d = p[:, EDGE_PAIRS[:, 0]] - p[:, EDGE_PAIRS[:, 1]]
    return np.sqrt(np.max(np.sum(d * d, axis=2), axis=1))


def insphere(p: np.ndarray, e: np.ndarray) -> np.ndarray:
    """
    In-sphere determinant for stacked tetrahedra.

    Positive when e lies inside the circumsphere of p AND orient3d(p) > 0.
    Multiply by sign(orient3d) for an orientation-free answer.

    Args:
        p: (n, 4, 3) tetrahedra
        e: (n, 3) query points

    Returns:
        (n,) determinants
    """
    rel = p - e[:, None, :]
    lifted = np.sum(rel * rel, axis=2)
    m = np.concatenate([rel, lifted[:, :, None]], axis=2)
    return np.linalg.det(m)


def insphere_tolerance(reach: np.ndarray, bound: float) -> np.ndarray:
    """
    Largest in-sphere determinant still accepted as "on the sphere".

    Args:
        reach: (n,) largest distance from the query point to the tetrahedron
        bound: largest |coordinate| in the triangulation (joggle scale)

    Returns:
        (n,) EPS_INSPHERE · max(bound, reach) · reach⁴
    """
    return EPS_INSPHERE * np.maximum(bound, reach) * reach ** 4


class DelaunayTriangulation3:
    """
    3D Delaunay triangulation of labelled points.

    Attributes:
        qhull_options: passed verbatim to scipy.spatial.Delaunay
        generation: incremented on every insert/remove
    """

    def __init__(self, qhull_options: str = QHULL_OPTIONS):
        self.qhull_options = qhull_options
        self.generation = 0
        self._points = np.empty((0, 3), dtype=float)
        self._labels = np.empty(0, dtype=np.int64)
        self._alive = np.empty(0, dtype=bool)
        self._simplices = np.empty((0, 4), dtype=np.int64)
        self._neighbors = np.empty((0, 4), dtype=np.int64)
        self._tags = np.empty(0, dtype=np.int64)
        self._dimension = -1

    def __repr__(self):
        return (f"DelaunayTriangulation3(dimension={self._dimension}, "
                f"vertices={self.number_of_vertices}, "
                f"cells={self.number_of_finite_cells}, "
                f"generation={self.generation})")

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, points, labels):
        """
        Insert points with their time labels in one batch.

        Args:
            points: (N, 3) coordinates
            labels: (N,) non-negative integer time labels, labels[i] ↔ points[i]

        Raises:
            ValueError: malformed arrays or negative labels
        """
        points = np.asarray(points, dtype=float)
        labels = np.asarray(labels)

        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"points must have shape (N, 3), got {points.shape}")
        if labels.ndim != 1 or len(labels) != len(points):
            raise ValueError(
                f"labels must be 1-D and aligned with points: "
                f"{len(labels)} labels for {len(points)} points"
            )
        if len(points) == 0:
            return
        if not np.all(np.isfinite(points)):
            raise ValueError("points must be finite")
        if np.any(labels < 0):
            raise ValueError("time labels must be non-negative")
        if not np.all(labels == np.floor(labels)):
            raise ValueError("time labels must be integers")

        all_points = np.vstack([self._points, points])
        candidate = np.concatenate([self._alive, np.ones(len(points), dtype=bool)])

        # Merge exact duplicates; older vertices come first and win
        live = np.flatnonzero(candidate)
        _, first = np.unique(all_points[live], axis=0, return_index=True)
        alive = np.zeros(len(all_points), dtype=bool)
        alive[live[first]] = True

        self._points = all_points
        self._labels = np.concatenate([self._labels, labels.astype(np.int64)])
        self._alive = alive
        self._retriangulate()

    def remove(self, vertex: int):
        """Remove one vertex and retriangulate."""
        self.remove_many([vertex])

    def remove_many(self, vertices):
        """
        Remove a batch of vertices, then retriangulate once.

        Raises:
            ValueError: a handle is out of range or already removed
        """
        vertices = np.unique(np.asarray(vertices, dtype=np.int64))
        if len(vertices) == 0:
            return
        if vertices[0] < 0 or vertices[-1] >= len(self._alive):
            raise ValueError(f"vertex handle out of range [0, {len(self._alive) - 1}]")
        dead = vertices[~self._alive[vertices]]
        if len(dead):
            raise ValueError(f"vertices already removed: {dead[:5].tolist()}")

        self._alive[vertices] = False
        self._retriangulate()

    def _retriangulate(self):
        self.generation += 1
        live = np.flatnonzero(self._alive)
        pts = self._points[live]
        self._dimension = affine_dimension(pts)

        if self._dimension < 3:
            simplices = np.empty((0, 4), dtype=np.int64)
            neighbors = np.empty((0, 4), dtype=np.int64)
        elif len(live) == 4:
            simplices = np.arange(4, dtype=np.int64)[None, :]
            neighbors = np.full((1, 4), -1, dtype=np.int64)
        else:
            tri = Delaunay(pts, qhull_options=self.qhull_options)
            simplices = tri.simplices.astype(np.int64)
            neighbors = tri.neighbors.astype(np.int64)

            # Points Qhull left out of every simplex are merged away
            used = np.zeros(len(live), dtype=bool)
            used[simplices.ravel()] = True
            if not used.all():
                self._alive[live[~used]] = False

        self._simplices = live[simplices]
        self._neighbors = neighbors
        self._tags = np.full(len(simplices), UNCLASSIFIED, dtype=np.int64)

    # ------------------------------------------------------------------
    # Counts and iteration
    # ------------------------------------------------------------------

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def number_of_vertices(self) -> int:
        return int(np.count_nonzero(self._alive))

    @property
    def number_of_finite_cells(self) -> int:
        return len(self._simplices)

    @property
    def number_of_finite_edges(self) -> int:
        return len(self.finite_edges())

    @property
    def simplices(self) -> np.ndarray:
        """(n_cells, 4) vertex handles of every finite cell (read-only view)."""
        view = self._simplices.view()
        view.flags.writeable = False
        return view

    def finite_vertices(self) -> np.ndarray:
        return np.flatnonzero(self._alive)

    def finite_cells(self) -> np.ndarray:
        return np.arange(len(self._simplices), dtype=np.int64)

    def finite_edges(self) -> np.ndarray:
        """
        Unique edges of all finite cells.

        Returns:
            (n_edges, 2) vertex handles with i < j, sorted
        """
        if len(self._simplices) == 0:
            return np.empty((0, 2), dtype=np.int64)
        pairs = self._simplices[:, EDGE_PAIRS].reshape(-1, 2)
        lo = pairs.min(axis=1)
        hi = pairs.max(axis=1)
        n = np.int64(len(self._points))
        keys = np.unique(lo * n + hi)
        return np.stack([keys // n, keys % n], axis=1)

    def cell_vertices(self, cell: int) -> Tuple[int, int, int, int]:
        return tuple(int(v) for v in self._simplices[cell])

    @property
    def coordinate_bound(self) -> float:
        """Largest absolute coordinate over the live vertices (0 when empty)."""
        live = self._points[self._alive]
        if len(live) == 0:
            return 0.0
        return float(np.max(np.abs(live)))

    def point(self, vertex: int) -> np.ndarray:
        return self._points[vertex].copy()

    def points_of(self, vertices) -> np.ndarray:
        return self._points[np.asarray(vertices, dtype=np.int64)]

    # ------------------------------------------------------------------
    # Metadata: vertex labels and cell tags
    # ------------------------------------------------------------------

    def label(self, vertex: int) -> int:
        return int(self._labels[vertex])

    def labels_of(self, vertices) -> np.ndarray:
        return self._labels[np.asarray(vertices, dtype=np.int64)]

    def cell_labels(self) -> np.ndarray:
        """(n_cells, 4) time labels, aligned with `simplices`."""
        return self._labels[self._simplices]

    def tag(self, cell: int) -> int:
        return int(self._tags[cell])

    @property
    def tags(self) -> np.ndarray:
        view = self._tags.view()
        view.flags.writeable = False
        return view

    def set_tags(self, cells, tag: int):
        self._tags[np.asarray(cells, dtype=np.int64)] = tag

    def reset_tags(self):
        self._tags[:] = UNCLASSIFIED

    # ------------------------------------------------------------------
    # Validity
    # ------------------------------------------------------------------

    def _soundness(self, simplices: np.ndarray) -> np.ndarray:
        if len(simplices) == 0:
            return np.empty(0, dtype=bool)
        ordered = np.sort(simplices, axis=1)
        distinct = np.all(ordered[:, 1:] != ordered[:, :-1], axis=1)
        live = np.all(self._alive[simplices], axis=1)

        p = self._points[simplices]
        volume6 = np.abs(orient3d(p))
        scale = longest_edge(p)
        solid = volume6 > EPS_VOLUME * scale ** 3
        return distinct & live & solid

    def cell_soundness(self) -> np.ndarray:
        """
        Structural soundness of every finite cell.

        A cell is sound iff its 4 vertices are distinct, alive, and span a
        non-negligible volume.

        Returns:
            (n_cells,) bool array
        """
        return self._soundness(self._simplices)

    def is_structurally_valid(self, cell: int) -> bool:
        return bool(self._soundness(self._simplices[[cell]])[0])

    def validate(self, strict: bool = False) -> Tuple[bool, List[str]]:
        """
        Check the whole triangulation.

        Combinatorial:
            - cells exist iff dimension is 3
            - every cell vertex is alive, every live vertex is used
            - neighbour relation is symmetric and neighbours share a facet
        Geometric (local Delaunay lemma):
            - for every sound cell and each finite neighbour, the neighbour's
              opposite vertex is not strictly inside the cell's circumsphere

        Args:
            strict: If True, raise TriangulationInvariantError on failure

        Returns:
            (is_valid, list of error messages)
        """
        errors = []
        s = self._simplices
        nb = self._neighbors
        n_cells = len(s)

        if self._dimension == 3 and n_cells == 0:
            errors.append("dimension 3 but no finite cells")
        if self._dimension < 3 and n_cells > 0:
            errors.append(f"dimension {self._dimension} but {n_cells} cells")

        if n_cells > 0:
            if not np.all(self._alive[s]):
                errors.append("cell references a removed vertex")

            used = np.zeros(len(self._alive), dtype=bool)
            used[s.ravel()] = True
            orphans = np.flatnonzero(self._alive & ~used)
            if len(orphans):
                errors.append(f"{len(orphans)} live vertices in no cell, e.g. {orphans[:5].tolist()}")

        if errors:
            if strict:
                raise TriangulationInvariantError(f"Triangulation invalid: {errors}")
            return (False, errors)

        c_idx, f_idx = np.nonzero(nb >= 0)
        n_idx = nb[c_idx, f_idx]

        if len(c_idx):
            back = nb[n_idx] == c_idx[:, None]
            if not np.all(back.any(axis=1)):
                errors.append("neighbour relation is not symmetric")
            else:
                facet_mask = np.ones((len(c_idx), 4), dtype=bool)
                facet_mask[np.arange(len(c_idx)), f_idx] = False
                facet = s[c_idx][facet_mask].reshape(-1, 3)
                shares = (facet[:, :, None] == s[n_idx][:, None, :]).any(axis=2).all(axis=1)
                if not np.all(shares):
                    errors.append("neighbouring cells do not share a facet")

        if not errors and len(c_idx):
            n_violations = self._count_insphere_violations(c_idx, n_idx)
            if n_violations:
                errors.append(f"{n_violations} facets violate the empty-sphere property")

        if errors and strict:
            raise TriangulationInvariantError(f"Triangulation invalid: {errors}")

        return (len(errors) == 0, errors)

    def _count_insphere_violations(self, c_idx: np.ndarray, n_idx: np.ndarray) -> int:
        s = self._simplices
        sound = self.cell_soundness()
        keep = sound[c_idx]
        c_idx = c_idx[keep]
        n_idx = n_idx[keep]

        # Opposite vertex of the neighbour: position where it points back at c
        opposite_pos = np.argmax(self._neighbors[n_idx] == c_idx[:, None], axis=1)
        opposite = s[n_idx, opposite_pos]

        bound = self.coordinate_bound
        violations = 0
        for start in range(0, len(c_idx), INSPHERE_CHUNK):
            cells = c_idx[start:start + INSPHERE_CHUNK]
            p = self._points[s[cells]]
            e = self._points[opposite[start:start + INSPHERE_CHUNK]]

            side = insphere(p, e) * np.sign(orient3d(p))
            reach = np.max(np.linalg.norm(p - e[:, None, :], axis=2), axis=1)
            violations += int(np.count_nonzero(side > insphere_tolerance(reach, bound)))

        return violations

    def is_valid(self) -> bool:
        return self.validate(strict=False)[0]

    def assert_valid(self):
        """Raise TriangulationInvariantError unless validate() passes."""
        self.validate(strict=True)
