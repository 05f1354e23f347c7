"""
Polytope algebra of the perpendicular space.

A polytope is a finite union of convex cells whose interiors are pairwise
disjoint. Each cell is stored as a set of half-spaces ``normals @ x <=
offsets``; vertices, volumes and simplex decompositions are computed on
demand with qhull. Boolean operations (intersection, union, difference) only
ever add half-spaces, so they stay exact up to the emptiness test, which uses
the Chebyshev centre of a cell.

Example:
    >>> from qc_tools.polytope import PolytopeAlgebra
    >>> palg = PolytopeAlgebra(2)
    >>> square = palg.hypercube(1.0)
    >>> half = palg.add_facet(square, palg.facet([1.0, 0.0], 0.0))
    >>> round(palg.volume(half), 12)
    2.0
"""

import json
import logging
from dataclasses import dataclass

import numpy as np
from scipy.optimize import linprog
from scipy.spatial import (
    ConvexHull,
    Delaunay,
    HalfspaceIntersection,
    QhullError,
    cKDTree,
)

from .constants import DEFAULT_EPS
from .errors import DimensionMismatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class HalfSpace:
    """The half-space ``normal . x <= offset``."""

    normal: np.ndarray
    offset: float


@dataclass(frozen=True, eq=False)
class ConvexCell:
    """A convex region ``normals @ x <= offsets`` with unit normals."""

    normals: np.ndarray
    offsets: np.ndarray

    @property
    def dim(self) -> int:
        return self.normals.shape[1]

    def to_dict(self) -> dict:
        return {
            "normals": self.normals.tolist(),
            "offsets": self.offsets.tolist(),
        }


class Polytope:
    """An immutable union of interior-disjoint convex cells."""

    def __init__(self, dim: int, cells=()):
        self._dim = dim
        self._cells = tuple(cells)

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def cells(self) -> tuple[ConvexCell, ...]:
        return self._cells

    def is_null(self) -> bool:
        return len(self._cells) == 0

    def to_dict(self) -> dict:
        return {
            "dim": self._dim,
            "cells": [cell.to_dict() for cell in self._cells],
        }

    def __repr__(self) -> str:
        return f"Polytope(dim={self._dim}, cells={len(self._cells)})"


def _deduplicate_vertices(
    vertices: np.ndarray,
    tolerance: float = 1e-8
) -> np.ndarray:
    """Remove duplicate vertices using a KD-tree.

    Args:
        vertices: NxD array of vertex positions
        tolerance: Distance threshold for considering vertices identical

    Returns:
        Array of unique vertices
    """
    if len(vertices) == 0:
        return vertices

    tree = cKDTree(vertices)

    unique_indices = []
    visited = set()

    for i in range(len(vertices)):
        if i in visited:
            continue
        for n in tree.query_ball_point(vertices[i], tolerance):
            visited.add(n)
        unique_indices.append(i)

    return vertices[unique_indices]


class PolytopeAlgebra:
    """Boolean and metric operations on polytopes of a fixed dimension.

    Args:
        dim: Dimension of the space (0 is allowed; its only non-null
            polytope is the point)
        eps: Tolerance used to discard empty or degenerate cells
    """

    def __init__(self, dim: int, eps: float = DEFAULT_EPS):
        if not isinstance(dim, int) or dim < 0:
            raise DimensionMismatch(
                f"Polytope dimension must be a non-negative integer, got {dim!r}"
            )
        self.dim = dim
        self.eps = eps

    def __repr__(self) -> str:
        return f"PolytopeAlgebra(dim={self.dim}, eps={self.eps!r})"

    # -- cells -----------------------------------------------------------

    def _make_cell(self, normals, offsets) -> ConvexCell | None:
        """Normalise half-spaces; None if a degenerate one excludes all."""
        offsets = np.asarray(offsets, dtype=float).reshape(-1)
        normals = np.asarray(normals, dtype=float).reshape(len(offsets), self.dim)
        lengths = np.linalg.norm(normals, axis=1)
        degenerate = lengths < self.eps
        if np.any(offsets[degenerate] < -self.eps):
            return None
        keep = ~degenerate
        return ConvexCell(
            normals=normals[keep] / lengths[keep, None],
            offsets=offsets[keep] / lengths[keep],
        )

    def _chebyshev_centre(
        self,
        cell: ConvexCell
    ) -> tuple[np.ndarray | None, float]:
        """Centre and radius of the largest ball inside a cell.

        Returns:
            (centre, radius); centre is None if the cell is empty
        """
        n_constraints = len(cell.offsets)
        if self.dim == 0 or n_constraints == 0:
            return np.zeros(self.dim), np.inf

        # Maximize r subject to: n_i . x + r <= d_i
        c = np.zeros(self.dim + 1)
        c[-1] = -1.0
        A_ub = np.hstack([cell.normals, np.ones((n_constraints, 1))])
        bounds = [(None, None)] * self.dim + [(0.0, None)]

        result = linprog(
            c, A_ub=A_ub, b_ub=cell.offsets, bounds=bounds, method="highs"
        )
        if result.status == 3:
            return np.zeros(self.dim), np.inf
        if not result.success:
            return None, 0.0
        return result.x[:-1], float(result.x[-1])

    def _is_solid(self, cell: ConvexCell | None) -> bool:
        if cell is None:
            return False
        centre, radius = self._chebyshev_centre(cell)
        return centre is not None and radius > self.eps

    def _intersect_cells(
        self,
        a: ConvexCell,
        b: ConvexCell
    ) -> ConvexCell | None:
        cell = self._make_cell(
            np.vstack([a.normals, b.normals]),
            np.concatenate([a.offsets, b.offsets]),
        )
        return cell if self._is_solid(cell) else None

    def _subtract_cell(
        self,
        cell: ConvexCell,
        other: ConvexCell
    ) -> list[ConvexCell]:
        """Split ``cell - other`` into interior-disjoint convex pieces."""
        if self._intersect_cells(cell, other) is None:
            return [cell]
        pieces = []
        for i in range(len(other.offsets)):
            normals = np.vstack([
                cell.normals,
                other.normals[:i],
                -other.normals[i:i + 1],
            ])
            offsets = np.concatenate([
                cell.offsets,
                other.offsets[:i],
                -other.offsets[i:i + 1],
            ])
            piece = self._make_cell(normals, offsets)
            if self._is_solid(piece):
                pieces.append(piece)
        return pieces

    def vertices(self, cell: ConvexCell) -> np.ndarray:
        """Vertices of a convex cell as an NxD array."""
        if self.dim == 0:
            return np.zeros((1, 0))
        if self.dim == 1:
            n = cell.normals[:, 0]
            d = cell.offsets
            lo = np.max(d[n < 0] / n[n < 0])
            hi = np.min(d[n > 0] / n[n > 0])
            return np.array([[lo], [hi]])

        centre, _ = self._chebyshev_centre(cell)
        halfspaces = np.hstack([cell.normals, -cell.offsets.reshape(-1, 1)])
        try:
            hs = HalfspaceIntersection(halfspaces, centre)
        except QhullError:
            logger.warning("qhull failed on a cell with %d half-spaces",
                           len(cell.offsets))
            return np.zeros((0, self.dim))
        vertices = hs.intersections
        scale = max(1.0, float(np.max(np.abs(vertices))))
        return _deduplicate_vertices(vertices, 1e-8 * scale)

    # -- constructors ----------------------------------------------------

    def hypercube(self, d: float = 1.0) -> Polytope:
        """The hypercube ``[-d, d]^dim``."""
        d = float(d)
        normals = np.vstack([np.eye(self.dim), -np.eye(self.dim)])
        offsets = np.full(2 * self.dim, d)
        return Polytope(self.dim, [self._make_cell(normals, offsets)])

    def null(self) -> Polytope:
        return Polytope(self.dim)

    def facet(
        self,
        normal,
        offset: float,
        face_outside: bool = True
    ) -> HalfSpace:
        """The half-space ``normal . x <= offset``.

        Args:
            normal: Normal vector of the bounding hyperplane
            offset: Position of the hyperplane along ``normal``
            face_outside: If False the complementary half-space is returned
        """
        normal = np.asarray(normal, dtype=float).reshape(self.dim)
        offset = float(offset)
        if not face_outside:
            return HalfSpace(-normal, -offset)
        return HalfSpace(normal, offset)

    # -- boolean operations ----------------------------------------------

    def _check(self, *polytopes: Polytope) -> None:
        for p in polytopes:
            if p.dim != self.dim:
                raise DimensionMismatch(
                    f"Polytope of dimension {p.dim} given to {self!r}"
                )

    def is_null(self, p: Polytope) -> bool:
        self._check(p)
        return p.is_null()

    def add_facet(self, p: Polytope, facet: HalfSpace) -> Polytope:
        """Intersection of ``p`` with a half-space."""
        self._check(p)
        half = self._make_cell(facet.normal.reshape(1, -1), [facet.offset])
        if half is None:
            return self.null()
        cells = []
        for cell in p.cells:
            new_cell = self._intersect_cells(cell, half)
            if new_cell is not None:
                cells.append(new_cell)
        return Polytope(self.dim, cells)

    def mul(self, p: Polytope, q: Polytope) -> Polytope:
        """Intersection of two polytopes."""
        self._check(p, q)
        cells = []
        for a in p.cells:
            for b in q.cells:
                cell = self._intersect_cells(a, b)
                if cell is not None:
                    cells.append(cell)
        return Polytope(self.dim, cells)

    def sub(self, p: Polytope, q: Polytope) -> Polytope:
        """Difference ``p - q``."""
        self._check(p, q)
        cells = list(p.cells)
        for other in q.cells:
            cells = [
                piece
                for cell in cells
                for piece in self._subtract_cell(cell, other)
            ]
        return Polytope(self.dim, cells)

    def add(self, p: Polytope, q: Polytope) -> Polytope:
        """Union of two polytopes."""
        self._check(p, q)
        return Polytope(self.dim, p.cells + self.sub(q, p).cells)

    # -- transformations -------------------------------------------------

    def translate(self, p: Polytope, v) -> Polytope:
        """Translate ``p`` by the vector ``v``."""
        self._check(p)
        v = np.asarray(v, dtype=float).reshape(self.dim)
        return Polytope(self.dim, [
            ConvexCell(cell.normals, cell.offsets + cell.normals @ v)
            for cell in p.cells
        ])

    def rotate(self, p: Polytope, rot) -> Polytope:
        """Image of ``p`` under the linear map ``x -> rot @ x``."""
        self._check(p)
        rot = np.asarray(rot, dtype=float).reshape(self.dim, self.dim)
        if self.dim == 0:
            return Polytope(self.dim, p.cells)
        rot_inv = np.linalg.inv(rot)
        return Polytope(self.dim, [
            self._make_cell(cell.normals @ rot_inv, cell.offsets)
            for cell in p.cells
        ])

    def scale(self, p: Polytope, s: float) -> Polytope:
        """Scale ``p`` about the origin by a positive factor ``s``."""
        self._check(p)
        s = float(s)
        if s <= 0:
            raise ValueError(f"Scale factor must be positive, got {s}")
        return Polytope(self.dim, [
            ConvexCell(cell.normals, cell.offsets * s) for cell in p.cells
        ])

    # -- measures --------------------------------------------------------

    def cell_volume(self, cell: ConvexCell) -> float:
        if self.dim == 0:
            return 1.0
        vertices = self.vertices(cell)
        if self.dim == 1:
            return float(vertices[1, 0] - vertices[0, 0])
        if len(vertices) <= self.dim:
            return 0.0
        return float(ConvexHull(vertices).volume)

    def volume(self, p: Polytope) -> float:
        """Total volume of ``p`` (number of points in dimension 0)."""
        self._check(p)
        return sum(self.cell_volume(cell) for cell in p.cells)

    def gen_simplexes(self, p: Polytope) -> list[np.ndarray]:
        """Decompose ``p`` into simplexes.

        Returns:
            List of (dim + 1) x dim arrays holding simplex vertices
        """
        self._check(p)
        simplexes = []
        for cell in p.cells:
            vertices = self.vertices(cell)
            if self.dim <= 1:
                simplexes.append(vertices)
                continue
            if len(vertices) <= self.dim:
                continue
            tri = Delaunay(vertices)
            for simplex in tri.simplices:
                s = vertices[simplex]
                if abs(np.linalg.det(s[1:] - s[0])) > self.eps:
                    simplexes.append(s)
        logger.debug("decomposed %d cells into %d simplexes",
                     len(p.cells), len(simplexes))
        return simplexes

    # -- serialization ---------------------------------------------------

    def from_dict(self, obj: dict) -> Polytope:
        """Rebuild a polytope written by :meth:`Polytope.to_dict`."""
        if obj["dim"] != self.dim:
            raise DimensionMismatch(
                f"Polytope of dimension {obj['dim']} given to {self!r}"
            )
        cells = []
        for cell in obj["cells"]:
            offsets = np.asarray(cell["offsets"], dtype=float)
            normals = np.asarray(cell["normals"], dtype=float).reshape(
                len(offsets), self.dim)
            cells.append(ConvexCell(normals, offsets))
        return Polytope(self.dim, cells)

    def to_json(self, p: Polytope) -> str:
        self._check(p)
        return json.dumps(p.to_dict())

    def from_json(self, text: str) -> Polytope:
        return self.from_dict(json.loads(text))
