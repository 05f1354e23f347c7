"""
Enumeration of reciprocal lattice vectors.

:class:`QFractEnumerator` lists every integer vector ``n`` with

    |n @ b_par| < max_q_par   and   |n @ b_perp| < max_q_perp

without scanning a bounding box. Both conditions imply ``n @ g @ n < 1`` for
a positive definite matrix ``g``; the enumerator walks the integer points of
that ellipsoid coordinate by coordinate. For a fixed prefix ``n[:i]`` the
ellipsoid restricted to the remaining coordinates is smallest when the free
coordinates ``n[i+1:]`` take their continuous optimum, which bounds ``n[i]``
to the interval between the roots of a quadratic. Integers of each interval
are visited from the middle outwards. Leaves are tested against the two
exact bounds.
"""

import logging
import math

import numpy as np

from .algebra import NumericAlgebra
from .space_group import SpaceGroup, Star

logger = logging.getLogger(__name__)


def _real_roots_of_quad_eq(a: float, b: float, c: float) -> tuple[float, float]:
    """Sorted real roots of ``a x^2 + b x + c``; a double root if none."""
    d = b * b - 4 * a * c
    if d <= 0:
        x = -b / (2 * a)
        return x, x
    rtd = math.sqrt(d)
    if b > 0:
        x0 = -(b + rtd) / (2 * a)
    else:
        x0 = (-b + rtd) / (2 * a)
    x1 = c / a / x0
    return (x0, x1) if x0 <= x1 else (x1, x0)


class QFractEnumerator:
    """Iterator over integer vectors inside a parallel/perpendicular cut-off.

    Args:
        b_par: dim x dim_par reciprocal basis (rows are lattice directions)
        b_perp: dim x dim_perp reciprocal basis
        max_q_par: Strict upper bound of the parallel norm
        max_q_perp: Strict upper bound of the perpendicular norm; ignored if
            ``dim_perp == 0``

    Raises:
        ValueError: If a required bound is missing or not positive
    """

    def __init__(self, b_par, b_perp, max_q_par, max_q_perp=None):
        b_par = np.asarray(b_par, dtype=float)
        b_perp = np.asarray(b_perp, dtype=float)
        dim = b_par.shape[0]
        dim_par = b_par.shape[1]
        if b_perp.ndim != 2:
            b_perp = b_perp.reshape(dim, 0)
        dim_perp = b_perp.shape[1]
        if max_q_par is None or max_q_par <= 0:
            raise ValueError(
                f"max_q_par must be a positive number, got {max_q_par!r}"
            )
        if dim_perp > 0 and (max_q_perp is None or max_q_perp <= 0):
            raise ValueError(
                f"max_q_perp must be a positive number, got {max_q_perp!r}"
            )

        self._dim = dim
        self._dim_perp = dim_perp
        self._b_par = b_par
        self._b_perp = b_perp
        self._max_q_par2 = float(max_q_par) ** 2
        self._max_q_perp2 = float(max_q_perp) ** 2 if dim_perp > 0 else None

        scale = np.full(dim_par, 1.0 / max_q_par)
        if dim_perp > 0:
            scale = np.concatenate([scale, np.full(dim_perp, 1.0 / max_q_perp)])
            scale = scale / np.sqrt(2)
        b = np.hstack([b_par, b_perp]) * scale
        self._g = b @ b.T

        # optimal free coordinates at depth i: n[i+1:] = h[i] @ n[:i+1]
        self._h = []
        for i in range(dim):
            free = slice(i + 1, dim)
            g_ff = self._g[free, free]
            if g_ff.size == 0:
                self._h.append(np.zeros((0, i + 1)))
            else:
                self._h.append(-np.linalg.solve(g_ff, self._g[free, :i + 1]))

        self._current = np.zeros(dim, dtype=int)
        self._increment = np.zeros(dim, dtype=int)
        self._stop = np.zeros(dim, dtype=int)
        self._depth = 0
        self._done = dim == 0
        if not self._done:
            self._start(0)

    def __iter__(self):
        return self

    def _range(self, depth: int) -> tuple[float, float]:
        prefix = self._current[:depth].astype(float)
        h = self._h[depth]
        v0 = np.concatenate([prefix, [0.0], h[:, :depth] @ prefix])
        v1 = np.concatenate([np.zeros(depth), [1.0], h[:, depth]])
        gv1 = self._g @ v1
        a = float(v1 @ gv1)
        b = 2.0 * float(v0 @ gv1)
        c = float(v0 @ self._g @ v0) - 1.0
        return _real_roots_of_quad_eq(a, b, c)

    def _start(self, depth: int) -> None:
        r0, r1 = self._range(depth)
        lo = math.floor(r0) + 1
        hi = math.ceil(r1) - 1
        diff = hi - lo
        self._current[depth] = lo + diff // 2
        self._increment[depth] = -1 if diff % 2 == 0 else 1
        self._stop[depth] = lo - 1
        if depth == 0:
            logger.debug("first coordinate in [%d, %d]", lo, hi)

    def _advance(self, depth: int) -> None:
        self._current[depth] += self._increment[depth]
        inc = self._increment[depth]
        self._increment[depth] = -(inc + 1) if inc > 0 else -(inc - 1)

    def _accept(self, n: np.ndarray) -> bool:
        q_par = n @ self._b_par
        if q_par @ q_par >= self._max_q_par2:
            return False
        if self._dim_perp > 0:
            q_perp = n @ self._b_perp
            return q_perp @ q_perp < self._max_q_perp2
        return True

    def __next__(self) -> np.ndarray:
        last = self._dim - 1
        while not self._done:
            depth = self._depth
            found = None
            if self._current[depth] != self._stop[depth]:
                if depth < last:
                    self._depth = depth + 1
                    self._start(self._depth)
                    continue
                n = self._current.astype(float)
                if self._accept(n):
                    found = n
            elif depth == 0:
                self._done = True
                break
            else:
                self._depth = depth = depth - 1
            self._advance(depth)
            if found is not None:
                return found
        raise StopIteration


class SymmetricStarEnumerator:
    """Iterator over symmetry stars of enumerated reciprocal vectors.

    Every vector produced by ``enumerator`` belongs to exactly one yielded
    :class:`Star`. Vectors already covered by an earlier star are skipped;
    they are looked up in buckets keyed by their squared length.

    Args:
        enumerator: Iterator of integer vectors, e.g. a QFractEnumerator
        ssg: Space group with numeric fractional operations
        algebra: Numeric algebra used for comparisons
    """

    def __init__(self, enumerator, ssg: SpaceGroup, algebra: NumericAlgebra):
        self._enumerator = iter(enumerator)
        self._ssg = ssg
        self._algebra = algebra
        self._cache = {}

    def __iter__(self):
        return self

    @staticmethod
    def _key(q: np.ndarray) -> int:
        return int(round(float(q @ q)))

    def _pop_cached(self, q: np.ndarray) -> bool:
        key = self._key(q)
        bucket = self._cache.get(key)
        if not bucket:
            return False
        for i, cached in enumerate(bucket):
            if self._algebra.eq(cached, q):
                del bucket[i]
                if not bucket:
                    del self._cache[key]
                return True
        return False

    def __next__(self) -> Star:
        ralg = self._algebra
        for q in self._enumerator:
            if self._pop_cached(q):
                continue
            star = self._ssg.gen_star(q, lambda a, g: a @ g.rot, ralg.eq)
            for qi in star.star[1:]:
                self._cache.setdefault(self._key(qi), []).append(qi)
            return star
        raise StopIteration
