"""
Point groups and their asymmetric units.
"""

import logging
from collections.abc import Sequence

import numpy as np

from .algebra import NumericAlgebra, RealAlgebra
from .constants import DEFAULT_MAX_TRIALS
from .errors import DimensionMismatch, NoGeneralPositionFound
from .group import Group
from .polytope import Polytope, PolytopeAlgebra

logger = logging.getLogger(__name__)


class PointGroup(Group):
    """A group of square matrices of a common dimension.

    Raises:
        InvalidGeneratorSet: If ``g`` is empty
        DimensionMismatch: If an element is not square or differs in size
    """

    def __init__(self, g: Sequence[np.ndarray]):
        super().__init__([np.asarray(gi) for gi in g])
        dim = self._g[0].shape[0] if self._g[0].ndim == 2 else -1
        for gi in self._g:
            if gi.ndim != 2 or gi.shape != (dim, dim):
                raise DimensionMismatch(
                    "All elements of a point group must be square matrices "
                    "of the same dimension"
                )

    @property
    def dim(self) -> int:
        return self._g[0].shape[0]

    @property
    def symop(self) -> list[np.ndarray]:
        return list(self._g)

    def copy(self) -> "PointGroup":
        return PointGroup([gi.copy() for gi in self._g])

    def with_algebra(self, algebra: RealAlgebra) -> "PointGroup":
        return PointGroup([algebra.asarray(gi) for gi in self._g])

    def _images(self, v: np.ndarray, ralg: NumericAlgebra) -> list[np.ndarray]:
        positions = []
        for rot in self._g:
            image = np.asarray(rot, dtype=float) @ v
            if all(not ralg.eq(image, p) for p in positions):
                positions.append(image)
        return positions

    def gen_asymmetric_unit(
        self,
        palg: PolytopeAlgebra,
        d: float,
        hint_general_position=None,
        max_trials: int = DEFAULT_MAX_TRIALS
    ) -> Polytope:
        """Asymmetric unit inside the hypercube ``[-d, d]^dim``.

        A general position is a vector with ``order`` distinct images. The
        hint is tried first, then ``(1, 0, ..., 0)``; after each failure
        ``dim - j`` is added to coordinate ``j``. The hypercube is then cut
        by the perpendicular bisector between the first image and each of
        the others.

        Args:
            palg: Polytope algebra of the group dimension
            d: Half-width of the bounding hypercube
            hint_general_position: Optional first trial vector
            max_trials: Maximum number of trial vectors

        Returns:
            The asymmetric unit

        Raises:
            DimensionMismatch: If ``palg`` has another dimension
            NoGeneralPositionFound: If all trials fail
        """
        dim = self.dim
        if palg.dim != dim:
            raise DimensionMismatch(
                f"Polytope algebra of dimension {palg.dim} given to a point "
                f"group of dimension {dim}"
            )
        if not isinstance(max_trials, int) or max_trials < 1:
            raise ValueError(
                f"max_trials must be a positive integer, got {max_trials!r}"
            )
        if dim == 0:
            return palg.hypercube()

        ralg = NumericAlgebra(palg.eps)
        positions = None
        if hint_general_position is not None:
            v = np.asarray(hint_general_position, dtype=float).reshape(dim)
            images = self._images(v, ralg)
            if len(images) == self.order:
                positions = images

        if positions is None:
            v = np.zeros(dim)
            v[0] = 1.0
            step = np.arange(dim, 0, -1, dtype=float)
            for _ in range(max_trials):
                images = self._images(v, ralg)
                if len(images) == self.order:
                    positions = images
                    break
                v = v + step
            else:
                raise NoGeneralPositionFound(
                    f"No general position found in {max_trials} trials"
                )

        logger.debug("general position %s for point group of order %d",
                     positions[0], self.order)
        asym = palg.hypercube(d)
        for pos in positions[1:]:
            asym = palg.add_facet(asym, palg.facet(pos - positions[0], 0.0))
        return asym
