"""
Space-group operations and space groups.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from .algebra import RealAlgebra
from .errors import DimensionMismatch, InvalidGeneratorSet
from .group import Group


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, copy=True)
    arr.flags.writeable = False
    return arr


class SpaceGroupSymop:
    """A symmetry operation ``x -> rot @ x + trans``.

    The rotation and translation are stored as read-only copies.

    Args:
        rot: dim x dim matrix
        trans: Translation vector of length dim
    """

    def __init__(self, rot: np.ndarray, trans: np.ndarray):
        rot = np.asarray(rot)
        trans = np.asarray(trans)
        if trans.ndim != 1 or rot.shape != (trans.shape[0], trans.shape[0]):
            raise DimensionMismatch(
                f"Rotation of shape {rot.shape} does not match translation "
                f"of shape {trans.shape}"
            )
        self._rot = _frozen(rot)
        self._trans = _frozen(trans)

    @property
    def dim(self) -> int:
        return self._trans.shape[0]

    @property
    def rot(self) -> np.ndarray:
        return self._rot

    @property
    def trans(self) -> np.ndarray:
        return self._trans

    @classmethod
    def identity(cls, dim: int, algebra: RealAlgebra) -> "SpaceGroupSymop":
        return cls(algebra.identity(dim), algebra.zeros(dim))

    def copy(self) -> "SpaceGroupSymop":
        return SpaceGroupSymop(self._rot, self._trans)

    def with_algebra(self, algebra: RealAlgebra) -> "SpaceGroupSymop":
        """The same operation converted to another algebra."""
        return SpaceGroupSymop(
            algebra.asarray(self._rot), algebra.asarray(self._trans))

    def apply(self, pos: np.ndarray) -> np.ndarray:
        return self._rot @ pos + self._trans

    def __repr__(self) -> str:
        return (f"SpaceGroupSymop(rot={self._rot.tolist()}, "
                f"trans={self._trans.tolist()})")


@dataclass
class Star:
    """Result of :meth:`SpaceGroup.gen_star`.

    Attributes:
        star: Distinct images in order of first discovery
        star_symop_ids: For each image, indices of the operations producing it
        symop_star_id: For each operation, the index of its image
    """

    star: list
    star_symop_ids: list[list[int]]
    symop_star_id: list[int]


class SpaceGroup(Group):
    """A group of :class:`SpaceGroupSymop` of a common dimension.

    Raises:
        InvalidGeneratorSet: If ``g`` is empty or holds other objects
        DimensionMismatch: If the operations differ in dimension
    """

    def __init__(self, g: Sequence[SpaceGroupSymop]):
        super().__init__(g)
        if not all(isinstance(gi, SpaceGroupSymop) for gi in self._g):
            raise InvalidGeneratorSet(
                "All elements of a space group must be SpaceGroupSymop"
            )
        dim = self._g[0].dim
        if any(gi.dim != dim for gi in self._g[1:]):
            raise DimensionMismatch(
                "All elements of a space group must have the same dimension"
            )

    @property
    def dim(self) -> int:
        return self._g[0].dim

    @property
    def symop(self) -> list[SpaceGroupSymop]:
        return list(self._g)

    def copy(self) -> "SpaceGroup":
        return SpaceGroup([gi.copy() for gi in self._g])

    def with_algebra(self, algebra: RealAlgebra) -> "SpaceGroup":
        return SpaceGroup([gi.with_algebra(algebra) for gi in self._g])

    def gen_star(
        self,
        x: Any,
        apply_func: Callable[[Any, SpaceGroupSymop], Any],
        eq_func: Callable[[Any, Any], bool]
    ) -> Star:
        """Star of ``x``; same ordering rules as :meth:`Group.gen_orbit`."""
        orbit = self.gen_orbit(x, apply_func, eq_func)
        return Star(orbit.orbit, orbit.orbit_g_ids, orbit.g_orbit_id)
