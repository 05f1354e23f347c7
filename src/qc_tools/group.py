"""
Finite groups given by an ordered list of elements.

The group does not know how its elements act or compose; callers pass the
action, the product and the equality predicate explicitly. This keeps the
same orbit and closure code usable for space-group operations, point-group
matrices, and lattice vectors under either real algebra.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .errors import ClosureLimitExceeded, InvalidGeneratorSet

logger = logging.getLogger(__name__)


@dataclass
class Orbit:
    """Result of :meth:`Group.gen_orbit`.

    Attributes:
        orbit: Distinct images in order of first discovery
        orbit_g_ids: For each image, indices of all elements producing it
        g_orbit_id: For each group element, the index of its image
    """

    orbit: list
    orbit_g_ids: list[list[int]]
    g_orbit_id: list[int]


class Group:
    """An ordered, duplicate-free list of group elements.

    The first element must be the identity.

    Args:
        g: Sequence of group elements

    Raises:
        InvalidGeneratorSet: If ``g`` is empty
    """

    def __init__(self, g: Sequence):
        g = list(g)
        if len(g) == 0:
            raise InvalidGeneratorSet("A group needs at least one element")
        self._g = g

    @property
    def order(self) -> int:
        return len(self._g)

    @property
    def elements(self) -> list:
        return list(self._g)

    def __len__(self) -> int:
        return len(self._g)

    def gen_orbit(
        self,
        x: Any,
        apply_func: Callable[[Any, Any], Any],
        eq_func: Callable[[Any, Any], bool]
    ) -> Orbit:
        """Orbit of ``x`` under the group.

        Args:
            x: Object acted on
            apply_func: ``apply_func(x, g)`` gives the image of ``x`` by ``g``
            eq_func: Equality of two images

        Returns:
            Orbit whose first image is produced by the first element
        """
        orbit = []
        orbit_g_ids = []
        g_orbit_id = []
        for i, gi in enumerate(self._g):
            xi = apply_func(x, gi)
            for j, xj in enumerate(orbit):
                if eq_func(xi, xj):
                    g_orbit_id.append(j)
                    orbit_g_ids[j].append(i)
                    break
            else:
                g_orbit_id.append(len(orbit))
                orbit.append(xi)
                orbit_g_ids.append([i])
        return Orbit(orbit, orbit_g_ids, g_orbit_id)

    @staticmethod
    def remove_duplicates(
        g: Sequence,
        eq_func: Callable[[Any, Any], bool]
    ) -> list:
        """Drop elements equal to an earlier one, keeping the first."""
        unique = []
        for gi in g:
            if all(not eq_func(gj, gi) for gj in unique):
                unique.append(gi)
        return unique

    @staticmethod
    def gen_elements(
        identity: Any,
        generators: Sequence,
        mul_func: Callable[[Any, Any], Any],
        eq_func: Callable[[Any, Any], bool],
        max_order: int
    ) -> list:
        """Close a generator set under multiplication.

        Every product ``mul_func(generator, element)`` is compared with all
        elements found so far and appended when new. Elements are visited in
        the order they were found, generators innermost, until a full pass
        adds nothing.

        Args:
            identity: Identity element; it is the first element of the result
            generators: Generator elements
            mul_func: Product ``mul_func(generator, element)``
            eq_func: ``eq_func(new, existing)`` equality predicate
            max_order: Maximum number of elements allowed

        Returns:
            List of all group elements

        Raises:
            ValueError: If ``max_order`` is not a positive integer
            ClosureLimitExceeded: If more than ``max_order`` elements appear
        """
        if not isinstance(max_order, int) or max_order < 1:
            raise ValueError(
                f"max_order must be a positive integer, got {max_order!r}"
            )
        generators = list(generators)
        g = [identity]
        n = len(generators)
        i = 0
        j = 0
        while len(g) <= max_order:
            if i == n:
                j += 1
                i = 0
            if j == len(g):
                break
            gk = mul_func(generators[i], g[j])
            if all(not eq_func(gk, gl) for gl in g):
                g.append(gk)
            i += 1
        if len(g) > max_order:
            raise ClosureLimitExceeded(
                f"Group generation exceeded {max_order} elements"
            )
        logger.debug("generated %d elements from %d generators", len(g), n)
        return g
