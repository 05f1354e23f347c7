"""
Test suite for finite groups, space groups and point groups.
"""

import numpy as np
import pytest

from qc_tools import (
    ClosureLimitExceeded,
    DimensionMismatch,
    Group,
    InvalidGeneratorSet,
    NoGeneralPositionFound,
    NumericAlgebra,
    PointGroup,
    PolytopeAlgebra,
    SpaceGroup,
    SpaceGroupSymop,
)

RALG = NumericAlgebra(1e-10)
ROT90 = np.array([[0.0, -1.0], [1.0, 0.0]])


def matmul(a, b):
    return a @ b


def cyclic4():
    elements = Group.gen_elements(np.eye(2), [ROT90], matmul, RALG.eq, 8)
    return PointGroup(elements)


# =============================================================================
# Group Tests
# =============================================================================

class TestGroup:
    """Test generic group operations."""

    def test_empty(self):
        """A group needs at least one element."""
        with pytest.raises(InvalidGeneratorSet):
            Group([])

    def test_gen_elements_cyclic(self):
        """Fourfold rotation generates four elements, identity first."""
        elements = Group.gen_elements(np.eye(2), [ROT90], matmul, RALG.eq, 4)
        assert len(elements) == 4
        assert np.allclose(elements[0], np.eye(2))
        for a in elements:
            for b in elements:
                assert any(RALG.eq(a @ b, c) for c in elements)

    def test_gen_elements_limit(self):
        """Exceeding max_order raises ClosureLimitExceeded."""
        with pytest.raises(ClosureLimitExceeded, match="exceeded 3"):
            Group.gen_elements(np.eye(2), [ROT90], matmul, RALG.eq, 3)

    @pytest.mark.parametrize("max_order", [0, -1, 2.5])
    def test_gen_elements_bad_limit(self, max_order):
        """max_order must be a positive integer."""
        with pytest.raises(ValueError, match="max_order"):
            Group.gen_elements(np.eye(2), [ROT90], matmul, RALG.eq, max_order)

    def test_gen_elements_no_generators(self):
        """No generators gives the trivial group."""
        elements = Group.gen_elements(np.eye(2), [], matmul, RALG.eq, 4)
        assert len(elements) == 1

    def test_orbit_general(self):
        """A general vector has as many images as group elements."""
        orbit = cyclic4().gen_orbit(np.array([1.0, 0.0]),
                                    lambda x, g: g @ x, RALG.eq)
        assert len(orbit.orbit) == 4
        assert orbit.g_orbit_id == [0, 1, 2, 3]
        assert np.allclose(orbit.orbit[0], [1.0, 0.0])

    def test_orbit_fixed_point(self):
        """The origin is fixed by every element."""
        orbit = cyclic4().gen_orbit(np.zeros(2), lambda x, g: g @ x, RALG.eq)
        assert len(orbit.orbit) == 1
        assert orbit.orbit_g_ids == [[0, 1, 2, 3]]
        assert orbit.g_orbit_id == [0, 0, 0, 0]

    def test_remove_duplicates(self):
        """Keeps the first of equal elements."""
        unique = Group.remove_duplicates([1.0, 2.0, 1.0 + 1e-12, 3.0], RALG.eq)
        assert unique == [1.0, 2.0, 3.0]


# =============================================================================
# Space Group Tests
# =============================================================================

class TestSpaceGroup:
    """Test space-group operations and groups."""

    def test_symop_shape_mismatch(self):
        """Rotation and translation sizes must agree."""
        with pytest.raises(DimensionMismatch):
            SpaceGroupSymop(np.eye(3), np.zeros(2))

    def test_symop_read_only(self):
        """Stored arrays cannot be modified."""
        rot = np.eye(2)
        g = SpaceGroupSymop(rot, np.zeros(2))
        rot[0, 0] = 5.0
        assert g.rot[0, 0] == 1.0
        with pytest.raises(ValueError):
            g.trans[0] = 1.0

    def test_symop_apply(self):
        """x -> rot @ x + trans."""
        g = SpaceGroupSymop(ROT90, np.array([0.5, 0.0]))
        assert np.allclose(g.apply(np.array([1.0, 0.0])), [0.5, 1.0])

    def test_rejects_other_elements(self):
        """Elements must be SpaceGroupSymop."""
        with pytest.raises(InvalidGeneratorSet):
            SpaceGroup([np.eye(2)])

    def test_rejects_mixed_dimensions(self):
        """Elements must share one dimension."""
        with pytest.raises(DimensionMismatch):
            SpaceGroup([
                SpaceGroupSymop.identity(2, RALG),
                SpaceGroupSymop.identity(3, RALG),
            ])

    def test_star(self):
        """Star of a vector under inversion."""
        sg = SpaceGroup([
            SpaceGroupSymop.identity(2, RALG),
            SpaceGroupSymop(-np.eye(2), np.zeros(2)),
        ])
        star = sg.gen_star(np.array([1.0, 2.0]), lambda q, g: q @ g.rot, RALG.eq)
        assert len(star.star) == 2
        assert star.symop_star_id == [0, 1]
        assert np.allclose(star.star[1], [-1.0, -2.0])

    def test_copy(self):
        """Copies are independent groups of the same order."""
        sg = SpaceGroup([SpaceGroupSymop.identity(3, RALG)])
        sg2 = sg.copy()
        assert sg2 is not sg
        assert sg2.order == 1
        assert sg2.dim == 3


# =============================================================================
# Point Group Tests
# =============================================================================

class TestPointGroup:
    """Test point groups and asymmetric units."""

    def test_non_square(self):
        """Elements must be square matrices."""
        with pytest.raises(DimensionMismatch):
            PointGroup([np.zeros((2, 3))])

    def test_mixed_sizes(self):
        """Elements must share one size."""
        with pytest.raises(DimensionMismatch):
            PointGroup([np.eye(2), np.eye(3)])

    def test_asymmetric_unit_c4(self):
        """Four copies of the asymmetric unit fill the square."""
        palg = PolytopeAlgebra(2)
        asym = cyclic4().gen_asymmetric_unit(palg, 1.0)
        assert palg.volume(asym) == pytest.approx(1.0)

    def test_asymmetric_unit_images_disjoint(self):
        """Images of the asymmetric unit do not overlap."""
        palg = PolytopeAlgebra(2)
        pg = cyclic4()
        asym = pg.gen_asymmetric_unit(palg, 1.0)
        union = palg.null()
        for rot in pg.symop:
            union = palg.add(union, palg.rotate(asym, rot))
        assert palg.volume(union) == pytest.approx(4.0)

    def test_asymmetric_unit_hint(self):
        """A general hint is used directly."""
        palg = PolytopeAlgebra(2)
        asym = cyclic4().gen_asymmetric_unit(palg, 1.0, [0.3, 0.1])
        assert palg.volume(asym) == pytest.approx(1.0)

    def test_asymmetric_unit_dimension_mismatch(self):
        """Polytope algebra must match the group dimension."""
        with pytest.raises(DimensionMismatch):
            cyclic4().gen_asymmetric_unit(PolytopeAlgebra(3), 1.0)

    def test_no_general_position(self):
        """Repeated elements never give distinct images."""
        palg = PolytopeAlgebra(2)
        pg = PointGroup([np.eye(2), np.eye(2)])
        with pytest.raises(NoGeneralPositionFound):
            pg.gen_asymmetric_unit(palg, 1.0, max_trials=5)

    def test_zero_dimension(self):
        """In dimension 0 the asymmetric unit is the point."""
        palg = PolytopeAlgebra(0)
        pg = PointGroup([np.zeros((0, 0))])
        asym = pg.gen_asymmetric_unit(palg, 1.0)
        assert palg.volume(asym) == 1.0
