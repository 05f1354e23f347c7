"""
Shared quasicrystal models for the test suite.
"""

import numpy as np
import pytest
import sympy

from qc_tools import (
    SCAT_CROMER_MANN_COEFFS,
    AtomicSurface,
    AtomType,
    ExactAlgebra,
    NumericAlgebra,
    OccupationDomain,
    Quasicrystal,
)

TAU = (1 + sympy.sqrt(5)) / 2
SQRT2_2 = sympy.sqrt(2) / 2


def octagonal_basis():
    """Parallel and perpendicular bases of the octagonal lattice."""
    a_par = [
        1, SQRT2_2, 0, -SQRT2_2,
        0, SQRT2_2, 1, SQRT2_2,
    ]
    a_perp = [
        1, -SQRT2_2, 0, SQRT2_2,
        0, SQRT2_2, -1, SQRT2_2,
    ]
    return a_par, a_perp


def octagonal_generators(qc):
    """Generators of P8mm."""
    notrans = [0, 0, 0, 0]
    return [
        qc.gen_sg_symop([
            0, 0, 0, -1,
            1, 0, 0, 0,
            0, 1, 0, 0,
            0, 0, 1, 0], notrans),
        qc.gen_sg_symop([
            1, 0, 0, 0,
            0, 0, 0, -1,
            0, 0, -1, 0,
            0, -1, 0, 0], notrans),
    ]


def icosahedral_basis():
    """Bases of the face-centred icosahedral lattice (primitive cell)."""
    t = (1 + np.sqrt(5)) / 2
    t2 = t * t
    a_par = [
        t2, 1, t, 0, 2 * t, 0,
        t, t2, 1, 0, 0, 2 * t,
        1, t, t2, 2 * t, 0, 0,
    ]
    a_perp = [
        1 / t, t, -1, 0, -2, 0,
        -1, 1 / t, t, 0, 0, -2,
        t, -1, 1 / t, -2, 0, 0,
    ]
    return a_par, a_perp


def icosahedral_generators(qc):
    """Generators of Fm-3-5."""
    notrans = [0, 0, 0, 0, 0, 0]
    return [
        qc.gen_sg_symop([
            1, 0, 0, 0, 1, 1,
            -1, 0, 0, 0, 0, 0,
            0, 1, 0, 1, -1, 0,
            1, 0, 1, 0, 1, 0,
            0, 0, 0, -1, 0, 0,
            0, 0, 0, 0, -1, 0], notrans),
        qc.gen_sg_symop([
            0, 1, 0, 0, 0, 0,
            0, 0, 1, 0, 0, 0,
            1, 0, 0, 0, 0, 0,
            0, 0, 0, 0, 1, 0,
            0, 0, 0, 0, 0, 1,
            0, 0, 0, 1, 0, 0], notrans),
        qc.gen_sg_symop(-np.eye(6), notrans),
    ]


@pytest.fixture
def numeric_algebra():
    return NumericAlgebra(1e-10)


@pytest.fixture
def exact_algebra():
    return ExactAlgebra()


@pytest.fixture
def octagonal_exact(exact_algebra):
    """Octagonal lattice in the exact algebra, trivial group."""
    a_par, a_perp = octagonal_basis()
    return Quasicrystal(exact_algebra, 4, a_par, a_perp)


@pytest.fixture
def octagonal_numeric(numeric_algebra):
    """Octagonal lattice with P8mm in the numeric algebra."""
    a_par, a_perp = octagonal_basis()
    qc = Quasicrystal(numeric_algebra, 4, a_par, a_perp)
    qc.set_ssg_fract_no_phason(
        qc.gen_sg_fract_from_generators(octagonal_generators(qc), 16))
    return qc


@pytest.fixture
def icosahedral(numeric_algebra):
    """Face-centred icosahedral lattice with Fm-3-5."""
    a_par, a_perp = icosahedral_basis()
    qc = Quasicrystal(numeric_algebra, 6, a_par, a_perp)
    qc.set_ssg_fract_no_phason(
        qc.gen_sg_fract_from_generators(icosahedral_generators(qc)))
    return qc


@pytest.fixture
def fcc_al(numeric_algebra):
    """Face-centred cubic aluminium, a = 4, one atom at the origin."""
    a = 4.0
    qc = Quasicrystal(numeric_algebra, 3, [a, 0, 0, 0, a, 0, 0, 0, a], [])
    eye = [1, 0, 0, 0, 1, 0, 0, 0, 1]
    generators = [
        qc.gen_sg_symop(eye, [0, 0.5, 0.5]),
        qc.gen_sg_symop(eye, [0.5, 0, 0.5]),
        qc.gen_sg_symop(eye, [0.5, 0.5, 0]),
        qc.gen_sg_symop([-1, 0, 0, 0, -1, 0, 0, 0, -1], [0, 0, 0]),
    ]
    qc.set_ssg_fract_no_phason(qc.gen_sg_fract_from_generators(generators))
    qc.set_atom_type("Al", AtomType(SCAT_CROMER_MANN_COEFFS["Al"]))
    qc.set_atom_site("Al1", [0, 0, 0])

    beta = qc.gen_ad_tensor_beta_no_phason_from_u_cartn([
        0.1, 0, 0,
        0, 0.1, 0,
        0, 0, 0.1])
    palg = qc.polytope_algebra
    pg = qc.spg_perp_cartn_no_phason_atom_site("Al1")
    od_asym = palg.mul(palg.hypercube(), pg.gen_asymmetric_unit(palg, 1.0))
    qc.set_atomic_surface("Al1a", AtomicSurface(
        "Al", 1.0, beta, OccupationDomain("Al1", od_asym)))
    return qc


@pytest.fixture
def fibonacci_al(exact_algebra):
    """Fibonacci chain of aluminium in the exact algebra, a = 5/2."""
    a = sympy.Rational(5, 2)
    qc = Quasicrystal(exact_algebra, 2, [a, a * TAU], [-a * TAU, a])
    generators = [qc.gen_sg_symop([-1, 0, 0, -1], [0, 0])]
    qc.set_ssg_fract_no_phason(qc.gen_sg_fract_from_generators(generators, 2))
    qc.set_atom_type("Al", AtomType(SCAT_CROMER_MANN_COEFFS["Al"]))
    qc.set_atom_site("Al1", [0, 0])

    beta = qc.gen_ad_tensor_beta_no_phason_from_u_cartn([0.005, 0, 0, 0])
    palg = qc.polytope_algebra
    pg = qc.spg_perp_cartn_no_phason_atom_site("Al1")
    od = palg.hypercube(a * (TAU + 1) / 2)
    od_asym = palg.mul(od, pg.gen_asymmetric_unit(palg, 1000))
    qc.set_atomic_surface("Al1a", AtomicSurface(
        "Al", 1.0, beta, OccupationDomain("Al1", od_asym)))
    return qc
