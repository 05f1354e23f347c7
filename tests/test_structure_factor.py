"""
Test suite for structure factors of quasicrystals.
"""

import logging

import numpy as np
import pytest

from qc_tools import (
    SCAT_CROMER_MANN_COEFFS,
    PreconditionError,
    XRayRadiation,
)

XRAY = XRayRadiation.CU_KL3
AL = SCAT_CROMER_MANN_COEFFS["Al"]


def f_al(stol):
    return AL[8] + sum(AL[i] * np.exp(-AL[i + 1] * stol ** 2)
                       for i in range(0, 8, 2))


def star_of(qc, q_fract):
    """Star of ``q_fract`` and the perpendicular components of its members."""
    rnum = qc.numeric_algebra
    q = np.asarray(q_fract, dtype=float)
    star = qc.ssg_fract_no_phason_numerical.gen_star(
        q, lambda a, g: a @ g.rot, rnum.eq)
    b_perp = rnum.to_numeric(qc.b_perp_cartn)
    return star, [qi @ b_perp for qi in star.star]


def stol_of(qc, q_fract):
    b_par = qc.numeric_algebra.to_numeric(qc.b_par_cartn_no_phason)
    q_par = np.asarray(q_fract, dtype=float) @ b_par
    return np.sqrt(q_par @ q_par) / 2


# =============================================================================
# Periodic Crystal Tests
# =============================================================================

class TestFaceCentredCubic:
    """Test structure factors of fcc aluminium."""

    def test_forward_scattering(self, fcc_al):
        """F(000) = 4 f(0) / V."""
        star, q_perp = star_of(fcc_al, [0, 0, 0])
        f = fcc_al.structure_factor(0.0, XRAY, star, q_perp)
        assert f.shape == (1,)
        assert f[0].real == pytest.approx(4 * f_al(0.0) / 64)
        assert abs(f[0]) == pytest.approx(13 * 4 / 64, rel=1e-3)
        assert f[0].imag == pytest.approx(0.0, abs=1e-12)

    def test_allowed_reflection(self, fcc_al):
        """F(111) carries the displacement factor."""
        q = [1, 1, 1]
        star, q_perp = star_of(fcc_al, q)
        stol = stol_of(fcc_al, q)
        f = fcc_al.structure_factor(stol, XRAY, star, q_perp)
        beta = 2 * np.pi ** 2 * 0.1 / 16
        expected = 4 * f_al(stol) * np.exp(-3 * beta) / 64
        assert f[0].real == pytest.approx(expected)
        assert abs(f[0].imag) < 1e-12

    @pytest.mark.parametrize("q", [
        [1, 0, 0],
        [1, 1, 0],
        [2, 1, 0],
    ])
    def test_extinction(self, fcc_al, q):
        """Mixed-parity reflections vanish."""
        star, q_perp = star_of(fcc_al, q)
        f = fcc_al.structure_factor(stol_of(fcc_al, q), XRAY, star, q_perp)
        assert abs(f[0]) < 1e-12

    def test_array_of_stol(self, fcc_al):
        """Result is aligned with an array of stol values."""
        star, q_perp = star_of(fcc_al, [0, 0, 0])
        stol = np.array([0.0, 0.5, 1.0])
        f = fcc_al.structure_factor(stol, XRAY, star, q_perp)
        assert f.shape == (3,)
        assert np.allclose(f.real, [4 * f_al(s) / 64 for s in stol])

    def test_occupancy(self, fcc_al):
        """Structure factor is linear in the occupancy."""
        star, q_perp = star_of(fcc_al, [0, 0, 0])
        f_full = fcc_al.structure_factor(0.0, XRAY, star, q_perp)
        fcc_al.get_atomic_surface("Al1a").occupancy = 0.5
        f_half = fcc_al.structure_factor(0.0, XRAY, star, q_perp)
        assert np.allclose(f_half, f_full / 2)

    def test_star_from_other_group(self, fcc_al):
        """Stars must come from the current superspace group."""
        star, q_perp = star_of(fcc_al, [1, 1, 1])
        star.symop_star_id = star.symop_star_id[:4]
        with pytest.raises(PreconditionError, match="operations"):
            fcc_al.structure_factor(0.1, XRAY, star, q_perp)


# =============================================================================
# Quasicrystal Tests
# =============================================================================

class TestFibonacci:
    """Test structure factors of the Fibonacci chain."""

    def test_forward_scattering(self, fibonacci_al):
        """F(00) is f(0) times the domain length over the cell volume."""
        tau = (1 + np.sqrt(5)) / 2
        a = 2.5
        star, q_perp = star_of(fibonacci_al, [0, 0])
        f = fibonacci_al.structure_factor(0.0, XRAY, star, q_perp)
        expected = f_al(0.0) * a * (tau + 1) / (a * a * (1 + tau * tau))
        assert f[0].real == pytest.approx(expected)

    def test_real_for_centrosymmetric(self, fibonacci_al):
        """Inversion at the origin makes structure factors real."""
        q = [1, 1]
        star, q_perp = star_of(fibonacci_al, q)
        f = fibonacci_al.structure_factor(
            stol_of(fibonacci_al, q), XRAY, star, q_perp)
        assert abs(f[0].imag) < 1e-10
        assert abs(f[0]) > 0

    def test_matches_direct_integral(self, fibonacci_al):
        """Equals f(stol) DW(q) FT(window)(q_perp) / V."""
        tau = (1 + np.sqrt(5)) / 2
        a = 2.5
        q = [1, 0]
        star, q_perp = star_of(fibonacci_al, q)
        stol = stol_of(fibonacci_al, q)
        f = fibonacci_al.structure_factor(stol, XRAY, star, q_perp)

        half = a * (tau + 1) / 2
        k = 2 * np.pi * float(q_perp[0][0])
        window = 2 * np.sin(k * half) / k
        beta = fibonacci_al.get_atomic_surface("Al1a").ad_tensor_beta
        dw = np.exp(-(np.array(q, float) @ beta @ np.array(q, float)))
        volume = a * a * (1 + tau * tau)
        assert f[0].real == pytest.approx(f_al(stol) * dw * window / volume)

    def test_phason_warning(self, fibonacci_al, caplog):
        """A non-zero phason matrix is reported and ignored."""
        star, q_perp = star_of(fibonacci_al, [0, 0])
        f0 = fibonacci_al.structure_factor(0.0, XRAY, star, q_perp)
        fibonacci_al.set_phason_matrix([0.1])
        with caplog.at_level(logging.WARNING, logger="qc_tools.quasicrystal"):
            f1 = fibonacci_al.structure_factor(0.0, XRAY, star, q_perp)
        assert "phason" in caplog.text
        assert np.allclose(f0, f1)
