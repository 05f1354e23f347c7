"""
Test suite for atom types, atomic surfaces and radiation.
"""

import numpy as np
import pytest

from qc_tools import (
    SCAT_CROMER_MANN_COEFFS,
    SCAT_HI_ANG_FOX_COEFFS,
    AtomicSurface,
    AtomType,
    DimensionMismatch,
    OccupationDomain,
    PolytopeAlgebra,
    Radiation,
    StolOutOfRange,
    UnsupportedProbe,
    XRayRadiation,
)

XRAY = XRayRadiation.CU_KL3


def cromer_mann(coeffs, stol):
    return coeffs[8] + sum(
        coeffs[i] * np.exp(-coeffs[i + 1] * stol ** 2) for i in range(0, 8, 2))


def fox(coeffs, stol):
    a0, a1, a2, a3 = coeffs
    return np.exp(a0 + a1 * stol + a2 * stol ** 2 / 10 + a3 * stol ** 3 / 100)


# =============================================================================
# Radiation Tests
# =============================================================================

class TestRadiation:
    """Test radiation probes."""

    def test_copper_lines(self):
        """Cu K-L3 and K-L2 wavelengths."""
        assert XRayRadiation.CU_KL3.wavelength == pytest.approx(1.540562)
        assert XRayRadiation.CU_KL2.wavelength == pytest.approx(1.544390)
        assert XRayRadiation.CU_KL3.probe == "x-ray"

    def test_generic_probe(self):
        """A generic radiation has no probe by default."""
        assert Radiation().probe is None
        assert Radiation("neutron").probe == "neutron"


# =============================================================================
# Atomic Scattering Factor Tests
# =============================================================================

class TestAtomicScatteringFactor:
    """Test Cromer-Mann and Fox scattering factors."""

    def test_zero_angle(self):
        """At stol = 0 the factor is the sum of the a coefficients and c."""
        coeffs = SCAT_CROMER_MANN_COEFFS["Al"]
        at = AtomType(coeffs)
        expected = sum(coeffs[0:8:2]) + coeffs[8]
        assert at.atomic_scattering_factor(0.0, XRAY) == pytest.approx(expected)

    def test_oxygen_anion(self):
        """O1- at stol 1.5 is close to tabulated 0.994."""
        at = AtomType(SCAT_CROMER_MANN_COEFFS["O1-"])
        assert at.atomic_scattering_factor(1.5, XRAY) == pytest.approx(
            0.994, abs=0.012)

    def test_high_angle(self):
        """Above stol 2 the Fox expansion is used."""
        at = AtomType(SCAT_CROMER_MANN_COEFFS["C"], SCAT_HI_ANG_FOX_COEFFS["C"])
        assert at.atomic_scattering_factor(3.5, XRAY) == pytest.approx(
            fox(SCAT_HI_ANG_FOX_COEFFS["C"], 3.5))

    @pytest.mark.parametrize("symbol,fox_symbol", [
        ("C", "C"),
        ("Li1+", "Li"),
    ])
    def test_continuity_at_two(self, symbol, fox_symbol):
        """Both expansions nearly agree at stol = 2."""
        cm = SCAT_CROMER_MANN_COEFFS[symbol]
        fx = SCAT_HI_ANG_FOX_COEFFS[fox_symbol]
        assert fox(fx, 2.0) == pytest.approx(cromer_mann(cm, 2.0), rel=0.05)

    def test_boundary_uses_cromer_mann(self):
        """stol = 2 itself is evaluated with Cromer-Mann."""
        cm = SCAT_CROMER_MANN_COEFFS["C"]
        at = AtomType(cm, SCAT_HI_ANG_FOX_COEFFS["C"])
        assert at.atomic_scattering_factor(2.0, XRAY) == pytest.approx(
            cromer_mann(cm, 2.0))

    def test_negative_stol(self):
        """Negative stol is rejected."""
        at = AtomType(SCAT_CROMER_MANN_COEFFS["Si"])
        with pytest.raises(StolOutOfRange, match="Negative"):
            at.atomic_scattering_factor(-0.1, XRAY)

    def test_high_angle_without_fox(self):
        """stol above 2 needs Fox coefficients."""
        at = AtomType(SCAT_CROMER_MANN_COEFFS["Al"])
        with pytest.raises(StolOutOfRange, match="high-angle"):
            at.atomic_scattering_factor(2.5, XRAY)

    def test_above_six(self):
        """stol above 6 is unsupported."""
        at = AtomType(SCAT_CROMER_MANN_COEFFS["C"], SCAT_HI_ANG_FOX_COEFFS["C"])
        with pytest.raises(StolOutOfRange):
            at.atomic_scattering_factor(6.5, XRAY)

    def test_other_probe(self):
        """Only x-rays are supported."""
        at = AtomType(SCAT_CROMER_MANN_COEFFS["H"])
        with pytest.raises(UnsupportedProbe, match="neutron"):
            at.atomic_scattering_factor(0.1, Radiation("neutron"))

    def test_fox_coefficients_tabulated_form(self):
        """Fox coefficients read back as given."""
        at = AtomType(SCAT_CROMER_MANN_COEFFS["Li1+"], SCAT_HI_ANG_FOX_COEFFS["Li"])
        assert at.scat_hi_ang_fox_coeffs == pytest.approx(
            SCAT_HI_ANG_FOX_COEFFS["Li"])

    @pytest.mark.parametrize("cm,fx", [
        ([1.0] * 8, None),
        ([1.0] * 9, [1.0, 2.0]),
    ])
    def test_coefficient_lengths(self, cm, fx):
        """Coefficient lists have fixed lengths."""
        with pytest.raises(DimensionMismatch):
            AtomType(cm, fx)


# =============================================================================
# Atomic Surface Tests
# =============================================================================

class TestAtomicSurface:
    """Test atomic surfaces."""

    def test_flat_beta(self):
        """A flat displacement tensor is made square."""
        palg = PolytopeAlgebra(1)
        surface = AtomicSurface(
            "Al", 0.5, [0.01, 0, 0, 0.02], OccupationDomain("Al1", palg.hypercube()))
        assert surface.ad_tensor_beta.shape == (2, 2)
        assert surface.dim == 2
        assert surface.dim_perp == 1
        assert surface.atom_site_label == "Al1"
        assert surface.occupancy_factor() == 0.5

    def test_non_square_beta(self):
        """Non-square tensors are rejected."""
        palg = PolytopeAlgebra(1)
        with pytest.raises(DimensionMismatch):
            AtomicSurface("Al", 1.0, [0.1, 0.2, 0.3],
                          OccupationDomain("Al1", palg.hypercube()))

    def test_displacement_factor(self):
        """exp(-q . beta . q)."""
        palg = PolytopeAlgebra(1)
        surface = AtomicSurface(
            "Al", 1.0, [0.01, 0, 0, 0.02], OccupationDomain("Al1", palg.hypercube()))
        assert surface.atomic_displacement_factor([1, 2]) == pytest.approx(
            np.exp(-(0.01 + 4 * 0.02)))
        assert surface.atomic_displacement_factor([0, 0]) == 1.0
