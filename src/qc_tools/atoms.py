"""
Atom types, atom sites and atomic surfaces.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from .errors import DimensionMismatch, StolOutOfRange, UnsupportedProbe
from .occupation_domain import OccupationDomain
from .polytope import PolytopeAlgebra
from .radiation import Radiation

# Fox coefficients a2 and a3 are tabulated multiplied by 10 and 100
_FOX_SCALE = (1.0, 1.0, 10.0, 100.0)


class AtomType:
    """Scattering properties of a chemical species.

    Args:
        scat_cromer_mann_coeffs: ``(a1, b1, a2, b2, a3, b3, a4, b4, c)``
        scat_hi_ang_fox_coeffs: ``(a0, a1, a2, a3)`` as tabulated, or None
            if high-angle scattering is not needed

    Raises:
        DimensionMismatch: If a coefficient list has the wrong length
    """

    def __init__(
        self,
        scat_cromer_mann_coeffs: Sequence[float],
        scat_hi_ang_fox_coeffs: Sequence[float] | None = None
    ):
        cm = tuple(float(c) for c in scat_cromer_mann_coeffs)
        if len(cm) != 9:
            raise DimensionMismatch(
                f"Expected 9 Cromer-Mann coefficients, got {len(cm)}"
            )
        self._cm = cm
        if scat_hi_ang_fox_coeffs is None:
            self._fox = None
        else:
            fox = [float(c) for c in scat_hi_ang_fox_coeffs]
            if len(fox) != 4:
                raise DimensionMismatch(
                    f"Expected 4 Fox coefficients, got {len(fox)}"
                )
            self._fox = tuple(c / s for c, s in zip(fox, _FOX_SCALE))

    @property
    def scat_cromer_mann_coeffs(self) -> tuple[float, ...]:
        return self._cm

    @property
    def scat_hi_ang_fox_coeffs(self) -> tuple[float, ...] | None:
        """Fox coefficients in tabulated form."""
        if self._fox is None:
            return None
        return tuple(c * s for c, s in zip(self._fox, _FOX_SCALE))

    def atomic_scattering_factor(self, stol: float, rad: Radiation) -> float:
        """Atomic scattering factor at ``stol = sin(theta)/lambda``.

        Raises:
            UnsupportedProbe: If ``rad`` is not x-ray radiation
            StolOutOfRange: If ``stol`` is negative, above 6, or above 2
                without high-angle coefficients
        """
        if rad.probe != "x-ray":
            raise UnsupportedProbe(f"Unsupported probe: {rad.probe!r}")
        if stol < 0:
            raise StolOutOfRange(f"Negative sin(theta)/lambda: {stol}")
        if stol <= 2:
            cm = self._cm
            s2 = stol ** 2
            f = cm[8]
            for i in range(0, 8, 2):
                f += cm[i] * np.exp(-cm[i + 1] * s2)
            return float(f)
        if stol <= 6:
            if self._fox is None:
                raise StolOutOfRange(
                    f"sin(theta)/lambda {stol} > 2 needs high-angle "
                    "coefficients"
                )
            a0, a1, a2, a3 = self._fox
            s = stol
            return float(np.exp(a0 + s * (a1 + s * (a2 + s * a3))))
        raise StolOutOfRange(f"Unsupported sin(theta)/lambda: {stol}")

    def __repr__(self) -> str:
        return f"AtomType({list(self._cm)}, {self.scat_hi_ang_fox_coeffs})"


@dataclass
class AtomSite:
    """A position in fractional superspace coordinates."""

    pos_fract: np.ndarray

    @property
    def dim(self) -> int:
        return len(self.pos_fract)


@dataclass
class AtomicSurface:
    """An occupation domain decorated with an atom type.

    Attributes:
        atom_type_symbol: Key of the atom type in the quasicrystal
        occupancy: Site occupancy
        ad_tensor_beta: dim x dim atomic displacement tensor (fractional)
        occ_domain_asym: Occupation domain in the asymmetric unit
        display_colour: Free-form display hints
    """

    atom_type_symbol: str
    occupancy: float
    ad_tensor_beta: np.ndarray
    occ_domain_asym: OccupationDomain
    display_colour: object = None
    display_opacity: object = None
    display_radius: object = None

    def __post_init__(self):
        beta = np.asarray(self.ad_tensor_beta, dtype=float)
        if beta.ndim == 1:
            n = int(round(np.sqrt(beta.size)))
            if n * n != beta.size:
                raise DimensionMismatch(
                    f"Cannot arrange {beta.size} values into a square tensor"
                )
            beta = beta.reshape(n, n)
        if beta.ndim != 2 or beta.shape[0] != beta.shape[1]:
            raise DimensionMismatch(
                f"Displacement tensor must be square, got shape {beta.shape}"
            )
        self.ad_tensor_beta = beta

    @property
    def dim(self) -> int:
        return self.ad_tensor_beta.shape[0]

    @property
    def dim_perp(self) -> int:
        return self.occ_domain_asym.dim_perp

    @property
    def atom_site_label(self) -> str:
        return self.occ_domain_asym.atom_site_label

    def occupancy_factor(self) -> float:
        return self.occupancy

    def atomic_displacement_factor(self, q_fract) -> float:
        q = np.asarray(q_fract, dtype=float)
        return float(np.exp(-(q @ self.ad_tensor_beta @ q)))

    def geometrical_form_factor(
        self,
        palg: PolytopeAlgebra,
        q_perp_cartn
    ) -> complex:
        return self.occ_domain_asym.geometrical_form_factor(palg, q_perp_cartn)
