"""
Occupation domains and their geometrical form factor.

The form factor is the Fourier transform of the indicator function of the
domain,

    G(q) = integral over the domain of exp(2 pi i q . r) dr,

evaluated in closed form simplex by simplex. In the oblique coordinates of a
simplex the integral factorises into nested one-dimensional integrals of
``poly(x) * exp(i v x)`` which are done by parts. Terms whose running phase
``v`` vanishes are integrated as plain polynomials, since the by-parts formula
divides by ``v``.
"""

from dataclasses import dataclass

import numpy as np

from .errors import PreconditionError
from .polytope import Polytope, PolytopeAlgebra


@dataclass(frozen=True, eq=False)
class SimplexInfo:
    """Affine frame of a simplex.

    Attributes:
        origin: First vertex
        avec: Matrix whose columns are the edges from ``origin``
        abs_det: Absolute determinant of ``avec``
    """

    origin: np.ndarray
    avec: np.ndarray
    abs_det: float


class OccupationDomain:
    """A perpendicular-space polytope belonging to an atom site.

    Args:
        atom_site_label: Label of the atom site the domain is attached to
        polytope: The domain
    """

    def __init__(self, atom_site_label: str, polytope: Polytope):
        self.atom_site_label = atom_site_label
        self.polytope = polytope

    @property
    def polytope(self) -> Polytope:
        return self._polytope

    @polytope.setter
    def polytope(self, polytope: Polytope) -> None:
        self._polytope = polytope
        self._simplexes_info = {}

    @property
    def dim_perp(self) -> int:
        return self._polytope.dim

    def __repr__(self) -> str:
        return (f"OccupationDomain({self.atom_site_label!r}, "
                f"{self._polytope!r})")

    def cut_by(self, palg: PolytopeAlgebra, another: "OccupationDomain") -> None:
        """Remove ``another`` from this domain in place.

        Raises:
            PreconditionError: If the two domains belong to different sites
        """
        if self.atom_site_label != another.atom_site_label:
            raise PreconditionError(
                f"Cannot cut a domain of site {self.atom_site_label!r} by "
                f"one of site {another.atom_site_label!r}"
            )
        self.polytope = palg.sub(self._polytope, another.polytope)

    def simplexes_info(self, palg: PolytopeAlgebra) -> list[SimplexInfo]:
        """Simplex decomposition of the domain, cached per algebra."""
        info = self._simplexes_info.get(palg)
        if info is None:
            info = []
            for simplex in palg.gen_simplexes(self._polytope):
                origin = simplex[0]
                avec = (simplex[1:] - origin).T
                if avec.shape[0] == 0:
                    abs_det = 1.0
                else:
                    abs_det = abs(float(np.linalg.det(avec)))
                info.append(SimplexInfo(origin, avec, abs_det))
            self._simplexes_info[palg] = info
        return info

    def geometrical_form_factor(self, palg: PolytopeAlgebra, q_perp_cartn) -> complex:
        """Fourier transform of the domain at ``q_perp_cartn``.

        Always ``1`` for a domain in a zero-dimensional perpendicular space.
        """
        dim_perp = self.dim_perp
        if dim_perp == 0:
            return 1 + 0j
        q = np.asarray(q_perp_cartn, dtype=float).reshape(dim_perp)
        eps = palg.eps
        twopi = 2 * np.pi
        total = 0j
        for simplex in self.simplexes_info(palg):
            phase = twopi * float(q @ simplex.origin)
            vi = twopi * (q @ simplex.avec)
            for j in range(1, dim_perp):
                vi[j - 1] -= vi[j]

            # each term is (polynomial coefficients, running phase)
            terms = [([1 + 0j], 0.0)]
            for j in range(dim_perp - 1, -1, -1):
                terms = [(poly, v + vi[j]) for poly, v in terms]
                terms_new = [([0j], 0.0)]
                for poly, v in reversed(terms):
                    if abs(v) < eps:
                        poly_new = [0j]
                        for l, coef in enumerate(poly):
                            coef_new = coef / (l + 1)
                            poly_new[0] += coef_new
                            poly_new.append(-coef_new)
                        head = terms_new[0][0]
                        for l, coef in enumerate(poly_new):
                            if l < len(head):
                                head[l] += coef
                            else:
                                head.append(coef)
                    else:
                        poly = list(poly)
                        poly_new = [0j] * len(poly)
                        phase_factor = complex(np.cos(v), np.sin(v))
                        for l in range(len(poly) - 1, -1, -1):
                            # integration by parts
                            coef_new = poly[l] / complex(0, v)
                            if l != 0:
                                poly[l - 1] -= coef_new * l
                            terms_new[0][0][0] += phase_factor * coef_new
                            poly_new[l] -= coef_new
                        terms_new.append((poly_new, v))
                terms = terms_new

            factor = complex(np.cos(phase), np.sin(phase)) * simplex.abs_det
            total += factor * sum(poly[0] for poly, _ in terms)
        return total
