"""
qc-tools - Superspace Symmetry and Structure Factors of Quasicrystals.

Models quasicrystals in the cut-and-project (superspace) picture: a periodic
lattice in higher dimension split into parallel and perpendicular spaces,
decorated with atomic surfaces (polytopes in perpendicular space). Provides
superspace groups, site symmetry, asymmetric units, reciprocal-lattice
enumeration and structure factors.

Example:
    >>> from qc_tools import NumericAlgebra, Quasicrystal, XRayRadiation
    >>>
    >>> qc = Quasicrystal(NumericAlgebra(), 3, [4, 0, 0, 0, 4, 0, 0, 0, 4], [])
    >>> gens = [qc.gen_sg_symop([-1, 0, 0, 0, -1, 0, 0, 0, -1], [0, 0, 0])]
    >>> qc.set_ssg_fract_no_phason(qc.gen_sg_fract_from_generators(gens))
    >>> qc.ssg_fract_no_phason.order
    2
"""

__version__ = "1.0.0"

# Real-number algebras
from .algebra import ExactAlgebra, NumericAlgebra, RealAlgebra

# Atoms and radiation
from .atoms import AtomicSurface, AtomSite, AtomType
from .constants import DEFAULT_EPS, DEFAULT_MAX_ORDER, DEFAULT_MAX_TRIALS

# Errors
from .errors import (
    ClosureLimitExceeded,
    DimensionMismatch,
    InvalidGeneratorSet,
    NoGeneralPositionFound,
    PreconditionError,
    QcError,
    StolOutOfRange,
    UnsupportedProbe,
)

# Groups
from .group import Group, Orbit
from .occupation_domain import OccupationDomain, SimplexInfo
from .point_group import PointGroup

# Perpendicular-space geometry
from .polytope import ConvexCell, HalfSpace, Polytope, PolytopeAlgebra

# Quasicrystal
from .quasicrystal import Quasicrystal, SiteSymmetry
from .radiation import Radiation, XRayRadiation
from .reciprocal import QFractEnumerator, SymmetricStarEnumerator
from .scattering_params import SCAT_CROMER_MANN_COEFFS, SCAT_HI_ANG_FOX_COEFFS
from .serialization import dumps, loads, reviver
from .space_group import SpaceGroup, SpaceGroupSymop, Star

__all__ = [
    # Version
    "__version__",
    # Algebras
    "RealAlgebra",
    "NumericAlgebra",
    "ExactAlgebra",
    # Geometry
    "HalfSpace",
    "ConvexCell",
    "Polytope",
    "PolytopeAlgebra",
    "OccupationDomain",
    "SimplexInfo",
    # Groups
    "Group",
    "Orbit",
    "SpaceGroupSymop",
    "SpaceGroup",
    "Star",
    "PointGroup",
    # Atoms and radiation
    "AtomType",
    "AtomSite",
    "AtomicSurface",
    "Radiation",
    "XRayRadiation",
    "SCAT_CROMER_MANN_COEFFS",
    "SCAT_HI_ANG_FOX_COEFFS",
    # Quasicrystal
    "Quasicrystal",
    "SiteSymmetry",
    "QFractEnumerator",
    "SymmetricStarEnumerator",
    "dumps",
    "loads",
    "reviver",
    # Defaults
    "DEFAULT_EPS",
    "DEFAULT_MAX_ORDER",
    "DEFAULT_MAX_TRIALS",
    # Errors
    "QcError",
    "DimensionMismatch",
    "InvalidGeneratorSet",
    "ClosureLimitExceeded",
    "NoGeneralPositionFound",
    "UnsupportedProbe",
    "StolOutOfRange",
    "PreconditionError",
]
