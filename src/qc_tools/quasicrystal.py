"""
Quasicrystals described in superspace.

A :class:`Quasicrystal` holds a ``dim``-dimensional lattice whose basis is
split into a parallel (physical) and a perpendicular (internal) part,

    a_cartn = [a_par_cartn; a_perp_cartn]    (dim x dim, columns are basis
                                              vectors)

together with a superspace group in fractional coordinates, a phason strain
matrix and the decoration of the lattice (atom types, atom sites and atomic
surfaces). The reciprocal basis ``b_cartn = [b_par_cartn, b_perp_cartn]`` is
the inverse of ``a_cartn``, so that ``q_fract @ b_cartn`` is the Cartesian
form of a reciprocal vector given in fractional coordinates.

Phason strain couples the perpendicular basis to the parallel one::

    a_perp_cartn = phason_matrix @ a_par_cartn + a_perp_cartn_no_phason
    b_par_cartn = b_par_cartn_no_phason - b_perp_cartn @ phason_matrix

Lattice and group bookkeeping runs in the algebra given at construction
(numeric or exact). Form factors, structure factors and the enumeration of
reciprocal vectors always run in floating point.

Derived groups are cached. Cache keys carry version counters of the
superspace group and of the phason matrix; both are replaced, never mutated,
by their setters, which also drop stale entries.

Example:
    >>> from qc_tools import NumericAlgebra, Quasicrystal
    >>> qc = Quasicrystal(NumericAlgebra(), 3, [4, 0, 0, 0, 4, 0, 0, 0, 4], [])
    >>> qc.dim_par, qc.dim_perp, float(qc.hyper_volume)
    (3, 0, 64.0)
"""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np

from .algebra import NumericAlgebra, RealAlgebra
from .atoms import AtomicSurface, AtomSite, AtomType
from .constants import DEFAULT_EPS, DEFAULT_MAX_ORDER
from .errors import DimensionMismatch, InvalidGeneratorSet, PreconditionError
from .group import Group
from .occupation_domain import OccupationDomain
from .point_group import PointGroup
from .polytope import PolytopeAlgebra
from .radiation import Radiation
from .reciprocal import QFractEnumerator, SymmetricStarEnumerator
from .space_group import SpaceGroup, SpaceGroupSymop, Star

logger = logging.getLogger(__name__)


def _read_only(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, copy=True)
    arr.flags.writeable = False
    return arr


@dataclass
class SiteSymmetry:
    """Positions equivalent to an atom site under the superspace group.

    Attributes:
        eqv_pos: Distinct positions modulo lattice translations; the first
            is the site itself
        eqv_pos_symop_ids: For each position, the operations producing it
        symop_eqv_pos_id: For each operation, the position it produces
    """

    eqv_pos: list[np.ndarray]
    eqv_pos_symop_ids: list[list[int]]
    symop_eqv_pos_id: list[int]


class Quasicrystal:
    """Superspace description of a quasicrystal.

    Args:
        algebra: Real algebra for lattice and group bookkeeping
        dim: Superspace dimension
        a_par_cartn: Parallel components of the basis vectors; dim_par x dim,
            flat row-major or nested
        a_perp_cartn: Perpendicular components; dim_perp x dim
        eps: Tolerance of the numeric algebra used for form factors and
            polytopes

    Raises:
        TypeError: If ``algebra`` is not a RealAlgebra
        DimensionMismatch: If ``dim`` is not a positive integer or the bases
            do not add up to ``dim`` rows
    """

    def __init__(
        self,
        algebra: RealAlgebra,
        dim: int,
        a_par_cartn,
        a_perp_cartn,
        eps: float = DEFAULT_EPS
    ):
        if not isinstance(algebra, RealAlgebra):
            raise TypeError(f"algebra must be a RealAlgebra, got {algebra!r}")
        if isinstance(dim, bool) or not isinstance(dim, int) or dim < 1:
            raise DimensionMismatch(
                f"dim must be a positive integer, got {dim!r}"
            )
        a_par = self._rows(algebra, a_par_cartn, dim)
        a_perp = self._rows(algebra, a_perp_cartn, dim)
        dim_par = a_par.shape[0]
        dim_perp = a_perp.shape[0]
        if dim_par + dim_perp != dim:
            raise DimensionMismatch(
                f"dim_par ({dim_par}) + dim_perp ({dim_perp}) != dim ({dim})"
            )

        self._algebra = algebra
        self._eps = eps
        self._rnum = NumericAlgebra(eps)
        self._palg = PolytopeAlgebra(dim_perp, eps)

        a_cartn = np.vstack([a_par, a_perp])
        b_cartn = algebra.inv(a_cartn)
        self._dim_par = dim_par
        self._dim_perp = dim_perp
        self._a_par_cartn = _read_only(a_par)
        self._a_perp_cartn_no_phason = _read_only(a_perp)
        self._b_par_cartn_no_phason = _read_only(b_cartn[:, :dim_par])
        self._b_perp_cartn = _read_only(b_cartn[:, dim_par:])
        self._hyper_volume = algebra.abs(algebra.det(a_cartn))
        self._hyper_volume_numerical = float(self._hyper_volume)

        self._origin_fract = _read_only(algebra.zeros(dim))
        self._phason_matrix = _read_only(algebra.zeros((dim_perp, dim_par)))
        self._ssg_fract_no_phason = SpaceGroup(
            [SpaceGroupSymop.identity(dim, algebra)])

        self._atom_type = {}
        self._atom_site = {}
        self._atomic_surface = {}
        self.aux = {}

        self._ssg_version = 0
        self._phason_version = 0
        self._cache = {}

    @staticmethod
    def _rows(algebra: RealAlgebra, values, dim: int) -> np.ndarray:
        arr = algebra.asarray(values)
        if arr.size % dim != 0:
            raise DimensionMismatch(
                f"{arr.size} basis components do not fit rows of length {dim}"
            )
        return arr.reshape(arr.size // dim, dim)

    def __repr__(self) -> str:
        return (f"Quasicrystal(dim={self.dim}, dim_par={self._dim_par}, "
                f"dim_perp={self._dim_perp}, algebra={self._algebra!r})")

    # -- caching ---------------------------------------------------------

    def _cached(self, name, factory, ssg=True, phason=False, extra=None):
        key = (
            name,
            self._ssg_version if ssg else None,
            self._phason_version if phason else None,
            extra,
        )
        try:
            return self._cache[key]
        except KeyError:
            pass
        logger.debug("computing %s (%s)", name, extra)
        value = factory()
        self._cache[key] = value
        return value

    def _purge_cache(self) -> None:
        self._cache = {
            key: value for key, value in self._cache.items()
            if key[1] in (None, self._ssg_version)
            and key[2] in (None, self._phason_version)
        }

    def _mm(self, *mats) -> np.ndarray:
        """Matrix product simplified in the bookkeeping algebra."""
        result = mats[0]
        for m in mats[1:]:
            if result.shape[-1] == 0:
                shape = result.shape[:-1] + m.shape[1:]
                result = self._algebra.zeros(shape)
            else:
                result = result @ m
        return self._algebra.simplify(result)

    # -- algebras ----------------------------------------------------------

    @property
    def algebra(self) -> RealAlgebra:
        return self._algebra

    @property
    def numeric_algebra(self) -> NumericAlgebra:
        return self._rnum

    @property
    def polytope_algebra(self) -> PolytopeAlgebra:
        """Numeric polytope algebra of the perpendicular space."""
        return self._palg

    @property
    def eps(self) -> float:
        return self._eps

    # -- lattice -----------------------------------------------------------

    @property
    def dim(self) -> int:
        return self._dim_par + self._dim_perp

    @property
    def dim_par(self) -> int:
        return self._dim_par

    @property
    def dim_perp(self) -> int:
        return self._dim_perp

    @property
    def a_par_cartn(self) -> np.ndarray:
        return self._a_par_cartn

    @property
    def a_perp_cartn_no_phason(self) -> np.ndarray:
        return self._a_perp_cartn_no_phason

    @property
    def a_perp_cartn(self) -> np.ndarray:
        return self._cached(
            "a_perp_cartn",
            lambda: _read_only(self._algebra.simplify(
                self._mm(self._phason_matrix, self._a_par_cartn)
                + self._a_perp_cartn_no_phason)),
            ssg=False, phason=True)

    @property
    def a_cartn_no_phason(self) -> np.ndarray:
        return _read_only(np.vstack(
            [self._a_par_cartn, self._a_perp_cartn_no_phason]))

    @property
    def a_cartn(self) -> np.ndarray:
        return _read_only(np.vstack([self._a_par_cartn, self.a_perp_cartn]))

    @property
    def b_par_cartn_no_phason(self) -> np.ndarray:
        return self._b_par_cartn_no_phason

    @property
    def b_par_cartn(self) -> np.ndarray:
        return self._cached(
            "b_par_cartn",
            lambda: _read_only(self._algebra.simplify(
                self._b_par_cartn_no_phason
                - self._mm(self._b_perp_cartn, self._phason_matrix))),
            ssg=False, phason=True)

    @property
    def b_perp_cartn(self) -> np.ndarray:
        return self._b_perp_cartn

    @property
    def b_cartn_no_phason(self) -> np.ndarray:
        return _read_only(np.hstack(
            [self._b_par_cartn_no_phason, self._b_perp_cartn]))

    @property
    def b_cartn(self) -> np.ndarray:
        return _read_only(np.hstack([self.b_par_cartn, self._b_perp_cartn]))

    @property
    def hyper_volume(self):
        """Volume of the superspace unit cell, in the bookkeeping algebra."""
        return self._hyper_volume

    @property
    def hyper_volume_numerical(self) -> float:
        return self._hyper_volume_numerical

    @property
    def origin_fract(self) -> np.ndarray:
        return self._origin_fract

    def set_origin_fract(self, origin_fract) -> None:
        self._origin_fract = _read_only(
            self._algebra.asarray(origin_fract, (self.dim,)))

    @property
    def phason_matrix(self) -> np.ndarray:
        return self._phason_matrix

    def set_phason_matrix(self, phason_matrix) -> None:
        """Install a new dim_perp x dim_par phason matrix.

        Raises:
            DimensionMismatch: If the matrix has the wrong number of entries
        """
        m = self._algebra.asarray(
            phason_matrix, (self._dim_perp, self._dim_par))
        self._phason_matrix = _read_only(m)
        self._phason_version += 1
        self._purge_cache()

    # -- superspace group --------------------------------------------------

    @property
    def ssg_fract_no_phason(self) -> SpaceGroup:
        return self._ssg_fract_no_phason

    def set_ssg_fract_no_phason(self, ssg: SpaceGroup) -> None:
        """Install the superspace group of the unstrained structure.

        Raises:
            TypeError: If ``ssg`` is not a SpaceGroup
            DimensionMismatch: If its dimension differs from ``dim``
        """
        if not isinstance(ssg, SpaceGroup):
            raise TypeError(f"Expected a SpaceGroup, got {ssg!r}")
        if ssg.dim != self.dim:
            raise DimensionMismatch(
                f"Space group of dimension {ssg.dim} given to a quasicrystal "
                f"of dimension {self.dim}"
            )
        self._ssg_fract_no_phason = ssg.with_algebra(self._algebra)
        self._ssg_version += 1
        self._purge_cache()

    @property
    def ssg_fract_no_phason_numerical(self) -> SpaceGroup:
        return self._cached(
            "ssg_fract_no_phason_numerical",
            lambda: self._ssg_fract_no_phason.with_algebra(self._rnum))

    def _project_ssg(self, symop_ids, a, b) -> SpaceGroup:
        symop = self._ssg_fract_no_phason.symop
        return SpaceGroup([
            SpaceGroupSymop(self._mm(a, symop[i].rot, b),
                            self._mm(a, symop[i].trans))
            for i in symop_ids
        ])

    @property
    def ssg_par_cartn_no_phason(self) -> SpaceGroup:
        return self._cached(
            "ssg_par_cartn_no_phason",
            lambda: self._project_ssg(
                range(self._ssg_fract_no_phason.order),
                self._a_par_cartn, self._b_par_cartn_no_phason))

    @property
    def ssg_perp_cartn_no_phason(self) -> SpaceGroup:
        return self._cached(
            "ssg_perp_cartn_no_phason",
            lambda: self._project_ssg(
                range(self._ssg_fract_no_phason.order),
                self._a_perp_cartn_no_phason, self._b_perp_cartn))

    @property
    def ssg_no_phason_trans_symop_id(self) -> list[list[int]]:
        """Operations grouped by translation modulo lattice vectors."""
        def factory():
            ralg = self._algebra
            return self._ssg_fract_no_phason.gen_star(
                None,
                lambda x, g: g.trans,
                lambda t1, t2: ralg.is_integer(t1 - t2)).star_symop_ids
        ids = self._cached("ssg_no_phason_trans_symop_id", factory)
        return [list(i) for i in ids]

    def _is_ssg_symop(self, symop: SpaceGroupSymop, a_par, a_perp,
                      b_par, b_perp) -> bool:
        rot = self._algebra.asarray(symop.rot)
        if not self._algebra.is_zero(self._mm(a_perp, rot, b_par)):
            return False
        return self._algebra.is_zero(self._mm(a_par, rot, b_perp))

    def is_ssg_symop_fract_no_phason(self, symop: SpaceGroupSymop) -> bool:
        """Whether ``symop`` keeps the unstrained parallel space invariant."""
        return self._is_ssg_symop(
            symop, self._a_par_cartn, self._a_perp_cartn_no_phason,
            self._b_par_cartn_no_phason, self._b_perp_cartn)

    def is_ssg_symop_fract(self, symop: SpaceGroupSymop) -> bool:
        """Whether ``symop`` is a symmetry under the current phason strain.

        The operation is kept if its rotation does not mix parallel and
        perpendicular components, i.e. both ``a_perp @ rot @ b_par`` and
        ``a_par @ rot @ b_perp`` vanish for the strained bases.
        """
        return self._is_ssg_symop(
            symop, self._a_par_cartn, self.a_perp_cartn,
            self.b_par_cartn, self._b_perp_cartn)

    @property
    def ssg_symop_id(self) -> list[int]:
        """Indices of the operations that survive the phason strain."""
        ids = self._cached(
            "ssg_symop_id",
            lambda: [
                i for i, g in enumerate(self._ssg_fract_no_phason.symop)
                if self.is_ssg_symop_fract(g)
            ],
            phason=True)
        return list(ids)

    def _compose(self, h: SpaceGroupSymop, g: SpaceGroupSymop) -> SpaceGroupSymop:
        """The operation ``h o g`` (``g`` applied first)."""
        rot = self._mm(h.rot, g.rot)
        trans = self._algebra.simplify(self._mm(h.rot, g.trans) + h.trans)
        return SpaceGroupSymop(rot, trans)

    def _gen_right_cosets(self) -> list[list[int]]:
        ralg = self._algebra
        symop = self._ssg_fract_no_phason.symop
        sub_ids = self.ssg_symop_id
        rc_symop_id = [[]]
        rc = [[symop[i] for i in sub_ids]]
        for i, gi in enumerate(symop):
            prod = self._compose(symop[sub_ids[0]], gi)
            for k, rck in enumerate(rc):
                if len(rc_symop_id[k]) != len(rck) and any(
                    ralg.eq(gl.rot, prod.rot)
                    and ralg.is_integer(gl.trans - prod.trans)
                    for gl in rck
                ):
                    rc_symop_id[k].append(i)
                    break
            else:
                rc_symop_id.append([i])
                rc.append([prod] + [
                    self._compose(symop[j], gi) for j in sub_ids[1:]
                ])
        return rc_symop_id

    @property
    def ssg_right_cosets_symop_id(self) -> list[list[int]]:
        """Right cosets of the strained subgroup, as operation indices."""
        cosets = self._cached(
            "ssg_right_cosets_symop_id", self._gen_right_cosets, phason=True)
        return [list(c) for c in cosets]

    @property
    def ssg_fract(self) -> SpaceGroup:
        def factory():
            symop = self._ssg_fract_no_phason.symop
            return SpaceGroup([symop[i] for i in self.ssg_symop_id])
        return self._cached("ssg_fract", factory, phason=True)

    @property
    def ssg_par_cartn(self) -> SpaceGroup:
        return self._cached(
            "ssg_par_cartn",
            lambda: self._project_ssg(
                self.ssg_symop_id, self._a_par_cartn, self.b_par_cartn),
            phason=True)

    @property
    def ssg_perp_cartn(self) -> SpaceGroup:
        return self._cached(
            "ssg_perp_cartn",
            lambda: self._project_ssg(
                self.ssg_symop_id, self.a_perp_cartn, self._b_perp_cartn),
            phason=True)

    def gen_sg_symop(self, rot, trans) -> SpaceGroupSymop:
        """Symmetry operation from a flat or nested rotation and translation.

        Raises:
            DimensionMismatch: If the sizes do not match ``dim``
        """
        dim = self.dim
        return SpaceGroupSymop(
            self._algebra.asarray(rot, (dim, dim)),
            self._algebra.asarray(trans, (dim,)))

    def gen_space_group(self, *symops: SpaceGroupSymop) -> SpaceGroup:
        """Space group from explicit operations; the trivial group if none."""
        if len(symops) == 0:
            return SpaceGroup([SpaceGroupSymop.identity(self.dim, self._algebra)])
        sg = SpaceGroup([s.with_algebra(self._algebra) for s in symops])
        if sg.dim != self.dim:
            raise DimensionMismatch(
                f"Space group of dimension {sg.dim} given to a quasicrystal "
                f"of dimension {self.dim}"
            )
        return sg

    def gen_sg_fract_from_generators(
        self,
        generators: Sequence[SpaceGroupSymop],
        max_order: int = DEFAULT_MAX_ORDER
    ) -> SpaceGroup:
        """Close a set of fractional generators into a space group.

        Translations are reduced modulo lattice vectors: components that are
        integers are set to zero, and two operations are equal if their
        rotations agree and their translations differ by integers.

        Raises:
            InvalidGeneratorSet: If a generator is not a SpaceGroupSymop
            DimensionMismatch: If a generator has the wrong dimension
            ClosureLimitExceeded: If the group has more than ``max_order``
                elements
        """
        ralg = self._algebra
        dim = self.dim
        generators = list(generators)
        for gen in generators:
            if not isinstance(gen, SpaceGroupSymop):
                raise InvalidGeneratorSet(
                    f"Generators must be SpaceGroupSymop, got {gen!r}"
                )
            if gen.dim != dim:
                raise DimensionMismatch(
                    f"Generator of dimension {gen.dim} given to a "
                    f"quasicrystal of dimension {dim}"
                )
        generators = [gen.with_algebra(ralg) for gen in generators]
        zero = ralg.asarray([0])[0]

        def mul(gen, symop):
            prod = self._compose(symop, gen)
            trans = np.array(prod.trans, copy=True)
            for k in range(dim):
                if ralg.is_integer(trans[k]):
                    trans[k] = zero
            return SpaceGroupSymop(prod.rot, trans)

        def eq(generated, symop):
            return (ralg.eq(symop.rot, generated.rot)
                    and ralg.is_integer(symop.trans - generated.trans))

        symop = Group.gen_elements(
            SpaceGroupSymop.identity(dim, ralg), generators, mul, eq, max_order)
        return SpaceGroup(symop)

    # -- atom types, sites and surfaces ------------------------------------

    def set_atom_type(self, atom_type_symbol: str, atom_type: AtomType) -> None:
        if not isinstance(atom_type, AtomType):
            raise TypeError(f"Expected an AtomType, got {atom_type!r}")
        self._atom_type[atom_type_symbol] = atom_type

    def remove_atom_type(self, atom_type_symbol: str) -> None:
        self._atom_type.pop(atom_type_symbol, None)

    def get_atom_type(self, atom_type_symbol: str) -> AtomType:
        return self._atom_type[atom_type_symbol]

    def get_atom_type_entries(self) -> list[tuple[str, AtomType]]:
        return list(self._atom_type.items())

    def set_atom_site(self, atom_site_label: str, pos_fract) -> None:
        """Register an atom site at a fractional position.

        Raises:
            DimensionMismatch: If ``pos_fract`` does not have ``dim`` entries
        """
        pos = self._algebra.asarray(pos_fract, (self.dim,))
        self._atom_site[atom_site_label] = AtomSite(_read_only(pos))

    def remove_atom_site(self, atom_site_label: str) -> None:
        self._atom_site.pop(atom_site_label, None)

    def get_atom_site(self, atom_site_label: str) -> AtomSite:
        return self._atom_site[atom_site_label]

    def get_atom_site_entries(self) -> list[tuple[str, AtomSite]]:
        return list(self._atom_site.items())

    def get_atom_site_label(self, pos_fract) -> str:
        """Label of the first site equal to ``pos_fract`` modulo the lattice.

        Raises:
            PreconditionError: If no registered site matches
        """
        ralg = self._algebra
        pos = ralg.asarray(pos_fract, (self.dim,))
        for label, site in self._atom_site.items():
            if ralg.is_integer(site.pos_fract - pos):
                return label
        raise PreconditionError(f"No atom site at {pos.tolist()}")

    def set_atomic_surface(
        self,
        atomic_surface_label: str,
        atomic_surface: AtomicSurface
    ) -> None:
        """Register an atomic surface.

        Raises:
            TypeError: If ``atomic_surface`` is not an AtomicSurface
            DimensionMismatch: If its dimensions do not match
        """
        if not isinstance(atomic_surface, AtomicSurface):
            raise TypeError(f"Expected an AtomicSurface, got {atomic_surface!r}")
        if (atomic_surface.dim != self.dim
                or atomic_surface.dim_perp != self._dim_perp):
            raise DimensionMismatch(
                f"Atomic surface of dimension {atomic_surface.dim} "
                f"(perpendicular {atomic_surface.dim_perp}) does not fit a "
                f"quasicrystal of dimension {self.dim} "
                f"(perpendicular {self._dim_perp})"
            )
        self._atomic_surface[atomic_surface_label] = atomic_surface

    def remove_atomic_surface(self, atomic_surface_label: str) -> None:
        self._atomic_surface.pop(atomic_surface_label, None)

    def get_atomic_surface(self, atomic_surface_label: str) -> AtomicSurface:
        return self._atomic_surface[atomic_surface_label]

    def get_atomic_surface_entries(self) -> list[tuple[str, AtomicSurface]]:
        return list(self._atomic_surface.items())

    def get_atomic_surface_entries_at_atom_site(
        self,
        atom_site_label: str
    ) -> list[tuple[str, AtomicSurface]]:
        return [
            (label, surface)
            for label, surface in self._atomic_surface.items()
            if surface.atom_site_label == atom_site_label
        ]

    # -- site symmetry -----------------------------------------------------

    def ssg_no_phason_sym_atom_site(self, atom_site_label: str) -> SiteSymmetry:
        """Positions equivalent to an atom site under the unstrained group."""
        ralg = self._algebra
        pos = self._atom_site[atom_site_label].pos_fract

        def factory():
            star = self._ssg_fract_no_phason.gen_star(
                pos,
                lambda x, g: ralg.simplify(g.rot @ x + g.trans),
                lambda x, y: ralg.is_integer(x - y))
            return SiteSymmetry(
                [_read_only(p) for p in star.star],
                star.star_symop_ids,
                star.symop_star_id)

        site_sym = self._cached(
            "ssg_no_phason_sym_atom_site", factory,
            extra=(atom_site_label, tuple(pos.tolist())))
        return SiteSymmetry(
            list(site_sym.eqv_pos),
            [list(ids) for ids in site_sym.eqv_pos_symop_ids],
            list(site_sym.symop_eqv_pos_id))

    def spg_fract_no_phason_atom_site(self, atom_site_label: str) -> PointGroup:
        """Site point group in fractional coordinates."""
        symop = self._ssg_fract_no_phason.symop
        ids = self.ssg_no_phason_sym_atom_site(atom_site_label).eqv_pos_symop_ids[0]
        return PointGroup([symop[i].rot for i in ids])

    def spg_perp_cartn_no_phason_atom_site(
        self,
        atom_site_label: str
    ) -> PointGroup:
        """Site point group acting on perpendicular Cartesian space.

        Operations with the same perpendicular action appear once.
        """
        ralg = self._algebra
        symop = self.ssg_perp_cartn_no_phason.symop
        ids = self.ssg_no_phason_sym_atom_site(atom_site_label).eqv_pos_symop_ids[0]
        rots = Group.remove_duplicates(
            [symop[i].rot for i in ids], ralg.eq)
        return PointGroup(rots)

    # -- occupation domains ------------------------------------------------

    def gen_pseudo_ws_cell_perp_asym_no_phason(
        self,
        atom_site_label: str,
        pseudo_latt_vecs_fract: Sequence,
        d_asym: float,
        hint_v_asym_perp_cartn=None
    ) -> OccupationDomain:
        """Asymmetric part of a pseudo Wigner-Seitz cell in perpendicular space.

        The asymmetric unit of the perpendicular site point group is cut by
        the perpendicular bisectors of all symmetric images of the
        perpendicular components of ``pseudo_latt_vecs_fract``.

        Args:
            atom_site_label: Atom site the domain belongs to
            pseudo_latt_vecs_fract: Fractional vectors whose images bound
                the cell
            d_asym: Half-width of the bounding hypercube of the asymmetric
                unit
            hint_v_asym_perp_cartn: Optional general position hint

        Returns:
            OccupationDomain of the atom site
        """
        rnum = self._rnum
        palg = self._palg
        spg_perp = self.spg_perp_cartn_no_phason_atom_site(atom_site_label)
        spg_perp = spg_perp.with_algebra(rnum)
        a_perp = rnum.to_numeric(self._a_perp_cartn_no_phason)
        sym_v = []
        for v0 in pseudo_latt_vecs_fract:
            v = a_perp @ rnum.asarray(v0, (self.dim,))
            sym_v.extend(spg_perp.gen_orbit(
                v, lambda a, g: g @ a, rnum.eq).orbit)
        p_asym = spg_perp.gen_asymmetric_unit(
            palg, d_asym, hint_v_asym_perp_cartn)
        for v in sym_v:
            p_asym = palg.add_facet(p_asym, palg.facet(v, (v @ v) / 2))
        return OccupationDomain(atom_site_label, p_asym)

    def _displaced_sites(
        self,
        occ_domain: OccupationDomain,
        displacement_vec_fract
    ) -> list[tuple[str, np.ndarray]]:
        ralg = self._algebra
        label0 = occ_domain.atom_site_label
        pos0 = self.get_atom_site(label0).pos_fract
        spg_fract = self.spg_fract_no_phason_atom_site(label0)
        v0 = ralg.asarray(displacement_vec_fract, (self.dim,))
        sym_v = spg_fract.gen_orbit(
            v0, lambda a, g: ralg.simplify(g @ a), ralg.eq)
        a_perp = self._a_perp_cartn_no_phason
        displaced = []
        for v in sym_v.orbit:
            label = self.get_atom_site_label(ralg.simplify(v + pos0))
            v_perp = -self._rnum.to_numeric(self._mm(a_perp, v))
            displaced.append((label, v_perp))
        return displaced

    def od_star_no_phason_generator(
        self,
        occ_domain: OccupationDomain,
        displacement_vec_fract
    ) -> Iterator[OccupationDomain]:
        """Occupation domains generated around displaced equivalent sites.

        For every operation of the perpendicular site point group and every
        symmetric image ``v`` of the displacement, the domain is rotated and
        shifted by ``-a_perp @ v`` and attached to the site at the displaced
        position.

        Raises:
            PreconditionError: If a displaced position is not an atom site
        """
        palg = self._palg
        displaced = self._displaced_sites(occ_domain, displacement_vec_fract)
        spg_perp = self.spg_perp_cartn_no_phason_atom_site(
            occ_domain.atom_site_label)
        for rot in spg_perp.symop:
            p_rot = palg.rotate(occ_domain.polytope, self._rnum.to_numeric(rot))
            for label, v_perp in displaced:
                yield OccupationDomain(label, palg.translate(p_rot, v_perp))

    def od_asym_star_no_phason_generator(
        self,
        occ_domain: OccupationDomain,
        displacement_vec_fract
    ) -> Iterator[OccupationDomain]:
        """Like :meth:`od_star_no_phason_generator`, without rotations."""
        palg = self._palg
        for label, v_perp in self._displaced_sites(
                occ_domain, displacement_vec_fract):
            yield OccupationDomain(
                label, palg.translate(occ_domain.polytope, v_perp))

    # -- diffraction -------------------------------------------------------

    def gen_ad_tensor_beta_no_phason_from_u_cartn(self, u_cartn) -> np.ndarray:
        """Displacement tensor beta from a Cartesian tensor U.

        ``beta = 2 pi^2 b U b^T`` with ``b = b_cartn_no_phason``; numeric.
        """
        dim = self.dim
        b = self._rnum.to_numeric(self.b_cartn_no_phason)
        u = np.asarray(u_cartn, dtype=float).reshape(dim, dim)
        return 2 * np.pi ** 2 * (b @ u @ b.T)

    def q_fract_no_phason_generator(
        self,
        max_q_par_cartn: float,
        max_q_perp_cartn: float | None = None
    ) -> QFractEnumerator:
        """Reciprocal vectors inside the parallel/perpendicular cut-offs.

        Raises:
            ValueError: If a cut-off is missing or not positive
        """
        rnum = self._rnum
        return QFractEnumerator(
            rnum.to_numeric(self._b_par_cartn_no_phason),
            rnum.to_numeric(self._b_perp_cartn),
            max_q_par_cartn, max_q_perp_cartn)

    def sym_q_fract_no_phason_generator(
        self,
        max_q_par_cartn: float,
        max_q_perp_cartn: float | None = None
    ) -> SymmetricStarEnumerator:
        """Stars of reciprocal vectors under the unstrained group."""
        return SymmetricStarEnumerator(
            self.q_fract_no_phason_generator(max_q_par_cartn, max_q_perp_cartn),
            self.ssg_fract_no_phason_numerical,
            self._rnum)

    def _atom_site_phase_info(self, atom_site_label, sym_q, q_fract_star,
                              q_perp_cartn_star, trans_factor) -> dict:
        spg_fract = self.spg_fract_no_phason_atom_site(atom_site_label)
        spg_perp = self.spg_perp_cartn_no_phason_atom_site(atom_site_label)
        site_sym = self.ssg_no_phason_sym_atom_site(atom_site_label)
        eqv_pos0 = self._rnum.to_numeric(site_sym.eqv_pos[0])
        symop_q_star_id = sym_q.symop_star_id
        q_star_symop_ids = sym_q.star_symop_ids

        q_fract = []
        q_perp = []
        star_mult = []
        phase_factor = []
        phase_cache = {}
        symop_eff_id = [-1] * len(symop_q_star_id)
        for ids in site_sym.eqv_pos_symop_ids:
            eff_id = symop_eff_id[ids[0]]
            if eff_id == -1:
                eff_id = len(q_fract)
                q_star_ids = list(dict.fromkeys(
                    symop_q_star_id[i] for i in ids))
                for q_star_id in q_star_ids:
                    for i in q_star_symop_ids[q_star_id]:
                        symop_eff_id[i] = eff_id
                q_fract.append([q_fract_star[i] for i in q_star_ids])
                q_perp.append([q_perp_cartn_star[i] for i in q_star_ids])
                star_mult.append(len(ids) / len(q_star_ids))
                phase_factor.append(0j)
            q_star_id = min(symop_q_star_id[i] for i in ids)
            factor = phase_cache.get(q_star_id)
            if factor is None:
                phase = 2 * np.pi * float(q_fract_star[q_star_id] @ eqv_pos0)
                factor = complex(np.cos(phase), np.sin(phase))
                phase_cache[q_star_id] = factor
            phase_factor[eff_id] += factor * trans_factor[ids[0]]

        return {
            "q_fract": q_fract,
            "q_perp": q_perp,
            "phase_factor": [f * m for f, m in zip(phase_factor, star_mult)],
            "multiplicity": spg_fract.order / spg_perp.order,
        }

    def structure_factor(
        self,
        stol,
        rad: Radiation,
        sym_q_fract_no_phason: Star,
        q_perp_cartn_star: Sequence
    ) -> np.ndarray:
        """Structure factor of a star of reciprocal vectors.

        The result is divided by the hypervolume of the unit cell. Phason
        strain is not taken into account: with a non-zero phason matrix the
        values are those of the unstrained structure.

        Args:
            stol: sin(theta)/lambda value(s) at which atomic scattering
                factors are evaluated
            rad: Radiation
            sym_q_fract_no_phason: Star of the reciprocal vector under
                ``ssg_fract_no_phason``
            q_perp_cartn_star: Perpendicular Cartesian components of the star

        Returns:
            Complex array aligned with ``stol``

        Raises:
            PreconditionError: If the star was not generated by the current
                superspace group
        """
        if not self._algebra.is_zero(self._phason_matrix):
            logger.warning(
                "structure factor ignores the non-zero phason matrix")
        rnum = self._rnum
        palg = self._palg
        stol = np.atleast_1d(np.asarray(stol, dtype=float))
        ssg = self.ssg_fract_no_phason_numerical
        sym_q = sym_q_fract_no_phason
        if len(sym_q.symop_star_id) != ssg.order:
            raise PreconditionError(
                f"Star built from {len(sym_q.symop_star_id)} operations, "
                f"the superspace group has {ssg.order}"
            )
        q_fract_star = [rnum.to_numeric(q) for q in sym_q.star]
        q_perp_cartn_star = [rnum.to_numeric(q) for q in q_perp_cartn_star]
        q_fract0 = q_fract_star[0]

        trans_factor = [0j] * ssg.order
        for ids in self.ssg_no_phason_trans_symop_id:
            phase = 2 * np.pi * float(q_fract0 @ ssg.symop[ids[0]].trans)
            factor = complex(np.cos(phase), np.sin(phase))
            for i in ids:
                trans_factor[i] = factor

        site_info = {}
        scattering = {}
        f = np.zeros(len(stol), dtype=complex)
        for _, surface in self._atomic_surface.items():
            label = surface.atom_site_label
            info = site_info.get(label)
            if info is None:
                info = self._atom_site_phase_info(
                    label, sym_q, q_fract_star, q_perp_cartn_star,
                    trans_factor)
                site_info[label] = info

            f_as = 0j
            for q_fracts, q_perps, phase_factor in zip(
                    info["q_fract"], info["q_perp"], info["phase_factor"]):
                fi = 0j
                for q_fract, q_perp in zip(q_fracts, q_perps):
                    gff = surface.geometrical_form_factor(palg, q_perp)
                    gff /= info["multiplicity"]
                    fi += gff * surface.atomic_displacement_factor(q_fract)
                f_as += fi * phase_factor
            f_as *= surface.occupancy_factor()

            symbol = surface.atom_type_symbol
            asf = scattering.get(symbol)
            if asf is None:
                atom_type = self._atom_type[symbol]
                asf = np.array([
                    atom_type.atomic_scattering_factor(s, rad) for s in stol
                ])
                scattering[symbol] = asf
            f += f_as * asf

        return f / self._hyper_volume_numerical

    # -- serialization -----------------------------------------------------

    def to_dict(self) -> dict:
        from .serialization import to_dict
        return to_dict(self)

    @classmethod
    def from_dict(cls, obj: dict, algebra: RealAlgebra,
                  eps: float = DEFAULT_EPS) -> "Quasicrystal":
        from .serialization import from_dict
        return from_dict(obj, algebra, eps)
