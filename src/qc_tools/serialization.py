"""
JSON documents of quasicrystals.

The document is a plain JSON object::

    {
      "reviver": "qc_tools:Quasicrystal", "version": "experimental",
      "dim": 2,
      "aParCartn": [...], "aPerpCartnNoPhason": [...],   (row-major)
      "originFract": [...], "phasonMatrix": [...],
      "ssgFractNoPhason": [[rot, trans], ...],
      "atomType": [{"symbol", "scatCromerMannCoeffs", "scatHiAngFoxCoeffs"}],
      "atomSite": [{"label", "posFract"}],
      "atomicSurface": [{"label", "atomTypeSymbol", "occupancy",
                         "adTensorBeta", "occDomainAsym": {"atomSiteLabel",
                         "polytopeJSON"}, "displayColour", "displayOpacity",
                         "displayRadius"}],
      "aux": {...}
    }

Scalars of an exact quasicrystal that are not integers are written as sympy
strings such as ``"1/2 + sqrt(5)/2"``. Fox coefficients are written as
tabulated.

Example:
    >>> import json
    >>> from qc_tools import NumericAlgebra, Quasicrystal
    >>> from qc_tools.serialization import dumps, reviver
    >>> qc = Quasicrystal(NumericAlgebra(), 1, [2.0], [])
    >>> qc2 = json.loads(dumps(qc), object_hook=reviver(NumericAlgebra()))
    >>> qc2.dim
    1
"""

import copy
import json
import logging

import numpy as np
import sympy

from .algebra import RealAlgebra
from .atoms import AtomicSurface, AtomType
from .constants import DEFAULT_EPS, REVIVER_NAME, SERIALIZATION_VERSION
from .occupation_domain import OccupationDomain
from .quasicrystal import Quasicrystal

logger = logging.getLogger(__name__)


def _encode(values, exact: bool) -> list:
    """Flat row-major list of JSON scalars."""
    flat = np.asarray(values, dtype=object).reshape(-1)
    if not exact:
        return [float(x) for x in flat]
    encoded = []
    for x in flat:
        expr = sympy.sympify(x)
        encoded.append(int(expr) if expr.is_Integer else str(expr))
    return encoded


def _decode(values) -> list:
    """Inverse of :func:`_encode`; strings become sympy numbers."""
    return [sympy.sympify(x) if isinstance(x, str) else x for x in values]


def to_dict(qc: Quasicrystal) -> dict:
    """JSON-compatible document of a quasicrystal."""
    exact = qc.algebra.exact
    palg = qc.polytope_algebra
    atom_types = []
    for symbol, atom_type in qc.get_atom_type_entries():
        fox = atom_type.scat_hi_ang_fox_coeffs
        atom_types.append({
            "symbol": symbol,
            "scatCromerMannCoeffs": list(atom_type.scat_cromer_mann_coeffs),
            "scatHiAngFoxCoeffs": None if fox is None else list(fox),
        })
    atomic_surfaces = []
    for label, surface in qc.get_atomic_surface_entries():
        atomic_surfaces.append({
            "label": label,
            "atomTypeSymbol": surface.atom_type_symbol,
            "occupancy": surface.occupancy,
            "adTensorBeta": _encode(surface.ad_tensor_beta, False),
            "occDomainAsym": {
                "atomSiteLabel": surface.occ_domain_asym.atom_site_label,
                "polytopeJSON": palg.to_json(surface.occ_domain_asym.polytope),
            },
            "displayColour": surface.display_colour,
            "displayOpacity": surface.display_opacity,
            "displayRadius": surface.display_radius,
        })
    return {
        "reviver": REVIVER_NAME,
        "version": SERIALIZATION_VERSION,
        "dim": qc.dim,
        "aParCartn": _encode(qc.a_par_cartn, exact),
        "aPerpCartnNoPhason": _encode(qc.a_perp_cartn_no_phason, exact),
        "originFract": _encode(qc.origin_fract, exact),
        "phasonMatrix": _encode(qc.phason_matrix, exact),
        "ssgFractNoPhason": [
            [_encode(g.rot, exact), _encode(g.trans, exact)]
            for g in qc.ssg_fract_no_phason.symop
        ],
        "atomType": atom_types,
        "atomSite": [
            {"label": label, "posFract": _encode(site.pos_fract, exact)}
            for label, site in qc.get_atom_site_entries()
        ],
        "atomicSurface": atomic_surfaces,
        "aux": copy.deepcopy(qc.aux),
    }


def from_dict(
    obj: dict,
    algebra: RealAlgebra,
    eps: float = DEFAULT_EPS
) -> Quasicrystal:
    """Rebuild a quasicrystal from :func:`to_dict` output.

    Raises:
        ValueError: If the document version is not supported
    """
    if obj.get("version") != SERIALIZATION_VERSION:
        raise ValueError("invalid version")
    qc = Quasicrystal(
        algebra, obj["dim"],
        _decode(obj["aParCartn"]), _decode(obj["aPerpCartnNoPhason"]), eps)
    qc.aux = copy.deepcopy(obj.get("aux") or {})
    qc.set_origin_fract(_decode(obj["originFract"]))
    qc.set_phason_matrix(_decode(obj["phasonMatrix"]))
    qc.set_ssg_fract_no_phason(qc.gen_space_group(*[
        qc.gen_sg_symop(_decode(rot), _decode(trans))
        for rot, trans in obj["ssgFractNoPhason"]
    ]))
    for entry in obj["atomType"]:
        qc.set_atom_type(entry["symbol"], AtomType(
            entry["scatCromerMannCoeffs"], entry.get("scatHiAngFoxCoeffs")))
    for entry in obj["atomSite"]:
        qc.set_atom_site(entry["label"], _decode(entry["posFract"]))
    palg = qc.polytope_algebra
    for entry in obj["atomicSurface"]:
        od = entry["occDomainAsym"]
        qc.set_atomic_surface(entry["label"], AtomicSurface(
            entry["atomTypeSymbol"],
            entry["occupancy"],
            entry["adTensorBeta"],
            OccupationDomain(od["atomSiteLabel"],
                             palg.from_json(od["polytopeJSON"])),
            entry.get("displayColour"),
            entry.get("displayOpacity"),
            entry.get("displayRadius"),
        ))
    logger.debug("restored quasicrystal with %d atomic surfaces",
                 len(obj["atomicSurface"]))
    return qc


def reviver(algebra: RealAlgebra, eps: float = DEFAULT_EPS):
    """``object_hook`` for :func:`json.loads` that restores quasicrystals."""
    def object_hook(obj: dict):
        if obj.get("reviver") == REVIVER_NAME:
            return from_dict(obj, algebra, eps)
        return obj
    return object_hook


def dumps(qc: Quasicrystal, **kwargs) -> str:
    return json.dumps(to_dict(qc), **kwargs)


def loads(text: str, algebra: RealAlgebra, eps: float = DEFAULT_EPS) -> Quasicrystal:
    return json.loads(text, object_hook=reviver(algebra, eps))
