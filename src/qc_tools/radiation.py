"""
Radiation probes used in diffraction.
"""


class Radiation:
    """A diffraction probe identified by name (e.g. ``"x-ray"``)."""

    def __init__(self, probe: str | None = None):
        self._probe = probe

    @property
    def probe(self) -> str | None:
        return self._probe

    def __repr__(self) -> str:
        return f"Radiation({self._probe!r})"


class XRayRadiation(Radiation):
    """X-rays of a given wavelength in angstrom."""

    def __init__(self, wavelength: float):
        super().__init__("x-ray")
        self._wavelength = wavelength

    @property
    def wavelength(self) -> float:
        return self._wavelength

    def __repr__(self) -> str:
        return f"XRayRadiation({self._wavelength!r})"


# Cu K-L3 and K-L2 lines (K-alpha1, K-alpha2)
XRayRadiation.CU_KL3 = XRayRadiation(1.540562)
XRayRadiation.CU_KL2 = XRayRadiation(1.544390)
