"""
Exceptions raised by qc-tools.

Validation failures of user input derive from :class:`QcError` (itself a
``ValueError``). Misuse of the API that indicates a bug in the calling code
raises :class:`PreconditionError`.
"""


class QcError(ValueError):
    """Base class for invalid input to qc-tools."""


class DimensionMismatch(QcError):
    """An array length, matrix shape or dimension is inconsistent."""


class InvalidGeneratorSet(QcError):
    """A group element list or generator set is unusable."""


class ClosureLimitExceeded(QcError):
    """Group generation produced more elements than allowed."""


class NoGeneralPositionFound(QcError):
    """No general position was found within the allowed number of trials."""


class UnsupportedProbe(QcError):
    """The scattering factor of the given probe is not implemented."""


class StolOutOfRange(QcError):
    """sin(theta)/lambda is outside the tabulated range."""


class PreconditionError(RuntimeError):
    """The caller violated a precondition of an operation."""
