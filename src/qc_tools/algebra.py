"""
Real-number algebras.

Two interchangeable algebras provide the scalar arithmetic behind the
superspace-group bookkeeping:

* :class:`NumericAlgebra` works on float64 arrays and compares within a
  tolerance ``eps``.
* :class:`ExactAlgebra` works on object arrays of sympy numbers and compares
  exactly. It is meant for bases built from algebraic numbers such as the
  golden ratio or sqrt(2).

Both algebras hand out numpy arrays, so matrix products, sums and slicing are
written once and run on either representation.

Example:
    >>> import sympy
    >>> from qc_tools.algebra import ExactAlgebra
    >>> ralg = ExactAlgebra()
    >>> tau = (1 + sympy.sqrt(5)) / 2
    >>> ralg.eq(ralg.asarray([tau * tau]), ralg.asarray([tau + 1]))
    True
"""

import numpy as np
import sympy
from scipy.linalg import lu_factor, lu_solve

from .constants import DEFAULT_EPS
from .errors import DimensionMismatch


class RealAlgebra:
    """Common interface of the numeric and the exact algebra."""

    exact = False

    def __init__(self, eps: float = DEFAULT_EPS):
        self.eps = eps

    def __repr__(self) -> str:
        return f"{type(self).__name__}(eps={self.eps!r})"

    def _convert(self, values) -> np.ndarray:
        raise NotImplementedError

    def asarray(self, values, shape=None) -> np.ndarray:
        """Convert ``values`` into an array of this algebra.

        Args:
            values: Scalar, flat sequence or nested sequence
            shape: Optional target shape; flat input is read row-major

        Returns:
            A new array

        Raises:
            DimensionMismatch: If the number of values does not fit ``shape``
        """
        arr = self._convert(values)
        if shape is not None:
            try:
                arr = arr.reshape(shape)
            except ValueError as exc:
                raise DimensionMismatch(
                    f"Cannot arrange {arr.size} values into shape {shape}"
                ) from exc
        return arr

    def zeros(self, shape) -> np.ndarray:
        return self.asarray(np.zeros(shape))

    def identity(self, dim: int) -> np.ndarray:
        return self.asarray(np.eye(dim))

    def simplify(self, x):
        return x

    def is_zero(self, x) -> bool:
        raise NotImplementedError

    def is_integer(self, x) -> bool:
        raise NotImplementedError

    def eq(self, a, b) -> bool:
        """Element-wise equality of two arrays (or scalars) of equal shape."""
        a = self.asarray(a)
        b = self.asarray(b)
        if a.shape != b.shape:
            return False
        return self.is_zero(a - b)

    def inv(self, m: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def det(self, m: np.ndarray):
        raise NotImplementedError

    def abs(self, x):
        raise NotImplementedError

    def to_numeric(self, x) -> np.ndarray:
        return np.asarray(x, dtype=float)


class NumericAlgebra(RealAlgebra):
    """Floating-point algebra with tolerance-based comparisons."""

    def _convert(self, values) -> np.ndarray:
        return np.array(values, dtype=float)

    def is_zero(self, x) -> bool:
        return bool(np.all(np.abs(np.asarray(x, dtype=float)) < self.eps))

    def is_integer(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        return bool(np.all(np.abs(x - np.rint(x)) < self.eps))

    def inv(self, m: np.ndarray) -> np.ndarray:
        m = np.asarray(m, dtype=float)
        n = m.shape[0]
        if n == 0:
            return np.zeros((0, 0))
        return lu_solve(lu_factor(m), np.eye(n))

    def det(self, m: np.ndarray) -> float:
        m = np.asarray(m, dtype=float)
        n = m.shape[0]
        if n == 0:
            return 1.0
        lu, piv = lu_factor(m)
        sign = -1.0 if np.count_nonzero(piv != np.arange(n)) % 2 else 1.0
        return sign * float(np.prod(np.diag(lu)))

    def abs(self, x) -> float:
        return abs(float(x))


def _to_exact(value):
    if isinstance(value, (float, np.floating)):
        return sympy.nsimplify(float(value), rational=True)
    return sympy.sympify(value)


def _canon(expr):
    expr = sympy.sympify(expr)
    if expr.is_Rational:
        return expr
    return sympy.expand(sympy.radsimp(expr))


def _is_zero_expr(expr) -> bool:
    expr = _canon(expr)
    zero = expr.is_zero
    if zero is None:
        zero = sympy.simplify(expr).is_zero
    return bool(zero)


_to_exact_ufunc = np.frompyfunc(_to_exact, 1, 1)
_canon_ufunc = np.frompyfunc(_canon, 1, 1)


class ExactAlgebra(RealAlgebra):
    """Exact algebra over sympy numbers.

    Floats are converted to rationals on input. ``eps`` is kept only for
    interface compatibility and is never used in comparisons.
    """

    exact = True

    def _convert(self, values) -> np.ndarray:
        arr = np.array(values, dtype=object)
        return np.asarray(_to_exact_ufunc(arr), dtype=object)

    def simplify(self, x):
        if isinstance(x, np.ndarray):
            return np.asarray(_canon_ufunc(x), dtype=object)
        return _canon(x)

    def is_zero(self, x) -> bool:
        arr = np.asarray(x, dtype=object)
        return all(_is_zero_expr(e) for e in arr.flat)

    def is_integer(self, x) -> bool:
        arr = np.asarray(x, dtype=object)
        return all(bool(_canon(e).is_integer) for e in arr.flat)

    def inv(self, m: np.ndarray) -> np.ndarray:
        n = m.shape[0]
        if n == 0:
            return np.zeros((0, 0), dtype=object)
        minv = sympy.Matrix(m.tolist()).inv(method="LU")
        return self.simplify(np.array(minv.tolist(), dtype=object))

    def det(self, m: np.ndarray):
        if m.shape[0] == 0:
            return sympy.Integer(1)
        return _canon(sympy.Matrix(m.tolist()).det(method="lu"))

    def abs(self, x):
        return _canon(sympy.Abs(_canon(x)))
