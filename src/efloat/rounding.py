"""
Rounding-Error Model

Helpers that bound the rounding error of floating-point operations in a given
precision:

- unit roundoff u = eps / 2 (Higham 2002, sect. 2.1)
- gamma(n) = n*u / (1 - n*u), the worst-case relative error of n chained
  round-to-nearest operations (Higham 2002, sect. 3.1)
- one-ulp stepping (next_up / next_down)
- directed rounding of exact rationals to a floating-point precision

Directed rounding is not a Python primitive. Bounds are therefore computed
exactly as rationals (fractions.Fraction), rounded to nearest, and stepped
one ulp outward with numpy.nextafter whenever the rounded value landed on
the wrong side of the exact result. Exact results are never widened.
"""

from fractions import Fraction
from functools import lru_cache
from typing import Type, Union

import numpy as np


FloatType = Type[np.floating]
Scalar = Union[float, int, np.floating]

SUPPORTED_DTYPES = (np.float16, np.float32, np.float64)

PRECISION_ALIASES = {
    'f16': np.float16,
    'f32': np.float32,
    'f64': np.float64,
    'half': np.float16,
    'single': np.float32,
    'double': np.float64,
}


def resolve_dtype(dtype) -> FloatType:
    """
    Normalize a precision name ('f32', 'float32', np.float32, np.dtype(...)) to a
    numpy scalar type.
    """
    if isinstance(dtype, str) and dtype.lower() in PRECISION_ALIASES:
        return PRECISION_ALIASES[dtype.lower()]
    t = np.dtype(dtype).type
    if t not in SUPPORTED_DTYPES:
        raise TypeError(f"Unsupported precision: {np.dtype(t).name}")
    return t


def promote(a: FloatType, b: FloatType) -> FloatType:
    """Wider of two precisions; converting a bound to it is exact."""
    return np.promote_types(a, b).type


@lru_cache(maxsize=None)
def unit_roundoff(dtype) -> float:
    """Unit roundoff u = eps / 2 of the precision."""
    return float(np.finfo(resolve_dtype(dtype)).eps) * 0.5


@lru_cache(maxsize=None)
def gamma(n: int, dtype=np.float32) -> float:
    """
    Relative error bound for n chained round-to-nearest operations.

    Returned as a float64 rounded toward +inf so it can be used directly
    as a widening factor.

    Raises:
        ValueError: if n is negative or n*u >= 1 (the bound no longer holds)
    """
    if n < 0:
        raise ValueError(f"Operation count must be non-negative, got {n}")
    nu = n * Fraction(unit_roundoff(dtype))
    if nu >= 1:
        raise ValueError(f"gamma({n}) is undefined in {np.dtype(resolve_dtype(dtype)).name}")
    return float(round_up(nu / (1 - nu), np.float64))


def exact(x: Scalar) -> Fraction:
    """Exact rational value of a finite float."""
    return Fraction(float(x))


def is_finite(*xs: Scalar) -> bool:
    return all(np.isfinite(x) for x in xs)


def next_up(x: np.floating) -> np.floating:
    """Smallest representable value strictly above x (+inf and NaN are fixed)."""
    t = type(x)
    return np.nextafter(x, t(np.inf))


def next_down(x: np.floating) -> np.floating:
    """Largest representable value strictly below x (-inf and NaN are fixed)."""
    t = type(x)
    return np.nextafter(x, t(-np.inf))


@lru_cache(maxsize=None)
def _max_finite(t: FloatType) -> Fraction:
    return exact(np.finfo(t).max)


@lru_cache(maxsize=None)
def _overflow_point(t: FloatType) -> Fraction:
    # 2**maxexp: the value an unbounded exponent would give the successor of max
    return Fraction(2) ** int(np.finfo(t).maxexp)


def round_down(q: Fraction, dtype) -> np.floating:
    """Largest value of the precision that is <= q."""
    t = resolve_dtype(dtype)
    fmax = _max_finite(t)
    if q > fmax:
        return t(np.finfo(t).max)
    if q < -fmax:
        return t(-np.inf)
    f = t(float(q))
    if exact(f) > q:
        f = next_down(f)
    return f


def round_up(q: Fraction, dtype) -> np.floating:
    """Smallest value of the precision that is >= q."""
    t = resolve_dtype(dtype)
    fmax = _max_finite(t)
    if q > fmax:
        return t(np.inf)
    if q < -fmax:
        return t(-np.finfo(t).max)
    f = t(float(q))
    if exact(f) < q:
        f = next_up(f)
    return f


def _is_even(f: np.floating) -> bool:
    bits = np.array(f).view(np.dtype(f'u{f.itemsize}'))
    return int(bits) & 1 == 0


def round_nearest(q: Fraction, dtype) -> np.floating:
    """Correctly rounded (ties to even) value of q in the precision."""
    t = resolve_dtype(dtype)
    lo = round_down(q, t)
    hi = round_up(q, t)
    if lo == hi:
        return lo
    lo_exact = exact(lo) if np.isfinite(lo) else -_overflow_point(t)
    hi_exact = exact(hi) if np.isfinite(hi) else _overflow_point(t)
    below = q - lo_exact
    above = hi_exact - q
    if below < above:
        return lo
    if above < below:
        return hi
    if not np.isfinite(hi):
        return hi
    if not np.isfinite(lo):
        return lo
    return lo if _is_even(lo) else hi


def widen_down(x: np.floating, n: int = 1) -> np.floating:
    """Step x down by n ulps."""
    for _ in range(n):
        x = next_down(x)
    return x


def widen_up(x: np.floating, n: int = 1) -> np.floating:
    """Step x up by n ulps."""
    for _ in range(n):
        x = next_up(x)
    return x


def gamma_down(x: np.floating, n: int) -> np.floating:
    """
    Lower bound for a true value whose computed approximation is x, when x
    carries at most gamma(n) relative error.
    """
    t = type(x)
    if not np.isfinite(x):
        return next_down(x) if x > 0 else x
    q = exact(x)
    g = Fraction(gamma(n, t))
    return next_down(round_down(q - abs(q) * g, t))


def gamma_up(x: np.floating, n: int) -> np.floating:
    """Upper-bound counterpart of gamma_down."""
    t = type(x)
    if not np.isfinite(x):
        return next_up(x) if x < 0 else x
    q = exact(x)
    g = Fraction(gamma(n, t))
    return next_up(round_up(q + abs(q) * g, t))
