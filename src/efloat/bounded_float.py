"""
Bounded Float

A floating-point value that remembers how far off it might be from the
exact mathematical result, based on its history. Alongside the nominal
value it keeps a lower and an upper bound that always enclose the exact
result, so geometric predicates (ray/surface intersection, orientation
tests) can tell when a result is trustworthy.

Tips:
- Multiplication and division add little error.
- Addition is fine, but subtraction (or addition of values with differing
  signs) has a poor error bound.
- Combine small magnitudes first so the larger errors propagate less.

Bounds are computed by exact rational evaluation of the interval corners
followed by directed rounding (see efloat.rounding). The comparison
operators look at ``value`` only and are NOT sound interval comparisons;
use ``overlaps`` when the enclosure matters.

Logic follows the EFloat class of pbrt-v3 (Pharr, Jakob, Humphreys).
"""

import logging
import math
import operator
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import get_config
from .errors import DivisionByZeroInterval, DomainError, InvalidBound, InvariantViolation
from .rounding import (
    exact,
    gamma,
    gamma_down,
    gamma_up,
    is_finite,
    next_down,
    next_up,
    promote,
    resolve_dtype,
    round_down,
    round_nearest,
    round_up,
    SUPPORTED_DTYPES,
)


logger = logging.getLogger(__name__)

Number = Union[int, float, np.integer, np.floating]
Operand = Union['BoundedFloat', Number]
Corner = Optional[Union[Fraction, float]]

# Relative error budget, in float64 unit roundoffs, of the libm calls behind exp/log
TRANSCENDENTAL_OPS = 8

# Integer powers up to this exponent are evaluated exactly
POWER_EXACT_LIMIT = 64
POWER_PRECISION_BITS = 128


def _as_rational(x: Number) -> Fraction:
    if isinstance(x, (int, np.integer)):
        return Fraction(int(x))
    return exact(x)


def _infer_dtype(*xs: Any):
    types = [type(x) for x in xs if type(x) in SUPPORTED_DTYPES]
    if not types:
        return resolve_dtype(get_config().default_dtype)
    t = types[0]
    for other in types[1:]:
        t = promote(t, other)
    return t


def _scalar_nearest(x: Number, t) -> np.floating:
    if isinstance(x, (int, np.integer)) or np.isfinite(x):
        if type(x) is t:
            return x
        return round_nearest(_as_rational(x), t)
    return t(x)


def _scalar_down(x: Number, t) -> np.floating:
    if isinstance(x, (int, np.integer)) or np.isfinite(x):
        return round_down(_as_rational(x), t)
    return t(x)


def _scalar_up(x: Number, t) -> np.floating:
    if isinstance(x, (int, np.integer)) or np.isfinite(x):
        return round_up(_as_rational(x), t)
    return t(x)


def _plain(x: Number) -> Union[int, float]:
    """Python number with the same exact value (numpy scalars compare in their own precision)."""
    if isinstance(x, np.integer):
        return int(x)
    if isinstance(x, np.floating):
        return float(x)
    return x


def _corner(fn: Callable, args: Sequence[np.floating]) -> Corner:
    """
    Evaluate one interval corner exactly.

    Finite corners are evaluated as rationals. Corners touching an infinity
    are evaluated in float arithmetic, whose results are exact limits; a NaN
    (inf - inf, 0 * inf, ...) is reported as None.
    """
    xs = [float(x) for x in args]
    if all(math.isfinite(x) for x in xs):
        return fn(*(Fraction(x) for x in xs))
    r = fn(*xs)
    if math.isnan(r):
        return None
    return r if math.isinf(r) else Fraction(r)


def _lower(q: Union[Fraction, float], t) -> np.floating:
    if isinstance(q, float):
        return t(q)
    f = round_down(q, t)
    if get_config().always_widen:
        f = next_down(f)
    return f


def _upper(q: Union[Fraction, float], t) -> np.floating:
    if isinstance(q, float):
        return t(q)
    f = round_up(q, t)
    if get_config().always_widen:
        f = next_up(f)
    return f


def _enclose(corners: List[Corner], t) -> Tuple[np.floating, np.floating]:
    """Directed-rounded [min, max] of the corner values."""
    if any(c is None for c in corners):
        return t(-np.inf), t(np.inf)
    return _lower(min(corners), t), _upper(max(corners), t)


def _nominal(fn: Callable, t, *xs: np.floating) -> np.floating:
    """Ordinary round-to-nearest evaluation in precision t."""
    with np.errstate(all='ignore'):
        return t(fn(*(t(x) for x in xs)))


def _shadow(fn: Callable, *operands: 'BoundedFloat') -> Optional[float]:
    """Float64 shadow computation, only while precise tracking is on."""
    if not get_config().track_precise:
        return None
    ps = [o.precise for o in operands]
    if any(p is None for p in ps):
        return None
    with np.errstate(all='ignore'):
        return float(fn(*(np.float64(p) for p in ps)))


def _sqrt_down(x: np.floating) -> np.floating:
    s = np.sqrt(x)
    if np.isfinite(s) and exact(s) ** 2 > exact(x):
        s = next_down(s)
    if get_config().always_widen and s > 0:
        s = next_down(s)
    return s


def _sqrt_up(x: np.floating) -> np.floating:
    s = np.sqrt(x)
    if np.isfinite(s) and exact(s) ** 2 < exact(x):
        s = next_up(s)
    if get_config().always_widen:
        s = next_up(s)
    return s


def _libm(fn: Callable, x: np.floating, t) -> Tuple[np.floating, np.floating, np.floating]:
    """
    Evaluate a libm function in float64 for an argument of precision t.

    The float64 result is widened by gamma(TRANSCENDENTAL_OPS) and each bound
    is rounded outward to t. Returns (nearest, lower, upper).
    """
    with np.errstate(all='ignore'):
        y = fn(np.float64(x))
        nearest = t(y)
    lo = gamma_down(y, TRANSCENDENTAL_OPS)
    hi = gamma_up(y, TRANSCENDENTAL_OPS)
    lower = _lower(exact(lo), t) if np.isfinite(lo) else t(lo)
    upper = _upper(exact(hi), t) if np.isfinite(hi) else t(hi)
    return nearest, lower, upper


def _truncate(q: Fraction, up: bool) -> Fraction:
    """Cut q > 0 to POWER_PRECISION_BITS significant bits, toward zero or away from it."""
    shift = Fraction(2) ** (POWER_PRECISION_BITS
                            - q.numerator.bit_length() + q.denominator.bit_length())
    scaled = q * shift
    return (math.ceil(scaled) if up else math.floor(scaled)) / shift


def _power_magnitude(m: Fraction, k: int) -> Tuple[Fraction, Fraction]:
    """
    Enclosure of m ** k for m > 0, k > 0. Small exponents are exact; larger ones
    use square-and-multiply with each partial product truncated outward.
    """
    if k <= POWER_EXACT_LIMIT:
        p = m ** k
        return p, p
    lo = hi = Fraction(1)
    base_lo = base_hi = m
    while True:
        if k & 1:
            lo = _truncate(lo * base_lo, up=False)
            hi = _truncate(hi * base_hi, up=True)
        k >>= 1
        if not k:
            return lo, hi
        base_lo = _truncate(base_lo * base_lo, up=False)
        base_hi = _truncate(base_hi * base_hi, up=True)


def _power_corners(x: np.floating, n: int, t) -> List[Corner]:
    """
    Lower and upper corner of x ** n (n != 0) in precision t.

    Magnitudes that certainly overflow or underflow t are replaced by a
    stand-in beyond the same limit, which rounds to the same bounds.
    """
    f = float(x)
    if f == 0 or not math.isfinite(f):
        c = _corner(lambda v: v ** n, (x,))
        return [c, c]
    m = abs(Fraction(f))
    if m == 1:
        lo = hi = Fraction(1)
    else:
        log2m = math.log2(abs(f))
        if abs(n) < 2 ** 1000:
            scale = n * log2m
        else:
            scale = math.inf if (n > 0) == (log2m > 0) else -math.inf
        info = np.finfo(t)
        if scale > info.maxexp + 1:
            lo = hi = Fraction(2) ** (info.maxexp + 1)
        elif scale < info.minexp - info.nmant - 2:
            lo = hi = Fraction(1, 2 ** (info.nmant - info.minexp + 2))
        else:
            lo, hi = _power_magnitude(m, abs(n))
            if n < 0:
                lo, hi = 1 / hi, 1 / lo
    if f < 0 and n % 2:
        lo, hi = -hi, -lo
    return [lo, hi]

@dataclass(frozen=True, eq=False)
class BoundedFloat:
    """
    A floating-point value with a conservative enclosure [low, high] of the
    exact result.

    Instances are immutable; every operation returns a new instance. Plain
    ints and floats mix freely with BoundedFloat operands and are converted
    with ``from_float``.

    Attributes:
        value: Nominal result, computed with round-to-nearest arithmetic
        low: Guaranteed <= the exact result
        high: Guaranteed >= the exact result
        precise: Float64 shadow value (only with ``track_precise``)
    """
    value: np.floating
    low: Optional[np.floating] = None
    high: Optional[np.floating] = None
    precise: Optional[float] = field(default=None, repr=False)

    def __post_init__(self):
        t = _infer_dtype(self.value, self.low, self.high)
        given = self.value
        value = _scalar_nearest(given, t)
        # Omitted bounds enclose the given number, not its rounded value
        low = _scalar_down(given if self.low is None else self.low, t)
        high = _scalar_up(given if self.high is None else self.high, t)
        object.__setattr__(self, 'value', value)
        object.__setattr__(self, 'low', low)
        object.__setattr__(self, 'high', high)

        if np.isnan(low) or np.isnan(high):
            if not (np.isnan(low) and np.isnan(high) and np.isnan(value)):
                raise InvalidBound(f"NaN bound in [{low}, {high}]")
            return
        if low > high:
            raise InvalidBound(f"Lower bound {low} exceeds upper bound {high}")
        if not np.isnan(value) and not (low <= value <= high):
            raise InvalidBound(f"Value {value} outside [{low}, {high}]")
        if self.precise is None and get_config().track_precise:
            object.__setattr__(self, 'precise', float(given))

    @classmethod
    def _make(
        cls,
        value: np.floating,
        low: np.floating,
        high: np.floating,
        precise: Optional[float] = None
    ) -> 'BoundedFloat':
        """Trusted constructor used by operations; validates only when configured."""
        obj = object.__new__(cls)
        object.__setattr__(obj, 'value', value)
        object.__setattr__(obj, 'low', low)
        object.__setattr__(obj, 'high', high)
        object.__setattr__(obj, 'precise', precise)
        if get_config().validate:
            obj.check()
        return obj

    # Construction

    @classmethod
    def exact(cls, v: Number, dtype=None) -> 'BoundedFloat':
        """
        A value with no error: low = high = value.

        Raises:
            InvalidBound: if v is not representable in the precision
        """
        t = resolve_dtype(dtype) if dtype is not None else _infer_dtype(v)
        if isinstance(v, (int, np.integer)) or np.isfinite(v):
            q = _as_rational(v)
            f = round_nearest(q, t)
            if not np.isfinite(f) or exact(f) != q:
                raise InvalidBound(f"{v!r} is not exactly representable in {np.dtype(t).name}")
        else:
            f = t(v)
        precise = float(f) if get_config().track_precise else None
        return cls._make(f, f, f, precise)

    @classmethod
    def with_error(cls, v: Number, err: Number, dtype=None) -> 'BoundedFloat':
        """
        A value known up to an absolute error: [v - err, v + err], with the
        lower bound rounded toward -inf and the upper toward +inf.

        Raises:
            InvalidBound: if err is negative or NaN (unless clamp_negative_error)
        """
        config = get_config()
        t = resolve_dtype(dtype) if dtype is not None else _infer_dtype(v)
        if math.isnan(float(err)):
            raise InvalidBound("Error magnitude is NaN")
        if err < 0:
            if not config.clamp_negative_error:
                raise InvalidBound(f"Error magnitude must be >= 0, got {err}")
            logger.warning("Clamping negative error %r to zero for value %r", err, v)
            err = 0

        value = _scalar_nearest(v, t)
        precise = float(v) if config.track_precise else None
        # Test the input, not value: a finite v that rounds to inf keeps a finite bound
        if not (isinstance(v, (int, np.integer)) or math.isfinite(float(v))):
            if math.isnan(float(v)) or math.isinf(float(err)):
                return cls._make(value, t(-np.inf), t(np.inf), precise)
            return cls._make(value, value, value, precise)
        if math.isinf(float(err)):
            return cls._make(value, t(-np.inf), t(np.inf), precise)

        q = _as_rational(v)
        e = _as_rational(err)
        return cls._make(value, _lower(q - e, t), _upper(q + e, t), precise)

    @classmethod
    def from_bounds(
        cls,
        value: Number,
        low: Number,
        high: Number,
        dtype=None
    ) -> 'BoundedFloat':
        """Explicit enclosure; rejected with InvalidBound unless low <= value <= high."""
        if dtype is None:
            return cls(value, low, high)
        t = resolve_dtype(dtype)
        return cls(_scalar_nearest(value, t), _scalar_down(low, t), _scalar_up(high, t))

    @classmethod
    def from_float(cls, x: Number, dtype=None) -> 'BoundedFloat':
        """
        Convert a plain number. Exact when x is representable in the
        precision, otherwise the nearest value with an enclosure of x.
        """
        t = resolve_dtype(dtype) if dtype is not None else _infer_dtype(x)
        precise = float(x) if get_config().track_precise else None
        if not (isinstance(x, (int, np.integer)) or np.isfinite(x)):
            f = t(x)
            return cls._make(f, f, f, precise)
        q = _as_rational(x)
        return cls._make(round_nearest(q, t), _lower(q, t), _upper(q, t), precise)

    @classmethod
    def from_rounded(cls, v: Number, ops: int, dtype=None) -> 'BoundedFloat':
        """
        A value produced elsewhere by ``ops`` chained round-to-nearest
        operations, enclosed by the gamma(ops) relative error bound.
        """
        t = resolve_dtype(dtype) if dtype is not None else _infer_dtype(v)
        base = cls.from_float(v, t)
        if not np.isfinite(base.value):
            return base
        q = _as_rational(v)
        g = Fraction(gamma(ops, t))
        return cls._make(base.value, _lower(q - abs(q) * g, t), _upper(q + abs(q) * g, t),
                         base.precise)

    @classmethod
    def from_str(cls, text: str, dtype=None) -> 'BoundedFloat':
        """Parse decimal text, enclosing the exact decimal value."""
        t = resolve_dtype(dtype) if dtype is not None else resolve_dtype(get_config().default_dtype)
        try:
            q = Fraction(text.strip())
        except ValueError:
            # inf / nan spellings; raises ValueError for anything else
            return cls.from_float(float(text), t)
        precise = float(q) if get_config().track_precise else None
        return cls._make(round_nearest(q, t), _lower(q, t), _upper(q, t), precise)

    @classmethod
    def _constant(cls, f: Number, dtype) -> 'BoundedFloat':
        t = resolve_dtype(dtype) if dtype is not None else resolve_dtype(get_config().default_dtype)
        f = t(f)
        precise = float(f) if get_config().track_precise else None
        return cls._make(f, f, f, precise)

    @classmethod
    def zero(cls, dtype=None) -> 'BoundedFloat':
        return cls._constant(0.0, dtype)

    @classmethod
    def one(cls, dtype=None) -> 'BoundedFloat':
        return cls._constant(1.0, dtype)

    @classmethod
    def epsilon(cls, dtype=None) -> 'BoundedFloat':
        t = resolve_dtype(dtype) if dtype is not None else resolve_dtype(get_config().default_dtype)
        return cls._constant(np.finfo(t).eps, t)

    @classmethod
    def infinity(cls, dtype=None) -> 'BoundedFloat':
        return cls._constant(np.inf, dtype)

    @classmethod
    def neg_infinity(cls, dtype=None) -> 'BoundedFloat':
        return cls._constant(-np.inf, dtype)

    @classmethod
    def nan(cls, dtype=None) -> 'BoundedFloat':
        return cls._constant(np.nan, dtype)

    @classmethod
    def max_value(cls, dtype=None) -> 'BoundedFloat':
        t = resolve_dtype(dtype) if dtype is not None else resolve_dtype(get_config().default_dtype)
        return cls._constant(np.finfo(t).max, t)

    @classmethod
    def min_positive_value(cls, dtype=None) -> 'BoundedFloat':
        """Smallest positive normal value."""
        t = resolve_dtype(dtype) if dtype is not None else resolve_dtype(get_config().default_dtype)
        return cls._constant(np.finfo(t).tiny, t)

    # Validation

    def check(self) -> None:
        """
        Verify low <= value <= high (and the precise shadow, when tracked).

        Raises:
            InvariantViolation: if the enclosure is inconsistent
        """
        low, high, value = self.low, self.high, self.value
        if is_finite(low, high) and not low <= high:
            raise InvariantViolation(f"Lower bound {low} exceeds upper bound {high}")
        if np.isfinite(value) and not (low <= value <= high):
            raise InvariantViolation(f"Value {value} outside [{low}, {high}]")
        if self.precise is not None and math.isfinite(self.precise):
            if not float(low) <= self.precise <= float(high):
                raise InvariantViolation(
                    f"Precise value {self.precise!r} outside [{low}, {high}]"
                )

    # Accessors

    @property
    def dtype(self):
        return type(self.value)

    def upper_bound(self) -> np.floating:
        return self.high

    def lower_bound(self) -> np.floating:
        return self.low

    def absolute_error(self) -> np.floating:
        """Width high - low, rounded up."""
        if not is_finite(self.low, self.high):
            return self.dtype(np.inf)
        return round_up(exact(self.high) - exact(self.low), self.dtype)

    def error_radius(self) -> np.floating:
        """max(high - value, value - low), rounded up."""
        if not is_finite(self.low, self.high, self.value):
            return self.dtype(np.inf)
        v = exact(self.value)
        return round_up(max(exact(self.high) - v, v - exact(self.low)), self.dtype)

    def relative_error(self) -> float:
        """
        |precise - value| / |precise|. A zero precise value gives 0.0 when the
        value is also zero and inf otherwise.

        Raises:
            ValueError: if precise tracking was off when the value was computed
        """
        if self.precise is None:
            raise ValueError("relative_error requires track_precise")
        if self.precise == 0:
            return 0.0 if self.value == 0 else math.inf
        return abs((self.precise - float(self.value)) / self.precise)

    def is_exact(self) -> bool:
        return bool(self.low == self.high)

    def contains(self, x: Number) -> bool:
        return float(self.low) <= _plain(x) <= float(self.high)

    def contains_zero(self) -> bool:
        """True unless the interval lies strictly on one side of zero."""
        return not (self.low > 0 or self.high < 0)

    def contains_one(self) -> bool:
        return self.contains(1)

    def is_nan(self) -> bool:
        return bool(np.isnan(self.value))

    def is_finite(self) -> bool:
        return bool(np.isfinite(self.value))

    def is_infinite(self) -> bool:
        return bool(np.isinf(self.value))

    def overlaps(self, other: Operand) -> bool:
        """
        Sound comparison: True iff the two enclosures intersect, i.e. the
        values cannot be told apart within their error.
        """
        other = self._coerce(other)
        if other is NotImplemented:
            raise TypeError(f"Unsupported operand: {other!r}")
        return (float(self.low) <= float(other.high)
                and float(other.low) <= float(self.high))

    # Arithmetic

    def _coerce(self, other: Any) -> 'BoundedFloat':
        if isinstance(other, BoundedFloat):
            return other
        if isinstance(other, (int, float, np.integer, np.floating)):
            return BoundedFloat.from_float(other, self.dtype)
        return NotImplemented

    def _binary(
        self,
        other: 'BoundedFloat',
        op: Callable,
        pairs: Sequence[Tuple[np.floating, np.floating]]
    ) -> 'BoundedFloat':
        t = promote(self.dtype, other.dtype)
        value = _nominal(op, t, self.value, other.value)
        low, high = _enclose([_corner(op, pair) for pair in pairs], t)
        return BoundedFloat._make(value, low, high, _shadow(op, self, other))

    def __add__(self, other: Operand) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._binary(other, operator.add, [
            (self.low, other.low),
            (self.high, other.high),
        ])

    def __radd__(self, other: Number) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.__add__(self)

    def __sub__(self, other: Operand) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._binary(other, operator.sub, [
            (self.low, other.high),
            (self.high, other.low),
        ])

    def __rsub__(self, other: Number) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.__sub__(self)

    def __mul__(self, other: Operand) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self._binary(other, operator.mul, [
            (self.low, other.low),
            (self.high, other.low),
            (self.low, other.high),
            (self.high, other.high),
        ])

    def __rmul__(self, other: Number) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.__mul__(self)

    def __truediv__(self, other: Operand) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        if other.contains_zero():
            logger.debug("Division by interval [%s, %s]", other.low, other.high)
            raise DivisionByZeroInterval(
                f"Divisor interval [{other.low}, {other.high}] contains zero"
            )
        return self._binary(other, operator.truediv, [
            (self.low, other.low),
            (self.high, other.low),
            (self.low, other.high),
            (self.high, other.high),
        ])

    def __rtruediv__(self, other: Number) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.__truediv__(self)

    def __mod__(self, other: Operand) -> 'BoundedFloat':
        """
        Floor modulo (the sign of the result follows the divisor).

        Exact when the divisor is a point and the floor quotient is the same
        over the whole dividend interval; otherwise the full range between
        zero and the divisor bound.
        """
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        if other.contains_zero():
            logger.debug("Modulo by interval [%s, %s]", other.low, other.high)
            raise DivisionByZeroInterval(
                f"Divisor interval [{other.low}, {other.high}] contains zero"
            )
        t = promote(self.dtype, other.dtype)
        value = _nominal(np.remainder, t, self.value, other.value)
        precise = _shadow(np.remainder, self, other)

        if not is_finite(self.low, self.high, other.low, other.high):
            return BoundedFloat._make(value, t(-np.inf), t(np.inf), precise)

        if other.is_exact():
            b = exact(other.low)
            lo, hi = exact(self.low), exact(self.high)
            k = math.floor(lo / b)
            if k == math.floor(hi / b):
                return BoundedFloat._make(value, _lower(lo - k * b, t), _upper(hi - k * b, t),
                                          precise)

        if other.low > 0:
            return BoundedFloat._make(value, t(0.0), t(other.high), precise)
        return BoundedFloat._make(value, t(other.low), t(0.0), precise)

    def __rmod__(self, other: Number) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other.__mod__(self)

    def __neg__(self) -> 'BoundedFloat':
        precise = -self.precise if self.precise is not None else None
        return BoundedFloat._make(-self.value, -self.high, -self.low, precise)

    def __pos__(self) -> 'BoundedFloat':
        return self

    def __abs__(self) -> 'BoundedFloat':
        return self.abs()

    def __pow__(self, n: int) -> 'BoundedFloat':
        """
        Integer power. Negative exponents require an interval that excludes
        zero; x ** 0 is one for every x.
        """
        if isinstance(n, np.integer):
            n = int(n)
        if not isinstance(n, int):
            return NotImplemented
        t = self.dtype
        if n == 0:
            return BoundedFloat.one(t)
        if n < 0 and self.contains_zero():
            logger.debug("Negative power of interval [%s, %s]", self.low, self.high)
            raise DivisionByZeroInterval(
                f"Interval [{self.low}, {self.high}] contains zero; cannot raise to {n}"
            )

        def power(x):
            return x ** n

        corners = _power_corners(self.low, n, t) + _power_corners(self.high, n, t)
        if n % 2 == 0 and self.low < 0 < self.high:
            corners.append(Fraction(0))
        low, high = _enclose(corners, t)

        lo, hi = _power_corners(self.value, n, t)
        if lo is None:
            value = t(np.nan)
        elif isinstance(lo, float):
            value = t(lo)
        else:
            value = round_nearest((lo + hi) / 2, t)
        return BoundedFloat._make(value, low, high, _shadow(power, self))

    # Elementary functions

    def abs(self) -> 'BoundedFloat':
        """Absolute value; a straddling interval maps to [0, max(|low|, |high|)]."""
        precise = abs(self.precise) if self.precise is not None else None
        value = np.abs(self.value)
        if self.low >= 0:
            # the entire interval is non-negative, so we are done
            return BoundedFloat._make(value, self.low, self.high, precise)
        if self.high <= 0:
            return BoundedFloat._make(value, -self.high, -self.low, precise)
        return BoundedFloat._make(value, self.dtype(0.0), max(-self.low, self.high), precise)

    def sqrt(self) -> 'BoundedFloat':
        """
        Square root. A negative lower bound is clamped to zero; a negative
        value (beyond sqrt_domain_tolerance) is a domain error.

        Raises:
            DomainError: if the interval lies below zero or value < -tolerance
        """
        tolerance = get_config().sqrt_domain_tolerance
        if not self.high >= 0 or self.value < -tolerance:
            logger.debug("sqrt of %r", self)
            raise DomainError(f"sqrt of negative value {self.value} in [{self.low}, {self.high}]")
        t = self.dtype
        zero = t(0.0)
        low = max(self.low, zero)
        value = np.sqrt(max(self.value, zero))
        precise = None
        if self.precise is not None and get_config().track_precise:
            precise = math.sqrt(max(self.precise, 0.0))
        return BoundedFloat._make(value, max(_sqrt_down(low), zero), _sqrt_up(self.high), precise)

    def square(self) -> 'BoundedFloat':
        """x ** 2; tighter than x * x when the interval straddles zero."""
        return self ** 2

    def recip(self) -> 'BoundedFloat':
        return BoundedFloat.one(self.dtype) / self

    def mul_add(self, a: Operand, b: Operand) -> 'BoundedFloat':
        """self * a + b with a single rounding."""
        a = self._coerce(a)
        b = self._coerce(b)
        if a is NotImplemented or b is NotImplemented:
            raise TypeError("mul_add operands must be numbers or BoundedFloat")
        t = promote(promote(self.dtype, a.dtype), b.dtype)

        def fma(x, y, z):
            return x * y + z

        corners = [
            _corner(fma, (x, y, z))
            for x in (self.low, self.high)
            for y in (a.low, a.high)
            for z in (b.low, b.high)
        ]
        low, high = _enclose(corners, t)
        nominal = _corner(fma, (self.value, a.value, b.value))
        if nominal is None:
            value = t(np.nan)
        elif isinstance(nominal, float):
            value = t(nominal)
        else:
            value = round_nearest(nominal, t)
        return BoundedFloat._make(value, low, high, _shadow(fma, self, a, b))

    def _monotone(self, fn: Callable) -> 'BoundedFloat':
        """Apply a non-decreasing function whose results are exact in the precision."""
        precise = _shadow(fn, self)
        return BoundedFloat._make(fn(self.value), fn(self.low), fn(self.high), precise)

    def floor(self) -> 'BoundedFloat':
        return self._monotone(np.floor)

    def ceil(self) -> 'BoundedFloat':
        return self._monotone(np.ceil)

    def trunc(self) -> 'BoundedFloat':
        return self._monotone(np.trunc)

    def round(self) -> 'BoundedFloat':
        """Round to the nearest integer, ties to even."""
        return self._monotone(np.rint)

    def sign(self) -> 'BoundedFloat':
        return self._monotone(np.sign)

    def fract(self) -> 'BoundedFloat':
        """
        Fractional part x - trunc(x), carrying the sign of x. When the interval
        crosses an integer only the full (-1, 1) range is known.
        """
        t = self.dtype
        below_one = next_down(t(1.0))
        with np.errstate(all='ignore'):
            value = self.value - np.trunc(self.value)
        precise = None
        if self.precise is not None:
            precise = self.precise - math.trunc(self.precise) if math.isfinite(self.precise) else None

        if not is_finite(self.low, self.high) or np.trunc(self.low) != np.trunc(self.high):
            low = -below_one if self.low < 0 else t(0.0)
            high = below_one if self.high > 0 else t(0.0)
            return BoundedFloat._make(value, low, high, precise)
        return BoundedFloat._make(
            value,
            self.low - np.trunc(self.low),
            self.high - np.trunc(self.high),
            precise
        )

    def minimum(self, other: Operand) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            raise TypeError(f"Unsupported operand: {other!r}")
        t = promote(self.dtype, other.dtype)
        return BoundedFloat._make(
            _nominal(np.minimum, t, self.value, other.value),
            min(t(self.low), t(other.low)),
            min(t(self.high), t(other.high)),
            _shadow(np.minimum, self, other)
        )

    def maximum(self, other: Operand) -> 'BoundedFloat':
        other = self._coerce(other)
        if other is NotImplemented:
            raise TypeError(f"Unsupported operand: {other!r}")
        t = promote(self.dtype, other.dtype)
        return BoundedFloat._make(
            _nominal(np.maximum, t, self.value, other.value),
            max(t(self.low), t(other.low)),
            max(t(self.high), t(other.high)),
            _shadow(np.maximum, self, other)
        )

    def exp(self) -> 'BoundedFloat':
        """Exponential, evaluated in float64 and rounded outward."""
        t = self.dtype
        value, _, _ = _libm(np.exp, self.value, t)
        _, low, _ = _libm(np.exp, self.low, t)
        _, _, high = _libm(np.exp, self.high, t)
        return BoundedFloat._make(value, max(low, t(0.0)), high, _shadow(np.exp, self))

    def log(self) -> 'BoundedFloat':
        """
        Natural logarithm. A lower bound at or below zero maps to -inf.

        Raises:
            DomainError: if the interval lies below zero or value < 0
        """
        if not self.high >= 0 or self.value < 0:
            logger.debug("log of %r", self)
            raise DomainError(f"log of negative value {self.value} in [{self.low}, {self.high}]")
        t = self.dtype
        value, _, _ = _libm(np.log, self.value, t)
        if self.low > 0:
            _, low, _ = _libm(np.log, self.low, t)
        else:
            low = t(-np.inf)
        _, _, high = _libm(np.log, self.high, t)
        return BoundedFloat._make(value, low, high, _shadow(np.log, self))

    # Comparisons (value only; see overlaps for the sound variant)

    def _key(self, other: Any):
        if isinstance(other, BoundedFloat):
            return float(other.value)
        if isinstance(other, (int, float, np.integer, np.floating)):
            return _plain(other)
        return NotImplemented

    def __eq__(self, other: Any) -> bool:
        key = self._key(other)
        if key is NotImplemented:
            return NotImplemented
        return float(self.value) == key

    def __ne__(self, other: Any) -> bool:
        key = self._key(other)
        if key is NotImplemented:
            return NotImplemented
        return float(self.value) != key

    def __lt__(self, other: Any) -> bool:
        key = self._key(other)
        if key is NotImplemented:
            return NotImplemented
        return float(self.value) < key

    def __le__(self, other: Any) -> bool:
        key = self._key(other)
        if key is NotImplemented:
            return NotImplemented
        return float(self.value) <= key

    def __gt__(self, other: Any) -> bool:
        key = self._key(other)
        if key is NotImplemented:
            return NotImplemented
        return float(self.value) > key

    def __ge__(self, other: Any) -> bool:
        key = self._key(other)
        if key is NotImplemented:
            return NotImplemented
        return float(self.value) >= key

    def __hash__(self) -> int:
        return hash(float(self.value))

    # Conversions (one way: bounds are dropped)

    def __float__(self) -> float:
        return float(self.value)

    def __int__(self) -> int:
        return int(float(self.value))

    def __bool__(self) -> bool:
        return bool(self.value != 0)

    def to_float(self) -> float:
        return float(self.value)

    def to_canonical(self) -> Dict[str, Any]:
        data = {
            "dtype": np.dtype(self.dtype).name,
            "value": float(self.value),
            "low": float(self.low),
            "high": float(self.high),
        }
        if self.precise is not None:
            data["precise"] = self.precise
        return data

    def __repr__(self) -> str:
        return (f"BoundedFloat({float(self.value)!r}, low={float(self.low)!r}, "
                f"high={float(self.high)!r}, dtype={np.dtype(self.dtype).name})")

    def __str__(self) -> str:
        return f"{float(self.value):.9g} [{float(self.low):.9g}, {float(self.high):.9g}]"
