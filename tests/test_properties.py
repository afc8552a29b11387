"""
Property tests for enclosure soundness

Every operator result must contain the exact result of the operation applied
to any point of the operand intervals; the corners and the nominal values
are checked exactly with rationals, and exp/log against 200-bit gmpy2
references.
"""

import operator
from fractions import Fraction

import gmpy2
import numpy as np
import pytest
from hypothesis import assume, given, settings, strategies

from efloat import BoundedFloat, DivisionByZeroInterval, DomainError


regular_floats = strategies.floats(allow_nan=False, allow_infinity=False, width=32)
moderate_floats = strategies.floats(min_value=-1e4, max_value=1e4,
                                    allow_nan=False, allow_infinity=False, width=32)


def make_interval(a, b, c):
    a, b, c = sorted([a, b, c])
    return BoundedFloat.from_bounds(b, a, c, dtype=np.float32)


intervals = strategies.builds(make_interval, regular_floats, regular_floats, regular_floats)
moderate_intervals = strategies.builds(make_interval, moderate_floats, moderate_floats,
                                       moderate_floats)
exact_values = strategies.builds(lambda x: BoundedFloat.exact(x, np.float32), regular_floats)

exp_floats = strategies.floats(min_value=-110.0, max_value=100.0, width=32)
exp_intervals = strategies.builds(make_interval, exp_floats, exp_floats, exp_floats)
positive_floats = strategies.floats(min_value=0.0, exclude_min=True, allow_infinity=False,
                                    width=32)
log_intervals = strategies.builds(make_interval, positive_floats, positive_floats,
                                  positive_floats)

wide_floats = strategies.floats(allow_nan=False, allow_infinity=False)
error_magnitudes = strategies.floats(min_value=0.0, allow_nan=False, allow_infinity=False)


def points(x):
    return [Fraction(float(p)) for p in (x.low, x.value, x.high)]


def encloses(r, q):
    lo_ok = r.low == -np.inf or Fraction(float(r.low)) <= q
    hi_ok = r.high == np.inf or q <= Fraction(float(r.high))
    return lo_ok and hi_ok


def reference(fn, x, rounding):
    """fn(x) at 200 bits, rounded in the given direction."""
    with gmpy2.context(precision=200, round=rounding):
        return fn(gmpy2.mpfr(float(x)))


def invariant_holds(r):
    if np.isnan(r.value):
        return True
    return bool(r.low <= r.value <= r.high)


BINARY = [
    (operator.add, operator.add),
    (operator.sub, operator.sub),
    (operator.mul, operator.mul),
]


class TestEnclosureSoundness:
    """The exact result always lies in the computed interval."""

    @pytest.mark.parametrize("op,exact_op", BINARY)
    @given(a=intervals, b=intervals)
    def test_binary(self, op, exact_op, a, b):
        r = op(a, b)
        assert invariant_holds(r)
        for x in points(a):
            for y in points(b):
                assert encloses(r, exact_op(x, y))

    @given(a=intervals, b=intervals)
    def test_division(self, a, b):
        assume(not b.contains_zero())
        r = a / b
        assert invariant_holds(r)
        for x in points(a):
            for y in points(b):
                assert encloses(r, x / y)

    @given(a=intervals)
    def test_square(self, a):
        r = a.square()
        for x in points(a):
            assert encloses(r, x * x)
        assert r.low >= 0

    @given(a=intervals)
    def test_abs(self, a):
        r = a.abs()
        for x in points(a):
            assert encloses(r, abs(x))

    @given(a=intervals)
    def test_sqrt(self, a):
        assume(a.value >= 0)
        r = a.sqrt()
        assert invariant_holds(r)
        for x in points(a):
            if x < 0:
                continue
            assert Fraction(float(r.low)) ** 2 <= x
            if r.high != np.inf:
                assert x <= Fraction(float(r.high)) ** 2

    @settings(deadline=None)
    @given(a=moderate_intervals, b=moderate_intervals, c=moderate_intervals)
    def test_mul_add(self, a, b, c):
        r = a.mul_add(b, c)
        assert invariant_holds(r)
        for x in points(a):
            for y in points(b):
                for z in points(c):
                    assert encloses(r, x * y + z)

    @given(a=moderate_intervals, b=moderate_floats)
    def test_modulo(self, a, b):
        assume(b != 0)
        r = a % BoundedFloat.exact(b, np.float32)
        assert invariant_holds(r)
        for x in points(a):
            assert encloses(r, x % Fraction(b))


class TestExactness:
    """No spurious widening when the operation is exact."""

    @pytest.mark.parametrize("op", [operator.add, operator.sub, operator.mul])
    @given(a=exact_values, b=exact_values)
    def test_exact_stays_exact(self, op, a, b):
        r = op(a, b)
        q = op(Fraction(float(a.value)), Fraction(float(b.value)))
        if np.isfinite(r.value) and Fraction(float(r.value)) == q:
            assert r.is_exact()
        else:
            assert not r.is_exact()


class TestNegation:
    """Negating twice restores both bounds."""

    @given(a=intervals)
    def test_double_negation(self, a):
        r = -(-a)
        assert r.low == a.low
        assert r.high == a.high
        assert r.value == a.value


class TestInvariantPreservation:
    """low <= value <= high along chains of operations."""

    @settings(max_examples=50, deadline=None)
    @given(
        start=moderate_intervals,
        operand=moderate_intervals,
        ops=strategies.lists(
            strategies.sampled_from(['add', 'sub', 'mul', 'div', 'neg', 'abs', 'sqrt']),
            max_size=8
        )
    )
    def test_chain(self, start, operand, ops):
        x = start
        for name in ops:
            try:
                if name == 'add':
                    x = x + operand
                elif name == 'sub':
                    x = x - operand
                elif name == 'mul':
                    x = x * operand
                elif name == 'div':
                    x = x / operand
                elif name == 'neg':
                    x = -x
                elif name == 'abs':
                    x = x.abs()
                else:
                    x = x.sqrt()
            except (DivisionByZeroInterval, DomainError):
                continue
            assert invariant_holds(x)


class TestMonotonicWidening:
    """Splitting a computation into more steps never tightens the result."""

    @given(a=moderate_intervals, b=moderate_intervals)
    def test_add_then_subtract(self, a, b):
        r = (a + b) - b
        assert r.absolute_error() >= a.absolute_error()

    @given(a=moderate_intervals)
    def test_product_vs_square(self, a):
        assert (a * a).absolute_error() >= a.square().absolute_error()


class TestConstructorEnclosure:
    """Construction from a float64 input encloses that input in f32."""

    @given(v=wide_floats)
    def test_single_value(self, v):
        x = BoundedFloat(v)
        assert x.dtype is np.float32
        assert encloses(x, Fraction(v))

    @given(v=wide_floats, err=error_magnitudes)
    def test_with_error(self, v, err):
        x = BoundedFloat.with_error(v, err, np.float32)
        assert invariant_holds(x)
        assert encloses(x, Fraction(v) - Fraction(err))
        assert encloses(x, Fraction(v) + Fraction(err))

    @given(v=wide_floats)
    def test_from_float(self, v):
        assert encloses(BoundedFloat.from_float(v, np.float32), Fraction(v))


class TestTranscendental:
    """exp and log contain the correctly rounded image of every point."""

    @given(a=exp_intervals)
    def test_exp(self, a):
        r = a.exp()
        assert invariant_holds(r)
        for x in (a.low, a.value, a.high):
            assert float(r.low) <= reference(gmpy2.exp, x, gmpy2.RoundDown)
            assert float(r.high) >= reference(gmpy2.exp, x, gmpy2.RoundUp)

    @given(a=log_intervals)
    def test_log(self, a):
        r = a.log()
        assert invariant_holds(r)
        for x in (a.low, a.value, a.high):
            assert float(r.low) <= reference(gmpy2.log, x, gmpy2.RoundDown)
            assert float(r.high) >= reference(gmpy2.log, x, gmpy2.RoundUp)

    @given(a=exp_intervals)
    def test_exp_f64(self, a):
        """The same guarantee for float64 values."""
        b = BoundedFloat.from_bounds(a.value, a.low, a.high, dtype=np.float64)
        r = b.exp()
        for x in (b.low, b.high):
            assert float(r.low) <= reference(gmpy2.exp, x, gmpy2.RoundDown)
            assert float(r.high) >= reference(gmpy2.exp, x, gmpy2.RoundUp)
