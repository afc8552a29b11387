"""
Error taxonomy for bounded floats.

Every condition is local and recoverable: it is raised at the offending
operation and the caller decides whether to branch on it or propagate it.
"""


class EFloatError(Exception):
    """Base class for all bounded-float conditions."""


class InvalidBound(EFloatError, ValueError):
    """Negative error magnitude, or bounds that do not satisfy low <= value <= high."""


class DivisionByZeroInterval(EFloatError, ZeroDivisionError):
    """The divisor interval contains zero, so the quotient is unbounded."""


class DomainError(EFloatError, ValueError):
    """An elementary function was applied outside its domain."""


class InvariantViolation(EFloatError, AssertionError):
    """Raised by validation mode when an operation broke low <= value <= high."""
