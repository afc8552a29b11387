"""
efloat - Floating-Point Values with Certified Error Bounds

A BoundedFloat pairs a machine floating-point value with a conservative
enclosure [low, high] of the exact mathematical result, so downstream
geometric code can check whether a computed result is trustworthy.

Key Features:
- Exact-corner interval propagation for + - * / % and unary minus
- Directed rounding of every bound (no spurious widening of exact results)
- abs, sqrt, integer powers, exp, log and friends with sound enclosures
- Rounding-error model (unit roundoff, gamma(n), one-ulp stepping)
- Configurable invariant validation (off under ``python -O``)
"""

from .bounded_float import BoundedFloat
from .config import (
    EFloatConfig,
    DEFAULT_CONFIG,
    get_config,
    set_config,
    configured,
    setup_logging,
)
from .errors import (
    EFloatError,
    InvalidBound,
    DivisionByZeroInterval,
    DomainError,
    InvariantViolation,
)
from .rounding import (
    unit_roundoff,
    gamma,
    next_up,
    next_down,
    round_down,
    round_up,
    round_nearest,
    resolve_dtype,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "BoundedFloat",
    # Configuration
    "EFloatConfig",
    "DEFAULT_CONFIG",
    "get_config",
    "set_config",
    "configured",
    "setup_logging",
    # Errors
    "EFloatError",
    "InvalidBound",
    "DivisionByZeroInterval",
    "DomainError",
    "InvariantViolation",
    # Rounding-error model
    "unit_roundoff",
    "gamma",
    "next_up",
    "next_down",
    "round_down",
    "round_up",
    "round_nearest",
    "resolve_dtype",
]
