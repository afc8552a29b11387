"""
Process-wide configuration for bounded-float arithmetic.

Validation replaces the compile-time debug assertions of a native build:
it defaults to ``__debug__`` so running under ``python -O`` skips the
invariant check after every operation.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator, Optional

import numpy as np


@dataclass(frozen=True)
class EFloatConfig:
    """Configuration for BoundedFloat arithmetic."""
    validate: bool = __debug__
    track_precise: bool = False
    always_widen: bool = False
    clamp_negative_error: bool = False
    sqrt_domain_tolerance: float = 0.0
    default_dtype: type = np.float32

    def __post_init__(self):
        if self.sqrt_domain_tolerance < 0:
            raise ValueError("sqrt_domain_tolerance must be >= 0")


DEFAULT_CONFIG = EFloatConfig()

_config = DEFAULT_CONFIG


def get_config() -> EFloatConfig:
    """Return the active configuration."""
    return _config


def set_config(config: Optional[EFloatConfig] = None, **overrides) -> EFloatConfig:
    """
    Install a new process-wide configuration.

    Args:
        config: Configuration to install (defaults to the active one)
        **overrides: Field overrides applied on top of ``config``

    Returns:
        The previously active configuration
    """
    global _config
    previous = _config
    base = config if config is not None else _config
    _config = replace(base, **overrides) if overrides else base
    return previous


@contextmanager
def configured(**overrides) -> Iterator[EFloatConfig]:
    """Temporarily override configuration fields inside a ``with`` block."""
    previous = set_config(**overrides)
    try:
        yield _config
    finally:
        set_config(previous)


def setup_logging(log_level: int = logging.INFO) -> None:
    """Attach a console handler to the ``efloat`` logger."""
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler()
    console.setLevel(log_level)
    console.setFormatter(formatter)

    logger = logging.getLogger("efloat")
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(console)
