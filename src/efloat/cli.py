"""
efloat Command-Line Interface

Inspect floating-point neighbours, rounding-error bounds and enclosures
from the shell.
"""

import sys
import argparse
import json
import logging
from typing import Optional

from . import (
    BoundedFloat,
    EFloatError,
    gamma,
    next_down,
    next_up,
    resolve_dtype,
    setup_logging,
    unit_roundoff,
)


PRECISIONS = ['f16', 'f32', 'f64']


def _emit(args, data: dict, lines) -> None:
    if args.json:
        print(json.dumps(data, sort_keys=True, indent=2))
    else:
        for line in lines:
            print(line)


def cmd_next(args):
    """Print a value and its next representable neighbours."""
    t = resolve_dtype(args.precision)
    f = t(args.value)
    up = next_up(f)
    down = next_down(f)
    _emit(args, {
        'precision': args.precision,
        'value': float(f),
        'next_up': float(up),
        'next_down': float(down),
    }, [
        f"{args.precision}: {float(f)!r}",
        f"Next {args.precision} up: {float(up)!r}",
        f"Next {args.precision} down: {float(down)!r}",
    ])
    return 0


def cmd_gamma(args):
    """Print the gamma(n) relative error bound."""
    g = gamma(args.n, args.precision)
    _emit(args, {
        'precision': args.precision,
        'n': args.n,
        'unit_roundoff': unit_roundoff(args.precision),
        'gamma': g,
    }, [
        f"Unit roundoff ({args.precision}): {unit_roundoff(args.precision):.6e}",
        f"gamma({args.n}): {g:.6e}",
    ])
    return 0


def cmd_bounds(args):
    """Print the enclosure of a decimal value, optionally with an absolute error."""
    t = resolve_dtype(args.precision)
    if args.error is None:
        bf = BoundedFloat.from_str(args.value, t)
    else:
        bf = BoundedFloat.from_str(args.value, t) + BoundedFloat.with_error(0.0, args.error, t)
    _emit(args, dict(bf.to_canonical(), exact=bf.is_exact(),
                     absolute_error=float(bf.absolute_error())), [
        f"Value: {float(bf.value)!r}",
        f"Lower bound: {float(bf.low)!r}",
        f"Upper bound: {float(bf.high)!r}",
        f"Absolute error: {float(bf.absolute_error()):.6e}",
        f"Exact: {bf.is_exact()}",
    ])
    return 0


def cmd_version(args):
    """Print version information."""
    from . import __version__
    print(f"efloat {__version__}")
    print("Floating-point values with certified error bounds")
    return 0


def main(argv: Optional[list] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='efloat',
        description='efloat - Floating-point values with certified error bounds'
    )
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Next command
    next_parser = subparsers.add_parser('next', help='Next representable values up and down')
    next_parser.add_argument('value', type=float, help='Value to inspect')
    next_parser.add_argument('--precision', '-p', choices=PRECISIONS, default='f32',
                             help='Precision (default: f32)')
    next_parser.add_argument('--json', action='store_true', help='Emit JSON')
    next_parser.set_defaults(func=cmd_next)

    # Gamma command
    gamma_parser = subparsers.add_parser('gamma', help='Rounding-error bound gamma(n)')
    gamma_parser.add_argument('n', type=int, help='Number of chained operations')
    gamma_parser.add_argument('--precision', '-p', choices=PRECISIONS, default='f32',
                              help='Precision (default: f32)')
    gamma_parser.add_argument('--json', action='store_true', help='Emit JSON')
    gamma_parser.set_defaults(func=cmd_gamma)

    # Bounds command
    bounds_parser = subparsers.add_parser('bounds', help='Enclosure of a decimal value')
    bounds_parser.add_argument('value', type=str, help='Decimal value')
    bounds_parser.add_argument('--error', '-e', type=float, default=None,
                               help='Absolute error of the value')
    bounds_parser.add_argument('--precision', '-p', choices=PRECISIONS, default='f32',
                               help='Precision (default: f32)')
    bounds_parser.add_argument('--json', action='store_true', help='Emit JSON')
    bounds_parser.set_defaults(func=cmd_bounds)

    # Version command
    ver_parser = subparsers.add_parser('version', help='Print version')
    ver_parser.set_defaults(func=cmd_version)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return args.func(args)
    except (EFloatError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
