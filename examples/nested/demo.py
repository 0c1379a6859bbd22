#!/usr/bin/env python3
"""Demo script showing nested and improper integrals sharing one workspace pool."""

import logging
import math
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parents[2]))

from gkquad.quadrature import (
    QuadratureConfig,
    ReciprocalSubstitution,
    WorkspacePool,
    integrate,
    integrate_substituted,
)


def gaussian_disk(pool, config, radius=1.0):
    """Integrate exp(-(x^2 + y^2)) over a disk as an iterated integral."""

    def inner(x):
        half_chord = math.sqrt(max(radius * radius - x * x, 0.0))
        return integrate(
            lambda y: math.exp(-(x * x + y * y)),
            -half_chord,
            half_chord,
            config=config,
            pool=pool,
        ).result

    result = integrate(inner, -radius, radius, config=config, pool=pool)
    exact = math.pi * (1.0 - math.exp(-radius * radius))
    return result, exact


def exponential_integral(pool, config, x=1.0):
    """E1(x) = int_1^inf exp(-x t) / t dt through the reciprocal substitution."""
    return integrate_substituted(
        lambda t: math.exp(-x * t) / t,
        1.0,
        math.inf,
        ReciprocalSubstitution(),
        config=config,
        pool=pool,
    )


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Nested adaptive quadrature with a shared workspace pool"
    )
    parser.add_argument(
        "--epsrel", type=float, default=1e-10, help="Relative tolerance (default: 1e-10)"
    )
    parser.add_argument(
        "--radius", type=float, default=1.5, help="Disk radius (default: 1.5)"
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log every integration call"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    config = QuadratureConfig(epsrel=args.epsrel, epsabs=0.0)

    with WorkspacePool() as pool:
        disk, exact = gaussian_disk(pool, config, radius=args.radius)
        print(f"Gaussian over disk r={args.radius}:")
        print(f"  result   = {disk.result:.15f}")
        print(f"  exact    = {exact:.15f}")
        print(f"  abserr   = {disk.abserr:.3e}")
        print(f"  nevals   = {disk.nevals} (outer)")
        print(f"  diagnostic = {disk.diagnostic.value}")

        e1 = exponential_integral(pool, config)
        print("E1(1):")
        print(f"  result   = {e1.result:.15f}")
        print(f"  abserr   = {e1.abserr:.3e}")

        print(f"Stores allocated by pool: {len(pool)} {pool.capacities()}")
    print("[DONE] Demo complete")


if __name__ == "__main__":
    main()
