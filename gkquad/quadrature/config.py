"""Configuration classes for adaptive quadrature.

This module provides dataclass configurations for the adaptive Gauss-Kronrod
engine and the workspace pool that lends interval stores to it.

Classes:
    QuadratureConfig: Tolerances, subdivision limit and reporting behaviour
    PoolConfig: Sizing of interval stores created by a workspace pool

Constants:
    DEFAULT_LIMIT: Default maximum number of subintervals per integration
    DEFAULT_EPSABS: Default absolute error tolerance
    DEFAULT_EPSREL: Default relative error tolerance
"""

import math
from dataclasses import dataclass

DEFAULT_LIMIT = 8192
DEFAULT_EPSABS = 1.49e-8
DEFAULT_EPSREL = 1.49e-8


@dataclass(frozen=True)
class QuadratureConfig:
    """Configuration for adaptive integration calls.

    Tolerance combinations that cannot be met in double precision (for
    example ``epsabs=0, epsrel=0``) are accepted here and reported by the
    engine as ``Diagnostic.INVALID_TOLERANCE``.

    Attributes:
        epsabs: Absolute error tolerance
        epsrel: Relative error tolerance
        limit: Maximum number of subintervals (workspace capacity requested)
        vectorized: Call the integrand once per rule with a tensor of 15 points
        warn: Emit ``QuadratureWarning`` when the result carries a diagnostic
        raise_on_invalid: Raise ``InvalidToleranceError`` instead of returning
            an ``INVALID_TOLERANCE`` result
    """

    epsabs: float = DEFAULT_EPSABS
    epsrel: float = DEFAULT_EPSREL
    limit: int = DEFAULT_LIMIT
    vectorized: bool = False
    warn: bool = True
    raise_on_invalid: bool = False

    def __post_init__(self) -> None:
        """Validate configuration parameters after initialization."""
        if math.isnan(self.epsabs) or self.epsabs < 0:
            raise ValueError(f"epsabs must be non-negative, got {self.epsabs}")
        if math.isnan(self.epsrel) or self.epsrel < 0:
            raise ValueError(f"epsrel must be non-negative, got {self.epsrel}")
        if self.limit <= 0:
            raise ValueError(f"limit must be positive, got {self.limit}")


@dataclass(frozen=True)
class PoolConfig:
    """Configuration for workspace pools.

    Attributes:
        default_capacity: Capacity of stores created when no free store fits
        initial_allocation: Number of slots allocated up front by a new store
    """

    default_capacity: int = DEFAULT_LIMIT
    initial_allocation: int = 64

    def __post_init__(self) -> None:
        """Validate pool parameters."""
        if self.default_capacity <= 0:
            raise ValueError(
                f"default_capacity must be positive, got {self.default_capacity}"
            )
        if self.initial_allocation <= 0:
            raise ValueError(
                f"initial_allocation must be positive, got {self.initial_allocation}"
            )
