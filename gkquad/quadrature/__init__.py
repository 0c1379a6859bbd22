"""Adaptive one-dimensional quadrature with pooled workspaces.

This package integrates a real function over a finite interval with the
globally adaptive Gauss-Kronrod 7/15 scheme, returning an estimate together
with an error bound. Key components include:

- The G7-K15 fixed rule applied to every subinterval
- A capacity-bounded interval store ordered by error estimate
- The adaptive engine that refines the worst subinterval until convergence
- A workspace pool lending stores to successive and nested calls
- Substitutions for semi-infinite and endpoint-singular integrals

Numerical trouble is reported through ``Diagnostic`` values attached to each
``IntegrationResult`` rather than raised.
"""

from .config import (
    DEFAULT_EPSABS,
    DEFAULT_EPSREL,
    DEFAULT_LIMIT,
    PoolConfig,
    QuadratureConfig,
)
from .engine import AdaptiveEngine, Diagnostic, EngineRunState, IntegrationResult
from .exceptions import (
    InvalidToleranceError,
    QuadratureError,
    QuadratureWarning,
    WorkspaceInvariantError,
)
from .integrator import (
    AdaptiveIntegrator,
    Integrator,
    SubstitutionIntegrator,
    create_integrator,
    integrate,
    integrate_substituted,
)
from .pool import PoolEntry, WorkspacePool, default_pool
from .rules import GaussKronrod15, RuleEstimate, gauss_kronrod15, rescale_error
from .substitution import (
    ReciprocalSubstitution,
    SquareSubstitution,
    SubstitutedIntegrand,
    Substitution,
    substitute,
)
from .workspace import IntervalStore, SubInterval, pairwise_sum

__all__ = [
    "DEFAULT_EPSABS",
    "DEFAULT_EPSREL",
    "DEFAULT_LIMIT",
    # Engine
    "AdaptiveEngine",
    # Integrators
    "AdaptiveIntegrator",
    "Diagnostic",
    "EngineRunState",
    # Rules
    "GaussKronrod15",
    "IntegrationResult",
    "Integrator",
    # Workspaces
    "IntervalStore",
    # Errors
    "InvalidToleranceError",
    "PoolConfig",
    "PoolEntry",
    # Configuration
    "QuadratureConfig",
    "QuadratureError",
    "QuadratureWarning",
    # Substitutions
    "ReciprocalSubstitution",
    "RuleEstimate",
    "SquareSubstitution",
    "SubInterval",
    "SubstitutedIntegrand",
    "Substitution",
    "SubstitutionIntegrator",
    "WorkspaceInvariantError",
    "WorkspacePool",
    "create_integrator",
    "default_pool",
    "gauss_kronrod15",
    "integrate",
    "integrate_substituted",
    "pairwise_sum",
    "rescale_error",
    "substitute",
]
