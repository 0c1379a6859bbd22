"""Public integration entry points.

This module ties the adaptive engine to a workspace pool. ``integrate`` is
the functional entry point; ``integrate_substituted`` applies a change of
variables first. The ``Integrator`` classes bind a domain, configuration and
pool for repeated use inside a larger computation.

Classes:
    Integrator: Abstract base class for domain-bound integrators
    AdaptiveIntegrator: Adaptive Gauss-Kronrod integration over a finite domain
    SubstitutionIntegrator: Adaptive integration after a change of variables

Functions:
    integrate: Integrate f from a to b with pooled scratch space
    integrate_substituted: Integrate through a Substitution
    create_integrator: Factory function to create integrators by name
"""

import math
import warnings
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import replace

from .config import QuadratureConfig
from .engine import AdaptiveEngine, Diagnostic, IntegrationResult
from .exceptions import InvalidToleranceError, QuadratureWarning
from .pool import WorkspacePool, default_pool
from .substitution import (
    ReciprocalSubstitution,
    SquareSubstitution,
    Substitution,
    substitute,
)

_ENGINES = {False: AdaptiveEngine(), True: AdaptiveEngine(vectorized=True)}


def _resolve_config(
    config: QuadratureConfig | None,
    epsrel: float | None,
    epsabs: float | None,
    capacity: int | None,
) -> QuadratureConfig:
    config = config if config is not None else QuadratureConfig()
    overrides = {
        name: value
        for name, value in (("epsrel", epsrel), ("epsabs", epsabs), ("limit", capacity))
        if value is not None
    }
    return replace(config, **overrides) if overrides else config


def _report(result: IntegrationResult, config: QuadratureConfig) -> None:
    if result.diagnostic is Diagnostic.INVALID_TOLERANCE and config.raise_on_invalid:
        raise InvalidToleranceError(
            f"Invalid tolerance epsabs={config.epsabs}, epsrel={config.epsrel}: "
            f"{result.diagnostic.message}"
        )
    if config.warn and not result.converged:
        warnings.warn(
            f"{result.diagnostic.message} "
            f"(abserr={result.abserr:.3g}, nevals={result.nevals})",
            QuadratureWarning,
            stacklevel=3,
        )


def integrate(
    func: Callable,
    a: float,
    b: float,
    epsrel: float | None = None,
    epsabs: float | None = None,
    capacity: int | None = None,
    *,
    config: QuadratureConfig | None = None,
    pool: WorkspacePool | None = None,
) -> IntegrationResult:
    """Integrate ``func`` from ``a`` to ``b``.

    A store is borrowed from ``pool`` for the duration of the call and
    returned on every exit path, so ``func`` may itself call ``integrate``
    with the same pool.

    Args:
        func: Integrand accepting and returning a real number
        a: Lower bound (may exceed ``b``; the result changes sign)
        b: Upper bound
        epsrel: Relative tolerance, overriding ``config.epsrel``
        epsabs: Absolute tolerance, overriding ``config.epsabs``
        capacity: Maximum number of subintervals, overriding ``config.limit``
        config: Base configuration; defaults to ``QuadratureConfig()``
        pool: Workspace pool; defaults to the calling thread's pool

    Returns:
        IntegrationResult; ``diagnostic`` is ``Diagnostic.NONE`` on success

    Raises:
        InvalidToleranceError: If the tolerances are unattainable and
            ``config.raise_on_invalid`` is set
        ValueError: If a bound is NaN or infinite, a tolerance is negative
            or capacity is not positive

    Warns:
        QuadratureWarning: If the result carries a diagnostic and
            ``config.warn`` is set

    Example:
        >>> integrate(lambda x: x**2, 0.0, 1.0).result  # 1/3
    """
    a, b = float(a), float(b)
    if math.isnan(a) or math.isnan(b):
        raise ValueError(f"Invalid bounds ({a}, {b}), bounds must not be NaN")
    if math.isinf(a) or math.isinf(b):
        raise ValueError(
            f"Invalid bounds ({a}, {b}), use integrate_substituted "
            "for infinite bounds"
        )

    config = _resolve_config(config, epsrel, epsabs, capacity)
    pool = pool if pool is not None else default_pool()
    engine = _ENGINES[config.vectorized]

    with pool.workspace(config.limit) as store:
        result = engine.run(
            func,
            a,
            b,
            config.epsrel,
            config.epsabs,
            store,
            limit=config.limit,
        )

    _report(result, config)
    return result


def integrate_substituted(
    func: Callable,
    a: float,
    b: float,
    substitution: Substitution,
    epsrel: float | None = None,
    epsabs: float | None = None,
    capacity: int | None = None,
    *,
    config: QuadratureConfig | None = None,
    pool: WorkspacePool | None = None,
) -> IntegrationResult:
    """Integrate ``func`` from ``a`` to ``b`` through a change of variables.

    ``a`` and ``b`` are bounds in the original coordinate and may be infinite
    when the substitution maps them to finite values.

    Example:
        >>> integrate_substituted(lambda x: math.exp(-x), 1.0, math.inf,
        ...                       ReciprocalSubstitution()).result  # exp(-1)
    """
    transformed, ua, ub = substitute(func, a, b, substitution)
    return integrate(
        transformed,
        ua,
        ub,
        epsrel,
        epsabs,
        capacity,
        config=config,
        pool=pool,
    )


class Integrator(ABC):
    """Abstract base class for integrators bound to a domain.

    Attributes:
        domain: Tuple of (start, end); either order is accepted
        config: Tolerances and reporting behaviour
        pool: Workspace pool, or None for the calling thread's default pool
    """

    def __init__(
        self,
        domain: tuple[float, float] = (0.0, 1.0),
        config: QuadratureConfig | None = None,
        pool: WorkspacePool | None = None,
    ):
        """Initialize integrator.

        Raises:
            ValueError: If a bound is NaN
        """
        if math.isnan(domain[0]) or math.isnan(domain[1]):
            raise ValueError(f"Invalid domain {domain}, bounds must not be NaN")

        self.domain = domain
        self.config = config if config is not None else QuadratureConfig()
        self.pool = pool

    @abstractmethod
    def integrate(self, func: Callable) -> IntegrationResult:
        """Compute the definite integral of ``func`` over ``domain``."""


class AdaptiveIntegrator(Integrator):
    """Adaptive Gauss-Kronrod integration over a finite domain.

    Example:
        >>> integrator = AdaptiveIntegrator((0.0, math.pi))
        >>> integrator.integrate(math.sin).result  # 2.0
    """

    def __init__(
        self,
        domain: tuple[float, float] = (0.0, 1.0),
        config: QuadratureConfig | None = None,
        pool: WorkspacePool | None = None,
    ):
        """Initialize adaptive integrator.

        Raises:
            ValueError: If a bound is NaN or infinite
        """
        super().__init__(domain, config, pool)
        if math.isinf(domain[0]) or math.isinf(domain[1]):
            raise ValueError(
                f"Invalid domain {domain}, use SubstitutionIntegrator "
                "for infinite bounds"
            )

    def integrate(self, func: Callable) -> IntegrationResult:
        a, b = self.domain
        return integrate(func, a, b, config=self.config, pool=self.pool)


class SubstitutionIntegrator(Integrator):
    """Adaptive integration after a change of variables.

    Attributes:
        substitution: Change of variables applied to every integrand
    """

    def __init__(
        self,
        domain: tuple[float, float],
        substitution: Substitution,
        config: QuadratureConfig | None = None,
        pool: WorkspacePool | None = None,
    ):
        super().__init__(domain, config, pool)
        self.substitution = substitution

    def integrate(self, func: Callable) -> IntegrationResult:
        a, b = self.domain
        return integrate_substituted(
            func, a, b, self.substitution, config=self.config, pool=self.pool
        )


def create_integrator(
    method: str = "adaptive",
    domain: tuple[float, float] = (0.0, 1.0),
    **kwargs,
) -> Integrator:
    """Factory function to create integrators.

    Args:
        method: "adaptive", "reciprocal" (semi-infinite domains) or "square"
            (inverse square-root singularity at ``origin``)
        domain: Integration bounds
        **kwargs: ``config`` and ``pool`` for every method, ``origin`` for
            "square" (defaults to the lower end of ``domain``)

    Returns:
        Initialized integrator instance

    Raises:
        ValueError: If method is not recognized

    Example:
        >>> integrator = create_integrator("reciprocal", (1.0, math.inf))
        >>> integrator.integrate(lambda x: x**-2).result  # 1.0
    """
    method = method.lower()
    config = kwargs.get("config")
    pool = kwargs.get("pool")

    if method == "adaptive":
        return AdaptiveIntegrator(domain=domain, config=config, pool=pool)

    if method == "reciprocal":
        return SubstitutionIntegrator(
            domain, ReciprocalSubstitution(), config=config, pool=pool
        )

    if method == "square":
        origin = kwargs.get("origin", min(domain))
        return SubstitutionIntegrator(
            domain, SquareSubstitution(origin), config=config, pool=pool
        )

    supported_methods = ["adaptive", "reciprocal", "square"]
    raise ValueError(
        f"Unknown integration method: {method}. Supported methods: {supported_methods}"
    )
