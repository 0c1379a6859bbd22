"""Unit tests for the public integration entry points.

Tests cover:
- integrate: defaults, overrides, diagnostics and warnings
- Pool usage: release on every exit path, steady-state reuse
- Integrator classes and the create_integrator factory
"""

import math
import warnings

import pytest
import torch

from gkquad.quadrature.config import QuadratureConfig
from gkquad.quadrature.engine import Diagnostic, IntegrationResult
from gkquad.quadrature.exceptions import (
    InvalidToleranceError,
    QuadratureError,
    QuadratureWarning,
)
from gkquad.quadrature.integrator import (
    AdaptiveIntegrator,
    SubstitutionIntegrator,
    create_integrator,
    integrate,
)
from gkquad.quadrature.pool import default_pool
from gkquad.quadrature.substitution import ReciprocalSubstitution, SquareSubstitution


def _inverse_sqrt(x):
    return 1.0 / math.sqrt(x)


class TestIntegrate:
    """Tests for the functional entry point."""

    def test_defaults(self, pool):
        """Test a smooth integrand converges with default settings."""
        result = integrate(math.sin, 0.0, math.pi, pool=pool)

        assert isinstance(result, IntegrationResult)
        assert result.converged
        assert result.result == pytest.approx(2.0, rel=1e-12)
        assert result.abserr <= 1.49e-8 * 2.0

    def test_reference_values(self, pool):
        """Test oscillatory and peaked integrands against known values."""
        oscillatory = integrate(
            lambda x: math.exp(x * x * math.cos(10 * x)),
            -1.5,
            1.5,
            epsrel=1e-12,
            epsabs=0.0,
            pool=pool,
        )
        peaked = integrate(
            lambda x: 1.0 / (x + 0.001),
            0.0,
            1.0,
            epsrel=1e-12,
            epsabs=0.0,
            pool=pool,
        )
        assert oscillatory.result == pytest.approx(4.097655169215941, rel=1e-11)
        assert peaked.result == pytest.approx(6.90875477931522, rel=1e-11)

    def test_tolerance_override(self, pool):
        """Test tighter tolerances cost more evaluations."""
        loose = integrate(_inverse_sqrt, 0.0, 1.0, epsrel=1e-3, epsabs=0.0, pool=pool)
        tight = integrate(_inverse_sqrt, 0.0, 1.0, epsrel=1e-10, epsabs=0.0, pool=pool)

        assert loose.converged and tight.converged
        assert tight.nevals > loose.nevals
        assert tight.result == pytest.approx(2.0, rel=1e-9)

    def test_keyword_overrides_config(self, pool):
        """Test explicit arguments take precedence over the config."""
        config = QuadratureConfig(epsrel=1e-2, epsabs=0.0)
        coarse = integrate(_inverse_sqrt, 0.0, 1.0, config=config, pool=pool)
        fine = integrate(
            _inverse_sqrt, 0.0, 1.0, epsrel=1e-10, config=config, pool=pool
        )
        assert fine.nevals > coarse.nevals

    def test_integer_bounds_accepted(self, pool):
        """Test integer bounds are converted to floats."""
        result = integrate(lambda x: x, 0, 2, pool=pool)
        assert result.result == pytest.approx(2.0)

    @pytest.mark.parametrize(
        "a,b,message",
        [
            (0.0, math.inf, "use integrate_substituted for infinite bounds"),
            (-math.inf, 0.0, "use integrate_substituted for infinite bounds"),
            (math.nan, 1.0, "bounds must not be NaN"),
            (0.0, math.nan, "bounds must not be NaN"),
        ],
    )
    def test_non_finite_bounds_rejected(self, pool, a, b, message):
        """Test ValueError for NaN or infinite bounds before any evaluation."""
        calls = []
        with pytest.raises(ValueError, match=message):
            integrate(lambda x: calls.append(x) or math.exp(-x), a, b, pool=pool)
        assert calls == []
        assert len(pool) == 0

    def test_reversed_bounds(self, pool):
        """Test swapping bounds negates the result."""
        forward = integrate(math.exp, 0.0, 1.0, pool=pool)
        backward = integrate(math.exp, 1.0, 0.0, pool=pool)
        assert backward.result == pytest.approx(-forward.result, rel=1e-14)

    def test_result_unpacking(self, pool):
        """Test results unpack as result, abserr, nevals, diagnostic."""
        result, abserr, nevals, diagnostic = integrate(
            lambda x: x * x, 0.0, 1.0, pool=pool
        )
        assert result == pytest.approx(1.0 / 3.0)
        assert abserr >= 0.0
        assert nevals % 15 == 0
        assert diagnostic is Diagnostic.NONE

    def test_vectorized_config(self, pool):
        """Test vectorized mode calls the integrand with tensors."""
        calls = []

        def func(x):
            calls.append(x)
            return torch.exp(x)

        result = integrate(
            func, 0.0, 1.0, config=QuadratureConfig(vectorized=True), pool=pool
        )
        assert result.result == pytest.approx(math.e - 1.0, rel=1e-12)
        assert all(isinstance(x, torch.Tensor) for x in calls)
        assert len(calls) * 15 == result.nevals

    def test_default_pool_used(self):
        """Test calls without a pool borrow from the thread's default pool."""
        integrate(math.cos, 0.0, 1.0)
        pool = default_pool()
        assert len(pool) >= 1
        assert pool.num_in_use == 0


class TestDiagnosticsReporting:
    """Tests for warnings and errors raised from diagnostics."""

    def test_invalid_tolerance_result(self, pool, quiet_config):
        """Test zero tolerances yield INVALID_TOLERANCE without evaluating."""
        calls = []
        result = integrate(
            lambda x: calls.append(x) or x,
            0.0,
            1.0,
            epsrel=0.0,
            epsabs=0.0,
            config=quiet_config,
            pool=pool,
        )
        assert result == IntegrationResult(0.0, 0.0, 0, Diagnostic.INVALID_TOLERANCE)
        assert calls == []

    def test_invalid_tolerance_warns(self, pool):
        """Test INVALID_TOLERANCE emits a QuadratureWarning by default."""
        with pytest.warns(QuadratureWarning, match="tolerance cannot be achieved"):
            integrate(math.sin, 0.0, 1.0, epsrel=1e-20, epsabs=0.0, pool=pool)

    def test_raise_on_invalid(self, pool):
        """Test raise_on_invalid converts the diagnostic into an exception."""
        config = QuadratureConfig(epsabs=0.0, epsrel=0.0, raise_on_invalid=True)
        with pytest.raises(InvalidToleranceError, match="epsabs=0.0, epsrel=0.0"):
            integrate(math.sin, 0.0, 1.0, config=config, pool=pool)
        assert pool.num_in_use == 0

    def test_invalid_tolerance_error_hierarchy(self):
        """Test InvalidToleranceError can be caught as ValueError."""
        assert issubclass(InvalidToleranceError, QuadratureError)
        assert issubclass(InvalidToleranceError, ValueError)

    def test_subdivision_limit_warns(self, pool):
        """Test a too-small capacity warns and still returns a result."""
        with pytest.warns(QuadratureWarning, match="maximum number of subdivisions"):
            result = integrate(
                _inverse_sqrt, 0.0, 1.0, epsrel=1e-10, capacity=2, pool=pool
            )
        assert result.diagnostic is Diagnostic.SUBDIVISION_LIMIT
        assert result.num_intervals == 2
        assert result.result == pytest.approx(2.0, rel=0.1)

    def test_warning_disabled(self, pool):
        """Test warn=False suppresses QuadratureWarning."""
        config = QuadratureConfig(epsrel=1e-10, limit=2, warn=False)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = integrate(_inverse_sqrt, 0.0, 1.0, config=config, pool=pool)
        assert result.diagnostic is Diagnostic.SUBDIVISION_LIMIT

    def test_converged_call_does_not_warn(self, pool):
        """Test successful calls emit no warning."""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            integrate(math.exp, 0.0, 1.0, pool=pool)

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"epsabs": -1.0}, "epsabs must be non-negative"),
            ({"epsrel": -1e-8}, "epsrel must be non-negative"),
            ({"capacity": 0}, "limit must be positive"),
        ],
    )
    def test_invalid_arguments(self, pool, kwargs, message):
        """Test ValueError for negative tolerances and empty capacity."""
        with pytest.raises(ValueError, match=message):
            integrate(math.sin, 0.0, 1.0, pool=pool, **kwargs)
        assert len(pool) == 0


class TestPoolUsage:
    """Tests for workspace borrowing by integrate."""

    def test_released_after_call(self, pool):
        """Test the store is returned after a successful call."""
        integrate(math.sin, 0.0, 1.0, pool=pool)
        assert len(pool) == 1
        assert pool.num_in_use == 0

    def test_released_when_integrand_raises(self, pool):
        """Test the store is returned when the integrand raises."""

        def failing(x):
            raise ArithmeticError("bad evaluation")

        with pytest.raises(ArithmeticError, match="bad evaluation"):
            integrate(failing, 0.0, 1.0, pool=pool)
        assert pool.num_in_use == 0

    def test_steady_state_reuse(self, pool):
        """Test repeated calls reuse a single store."""
        for k in range(1, 50):
            integrate(lambda x, k=k: math.sin(k * x), 0.0, 1.0, pool=pool)
        assert len(pool) == 1

    def test_large_capacity_request(self, small_pool):
        """Test a capacity above the pool default creates a larger store."""
        integrate(math.sin, 0.0, 1.0, capacity=1000, pool=small_pool)
        assert small_pool.capacities() == [1000]


class TestIntegratorClasses:
    """Tests for domain-bound integrators."""

    def test_adaptive_integrator(self, pool):
        """Test integration over the bound domain."""
        integrator = AdaptiveIntegrator((0.0, math.pi), pool=pool)
        assert integrator.integrate(math.sin).result == pytest.approx(2.0)

    def test_default_domain(self, pool):
        """Test the default domain is [0, 1]."""
        integrator = AdaptiveIntegrator(pool=pool)
        assert integrator.domain == (0.0, 1.0)
        assert integrator.integrate(lambda x: 2 * x).result == pytest.approx(1.0)

    def test_nan_domain_rejected(self):
        """Test ValueError for NaN bounds."""
        with pytest.raises(ValueError, match="must not be NaN"):
            AdaptiveIntegrator((0.0, math.nan))

    def test_infinite_domain_rejected(self):
        """Test adaptive integration refuses infinite bounds."""
        with pytest.raises(ValueError, match="use SubstitutionIntegrator"):
            AdaptiveIntegrator((0.0, math.inf))

    def test_config_applied(self, pool):
        """Test the integrator's config reaches the engine."""
        config = QuadratureConfig(epsrel=1e-10, limit=2, warn=False)
        result = AdaptiveIntegrator((0.0, 1.0), config=config, pool=pool).integrate(
            _inverse_sqrt
        )
        assert result.diagnostic is Diagnostic.SUBDIVISION_LIMIT

    def test_substitution_integrator(self, pool):
        """Test a semi-infinite domain through the reciprocal substitution."""
        integrator = SubstitutionIntegrator(
            (1.0, math.inf), ReciprocalSubstitution(), pool=pool
        )
        assert integrator.integrate(lambda x: x**-2).result == pytest.approx(1.0)


class TestCreateIntegrator:
    """Tests for the integrator factory."""

    def test_adaptive(self, pool):
        """Test the default method is adaptive."""
        integrator = create_integrator(domain=(0.0, 2.0), pool=pool)
        assert isinstance(integrator, AdaptiveIntegrator)
        assert integrator.pool is pool

    def test_case_insensitive(self):
        """Test method names are matched case-insensitively."""
        assert isinstance(create_integrator("Adaptive"), AdaptiveIntegrator)

    def test_reciprocal(self, pool):
        """Test the reciprocal method integrates a semi-infinite tail."""
        integrator = create_integrator("reciprocal", (1.0, math.inf), pool=pool)
        assert isinstance(integrator.substitution, ReciprocalSubstitution)
        result = integrator.integrate(lambda x: math.exp(-x))
        assert result.result == pytest.approx(math.exp(-1.0), rel=1e-8)

    def test_square_origin_defaults_to_lower_bound(self, pool):
        """Test the square method places the origin at the lower bound."""
        integrator = create_integrator("square", (3.0, 4.0), pool=pool)
        assert isinstance(integrator.substitution, SquareSubstitution)
        assert integrator.substitution.origin == 3.0
        result = integrator.integrate(lambda x: 1.0 / math.sqrt(x - 3.0))
        assert result.result == pytest.approx(2.0, rel=1e-12)

    def test_square_explicit_origin(self):
        """Test an explicit origin is passed through."""
        integrator = create_integrator("square", (0.0, 1.0), origin=-1.0)
        assert integrator.substitution.origin == -1.0

    def test_config_forwarded(self):
        """Test the config keyword reaches the integrator."""
        config = QuadratureConfig(epsrel=1e-6)
        assert create_integrator("adaptive", config=config).config is config

    def test_unknown_method(self):
        """Test ValueError for unsupported methods."""
        with pytest.raises(ValueError, match="Unknown integration method: simpson"):
            create_integrator("simpson")
