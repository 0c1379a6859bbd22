"""Adaptive Gauss-Kronrod integration engine.

The engine repeatedly bisects the subinterval with the largest error
estimate, applying the G7-K15 rule to both halves, until the summed error
meets ``max(epsabs, epsrel * |result|)``, the interval store is exhausted, or
the subdivision can no longer be resolved in floating point. Conditions that
stop refinement early are reported as a ``Diagnostic`` attached to the
result rather than raised.

Classes:
    Diagnostic: Classification attached to every integration result
    IntegrationResult: Result aggregate returned by the engine
    EngineRunState: Mutable running totals of one engine call
    AdaptiveEngine: The subdivision loop itself
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum

from .rules import EPSILON, TINY, GaussKronrod15
from .workspace import IntervalStore, SubInterval

logger = logging.getLogger(__name__)

MIN_EPSREL = max(50 * EPSILON, 0.5e-28)


class Diagnostic(Enum):
    """Outcome classification of an integration call."""

    NONE = "none"
    INVALID_TOLERANCE = "invalid_tolerance"
    ROUNDOFF_OR_SINGULARITY = "roundoff_or_singularity"
    SUBDIVISION_LIMIT = "subdivision_limit"
    TOLERANCE_NOT_MET = "tolerance_not_met"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    Diagnostic.NONE: "integration converged",
    Diagnostic.INVALID_TOLERANCE: (
        "tolerance cannot be achieved with epsabs <= 0 and "
        f"epsrel < {MIN_EPSREL:.3g}"
    ),
    Diagnostic.ROUNDOFF_OR_SINGULARITY: (
        "subintervals collapsed to floating-point resolution; "
        "possible singularity or roundoff in the integrand"
    ),
    Diagnostic.SUBDIVISION_LIMIT: "maximum number of subdivisions reached",
    Diagnostic.TOLERANCE_NOT_MET: "requested tolerance was not achieved",
}


@dataclass(frozen=True)
class IntegrationResult:
    """Result of one integration call.

    Unpacks as ``result, abserr, nevals, diagnostic``.

    Attributes:
        result: Integral estimate, signed according to the bound order
        abserr: Absolute error estimate
        nevals: Number of integrand evaluations
        diagnostic: Outcome classification
        num_intervals: Number of subintervals live at the end of the run
    """

    result: float
    abserr: float
    nevals: int
    diagnostic: Diagnostic = Diagnostic.NONE
    num_intervals: int = 0

    @property
    def converged(self) -> bool:
        return self.diagnostic is Diagnostic.NONE

    def __iter__(self) -> Iterator:
        return iter((self.result, self.abserr, self.nevals, self.diagnostic))


@dataclass
class EngineRunState:
    """Running totals owned by a single ``AdaptiveEngine.run`` call."""

    area: float
    errsum: float
    tolerance: float
    iteration: int = 1
    nevals: int = 0
    diagnostic: Diagnostic = Diagnostic.NONE


class AdaptiveEngine:
    """Globally adaptive integration over a single interval store.

    The engine holds no per-call state; one instance may be shared by
    nested and successive calls as long as each call uses its own store.

    Attributes:
        rule: Fixed rule applied to every subinterval
        vectorized: Whether the rule calls the integrand once per subinterval
    """

    def __init__(self, rule: GaussKronrod15 | None = None, vectorized: bool = False):
        self.rule = rule if rule is not None else GaussKronrod15()
        self.vectorized = vectorized

    def _apply(self, func: Callable, a: float, b: float) -> SubInterval:
        rule_estimate = self.rule.evaluate(func, a, b, self.vectorized)
        return SubInterval(a, b, rule_estimate.estimate, rule_estimate.error)

    def run(
        self,
        func: Callable,
        a: float,
        b: float,
        epsrel: float,
        epsabs: float,
        store: IntervalStore,
        limit: int | None = None,
    ) -> IntegrationResult:
        """Integrate ``func`` from ``a`` to ``b``.

        Args:
            func: Integrand accepting and returning a real number
            a: Lower bound (may exceed ``b``)
            b: Upper bound
            epsrel: Relative error tolerance
            epsabs: Absolute error tolerance
            store: Empty (or reset) interval store used as scratch space
            limit: Maximum number of subintervals; defaults to the store's
                capacity and may not exceed it

        Returns:
            IntegrationResult with the estimate, error and diagnostic. A
            non-finite error estimate is never reported as converged.

        Raises:
            ValueError: If limit is not positive or exceeds the store capacity
            WorkspaceInvariantError: If the store is not empty
        """
        limit = store.capacity if limit is None else limit
        if not 0 < limit <= store.capacity:
            raise ValueError(
                f"limit must be in [1, {store.capacity}] for this store, got {limit}"
            )

        if epsabs <= 0 and epsrel < MIN_EPSREL:
            logger.warning(
                f"Rejected tolerance request epsabs={epsabs}, epsrel={epsrel}"
            )
            return IntegrationResult(0.0, 0.0, 0, Diagnostic.INVALID_TOLERANCE)

        sign = 1.0
        if a > b:
            a, b = b, a
            sign = -1.0

        whole = self._apply(func, a, b)
        store.seed(whole)
        state = EngineRunState(
            area=whole.estimate,
            errsum=whole.error,
            tolerance=max(epsabs, epsrel * abs(whole.estimate)),
            nevals=self.rule.num_points,
        )

        while state.iteration < limit:
            self._refine(func, state, store, epsrel, epsabs, limit)
            if state.diagnostic is not Diagnostic.NONE:
                break
            # NaN totals compare false and stop refinement
            if not state.errsum > state.tolerance:
                break

        result, abserr = store.sum_all()

        diagnostic = Diagnostic.NONE
        if not abserr <= state.tolerance:
            diagnostic = state.diagnostic
            if diagnostic is Diagnostic.NONE:
                diagnostic = Diagnostic.TOLERANCE_NOT_MET

        logger.debug(
            f"Integrated over [{a}, {b}]: result={sign * result:.16g}, "
            f"abserr={abserr:.3g}, nevals={state.nevals}, "
            f"intervals={len(store)}, diagnostic={diagnostic.value}"
        )
        return IntegrationResult(
            result=sign * result,
            abserr=abserr,
            nevals=state.nevals,
            diagnostic=diagnostic,
            num_intervals=len(store),
        )

    def _refine(
        self,
        func: Callable,
        state: EngineRunState,
        store: IntervalStore,
        epsrel: float,
        epsabs: float,
        limit: int,
    ) -> None:
        """Bisect the worst subinterval once and update ``state``."""
        parent = store.peek_max()
        (a1, b1), (a2, b2) = parent.bisect()

        left = self._apply(func, a1, b1)
        right = self._apply(func, a2, b2)
        state.nevals += 2 * self.rule.num_points

        state.area += left.estimate + right.estimate - parent.estimate
        state.errsum += left.error + right.error - parent.error
        state.tolerance = max(epsabs, epsrel * abs(state.area))

        if state.errsum > state.tolerance:
            resolution = (1 + 100 * EPSILON) * (abs(a2) + 1000 * TINY)
            if abs(a1) <= resolution and abs(b2) <= resolution:
                state.diagnostic = Diagnostic.ROUNDOFF_OR_SINGULARITY

            # this bisection fills the store
            if state.iteration + 1 >= limit:
                state.diagnostic = Diagnostic.SUBDIVISION_LIMIT

        store.replace_max((left, right))
        state.iteration += 1
